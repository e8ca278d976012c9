"""Pydantic schemas for EHR resource documents.

These mirror the documents stored in the ``ehr_resources`` collection after
normalization. Field names keep the store's camelCase so documents validate
without aliasing. Unknown fields are kept, and unknown enum values are
accepted as plain strings, so a producer adding fields or states does not
break the viewer.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# === Enums ===


class ProcessingState(str, Enum):
    """Ingestion lifecycle of a resource, set by the external pipeline."""

    PROCESSING_STATE_UNSPECIFIED = "PROCESSING_STATE_UNSPECIFIED"
    PROCESSING_STATE_NOT_STARTED = "PROCESSING_STATE_NOT_STARTED"
    PROCESSING_STATE_PROCESSING = "PROCESSING_STATE_PROCESSING"
    PROCESSING_STATE_COMPLETED = "PROCESSING_STATE_COMPLETED"
    PROCESSING_STATE_FAILED = "PROCESSING_STATE_FAILED"


class FHIRVersion(str, Enum):
    """Schema dialect of the underlying FHIR resource."""

    FHIR_VERSION_UNSPECIFIED = "FHIR_VERSION_UNSPECIFIED"
    FHIR_VERSION_R4 = "FHIR_VERSION_R4"
    FHIR_VERSION_R4B = "FHIR_VERSION_R4B"


# === Document Schemas ===


class ResourceIdentifier(BaseModel):
    """Addresses one resource within its patient. Immutable."""

    model_config = ConfigDict(extra="allow", frozen=True)

    key: str | None = None
    uid: str | None = None
    patientId: str | None = None


class ResourceMetadata(BaseModel):
    """Metadata block of a resource document.

    Timestamps are ISO-8601 text once normalized. ``processedTime`` is only
    present after processing completed or failed.
    """

    model_config = ConfigDict(extra="allow")

    state: ProcessingState | str = ProcessingState.PROCESSING_STATE_UNSPECIFIED
    createdTime: str | None = None
    fetchTime: str | None = None
    processedTime: str | None = None
    identifier: ResourceIdentifier | None = None
    resourceType: str = ""
    version: FHIRVersion | str = FHIRVersion.FHIR_VERSION_UNSPECIFIED


class ResourceRecord(BaseModel):
    """The displayable unit."""

    model_config = ConfigDict(extra="allow")

    metadata: ResourceMetadata
    humanReadableStr: str = ""
    aiSummary: str | None = None


class ResourceWrapper(BaseModel):
    """A resource paired with its Firestore document id.

    ``id`` is absent for rows synthesized on the client side.
    """

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    resource: ResourceRecord


# === API Response Schemas ===


class ResourceListResponse(BaseModel):
    """Current snapshot of the record collection."""

    items: list[ResourceWrapper]
    total: int
    demo: bool = False


class IdentityResponse(BaseModel):
    """Sign-in state of the current viewer session."""

    email: str | None = None
    demo: bool = False


class SignInRequest(BaseModel):
    """Firebase ID token produced by the browser sign-in popup."""

    id_token: str = Field(min_length=1, max_length=8192)


class TableCellResponse(BaseModel):
    """Rendered content of one table cell."""

    column: str
    text: str
    secondary: str | None = None
    variant: str | None = None


class TableRowResponse(BaseModel):
    """One rendered table row."""

    row_id: str
    cells: list[TableCellResponse]


class TableHeaderResponse(BaseModel):
    """Column header with its sort state."""

    id: str
    header: str
    sortable: bool
    sorted: str | None = Field(default=None, description="'asc', 'desc' or None")


class TablePageResponse(BaseModel):
    """One page of the filtered and sorted table."""

    headers: list[TableHeaderResponse]
    rows: list[TableRowResponse]
    total_results: int
    page_index: int
    page_count: int
    can_previous: bool
    can_next: bool
