"""Pydantic schemas."""

from app.schemas.resource import (
    FHIRVersion,
    IdentityResponse,
    ProcessingState,
    ResourceIdentifier,
    ResourceListResponse,
    ResourceMetadata,
    ResourceRecord,
    ResourceWrapper,
    SignInRequest,
    TablePageResponse,
)

__all__ = [
    "FHIRVersion",
    "IdentityResponse",
    "ProcessingState",
    "ResourceIdentifier",
    "ResourceListResponse",
    "ResourceMetadata",
    "ResourceRecord",
    "ResourceWrapper",
    "SignInRequest",
    "TablePageResponse",
]
