"""Detail panel content for a single resource row."""

from dataclasses import dataclass, field
from datetime import datetime

from app.viewer.columns import Row, identifier_of, metadata_of, resource_of, resource_type, row_key
from app.viewer.formatting import DASH, pretty, state_value, time_ago


@dataclass(frozen=True)
class Field:
    label: str
    value: str
    mono: bool = False


@dataclass(frozen=True)
class Block:
    label: str
    text: str


@dataclass(frozen=True)
class DetailView:
    row_id: str
    title: str
    subtitle: str
    times: list[Field] = field(default_factory=list)
    identifiers: list[Field] = field(default_factory=list)
    blocks: list[Block] = field(default_factory=list)


def _timestamp_field(label: str, iso: object, show_live_time: bool, now: datetime | None) -> Field:
    value = pretty(iso)
    if show_live_time:
        value = f"{value} ({time_ago(iso, now)})"
    return Field(label=label, value=value)


def _text_or_dash(value: object) -> str:
    return str(value) if value else DASH


def build_detail(row: Row, show_live_time: bool, now: datetime | None = None) -> DetailView:
    """Assemble the slide-over content for ``row``.

    Processed time and the AI summary only appear when the document has them.
    """
    metadata = metadata_of(row)
    identifier = identifier_of(row)
    resource = resource_of(row)

    times = [
        _timestamp_field("Created", metadata.get("createdTime"), show_live_time, now),
        _timestamp_field("Fetched", metadata.get("fetchTime"), show_live_time, now),
    ]
    if metadata.get("processedTime"):
        times.append(_timestamp_field("Processed", metadata["processedTime"], show_live_time, now))

    identifiers = [
        Field("Key", _text_or_dash(identifier.get("key")), mono=True),
        Field("UID", _text_or_dash(identifier.get("uid")), mono=True),
        Field("Patient ID", _text_or_dash(identifier.get("patientId")), mono=True),
    ]

    blocks = [Block("Human Readable", _text_or_dash(resource.get("humanReadableStr")))]
    if resource.get("aiSummary"):
        blocks.append(Block("AI Summary", str(resource["aiSummary"])))

    version = metadata.get("version")
    version_text = getattr(version, "value", version) or DASH
    return DetailView(
        row_id=row_key(row),
        title=resource_type(row) or DASH,
        subtitle=f"FHIR {version_text} • State: {state_value(metadata.get('state'))}",
        times=times,
        identifiers=identifiers,
        blocks=blocks,
    )
