"""Column descriptors for the resource table.

Each column declares how to render a cell, what text the global search sees,
and how to sort, so the table model needs no per-column branches.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.viewer.formatting import (
    DASH,
    NBSP,
    pretty,
    state_badge,
    state_label,
    time_ago,
    timestamp_sort_key,
)

Row = dict[str, Any]


@dataclass(frozen=True)
class Cell:
    """Rendered cell content. ``secondary`` is the second line of two-line cells."""

    text: str
    secondary: str | None = None
    variant: str | None = None


@dataclass(frozen=True)
class Column:
    id: str
    header: str
    render: Callable[[Row], Cell]
    search_text: Callable[[Row], str] | None = None
    sort_key: Callable[[Row], Any] | None = None

    @property
    def sortable(self) -> bool:
        return self.sort_key is not None

    @property
    def searchable(self) -> bool:
        return self.search_text is not None


# =============================================================================
# Row accessors (tolerate malformed documents)
# =============================================================================


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def resource_of(row: Row) -> Mapping[str, Any]:
    return _mapping(row.get("resource"))


def metadata_of(row: Row) -> Mapping[str, Any]:
    return _mapping(resource_of(row).get("metadata"))


def identifier_of(row: Row) -> Mapping[str, Any]:
    return _mapping(metadata_of(row).get("identifier"))


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def row_key(row: Row) -> str:
    """Stable id for a row: the document id, else the identifier key."""
    return _text(row.get("id") or identifier_of(row).get("key"))


def resource_type(row: Row) -> str:
    return _text(metadata_of(row).get("resourceType"))


def patient_id(row: Row) -> str:
    return _text(identifier_of(row).get("patientId")) or DASH


# =============================================================================
# Column table
# =============================================================================


def _timestamp_column(column_id: str, header: str, field: str, show_live_time: bool, now: datetime | None) -> Column:
    def render(row: Row) -> Cell:
        iso = metadata_of(row).get(field)
        relative = time_ago(iso, now) if show_live_time else NBSP
        return Cell(text=relative, secondary=pretty(iso))

    return Column(
        id=column_id,
        header=header,
        render=render,
        search_text=lambda row: pretty(metadata_of(row).get(field)),
        sort_key=lambda row: timestamp_sort_key(metadata_of(row).get(field)),
    )


def make_columns(show_live_time: bool, now: datetime | None = None) -> list[Column]:
    """Build the six table columns.

    Args:
        show_live_time: Render relative times. False for the initial server
            render, which shows a non-breaking blank instead.
        now: Reference time for relative times (defaults to the current time).
    """
    return [
        Column(
            id="resourceType",
            header="Resource Type",
            render=lambda row: Cell(text=resource_type(row)),
            search_text=resource_type,
            sort_key=lambda row: resource_type(row).casefold(),
        ),
        Column(
            id="patient",
            header="Patient",
            render=lambda row: Cell(text=patient_id(row)),
            search_text=patient_id,
            sort_key=lambda row: _text(identifier_of(row).get("patientId")).casefold(),
        ),
        _timestamp_column("created", "Created", "createdTime", show_live_time, now),
        _timestamp_column("fetched", "Fetched", "fetchTime", show_live_time, now),
        Column(
            id="state",
            header="State",
            render=lambda row: Cell(
                text=state_label(metadata_of(row).get("state")),
                variant=state_badge(metadata_of(row).get("state")),
            ),
            search_text=lambda row: state_label(metadata_of(row).get("state")),
        ),
        Column(
            id="details",
            header="Details",
            render=lambda row: Cell(text="Open"),
        ),
    ]
