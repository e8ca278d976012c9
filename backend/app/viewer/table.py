"""Search, sort and pagination over normalized resource rows."""

import math
from dataclasses import dataclass, field

from app.viewer.columns import Cell, Column, Row, row_key

DEFAULT_PAGE_SIZE = 10

SORT_INDICATORS = {"asc": " ▲", "desc": " ▼"}


@dataclass(frozen=True)
class TableState:
    """User-controlled table state, carried in query parameters."""

    global_filter: str = ""
    sort_id: str | None = None
    sort_desc: bool = False
    page_index: int = 0

    def toggled(self, column_id: str) -> "TableState":
        """Next sort state after clicking a header: none -> asc -> desc -> none."""
        if self.sort_id != column_id:
            return TableState(self.global_filter, column_id, False, 0)
        if not self.sort_desc:
            return TableState(self.global_filter, column_id, True, 0)
        return TableState(self.global_filter, None, False, 0)

    def with_page(self, page_index: int) -> "TableState":
        return TableState(self.global_filter, self.sort_id, self.sort_desc, page_index)


@dataclass(frozen=True)
class Header:
    id: str
    header: str
    sortable: bool
    sorted: str | None

    @property
    def indicator(self) -> str:
        return SORT_INDICATORS.get(self.sorted or "", "")


@dataclass(frozen=True)
class RenderedRow:
    row_id: str
    source: Row
    cells: list[tuple[Column, Cell]]


@dataclass(frozen=True)
class TablePage:
    headers: list[Header]
    rows: list[RenderedRow]
    total_results: int
    page_index: int
    page_count: int
    state: TableState
    columns: list[Column] = field(default_factory=list)

    @property
    def can_previous(self) -> bool:
        return self.page_index > 0

    @property
    def can_next(self) -> bool:
        return self.page_index + 1 < self.page_count

    @property
    def display_page_count(self) -> int:
        return self.page_count or 1


def matches(row: Row, columns: list[Column], needle: str) -> bool:
    """Case-insensitive substring match against visible cell text."""
    needle = needle.strip().casefold()
    if not needle:
        return True
    return any(
        needle in column.search_text(row).casefold()
        for column in columns
        if column.search_text is not None
    )


def build_table(
    rows: list[Row],
    columns: list[Column],
    state: TableState,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> TablePage:
    """Filter, sort and paginate ``rows``.

    Sorting is stable, so ties keep the store order (newest first). Unknown
    or unsortable sort columns are ignored. A page index past the end is
    clamped to the last page.
    """
    filtered = [row for row in rows if matches(row, columns, state.global_filter)]

    sort_column = next(
        (column for column in columns if column.id == state.sort_id and column.sortable),
        None,
    )
    if sort_column is not None:
        filtered = sorted(filtered, key=sort_column.sort_key, reverse=state.sort_desc)

    page_count = math.ceil(len(filtered) / page_size)
    page_index = min(max(state.page_index, 0), max(page_count - 1, 0))
    start = page_index * page_size
    page_rows = filtered[start:start + page_size]

    headers = [
        Header(
            id=column.id,
            header=column.header,
            sortable=column.sortable,
            sorted=(
                ("desc" if state.sort_desc else "asc")
                if sort_column is not None and column.id == sort_column.id
                else None
            ),
        )
        for column in columns
    ]

    rendered = [
        RenderedRow(
            row_id=row_key(row),
            source=row,
            cells=[(column, column.render(row)) for column in columns],
        )
        for row in page_rows
    ]

    return TablePage(
        headers=headers,
        rows=rendered,
        total_results=len(filtered),
        page_index=page_index,
        page_count=page_count,
        state=state.with_page(page_index),
        columns=columns,
    )
