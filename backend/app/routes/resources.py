"""Resource collection API routes: snapshot, table page and live stream."""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from app.dependencies import get_table_state, get_viewer_session
from app.schemas.resource import (
    ResourceListResponse,
    ResourceWrapper,
    TableCellResponse,
    TableHeaderResponse,
    TablePageResponse,
    TableRowResponse,
)
from app.services.viewer import ViewerSession
from app.viewer.columns import make_columns
from app.viewer.table import TablePage, TableState, build_table

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["resources"])


def _to_models(rows: list[dict[str, Any]]) -> list[ResourceWrapper]:
    """Validate rows for the API, skipping documents that do not fit the schema."""
    models = []
    for row in rows:
        try:
            models.append(ResourceWrapper.model_validate(row))
        except ValidationError as e:
            logger.warning("Skipping malformed resource %s: %s", row.get("id"), e.error_count())
    return models


def table_page_response(page: TablePage) -> TablePageResponse:
    """Serialize a rendered table page."""
    return TablePageResponse(
        headers=[
            TableHeaderResponse(id=h.id, header=h.header, sortable=h.sortable, sorted=h.sorted)
            for h in page.headers
        ],
        rows=[
            TableRowResponse(
                row_id=row.row_id,
                cells=[
                    TableCellResponse(
                        column=column.id,
                        text=cell.text,
                        secondary=cell.secondary,
                        variant=cell.variant,
                    )
                    for column, cell in row.cells
                ],
            )
            for row in page.rows
        ],
        total_results=page.total_results,
        page_index=page.page_index,
        page_count=page.display_page_count,
        can_previous=page.can_previous,
        can_next=page.can_next,
    )


@router.get("", response_model=ResourceListResponse)
async def list_resources(
    session: ViewerSession = Depends(get_viewer_session),
) -> ResourceListResponse:
    """Return the current snapshot, newest first (at most 500 records)."""
    items = _to_models(session.records)
    return ResourceListResponse(items=items, total=len(items), demo=session.demo)


@router.get("/table", response_model=TablePageResponse)
async def resource_table(
    state: TableState = Depends(get_table_state),
    live: bool = Query(default=True, description="Include relative times"),
    session: ViewerSession = Depends(get_viewer_session),
) -> TablePageResponse:
    """Return one page of the searched and sorted table."""
    page = build_table(session.records, make_columns(show_live_time=live), state)
    return table_page_response(page)


@router.get("/stream")
async def resource_stream(
    session: ViewerSession = Depends(get_viewer_session),
) -> StreamingResponse:
    """Notify the browser whenever the record collection changes.

    SSE event types:
    - event: snapshot: {"version": n, "count": m} after every change

    The listener registration is removed when the client disconnects.
    """

    async def event_generator():
        """Yield SSE events for each snapshot."""
        async for version in session.changes():
            payload = json.dumps({"version": version, "count": len(session.records)})
            yield f"event: snapshot\ndata: {payload}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )
