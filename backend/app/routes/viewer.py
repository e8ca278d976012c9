"""Server-rendered viewer page and its HTML fragments.

The first render of ``/ehr`` never shows relative times and ignores
``?demo=1``, so its output does not depend on the clock or the URL. Once the
page script has loaded it re-requests the table with ``mounted=1`` and
forwards the demo flag.
"""

from pathlib import Path
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.config import settings
from app.dependencies import get_table_state, resolve_session
from app.viewer.columns import make_columns, row_key
from app.viewer.detail import build_detail
from app.viewer.table import TableState, build_table

router = APIRouter(prefix="/ehr", tags=["viewer"])

templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))


def table_url(state: TableState, *, mounted: bool, demo: bool) -> str:
    """URL of the table fragment for ``state``."""
    params: dict[str, str | int] = {}
    if state.global_filter:
        params["q"] = state.global_filter
    if state.sort_id:
        params["sort"] = state.sort_id
        if state.sort_desc:
            params["desc"] = 1
    if state.page_index:
        params["page"] = state.page_index
    if mounted:
        params["mounted"] = 1
    if demo:
        params["demo"] = 1
    query = urlencode(params)
    return f"/ehr/table?{query}" if query else "/ehr/table"


def _table_context(request: Request, state: TableState, *, mounted: bool, demo: bool) -> dict:
    session = resolve_session(request, demo)
    page = build_table(session.records, make_columns(show_live_time=mounted), state)
    detail_query = urlencode({k: 1 for k, on in (("mounted", mounted), ("demo", demo)) if on})
    return {
        "page": page,
        "loading": session.loading,
        "current_url": table_url(page.state, mounted=mounted, demo=demo),
        "sort_url": lambda column_id: table_url(page.state.toggled(column_id), mounted=mounted, demo=demo),
        "page_url": lambda index: table_url(page.state.with_page(index), mounted=mounted, demo=demo),
        "detail_query": detail_query,
    }


@router.get("", response_class=HTMLResponse)
async def viewer_page(request: Request) -> HTMLResponse:
    """Render the full viewer page."""
    demo = settings.demo
    context = _table_context(request, TableState(), mounted=False, demo=demo)
    context.update(
        {
            "demo": demo,
            "firebase_config": settings.firebase_web_config(),
        }
    )
    return templates.TemplateResponse(request, "ehr.html", context)


@router.get("/table", response_class=HTMLResponse)
async def table_fragment(
    request: Request,
    state: TableState = Depends(get_table_state),
    mounted: bool = Query(default=False, description="Set by the page script after load"),
    demo: bool = Query(default=False, description="Serve the fixed demo records"),
) -> HTMLResponse:
    """Render the table card for the given search, sort and page."""
    # The demo query parameter only counts once the client has mounted
    context = _table_context(request, state, mounted=mounted, demo=settings.demo or (mounted and demo))
    return templates.TemplateResponse(request, "_table.html", context)


@router.get("/resources/{row_id}", response_class=HTMLResponse)
async def detail_fragment(
    request: Request,
    row_id: str,
    mounted: bool = Query(default=False),
    demo: bool = Query(default=False),
) -> HTMLResponse:
    """Render the detail panel for one record.

    Raises:
        HTTPException: 404 if the record is not in the current snapshot.
    """
    session = resolve_session(request, mounted and demo)
    row = next((row for row in session.records if row_key(row) == row_id), None)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Resource not found",
        )
    detail = build_detail(row, show_live_time=mounted)
    return templates.TemplateResponse(request, "_detail.html", {"detail": detail})
