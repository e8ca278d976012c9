"""FastAPI dependencies shared by the API and page routes."""

from fastapi import Query, Request

from app.config import settings
from app.services.viewer import ViewerSession, ViewerSessionRegistry
from app.viewer.table import TableState

SESSION_COOKIE = "ehr_viewer_session"


def get_registry(request: Request) -> ViewerSessionRegistry:
    return request.app.state.viewer_sessions


def get_session_id(request: Request) -> str:
    """Cookie id assigned by ViewerSessionMiddleware."""
    return request.state.viewer_session_id


def resolve_session(request: Request, demo: bool) -> ViewerSession:
    """Demo session when configured or requested, else the caller's session."""
    return get_registry(request).resolve(get_session_id(request), demo=settings.demo or demo)


def get_viewer_session(
    request: Request,
    demo: bool = Query(default=False, description="Serve the fixed demo records"),
) -> ViewerSession:
    return resolve_session(request, demo)


def get_table_state(
    q: str = Query(default="", max_length=200, description="Global search text"),
    sort: str | None = Query(default=None, description="Column id to sort by"),
    desc: bool = Query(default=False, description="Sort descending"),
    page: int = Query(default=0, ge=0, description="Zero-based page index"),
) -> TableState:
    return TableState(global_filter=q, sort_id=sort or None, sort_desc=desc, page_index=page)
