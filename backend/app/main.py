"""FastAPI application entry point."""

import logging
import secrets
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.dependencies import SESSION_COOKIE
from app.routes import resources, session, viewer
from app.services.viewer import ViewerSessionRegistry

logger = logging.getLogger(__name__)

APP_NAME = "EHR Resource Viewer"
APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events for startup/shutdown."""
    if settings.demo:
        logger.info("Demo mode enabled - serving fixed records, sign-in disabled")

    yield  # Application runs here

    # Shutdown: stop every live Firestore listener
    app.state.viewer_sessions.close_all()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Referrer policy
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Permissions policy (restrict sensitive APIs)
        response.headers["Permissions-Policy"] = (
            "geolocation=(), microphone=(), camera=()"
        )
        return response


class ViewerSessionMiddleware(BaseHTTPMiddleware):
    """Give every browser an opaque viewer-session cookie."""

    async def dispatch(self, request: Request, call_next) -> Response:
        session_id = request.cookies.get(SESSION_COOKIE)
        is_new = not session_id
        if is_new:
            session_id = secrets.token_urlsafe(32)
        request.state.viewer_session_id = session_id

        response = await call_next(request)
        if is_new:
            response.set_cookie(
                SESSION_COOKIE,
                session_id,
                httponly=True,
                samesite="lax",
                secure=settings.cookie_secure,
            )
        return response


app = FastAPI(
    title=APP_NAME,
    description="Read-only live viewer for EHR resource documents",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=settings.debug,
)

# One viewer session per browser cookie
app.state.viewer_sessions = ViewerSessionRegistry(
    idle_timeout=settings.session_idle_timeout,
    max_sessions=settings.max_viewer_sessions,
)

# Security headers middleware (applied to all responses)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(ViewerSessionMiddleware)

# CORS middleware
# Parse comma-separated origins from config
_cors_origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

# Include API routers
app.include_router(session.router, prefix="/api")
app.include_router(resources.router, prefix="/api")

# Server-rendered viewer
app.include_router(viewer.router)


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/", response_model=None)
async def root(request: Request) -> Response | dict:
    """Send browsers to the viewer; API clients get service info."""
    if "text/html" in request.headers.get("accept", ""):
        return RedirectResponse(url="/ehr")
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "docs": "/docs",
    }
