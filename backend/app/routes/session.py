"""Sign-in state API routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_viewer_session
from app.schemas.resource import IdentityResponse, SignInRequest
from app.services.viewer import ViewerSession

router = APIRouter(prefix="/session", tags=["session"])


def _identity_response(session: ViewerSession) -> IdentityResponse:
    identity = session.identity
    return IdentityResponse(email=identity.email if identity else None, demo=session.demo)


@router.get("", response_model=IdentityResponse)
async def get_identity(
    session: ViewerSession = Depends(get_viewer_session),
) -> IdentityResponse:
    """Return who is signed in to this viewer session."""
    return _identity_response(session)


@router.post("/sign-in", response_model=IdentityResponse)
async def sign_in(
    request: SignInRequest,
    session: ViewerSession = Depends(get_viewer_session),
) -> IdentityResponse:
    """Adopt the identity behind a Firebase ID token from the browser popup.

    Raises:
        HTTPException: 401 if the token is rejected. The session keeps its
            previous identity.
    """
    identity = await session.sign_in(request.id_token)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return _identity_response(session)


@router.post("/sign-out", response_model=IdentityResponse)
async def sign_out(
    session: ViewerSession = Depends(get_viewer_session),
) -> IdentityResponse:
    """Sign out and stop the live record listener. Idempotent."""
    await session.sign_out()
    return _identity_response(session)
