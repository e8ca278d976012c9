"""Firebase ID token verification.

The interactive Google popup runs in the browser through the Firebase JS SDK;
the resulting ID token is posted here and verified with firebase-admin before
the viewer session trusts it.
"""

import logging
from dataclasses import dataclass, field

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """A signed-in user.

    ``id_token`` is kept so Firestore reads run with the user's own
    credentials and the store's security rules apply.
    """

    uid: str
    email: str | None = None
    id_token: str = field(default="", repr=False)


DEMO_IDENTITY = Identity(uid="demo", email="demo@localhost")


def _get_firebase_app() -> firebase_admin.App:
    """Return the default firebase-admin app, initializing it on first use."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        return firebase_admin.initialize_app(options={"projectId": settings.firebase_project_id})


def verify_id_token(id_token: str) -> Identity:
    """Validate a Firebase ID token.

    Returns:
        The authenticated Identity.

    Raises:
        ValueError: If the token is empty, malformed, expired, or revoked.
    """
    if not id_token:
        raise ValueError("Missing ID token")

    try:
        claims = firebase_auth.verify_id_token(id_token, app=_get_firebase_app())
    except (firebase_auth.InvalidIdTokenError, firebase_auth.CertificateFetchError) as e:
        raise ValueError(f"Invalid ID token: {e}") from e
    except firebase_exceptions.FirebaseError as e:
        raise ValueError(f"ID token verification failed: {e}") from e

    return Identity(uid=claims["uid"], email=claims.get("email"), id_token=id_token)
