"""Live Firestore listener for the ``ehr_resources`` collection."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from google.cloud import firestore
from google.oauth2.credentials import Credentials

from app.auth import Identity
from app.config import settings
from app.services.normalize import normalize_document
from app.services.streams import Subscription

logger = logging.getLogger(__name__)

COLLECTION = "ehr_resources"
ORDER_FIELD = "resource.metadata.createdTime"
MAX_RECORDS = 500

SnapshotCallback = Callable[[list[dict[str, Any]]], None]


class ResourceSource(Protocol):
    """Anything that can push ordered record snapshots for an identity."""

    def listen(self, identity: Identity, on_snapshot: SnapshotCallback) -> Subscription:
        """Start delivering complete, normalized snapshots to ``on_snapshot``.

        Callbacks run on the event loop thread. The returned subscription
        stops delivery when cancelled.
        """
        ...


class FirestoreResourceSource:
    """ResourceSource backed by a Firestore ``on_snapshot`` watch.

    Each listener gets its own client authenticated with the user's ID token,
    so the collection is filtered by the store's security rules.
    """

    def __init__(self, project_id: str | None = None) -> None:
        self.project_id = project_id or settings.firebase_project_id

    def _client_for(self, identity: Identity) -> firestore.Client:
        return firestore.Client(
            project=self.project_id,
            credentials=Credentials(token=identity.id_token),
        )

    def listen(self, identity: Identity, on_snapshot: SnapshotCallback) -> Subscription:
        loop = asyncio.get_running_loop()
        client = self._client_for(identity)
        query = (
            client.collection(COLLECTION)
            .order_by(ORDER_FIELD, direction=firestore.Query.DESCENDING)
            .limit(MAX_RECORDS)
        )
        subscription: Subscription | None = None

        def _deliver(rows: list[dict[str, Any]]) -> None:
            # A snapshot queued before cancel() must not reach the session
            if subscription is not None and not subscription.cancelled:
                on_snapshot(rows)

        def _on_watch(docs, _changes, _read_time) -> None:
            # Runs on the Firestore watch thread
            try:
                rows = [normalize_document(doc.id, doc.to_dict()) for doc in docs]
                loop.call_soon_threadsafe(_deliver, rows)
            except RuntimeError:
                # Event loop already closed during shutdown
                logger.warning("Dropped snapshot for %s: event loop closed", identity.uid)
            except Exception:
                logger.exception("Failed to process snapshot for %s", identity.uid)

        watch = query.on_snapshot(_on_watch)
        logger.info("Listening to %s for user %s", COLLECTION, identity.uid)

        def _teardown() -> None:
            # Runs on the event loop and blocks while unsubscribe() joins the
            # watch thread. Sign-out relies on the watch being gone when
            # cancel() returns, so this stays synchronous.
            try:
                watch.unsubscribe()
            finally:
                client.close()
            logger.info("Stopped listening to %s for user %s", COLLECTION, identity.uid)

        subscription = Subscription(_teardown)
        return subscription
