"""Viewer sessions: identity state plus the live record collection.

One ViewerSession exists per browser (keyed by cookie). It owns at most one
store listener at a time; the listener is replaced whenever the identity
changes and cancelled as soon as the identity goes away.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from typing import Any

from app.auth import DEMO_IDENTITY, Identity, verify_id_token
from app.services.demo import demo_rows
from app.services.store import FirestoreResourceSource, ResourceSource
from app.services.streams import Subscription, ValueStream

logger = logging.getLogger(__name__)

TokenVerifier = Callable[[str], Identity]


class ViewerSession:
    """Signed-in identity and the records visible to it."""

    demo = False

    def __init__(
        self,
        source: ResourceSource | None,
        verifier: TokenVerifier = verify_id_token,
        *,
        identity: Identity | None = None,
        records: list[dict[str, Any]] | None = None,
    ) -> None:
        self._source = source
        self._verify = verifier
        self._identity: ValueStream[Identity | None] = ValueStream(identity)
        self._records: ValueStream[list[dict[str, Any]]] = ValueStream(records or [])
        self._record_subscription: Subscription | None = None
        self._generation = 0
        self._loading = False
        self.version = 0
        self.active_streams = 0
        self.last_seen = time.monotonic()
        self._identity.subscribe(self._on_identity_change, emit_current=False)

    # --- state ---

    @property
    def identity(self) -> Identity | None:
        return self._identity.value

    @property
    def records(self) -> list[dict[str, Any]]:
        return self._records.value

    @property
    def loading(self) -> bool:
        """True between subscribing and the first snapshot."""
        return self._loading

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    # --- streams ---

    def observe_identity(self, callback: Callable[[Identity | None], None]) -> Subscription:
        return self._identity.subscribe(callback)

    def observe_records(self, callback: Callable[[list[dict[str, Any]]], None]) -> Subscription:
        return self._records.subscribe(callback)

    async def changes(self) -> AsyncIterator[int]:
        """Yield the snapshot version now and after every record change."""
        self.active_streams += 1
        updates = self._records.updates()
        try:
            async for _rows in updates:
                yield self.version
        finally:
            await updates.aclose()
            self.active_streams -= 1
            self.touch()

    # --- actions ---

    async def sign_in(self, id_token: str) -> Identity | None:
        """Adopt the identity behind a Firebase ID token.

        Returns:
            The new identity, or None if the token was rejected. A rejected
            token leaves the session exactly as it was.
        """
        try:
            identity = await asyncio.to_thread(self._verify, id_token)
        except ValueError as e:
            logger.warning("Sign-in rejected: %s", e)
            return None

        logger.info("Signed in %s", identity.email or identity.uid)
        self._identity.emit(identity)
        return identity

    async def sign_out(self) -> None:
        """Drop the identity. Safe to call when already signed out."""
        if self._identity.value is None:
            return
        logger.info("Signed out %s", self._identity.value.email or self._identity.value.uid)
        self._identity.emit(None)

    def close(self) -> None:
        self._cancel_records()

    # --- internals ---

    def _cancel_records(self) -> None:
        # Bumping the generation drops snapshots already queued for the old listener
        self._generation += 1
        subscription, self._record_subscription = self._record_subscription, None
        if subscription is None:
            return
        try:
            subscription.cancel()
        except Exception:
            logger.exception("Failed to stop record listener")

    def _publish(self, rows: list[dict[str, Any]]) -> None:
        self.version += 1
        self._records.emit(rows)

    def _on_identity_change(self, identity: Identity | None) -> None:
        self._cancel_records()

        if identity is None or self._source is None:
            self._loading = False
            self._publish([])
            return

        generation = self._generation

        def _on_snapshot(rows: list[dict[str, Any]]) -> None:
            if generation != self._generation:
                return
            self._loading = False
            self._publish(rows)

        self._loading = True
        try:
            self._record_subscription = self._source.listen(identity, _on_snapshot)
        except Exception:
            logger.exception("Failed to start record listener for %s", identity.uid)
            self._loading = False
            self._publish([])


class DemoViewerSession(ViewerSession):
    """Fixed identity and records; no store or identity provider involved."""

    demo = True

    def __init__(self) -> None:
        super().__init__(None, identity=DEMO_IDENTITY, records=demo_rows())
        self.version = 1

    async def sign_in(self, id_token: str) -> Identity | None:
        return DEMO_IDENTITY

    async def sign_out(self) -> None:
        return None


class ViewerSessionRegistry:
    """Creates viewer sessions per cookie id and closes idle ones."""

    def __init__(
        self,
        source: ResourceSource | None = None,
        verifier: TokenVerifier = verify_id_token,
        *,
        idle_timeout: float = 3600.0,
        max_sessions: int = 1000,
    ) -> None:
        self._source = source
        self._verify = verifier
        self._idle_timeout = idle_timeout
        self._max_sessions = max_sessions
        self._sessions: dict[str, ViewerSession] = {}
        self.demo_session = DemoViewerSession()

    @property
    def source(self) -> ResourceSource:
        if self._source is None:
            self._source = FirestoreResourceSource()
        return self._source

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> ViewerSession:
        """Return the session for ``session_id``, creating it on first use.

        Creating a session past ``max_sessions`` first evicts the least
        recently seen sessions that have no open stream.
        """
        self.evict_idle()
        session = self._sessions.get(session_id)
        if session is None:
            if len(self._sessions) >= self._max_sessions:
                self._evict_oldest(len(self._sessions) - self._max_sessions + 1)
            session = ViewerSession(self.source, self._verify)
            self._sessions[session_id] = session
            logger.debug("Created viewer session (%d active)", len(self._sessions))
        session.touch()
        return session

    def resolve(self, session_id: str, *, demo: bool) -> ViewerSession:
        """Pick the demo session or the caller's own session."""
        if demo:
            return self.demo_session
        return self.get(session_id)

    def evict_idle(self) -> int:
        """Close sessions idle longer than the timeout with no open streams."""
        cutoff = time.monotonic() - self._idle_timeout
        stale = [
            session_id
            for session_id, session in self._sessions.items()
            if session.last_seen < cutoff and session.active_streams == 0
        ]
        for session_id in stale:
            self._close(self._sessions.pop(session_id))
        if stale:
            logger.info("Evicted %d idle viewer sessions", len(stale))
        return len(stale)

    def close_all(self) -> None:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            self._close(session)

    def _evict_oldest(self, count: int) -> None:
        candidates = sorted(
            (
                (session.last_seen, session_id)
                for session_id, session in self._sessions.items()
                if session.active_streams == 0
            ),
        )[:count]
        for _last_seen, session_id in candidates:
            self._close(self._sessions.pop(session_id))
        if candidates:
            logger.warning(
                "Viewer session limit %d reached; evicted %d sessions",
                self._max_sessions,
                len(candidates),
            )

    @staticmethod
    def _close(session: ViewerSession) -> None:
        # One failing session must not keep the others' listeners open
        try:
            session.close()
        except Exception:
            logger.exception("Failed to close viewer session")
