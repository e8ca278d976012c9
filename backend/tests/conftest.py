"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- HTTP client for API and page testing
- A fake record source standing in for the Firestore listener
- A fake ID token verifier standing in for firebase-admin
- Common resource document test data
"""

from dataclasses import dataclass
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.auth import Identity
from app.config import settings
from app.main import app
from app.services.streams import Subscription
from app.services.viewer import ViewerSessionRegistry

VALID_TOKEN = "valid-token"
TEST_EMAIL = "clinician@example.org"


def fake_verify_id_token(id_token: str) -> Identity:
    """Stub verifier that accepts only VALID_TOKEN."""
    if id_token != VALID_TOKEN:
        raise ValueError("Invalid ID token")
    return Identity(uid="user-1", email=TEST_EMAIL, id_token=id_token)


@dataclass
class Listener:
    identity: Identity
    callback: Any
    subscription: Subscription


class FakeResourceSource:
    """In-memory ResourceSource; tests push snapshots by hand."""

    def __init__(self) -> None:
        self.listeners: list[Listener] = []

    def listen(self, identity, on_snapshot) -> Subscription:
        subscription = Subscription()
        self.listeners.append(Listener(identity, on_snapshot, subscription))
        return subscription

    @property
    def active(self) -> list[Listener]:
        return [listener for listener in self.listeners if not listener.subscription.cancelled]

    def push(self, rows: list[dict[str, Any]]) -> None:
        """Deliver a snapshot to every listener that is still subscribed."""
        for listener in self.active:
            listener.callback(rows)


def make_row(
    row_id: str | None = "doc-1",
    *,
    resource_type: str = "Observation",
    created: Any = "2025-08-30T15:00:00.000Z",
    fetched: Any = "2025-08-30T15:05:00.000Z",
    processed: Any = None,
    state: str = "PROCESSING_STATE_COMPLETED",
    patient_id: str | None = "patient-001",
    key: str = "key-1",
    human_readable: str = "Blood pressure observation: 120/80 mmHg",
    ai_summary: str | None = None,
) -> dict[str, Any]:
    """Build a normalized ResourceWrapper dict."""
    metadata: dict[str, Any] = {
        "state": state,
        "createdTime": created,
        "fetchTime": fetched,
        "identifier": {"key": key, "uid": f"uid-{key}", "patientId": patient_id},
        "resourceType": resource_type,
        "version": "FHIR_VERSION_R4",
    }
    if processed is not None:
        metadata["processedTime"] = processed
    resource: dict[str, Any] = {"metadata": metadata, "humanReadableStr": human_readable}
    if ai_summary is not None:
        resource["aiSummary"] = ai_summary
    return {"id": row_id, "resource": resource}


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Pin settings that change rendering, regardless of the local .env."""
    monkeypatch.setattr(settings, "demo", False)
    monkeypatch.setattr(settings, "display_timezone", "UTC")


@pytest.fixture
def fake_source() -> FakeResourceSource:
    return FakeResourceSource()


@pytest.fixture
def registry(fake_source) -> ViewerSessionRegistry:
    """Session registry wired to the fake source and verifier."""
    registry = ViewerSessionRegistry(fake_source, fake_verify_id_token)
    yield registry
    registry.close_all()


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client(registry):
    """Async test client for the FastAPI app with fake Firebase services.

    Replaces the app's session registry so no request reaches Firestore or
    the identity provider. Cookies persist across requests, so one client
    behaves like one browser.
    """
    original = app.state.viewer_sessions
    app.state.viewer_sessions = registry

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.state.viewer_sessions = original


@pytest.fixture
def sample_rows() -> list[dict[str, Any]]:
    """Three records, newest first, as the store query returns them."""
    return [
        make_row(
            "doc-3",
            resource_type="Condition",
            created="2025-09-02T08:00:00.000Z",
            state="PROCESSING_STATE_NOT_STARTED",
            patient_id="patient-003",
            key="k3",
        ),
        make_row(
            "doc-2",
            resource_type="MedicationRequest",
            created="2025-09-01T08:00:00.000Z",
            state="PROCESSING_STATE_FAILED",
            patient_id="patient-002",
            key="k2",
            ai_summary="Dose exceeds weight-based maximum",
        ),
        make_row(
            "doc-1",
            resource_type="Observation",
            created="2025-08-31T08:00:00.000Z",
            processed="2025-08-31T08:10:00.000Z",
            patient_id="patient-001",
            key="k1",
            ai_summary="Normal reading",
        ),
    ]
