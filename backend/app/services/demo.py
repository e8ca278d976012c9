"""Fixed demo records.

Timestamps are literal so server and client renders agree and screenshots
are repeatable.
"""

import copy
from typing import Any

from app.schemas.resource import FHIRVersion, ProcessingState

_DEMO_ROWS: list[dict[str, Any]] = [
    {
        "id": "demo-1",
        "resource": {
            "metadata": {
                "state": ProcessingState.PROCESSING_STATE_COMPLETED.value,
                "createdTime": "2025-08-30T15:00:00.000Z",
                "fetchTime": "2025-08-30T15:05:00.000Z",
                "identifier": {"key": "abc123", "uid": "uid1", "patientId": "patient-001"},
                "resourceType": "Observation",
                "version": FHIRVersion.FHIR_VERSION_R4.value,
            },
            "humanReadableStr": "Blood pressure observation: 120/80 mmHg",
            "aiSummary": "Normal blood pressure reading",
        },
    },
    {
        "id": "demo-2",
        "resource": {
            "metadata": {
                "state": ProcessingState.PROCESSING_STATE_PROCESSING.value,
                "createdTime": "2025-08-31T13:20:00.000Z",
                "fetchTime": "2025-08-31T13:28:00.000Z",
                "identifier": {"key": "def456", "uid": "uid2", "patientId": "patient-002"},
                "resourceType": "MedicationRequest",
                "version": FHIRVersion.FHIR_VERSION_R4B.value,
            },
            "humanReadableStr": "Medication request for amoxicillin 500mg",
            "aiSummary": "Pending pharmacist review",
        },
    },
]


def demo_rows() -> list[dict[str, Any]]:
    """Return a fresh copy of the two demo records."""
    return copy.deepcopy(_DEMO_ROWS)
