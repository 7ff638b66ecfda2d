"""
Root conftest.py: shared fixtures for the entire test suite.

Guidelines:
    • No __init__.py in test sub-directories (avoids shadowing root packages).
    • pytest.ini_options lives in pyproject.toml with pythonpath=["."].
    • Markers: integration.
"""

from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest

from domain.models import Account, Meeting, Participant


# ---------------------------------------------------------------------------
# Marker registration
# ---------------------------------------------------------------------------

def pytest_configure(config):
    config.addinivalue_line("markers", "integration: mark test as integration test")


# ---------------------------------------------------------------------------
# Upstream-shaped meeting records (as returned by list_meetings)
# ---------------------------------------------------------------------------

SAMPLE_RAW_MEETINGS: List[Dict[str, Any]] = [
    {
        "id": "m-1",
        "title": "Acme Corp - Kickoff Call",
        "date": "2026-01-15T14:00:00Z",
        "duration": 45,
        "participants": [
            {"name": "Ana", "email": "ana@acme.com"},
            {"name": "Bruno", "email": "bruno@agency.com"},
        ],
        "recordingUrl": "https://rec.example/m-1",
        "tldvUrl": "https://tldv.io/app/meetings/m-1",
    },
    {
        "id": "m-2",
        "name": "Weekly sync",
        "happenedAt": "2026-01-16T10:00:00Z",
        "duration": 30,
        "invitees": ["Carla"],
        "url": "https://tldv.io/app/meetings/m-2",
    },
    {
        "id": "m-3",
        "title": "Pousada Mar Azul alinhamento",
        "date": "2026-01-17T09:00:00Z",
        "participants": [],
    },
]


@pytest.fixture()
def raw_meetings() -> List[Dict[str, Any]]:
    """Fresh copies of the upstream meeting records."""
    return [dict(m) for m in SAMPLE_RAW_MEETINGS]


# ---------------------------------------------------------------------------
# Domain object factories
# ---------------------------------------------------------------------------

@pytest.fixture()
def sample_accounts() -> List[Account]:
    """Accounts as a ClickUp export would supply them."""
    return [
        Account.model_validate({"clickup_task_id": "T1", "nome": "Acme Corp"}),
        Account.model_validate({"clickup_task_id": "T2", "nome": "Mar Azul", "email": "contato@marazul.com"}),
        Account.model_validate({"clickup_task_id": "T3", "nome": "Globex", "email": "ANA@CLIENTE.COM"}),
    ]


@pytest.fixture()
def make_meeting():
    """Factory for Meeting objects with sensible defaults."""
    def _make(title="Planning", emails=(), meeting_id="m-x") -> Meeting:
        return Meeting(
            meeting_id=meeting_id,
            title=title,
            participants=[Participant(name=f"p{i}", email=e) for i, e in enumerate(emails)],
        )
    return _make


# ---------------------------------------------------------------------------
# Mock adapter factories
# ---------------------------------------------------------------------------

@pytest.fixture()
def mock_meeting_source(raw_meetings) -> MagicMock:
    """Pre-configured meeting source mock."""
    mock = MagicMock()
    mock.list_meetings.return_value = raw_meetings
    mock.get_transcript.side_effect = lambda meeting_id: {"text": f"transcript of {meeting_id}"}
    mock.get_metadata.side_effect = lambda meeting_id: {"id": meeting_id}
    mock.get_highlights.side_effect = lambda meeting_id: {"highlights": []}
    return mock
