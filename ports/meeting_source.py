"""
Port interface for the remote meeting-intelligence source (tl;dv).

Implementations: McpMeetingSourceAdapter, InMemoryMeetingSourceAdapter (adapters/)
"""

from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class MeetingSourcePort(Protocol):
    """Abstract interface over the four meeting source operations.

    Every operation either returns the decoded tool payload or raises
    ``MeetingSourceError``; no other exception type may escape an adapter.
    """

    def list_meetings(self, filters: Dict[str, Any]) -> Any:
        """List meetings.

        Args:
            filters: Optional keys ``query``, ``startDate``, ``endDate``,
                ``participationStatus``, ``meetingType``, ``limit``.

        Returns:
            A list of meeting-shaped dicts, or an object wrapping one.

        Raises:
            MeetingSourceError: On transport or tool failure.
        """
        ...

    def get_metadata(self, meeting_id: str) -> Any:
        """Return the metadata record of one meeting."""
        ...

    def get_transcript(self, meeting_id: str) -> Any:
        """Return the transcript payload (``text`` or ``content``) of one meeting."""
        ...

    def get_highlights(self, meeting_id: str) -> Any:
        """Return the highlights record of one meeting."""
        ...
