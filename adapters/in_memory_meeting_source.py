"""
In-memory meeting source adapter for local development.

Implements MeetingSourcePort over plain dicts, optionally loaded from a JSON
fixture file. Used when MEETING_SOURCE_FIXTURE_PATH is set (local dev, CI).

NOT for production: no tl;dv access at all.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from shared_utils.constants import LogScope
from shared_utils.error_handler import MeetingSourceError
from shared_utils.logging_utils import get_scoped_logger


logger = get_scoped_logger(LogScope.ADAPTER)


class InMemoryMeetingSourceAdapter:
    """Dict-backed implementation of MeetingSourcePort.

    Meetings are raw upstream-shaped dicts; transcripts, metadata and
    highlights are keyed by meeting id.
    """

    def __init__(
        self,
        meetings: Optional[List[Dict[str, Any]]] = None,
        transcripts: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        highlights: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._meetings = list(meetings or [])
        self._transcripts = dict(transcripts or {})
        self._metadata = dict(metadata or {})
        self._highlights = dict(highlights or {})

    @classmethod
    def from_json_file(cls, path: str) -> "InMemoryMeetingSourceAdapter":
        """Load ``{"meetings": [...], "transcripts": {...}, ...}`` from disk."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        logger.info("inmemory_fixture_loaded", path=path, meetings=len(data.get("meetings", [])))
        return cls(
            meetings=data.get("meetings"),
            transcripts=data.get("transcripts"),
            metadata=data.get("metadata"),
            highlights=data.get("highlights"),
        )

    # ------------------------------------------------------------------
    # MeetingSourcePort implementation
    # ------------------------------------------------------------------

    def list_meetings(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        filters = filters or {}
        start = (filters.get("startDate") or "")[:10]
        end = (filters.get("endDate") or "")[:10]
        query = (filters.get("query") or "").lower()
        limit = filters.get("limit")

        selected = []
        for meeting in self._meetings:
            day = str(meeting.get("date") or meeting.get("happenedAt") or "")[:10]
            if start and day and day < start:
                continue
            if end and day and day > end:
                continue
            title = str(meeting.get("title") or meeting.get("name") or "").lower()
            if query and query not in title:
                continue
            selected.append(meeting)

        if limit:
            selected = selected[:limit]

        logger.info("inmemory_meetings_listed", count=len(selected), total=len(self._meetings))
        return selected

    def get_metadata(self, meeting_id: str) -> Any:
        if meeting_id in self._metadata:
            return self._metadata[meeting_id]
        for meeting in self._meetings:
            key = meeting.get("id") or meeting.get("meetingId")
            if key is not None and str(key) == meeting_id:
                return meeting
        raise self._not_found("get_meeting_metadata", meeting_id)

    def get_transcript(self, meeting_id: str) -> Any:
        if meeting_id not in self._transcripts:
            raise self._not_found("get_transcript", meeting_id)
        return self._transcripts[meeting_id]

    def get_highlights(self, meeting_id: str) -> Any:
        if meeting_id not in self._highlights:
            raise self._not_found("get_highlights", meeting_id)
        return self._highlights[meeting_id]

    @staticmethod
    def _not_found(tool: str, meeting_id: str) -> MeetingSourceError:
        return MeetingSourceError(
            f"Meeting {meeting_id} not found",
            kind=MeetingSourceError.TOOL,
            tool=tool,
            context={"meeting_id": meeting_id},
        )
