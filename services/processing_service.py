"""
Batch processing service: fetches meetings and matches them to accounts.

Flow:  list meetings → per meeting: map fields → transcript (optional)
       → matching engine (optional) → aggregated BatchReport.

Depends only on the MeetingSourcePort, never on a concrete adapter.
Every meeting yields an explicit BatchItemOutcome; a failure inside one
meeting becomes a SKIPPED outcome and never reaches its siblings.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

from core_intelligence.engine.matcher import MatchingEngine
from domain.models import (
    Account,
    BatchItemOutcome,
    BatchReport,
    DateRange,
    Participant,
    ProcessedMeeting,
)
from ports.meeting_source import MeetingSourcePort
from shared_utils.constants import Defaults, LogScope, McpTools
from shared_utils.error_handler import MeetingMappingError, MeetingSourceError
from shared_utils.logging_utils import ContextualLogger, get_scoped_logger, log_execution

logger = get_scoped_logger(LogScope.PIPELINE)

_LIST_WRAPPER_KEYS = ("meetings", "results", "data", "items")


# ---------------------------------------------------------------------------
# Field mapping helpers (pure functions: no external deps)
# ---------------------------------------------------------------------------

def extract_meeting_list(payload: Any) -> List[Any]:
    """Unwrap a ``list_meetings`` payload into a list of raw records.

    Raises:
        MeetingSourceError: If the payload holds no recognisable list.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in _LIST_WRAPPER_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]
    raise MeetingSourceError(
        f"Unexpected list_meetings response of type {type(payload).__name__}",
        kind=MeetingSourceError.TOOL,
        tool=McpTools.LIST_MEETINGS,
    )


def _raw_meeting_id(raw: Any) -> Optional[str]:
    if not isinstance(raw, dict):
        return None
    value = raw.get("id") or raw.get("meetingId")
    return str(value) if value else None


def _as_text(value: Any) -> Optional[str]:
    """Numbers become strings (epoch dates, numeric titles); None stays None."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _map_participant(raw: Any) -> Participant:
    if isinstance(raw, str):
        return Participant(name=raw)
    if isinstance(raw, dict):
        return Participant(
            name=raw.get("name") or raw.get("displayName") or "",
            email=raw.get("email") or None,
        )
    raise MeetingMappingError(f"Unsupported participant entry: {raw!r}")


def map_meeting(raw: Any) -> ProcessedMeeting:
    """Build a ProcessedMeeting from an upstream record.

    Tolerates the alternate field names tl;dv has used over time:
    ``id``/``meetingId``, ``title``/``name``, ``date``/``happenedAt``,
    ``participants``/``invitees``, ``tldvUrl``/``url``.

    Raises:
        MeetingMappingError: If the record is not an object or has no id.
        pydantic.ValidationError: If a field has an unusable type.
    """
    if not isinstance(raw, dict):
        raise MeetingMappingError(
            f"Meeting record must be an object, got {type(raw).__name__}"
        )

    meeting_id = _raw_meeting_id(raw)
    if not meeting_id:
        raise MeetingMappingError("Meeting record has no id", context={"keys": sorted(raw)})

    participants = raw.get("participants") or raw.get("invitees") or []
    if not isinstance(participants, list):
        raise MeetingMappingError("participants must be a list", meeting_id=meeting_id)

    return ProcessedMeeting(
        meeting_id=meeting_id,
        title=_as_text(raw.get("title") or raw.get("name")),
        date=_as_text(raw.get("date") or raw.get("happenedAt")),
        duration=raw.get("duration"),
        participants=[_map_participant(p) for p in participants],
        recording_url=raw.get("recordingUrl"),
        source_url=raw.get("tldvUrl") or raw.get("url"),
    )


def _join_segments(segments: List[Any]) -> str:
    lines = []
    for segment in segments:
        if isinstance(segment, str):
            lines.append(segment)
        elif isinstance(segment, dict):
            speaker = segment.get("speaker") or segment.get("name")
            text = segment.get("text") or segment.get("content") or ""
            lines.append(f"{speaker}: {text}" if speaker else text)
    return "\n".join(lines)


def extract_transcript_text(payload: Any) -> Optional[str]:
    """Pull plain text out of a ``get_transcript`` payload.

    Uses ``text``, falling back to ``content``; segment lists are joined
    into ``speaker: text`` lines.
    """
    if payload is None or isinstance(payload, str):
        return payload or None
    if isinstance(payload, list):
        return _join_segments(payload) or None
    if isinstance(payload, dict):
        body = payload.get("text") or payload.get("content")
        if isinstance(body, list):
            return _join_segments(body) or None
        if isinstance(body, str):
            return body or None
    return None


# ---------------------------------------------------------------------------
# ProcessingService
# ---------------------------------------------------------------------------

class ProcessingService:
    """Runs one batch: list, enrich, match, aggregate.

    Each ``process`` call builds only local collections, so concurrent
    requests never share mutable state.

    Args:
        meeting_source: Port to the remote meeting source.
        matcher: Matching engine applied to every meeting.
        max_workers: 1 processes meetings sequentially in source order;
            more uses a bounded thread pool (output order is unchanged).
    """

    def __init__(
        self,
        meeting_source: MeetingSourcePort,
        matcher: MatchingEngine,
        max_workers: int = Defaults.BATCH_MAX_WORKERS,
    ) -> None:
        self._source = meeting_source
        self._matcher = matcher
        self._max_workers = max(1, max_workers)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @log_execution(scope=LogScope.PIPELINE)
    def process(
        self,
        date_range: Optional[DateRange] = None,
        accounts: Optional[Sequence[Account]] = None,
        include_transcripts: bool = True,
        limit: int = Defaults.BATCH_LIMIT,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchReport:
        """Process a window of meetings.

        Args:
            date_range: Optional start/end dates passed to the source.
            accounts: Candidate accounts; None skips matching entirely.
            include_transcripts: Fetch and attach transcript text.
            limit: Maximum number of meetings to list.
            cancel_event: Checked before each meeting; once set, remaining
                meetings are not started and the report is marked cancelled.

        Raises:
            MeetingSourceError: If the meeting list itself cannot be fetched.
        """
        date_range = date_range or DateRange()
        filters: Dict[str, Any] = {"limit": limit}
        if date_range.start_date:
            filters["startDate"] = date_range.start_date
        if date_range.end_date:
            filters["endDate"] = date_range.end_date

        logger.info(
            "batch_started",
            start_date=date_range.start_date,
            end_date=date_range.end_date,
            accounts=None if accounts is None else len(accounts),
            include_transcripts=include_transcripts,
            limit=limit,
        )

        raw_meetings = extract_meeting_list(self._source.list_meetings(filters))[:limit]
        logger.info("meetings_fetched", count=len(raw_meetings))

        if self._max_workers == 1:
            outcomes = self._run_sequential(raw_meetings, accounts, include_transcripts, cancel_event)
        else:
            outcomes = self._run_pooled(raw_meetings, accounts, include_transcripts, cancel_event)

        cancelled = len(outcomes) < len(raw_meetings)
        report = BatchReport.from_outcomes(outcomes, cancelled=cancelled)

        logger.info(
            "batch_completed",
            processed=report.count,
            skipped=len(report.skipped),
            cancelled=cancelled,
        )
        return report

    def process_one(
        self,
        raw: Any,
        accounts: Optional[Sequence[Account]],
        include_transcripts: bool,
    ) -> BatchItemOutcome:
        """Process a single upstream record; never raises."""
        meeting_id = _raw_meeting_id(raw)
        item_log = ContextualLogger(LogScope.PIPELINE).bind(meeting_id=meeting_id)
        try:
            meeting = map_meeting(raw)

            if include_transcripts:
                meeting.transcript = self._fetch_transcript(meeting.meeting_id, item_log)

            if accounts is not None:
                meeting.apply_match(self._matcher.match(meeting, accounts))

            return BatchItemOutcome.processed(meeting)

        except Exception as exc:
            reason = f"{type(exc).__name__}: {exc}"
            item_log.error("meeting_processing_failed", error=reason)
            return BatchItemOutcome.skipped(meeting_id, reason)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _run_sequential(
        self,
        raw_meetings: List[Any],
        accounts: Optional[Sequence[Account]],
        include_transcripts: bool,
        cancel_event: Optional[threading.Event],
    ) -> List[BatchItemOutcome]:
        outcomes: List[BatchItemOutcome] = []
        for raw in raw_meetings:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(
                    "batch_cancelled",
                    completed=len(outcomes),
                    remaining=len(raw_meetings) - len(outcomes),
                )
                break
            outcomes.append(self.process_one(raw, accounts, include_transcripts))
        return outcomes

    def _run_pooled(
        self,
        raw_meetings: List[Any],
        accounts: Optional[Sequence[Account]],
        include_transcripts: bool,
        cancel_event: Optional[threading.Event],
    ) -> List[BatchItemOutcome]:
        def _task(raw: Any) -> Optional[BatchItemOutcome]:
            if cancel_event is not None and cancel_event.is_set():
                return None
            return self.process_one(raw, accounts, include_transcripts)

        with ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="batch"
        ) as pool:
            results = list(pool.map(_task, raw_meetings))

        outcomes = [r for r in results if r is not None]
        if len(outcomes) < len(raw_meetings):
            logger.warning(
                "batch_cancelled",
                completed=len(outcomes),
                remaining=len(raw_meetings) - len(outcomes),
            )
        return outcomes

    def _fetch_transcript(self, meeting_id: str, item_log: ContextualLogger) -> Optional[str]:
        """Fetch transcript text; any failure leaves the field empty."""
        try:
            return extract_transcript_text(self._source.get_transcript(meeting_id))
        except Exception as exc:
            item_log.warning(
                "transcript_fetch_failed",
                error=f"{type(exc).__name__}: {exc}",
            )
            return None
