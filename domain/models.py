"""
Pure domain models for the meeting-to-account matcher.

These models contain NO transport dependencies. They represent core business
concepts that flow through ports, the matching engine and the batch pipeline.

Serialized output keeps the wire keys of the original wrapper service
(``tldv_meeting_id``, ``titulo``, ``cliente_id`` ...) via serialization
aliases; dump with ``by_alias=True`` when answering HTTP callers.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Meetings
# ---------------------------------------------------------------------------


class Participant(BaseModel):
    """Meeting attendee as reported by the meeting source."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: Optional[str] = None


class Meeting(BaseModel):
    """A meeting record mapped from the remote meeting source."""

    meeting_id: str = Field(serialization_alias="tldv_meeting_id")
    title: Optional[str] = Field(default=None, serialization_alias="titulo")
    date: Optional[str] = Field(default=None, serialization_alias="data")  # ISO 8601
    duration: Optional[float] = Field(default=None, serialization_alias="duracao_minutos")
    participants: List[Participant] = Field(
        default_factory=list, serialization_alias="participantes"
    )
    recording_url: Optional[str] = Field(default=None, serialization_alias="recording_url")
    source_url: Optional[str] = Field(default=None, serialization_alias="tldv_url")
    transcript: Optional[str] = Field(default=None, serialization_alias="transcricao")


# ---------------------------------------------------------------------------
# Accounts and matching
# ---------------------------------------------------------------------------


class Account(BaseModel):
    """Customer record from the system of record (a ClickUp task).

    Accepts the original payload keys (``clickup_task_id``, ``nome``) as well
    as ``account_id`` / ``name``.
    """

    account_id: str = Field(
        validation_alias=AliasChoices("clickup_task_id", "account_id"),
        serialization_alias="clickup_task_id",
    )
    name: str = Field(
        default="",
        validation_alias=AliasChoices("nome", "name"),
        serialization_alias="nome",
    )
    email: Optional[str] = None

    @field_validator("account_id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        # ClickUp exports sometimes carry numeric task ids
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v


class MatchMethod(str, Enum):
    """Cascade tier that produced a match, in precedence order."""

    EMAIL = "email"
    TITLE_SUBSTRING_EXACT = "titulo_substring_exact"
    TITLE_SUBSTRING_INVERSE = "titulo_substring_inverse"
    TITLE_WORD_BASED = "titulo_word_based"


class MatchResult(BaseModel):
    """The single account a meeting was matched to."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    method: MatchMethod
    confidence: float = Field(ge=0.0, le=1.0)


class ProcessedMeeting(Meeting):
    """Meeting enriched by the batch pipeline with transcript and match fields."""

    account_id: Optional[str] = Field(default=None, serialization_alias="cliente_id")
    matched_by: Optional[MatchMethod] = None
    matched_confidence: Optional[float] = None

    def apply_match(self, result: Optional[MatchResult]) -> None:
        """Copy match fields from *result*; ``None`` leaves them empty."""
        if result is None:
            return
        self.account_id = result.account_id
        self.matched_by = result.method
        self.matched_confidence = result.confidence


# ---------------------------------------------------------------------------
# Batch pipeline
# ---------------------------------------------------------------------------


class DateRange(BaseModel):
    """Optional ISO date window used to list meetings."""

    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start_date and self.end_date:
            start = datetime.fromisoformat(self.start_date[:10])
            end = datetime.fromisoformat(self.end_date[:10])
            if start > end:
                raise ValueError("start_date must not be after end_date")
        return self


class ItemStatus(str, Enum):
    """Outcome of processing a single meeting in a batch."""

    PROCESSED = "PROCESSED"
    SKIPPED = "SKIPPED"


class BatchItemOutcome(BaseModel):
    """Per-meeting result: a processed meeting or a skip with its reason."""

    meeting_id: Optional[str] = None
    status: ItemStatus
    meeting: Optional[ProcessedMeeting] = None
    reason: Optional[str] = None

    @classmethod
    def processed(cls, meeting: ProcessedMeeting) -> "BatchItemOutcome":
        return cls(meeting_id=meeting.meeting_id, status=ItemStatus.PROCESSED, meeting=meeting)

    @classmethod
    def skipped(cls, meeting_id: Optional[str], reason: str) -> "BatchItemOutcome":
        return cls(meeting_id=meeting_id, status=ItemStatus.SKIPPED, reason=reason)


class BatchReport(BaseModel):
    """Aggregated result of one batch run."""

    count: int = 0
    items: List[ProcessedMeeting] = []
    skipped: List[BatchItemOutcome] = []
    cancelled: bool = False

    @classmethod
    def from_outcomes(
        cls, outcomes: List[BatchItemOutcome], cancelled: bool = False
    ) -> "BatchReport":
        items = [o.meeting for o in outcomes if o.status == ItemStatus.PROCESSED]
        skipped = [o for o in outcomes if o.status == ItemStatus.SKIPPED]
        return cls(count=len(items), items=items, skipped=skipped, cancelled=cancelled)
