from abc import ABC, abstractmethod
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

from core_intelligence.parser.normalizer import TextNormalizer
from domain.models import Account, MatchMethod, MatchResult, Meeting
from shared_utils.constants import MatchingConfig


def _folded(value: Optional[str]) -> str:
    return (value or "").casefold().strip()


class MatchingStrategy(ABC):
    """One tier of the meeting-to-account cascade."""

    method: MatchMethod

    @abstractmethod
    def find(
        self, title: str, meeting: Meeting, accounts: Sequence[Account]
    ) -> Optional[MatchResult]:
        """Return the tier's match, or None when no account qualifies.

        ``title`` is the meeting title already case-folded and trimmed.
        """
        pass

    def _result(self, account: Account, confidence: float) -> MatchResult:
        return MatchResult(account_id=account.account_id, method=self.method, confidence=confidence)


class EmailStrategy(MatchingStrategy):
    """A participant's email equals the account email."""

    method = MatchMethod.EMAIL

    def find(self, title, meeting, accounts):
        emails = {_folded(p.email) for p in meeting.participants if p.email}
        emails.discard("")
        if not emails:
            return None

        for account in accounts:
            account_email = _folded(account.email)
            if account_email and account_email in emails:
                return self._result(account, MatchingConfig.EMAIL_CONFIDENCE)
        return None


class ExactSubstringStrategy(MatchingStrategy):
    """The account name appears verbatim inside the title."""

    method = MatchMethod.TITLE_SUBSTRING_EXACT

    def find(self, title, meeting, accounts):
        for account in accounts:
            name = _folded(account.name)
            if len(name) < MatchingConfig.MIN_ACCOUNT_NAME_LENGTH:
                continue
            if name in title:
                return self._result(account, MatchingConfig.EXACT_SUBSTRING_CONFIDENCE)
        return None


class InverseSubstringStrategy(MatchingStrategy):
    """The whole title appears inside the account name.

    Titles shorter than five characters never qualify, otherwise generic
    titles like "sync" would hit every account containing the word.
    """

    method = MatchMethod.TITLE_SUBSTRING_INVERSE

    def find(self, title, meeting, accounts):
        if len(title) < MatchingConfig.MIN_INVERSE_TITLE_LENGTH:
            return None

        for account in accounts:
            name = _folded(account.name)
            if len(name) < MatchingConfig.MIN_ACCOUNT_NAME_LENGTH:
                continue
            if title in name:
                return self._result(account, MatchingConfig.INVERSE_SUBSTRING_CONFIDENCE)
        return None


class WordOverlapStrategy(MatchingStrategy):
    """Scores token overlap between title and account name.

    score = matching title tokens / max(title tokens, account tokens), where a
    title token matches when it is a substring of some account token or vice
    versa. Each title token counts at most once.
    """

    method = MatchMethod.TITLE_WORD_BASED

    def __init__(self, normalizer: Optional[TextNormalizer] = None):
        self.normalizer = normalizer or TextNormalizer()

    def find(self, title, meeting, accounts):
        title_tokens = self.normalizer.normalize(title)
        if not title_tokens:
            return None

        best: Optional[MatchResult] = None
        best_score = 0.0

        for account in accounts:
            account_tokens = self.normalizer.normalize(account.name)
            if not account_tokens:
                continue

            score = self.score(title_tokens, account_tokens)
            # strict ">" keeps the earliest account on ties
            if score > best_score and score >= MatchingConfig.WORD_OVERLAP_MIN_SCORE:
                best_score = score
                best = self._result(account, self.confidence_for(score))

        return best

    @staticmethod
    def score(title_tokens: List[str], account_tokens: List[str]) -> float:
        matches = sum(
            1
            for t in title_tokens
            if any(t in a or a in t for a in account_tokens)
        )
        return matches / max(len(title_tokens), len(account_tokens))

    @staticmethod
    def confidence_for(score: float) -> float:
        """Map a qualifying score in [0.5, 1.0] onto [0.78, 0.90]."""
        raw = MatchingConfig.WORD_OVERLAP_BASE + score * MatchingConfig.WORD_OVERLAP_SPAN
        return float(Decimal(repr(raw)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
