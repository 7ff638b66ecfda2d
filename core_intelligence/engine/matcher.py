"""
Meeting-to-account matching engine.

Runs a fixed cascade of strategies against one meeting and a candidate list
of accounts. The first tier that qualifies wins; lower tiers are never
consulted afterwards. Tier confidences never overlap downwards:

    email (1.0) > title substring (1.0) > inverse substring (0.95)
        > word overlap (0.78 - 0.90)
"""

from typing import List, Optional, Sequence

from core_intelligence.engine.strategies import (
    EmailStrategy,
    ExactSubstringStrategy,
    InverseSubstringStrategy,
    MatchingStrategy,
    WordOverlapStrategy,
)
from core_intelligence.parser.normalizer import TextNormalizer
from domain.models import Account, MatchResult, Meeting
from shared_utils.constants import LogScope
from shared_utils.logging_utils import get_scoped_logger


logger = get_scoped_logger(LogScope.MATCHING)


def default_strategies(normalizer: Optional[TextNormalizer] = None) -> List[MatchingStrategy]:
    """The production cascade, highest precedence first."""
    return [
        EmailStrategy(),
        ExactSubstringStrategy(),
        InverseSubstringStrategy(),
        WordOverlapStrategy(normalizer),
    ]


class MatchingEngine:
    """Deterministic, explainable meeting-to-account classifier.

    Holds no per-call state, so one instance can be shared across batches
    and threads.
    """

    def __init__(
        self,
        strategies: Optional[Sequence[MatchingStrategy]] = None,
        normalizer: Optional[TextNormalizer] = None,
    ) -> None:
        self._strategies = list(strategies) if strategies is not None else default_strategies(normalizer)

    @property
    def strategies(self) -> List[MatchingStrategy]:
        return list(self._strategies)

    def match(self, meeting: Meeting, accounts: Sequence[Account]) -> Optional[MatchResult]:
        """Return the best account for *meeting*, or None.

        A missing/blank title or an empty account list yields None. No match
        is an expected outcome, never an exception.
        """
        title = (meeting.title or "").casefold().strip()
        if not title or not accounts:
            return None

        for strategy in self._strategies:
            result = strategy.find(title, meeting, accounts)
            if result is not None:
                logger.debug(
                    "meeting_matched",
                    meeting_id=meeting.meeting_id,
                    account_id=result.account_id,
                    method=result.method.value,
                    confidence=result.confidence,
                )
                return result

        logger.debug("meeting_unmatched", meeting_id=meeting.meeting_id, candidates=len(accounts))
        return None
