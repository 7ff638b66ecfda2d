from core_intelligence.engine.strategies.matching import (
    MatchingStrategy,
    EmailStrategy,
    ExactSubstringStrategy,
    InverseSubstringStrategy,
    WordOverlapStrategy,
)

__all__ = [
    "MatchingStrategy",
    "EmailStrategy",
    "ExactSubstringStrategy",
    "InverseSubstringStrategy",
    "WordOverlapStrategy",
]
