"""
Text normalization for title / account-name comparison.
Turns free text into lower-cased tokens with noise words removed.
"""

from typing import FrozenSet, Iterable, List, Optional

from shared_utils.constants import MatchingConfig, STOP_WORDS


class TextNormalizer:
    """Tokenizer used by the word-overlap matching tier.

    Case-folds, trims, splits on whitespace, then drops tokens shorter than
    ``min_token_length`` and tokens in the stop-word set. Pure and
    deterministic: the same text always yields the same token list.
    """

    def __init__(
        self,
        stop_words: Optional[Iterable[str]] = None,
        min_token_length: int = MatchingConfig.MIN_TOKEN_LENGTH,
    ) -> None:
        self.stop_words: FrozenSet[str] = (
            frozenset(w.casefold() for w in stop_words) if stop_words is not None else STOP_WORDS
        )
        self.min_token_length = min_token_length

    def normalize(self, text: Optional[str]) -> List[str]:
        """Tokenize *text*.

        Args:
            text: Title or account name; ``None`` and blank strings are allowed.

        Returns:
            Tokens in their original order (duplicates kept).
        """
        if not text:
            return []

        return [
            token
            for token in text.casefold().strip().split()
            if len(token) >= self.min_token_length and token not in self.stop_words
        ]


_default_normalizer = TextNormalizer()


def normalize(text: Optional[str]) -> List[str]:
    """Tokenize *text* with the default stop-word set."""
    return _default_normalizer.normalize(text)
