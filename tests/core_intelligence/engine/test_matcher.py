"""
Tests for core_intelligence.engine.matcher.MatchingEngine.

Covers the cascade order, each tier's qualifying rules, tie-breaking,
confidence calibration, and the no-match edge cases.
"""

import pytest

from core_intelligence.engine.matcher import MatchingEngine, default_strategies
from core_intelligence.engine.strategies import (
    EmailStrategy,
    ExactSubstringStrategy,
    InverseSubstringStrategy,
    WordOverlapStrategy,
)
from domain.models import Account, MatchMethod, Meeting, Participant


def _account(account_id: str, name: str = "", email=None) -> Account:
    return Account(account_id=account_id, name=name, email=email)


@pytest.fixture()
def engine() -> MatchingEngine:
    return MatchingEngine()


# ---------------------------------------------------------------------------
# Reference scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_account_name_inside_title(self, engine, make_meeting) -> None:
        meeting = make_meeting(title="Acme Corp - Kickoff Call")
        account = Account.model_validate({"nome": "Acme Corp", "clickup_task_id": "T1"})

        result = engine.match(meeting, [account])

        assert result is not None
        assert result.account_id == "T1"
        assert result.method == MatchMethod.TITLE_SUBSTRING_EXACT
        assert result.method.value == "titulo_substring_exact"
        assert result.confidence == 1.0

    def test_short_generic_title_does_not_match(self, engine, make_meeting) -> None:
        meeting = make_meeting(title="Sync")
        result = engine.match(meeting, [_account("T1", "Sync Weekly Review")])
        assert result is None

    def test_email_match_is_case_insensitive(self, engine, make_meeting) -> None:
        meeting = make_meeting(title="Nothing in common", emails=["ana@cliente.com"])
        result = engine.match(meeting, [_account("T9", "Globex", "ANA@CLIENTE.COM")])

        assert result is not None
        assert result.account_id == "T9"
        assert result.method == MatchMethod.EMAIL
        assert result.confidence == 1.0


# ---------------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------------


class TestNoMatch:
    def test_empty_accounts(self, engine, make_meeting) -> None:
        assert engine.match(make_meeting(title="Acme Corp"), []) is None

    def test_empty_title(self, engine, make_meeting, sample_accounts) -> None:
        assert engine.match(make_meeting(title=""), sample_accounts) is None

    def test_whitespace_title(self, engine, make_meeting, sample_accounts) -> None:
        assert engine.match(make_meeting(title="   "), sample_accounts) is None

    def test_missing_title_wins_over_email(self, engine, sample_accounts) -> None:
        meeting = Meeting(
            meeting_id="m-1",
            title=None,
            participants=[Participant(name="Ana", email="ana@cliente.com")],
        )
        assert engine.match(meeting, sample_accounts) is None

    def test_only_stop_words_in_title(self, engine, make_meeting) -> None:
        result = engine.match(make_meeting(title="Hotel Call"), [_account("T1", "Hotel Paradiso")])
        assert result is None

    def test_account_name_too_short(self, engine, make_meeting) -> None:
        assert engine.match(make_meeting(title="AB meeting"), [_account("T1", "AB")]) is None

    def test_account_without_name_or_email(self, engine, make_meeting) -> None:
        assert engine.match(make_meeting(title="Quarterly planning"), [_account("T1")]) is None


# ---------------------------------------------------------------------------
# Tier 1: email
# ---------------------------------------------------------------------------


class TestEmailTier:
    def test_email_beats_title(self, engine, make_meeting, sample_accounts) -> None:
        meeting = make_meeting(title="Acme Corp review", emails=["ana@cliente.com"])
        result = engine.match(meeting, sample_accounts)
        assert result.account_id == "T3"
        assert result.method == MatchMethod.EMAIL

    def test_whitespace_is_ignored(self, engine, make_meeting) -> None:
        meeting = make_meeting(title="Intro", emails=[" Ana@Cliente.com "])
        result = engine.match(meeting, [_account("T1", "Other", "ana@cliente.com")])
        assert result.method == MatchMethod.EMAIL

    def test_first_account_in_input_order_wins(self, engine, make_meeting) -> None:
        meeting = make_meeting(title="Intro", emails=["b@x.com", "a@x.com"])
        accounts = [_account("A", "One", "a@x.com"), _account("B", "Two", "b@x.com")]
        assert engine.match(meeting, accounts).account_id == "A"

    def test_participants_without_email(self, engine) -> None:
        meeting = Meeting(
            meeting_id="m-1",
            title="Intro",
            participants=[Participant(name="Ana")],
        )
        assert engine.match(meeting, [_account("T1", "Zeta", "ana@x.com")]) is None


# ---------------------------------------------------------------------------
# Tiers 2 and 3: substring
# ---------------------------------------------------------------------------


class TestSubstringTiers:
    def test_exact_is_case_insensitive(self, engine, make_meeting) -> None:
        result = engine.match(make_meeting(title="ACME CORP onboarding"), [_account("T1", "acme corp")])
        assert result.method == MatchMethod.TITLE_SUBSTRING_EXACT

    def test_exact_first_account_wins(self, engine, make_meeting) -> None:
        accounts = [_account("T1", "Acme"), _account("T2", "Acme Corp")]
        result = engine.match(make_meeting(title="Acme Corp kickoff"), accounts)
        assert result.account_id == "T1"

    def test_title_equal_to_name(self, engine, make_meeting) -> None:
        result = engine.match(make_meeting(title="Mar Azul"), [_account("T1", "Mar Azul")])
        assert result.method == MatchMethod.TITLE_SUBSTRING_EXACT

    def test_inverse_title_inside_name(self, engine, make_meeting) -> None:
        result = engine.match(make_meeting(title="Weekly Review"), [_account("T1", "Sync Weekly Review")])
        assert result.method == MatchMethod.TITLE_SUBSTRING_INVERSE
        assert result.confidence == 0.95

    def test_inverse_needs_five_characters(self, engine, make_meeting) -> None:
        result = engine.match(make_meeting(title="Acme"), [_account("T1", "Acme Corp")])
        # falls through to word overlap: 1 of max(1, 2) tokens
        assert result.method == MatchMethod.TITLE_WORD_BASED
        assert result.confidence == 0.78

    def test_exact_preferred_over_inverse(self, engine, make_meeting) -> None:
        accounts = [_account("INV", "Globex Planning Team"), _account("EXA", "Globex")]
        result = engine.match(make_meeting(title="Globex Planning"), accounts)
        assert result.account_id == "EXA"
        assert result.method == MatchMethod.TITLE_SUBSTRING_EXACT


# ---------------------------------------------------------------------------
# Tier 4: word overlap
# ---------------------------------------------------------------------------


class TestWordOverlapTier:
    def test_reordered_words(self, engine, make_meeting) -> None:
        result = engine.match(make_meeting(title="Azul Mar"), [_account("T1", "Mar Azul")])
        assert result.method == MatchMethod.TITLE_WORD_BASED
        assert result.confidence == 0.9

    def test_partial_overlap(self, engine, make_meeting) -> None:
        result = engine.match(make_meeting(title="Azul Mar quarterly"), [_account("T1", "Mar Azul")])
        assert result.confidence == 0.82

    def test_half_overlap_is_minimum(self, engine, make_meeting) -> None:
        result = engine.match(make_meeting(title="Globex planning"), [_account("T1", "Globex Industries")])
        assert result.method == MatchMethod.TITLE_WORD_BASED
        assert result.confidence == 0.78

    def test_substring_either_direction(self, engine, make_meeting) -> None:
        result = engine.match(make_meeting(title="Acmeco rollout"), [_account("T1", "Acme Industries")])
        assert result.method == MatchMethod.TITLE_WORD_BASED

    def test_title_token_counted_once(self, engine, make_meeting) -> None:
        # "globexcorp" contains both account tokens but scores a single hit
        result = engine.match(make_meeting(title="globexcorp"), [_account("T1", "Globex Corp")])
        assert result.confidence == 0.78

    def test_highest_score_wins(self, engine, make_meeting) -> None:
        accounts = [_account("LOW", "Globex Industries"), _account("HIGH", "Globex Planning")]
        result = engine.match(make_meeting(title="Planning Globex"), accounts)
        assert result.account_id == "HIGH"
        assert result.confidence == 0.9

    def test_tie_keeps_earliest(self, engine, make_meeting) -> None:
        accounts = [_account("FIRST", "Mar Azul"), _account("SECOND", "Mar Azul")]
        result = engine.match(make_meeting(title="Azul Mar"), accounts)
        assert result.account_id == "FIRST"

    def test_stop_words_ignored(self, engine, make_meeting) -> None:
        # "pousada" and "call" are stop words on both sides
        result = engine.match(make_meeting(title="Call Azul Mar"), [_account("T1", "Pousada Mar Azul")])
        assert result.method == MatchMethod.TITLE_WORD_BASED
        assert result.confidence == 0.9


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestProperties:
    @pytest.mark.parametrize(
        "title",
        ["Acme Corp - Kickoff Call", "Weekly Review", "Azul Mar", "Sync", "", "Hotel Call"],
    )
    def test_idempotent(self, engine, make_meeting, sample_accounts, title) -> None:
        accounts = sample_accounts + [_account("T4", "Sync Weekly Review")]
        meeting = make_meeting(title=title, emails=["someone@else.com"])
        assert engine.match(meeting, accounts) == engine.match(meeting, accounts)

    def test_meeting_not_mutated(self, engine, make_meeting, sample_accounts) -> None:
        meeting = make_meeting(title="Acme Corp kickoff", emails=["ana@cliente.com"])
        before = meeting.model_dump()
        engine.match(meeting, sample_accounts)
        assert meeting.model_dump() == before

    def test_tier_confidences_do_not_overlap(self) -> None:
        word_max = max(
            WordOverlapStrategy.confidence_for(m / n)
            for n in range(1, 12)
            for m in range(1, n + 1)
            if m / n >= 0.5
        )
        assert word_max <= 0.9 < 0.95 < 1.0

    def test_default_cascade_order(self) -> None:
        types = [type(s) for s in default_strategies()]
        assert types == [
            EmailStrategy,
            ExactSubstringStrategy,
            InverseSubstringStrategy,
            WordOverlapStrategy,
        ]

    def test_custom_strategies(self, make_meeting) -> None:
        engine = MatchingEngine(strategies=[WordOverlapStrategy()])
        meeting = make_meeting(title="Acme Corp", emails=["a@acme.com"])
        result = engine.match(meeting, [_account("T1", "Acme Corp", "a@acme.com")])
        assert result.method == MatchMethod.TITLE_WORD_BASED
        assert len(MatchingEngine().strategies) == 4
