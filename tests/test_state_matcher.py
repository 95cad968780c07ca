"""Tests for free-text state matching."""

import pytest

from schedaudit.domain.policies import DefaultMatchingPolicy
from schedaudit.domain.state_config import DEFAULT_STATES, CanonicalState
from schedaudit.matching.state_matcher import StateMatcher, normalize


class TestNormalize:
    """Tests for label normalization."""

    def test_separators_and_case(self):
        assert normalize("Break (15 mins) @ 2:00") == "break 15 mins 2 00"

    def test_keeps_underscores_slashes_hyphens(self):
        assert normalize("Work_Inbound / Chat-Queue") == "work_inbound / chat-queue"

    def test_collapses_whitespace(self):
        assert normalize("  Team   Meeting  ") == "team meeting"

    def test_empty(self):
        assert normalize("") == ""
        assert normalize(None) == ""


class TestStateMatcher:
    """Tests for StateMatcher with the default states."""

    @pytest.fixture
    def matcher(self):
        return StateMatcher(DEFAULT_STATES)

    def test_exact_match_ignores_case(self, matcher):
        assert matcher.match("Break") == "Break"
        assert matcher.match("MEETING") == "Meeting"
        assert matcher.match("  lunch ") == "Lunch"

    def test_noisy_label_subset_match(self, matcher):
        assert matcher.match("Break 15 Mins / 2:00 - 2:30") == "Break"
        assert matcher.match("break- 10 minutes") == "Break"
        assert matcher.match("Team Meeting @ 10") == "Meeting"

    def test_multi_token_state_subset(self, matcher):
        assert matcher.match("Paid Time Off") == "Time Off"

    def test_exception_phrase_blocks_match(self, matcher):
        """A health or logout label must never be counted as a break."""
        assert matcher.match("Break - Healthy Living") == "Break - Healthy Living"
        assert matcher.match("Medical Break") == "Medical Break"
        assert matcher.match("Break/Logout") == "Break/Logout"

    def test_unmatched_returns_trimmed_label(self, matcher):
        assert matcher.match("  Coaching Session ") == "Coaching Session"

    def test_label_with_only_noise(self, matcher):
        assert matcher.match("15 mins") == "15 mins"

    def test_blank_label(self, matcher):
        assert matcher.match("") == ""
        assert matcher.match(None) == ""

    def test_match_state_returns_object(self, matcher):
        state = matcher.match_state("lunch 30 mins")
        assert state is not None
        assert state.name == "Lunch"
        assert matcher.match_state("Coaching") is None

    def test_results_are_memoized(self, matcher):
        matcher.match("Break 15 Mins")
        assert matcher._cache["Break 15 Mins"] == "Break"


class TestLongestMatch:
    """Tests for preference between overlapping state names."""

    @pytest.fixture
    def matcher(self):
        states = [
            CanonicalState("Lunch", "Break", "BREAK"),
            CanonicalState("Lunch Extended", "Break", "BREAK"),
            CanonicalState("Team Huddle", "Meeting", "MEETING, TRAINING and COACHING"),
        ]
        return StateMatcher(states)

    def test_more_specific_state_wins(self, matcher):
        assert matcher.match("Extended lunch 30") == "Lunch Extended"
        assert matcher.match("Lunch 30") == "Lunch"

    def test_fuzzy_match(self, matcher):
        assert matcher.match("huddle") == "Team Huddle"


class TestCustomPolicy:
    """Tests for StateMatcher with a custom policy."""

    def test_custom_exceptions(self):
        policy = DefaultMatchingPolicy(exceptions={"Meeting": ("1:1",)})
        matcher = StateMatcher(DEFAULT_STATES, policy=policy)

        assert matcher.match("Meeting 1:1") == "Meeting 1:1"
        assert matcher.match("Break - Healthy Living") == "Break"

    def test_threshold(self):
        states = [CanonicalState("Outbound Sales Calls", "Work")]
        strict = StateMatcher(states, DefaultMatchingPolicy(jaccard_threshold=0.5))
        lenient = StateMatcher(states, DefaultMatchingPolicy(jaccard_threshold=0.2))

        assert strict.match("sales follow up") == "sales follow up"
        assert lenient.match("sales follow up") == "Outbound Sales Calls"
