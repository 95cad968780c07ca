"""Matching of free-text schedule state labels to canonical states.

Labels in schedule exports are noisy ("break- 10 minutes",
"Break 15 Mins / 2:00 - 2:30"). Matching is deliberately conservative:
an exact name match first, then a token-subset match, then a scored
fuzzy match with a minimum threshold. Anything else keeps its own label.
"""

import logging
import re
from typing import Iterable, Optional, Protocol

from schedaudit.domain.policies import DefaultMatchingPolicy, MatchingPolicy

logger = logging.getLogger(__name__)

_SEPARATORS_RE = re.compile(r"[:@,()]")
_PUNCTUATION_RE = re.compile(r"[^\w\s_/-]", re.ASCII)
_WHITESPACE_RE = re.compile(r"\s+")
_NUMBER_RE = re.compile(r"^\d{1,4}$")
_CLOCK_TOKEN_RE = re.compile(r"^\d{1,2}:\d{2}$")


class NamedState(Protocol):
    name: str


def normalize(label: Optional[str]) -> str:
    """Lowercase a label, turn punctuation into spaces and collapse runs.

    Underscores, slashes and hyphens survive.

    >>> normalize("Break (15 mins) @ 2:00")
    'break 15 mins 2 00'
    """
    if not label:
        return ""
    cleaned = _SEPARATORS_RE.sub(" ", label)
    cleaned = _PUNCTUATION_RE.sub(" ", cleaned)
    return _WHITESPACE_RE.sub(" ", cleaned).strip().lower()


class StateMatcher:
    """Resolves labels against one fixed set of canonical states.

    A matcher is bound to a configuration snapshot; results are memoized
    for the lifetime of the instance.

    Attributes:
        states: Canonical states, in configuration order.
        policy: Stopwords, threshold and exception phrases.
    """

    def __init__(
        self,
        states: Iterable[NamedState],
        policy: Optional[MatchingPolicy] = None,
    ):
        self.states = tuple(states)
        self.policy = policy or DefaultMatchingPolicy()
        self._by_name = {state.name.lower(): state for state in self.states}
        self._candidates = [
            (state, frozenset(self.tokenize(state.name))) for state in self.states
        ]
        self._candidates = [(s, tokens) for s, tokens in self._candidates if tokens]
        # Longest names first so "Break Healthy Living" beats "Break".
        self._subset_order = sorted(
            self._candidates, key=lambda item: (-len(item[1]), -len(item[0].name))
        )
        self._cache: dict[str, str] = {}

    def tokenize(self, label: Optional[str]) -> list[str]:
        """Split a label into significant tokens.

        Stopwords, bare numbers, clock times and single characters are
        dropped; leading and trailing underscores or hyphens are trimmed.
        """
        stopwords = self.policy.get_stopwords()
        tokens = []
        for raw in normalize(label).split():
            token = raw.strip("_-")
            if not token or token in stopwords:
                continue
            if _NUMBER_RE.match(token) or _CLOCK_TOKEN_RE.match(token):
                continue
            if len(token) <= 1:
                continue
            tokens.append(token)
        return tokens

    def match(self, label: Optional[str]) -> str:
        """Resolve a label to a canonical state name.

        Args:
            label: Raw state label.

        Returns:
            The canonical name, or the whitespace-trimmed label when no
            state matches.
        """
        if not label or not label.strip():
            return label or ""
        trimmed = label.strip()
        if trimmed not in self._cache:
            self._cache[trimmed] = self._resolve(trimmed)
        return self._cache[trimmed]

    def match_state(self, label: Optional[str]) -> Optional[NamedState]:
        """Resolve a label to the canonical state object, if any."""
        return self._by_name.get(self.match(label).lower())

    def _resolve(self, label: str) -> str:
        lowered = label.lower()
        exact = self._by_name.get(lowered)
        if exact is not None:
            return exact.name

        label_tokens = set(self.tokenize(label))
        if not label_tokens:
            return label
        forms = (lowered, normalize(label))

        for state, tokens in self._subset_order:
            if tokens <= label_tokens and not self.policy.is_excluded(state.name, forms):
                logger.debug("Subset match: %r -> %r", label, state.name)
                return state.name

        best = None
        best_score = 0.0
        best_inter = 0
        for state, tokens in self._candidates:
            if self.policy.is_excluded(state.name, forms):
                continue
            inter = len(tokens & label_tokens)
            score = inter + inter / len(tokens | label_tokens)
            if score > best_score:
                best, best_score, best_inter = (state, tokens), score, inter

        if best is not None and best_inter >= 1:
            state, tokens = best
            jaccard = best_inter / len(tokens | label_tokens)
            if jaccard >= self.policy.get_jaccard_threshold() or len(tokens) == 1:
                logger.debug(
                    "Score match: %r -> %r (jaccard %.3f)", label, state.name, jaccard
                )
                return state.name

        return label
