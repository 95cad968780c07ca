"""Policy definitions for schedule analysis rules.

This module contains configurable policies that define how free-text
state labels are matched to canonical states and which states count as a
day off. Policies are kept separate from the analysis engine to allow
independent testing and easy modification.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from schedaudit.domain.state_config import CanonicalState


DEFAULT_STOPWORDS = frozenset(
    {
        "mins",
        "min",
        "minutes",
        "hrs",
        "hr",
        "hours",
        "hour",
        "from",
        "to",
        "-",
        "–",
        "—",
        "am",
        "pm",
        "/",
        "at",
        "the",
        "a",
        "an",
        "of",
        "in",
        "for",
    }
)

# Phrases that must never be attributed to the keyed canonical state.
DEFAULT_MATCHING_EXCEPTIONS: dict[str, tuple[str, ...]] = {
    "Break": ("healthy living", "medical", "logout"),
}


class MatchingPolicy(ABC):
    """Abstract base class for label matching policies."""

    @abstractmethod
    def get_stopwords(self) -> frozenset[str]:
        """Tokens ignored when comparing labels."""
        pass

    @abstractmethod
    def get_jaccard_threshold(self) -> float:
        """Minimum Jaccard similarity for a multi-token fuzzy match."""
        pass

    @abstractmethod
    def is_excluded(self, candidate_name: str, labels: tuple[str, ...]) -> bool:
        """Check whether a candidate must be rejected for a label.

        Args:
            candidate_name: Name of the canonical state being considered.
            labels: Lowercased forms of the raw label (raw and normalized).

        Returns:
            True if a configured exception phrase appears in any form.
        """
        pass


class DayOffPolicy(ABC):
    """Abstract base class for deciding day-off/time-off membership."""

    @abstractmethod
    def is_day_off(self, state: Optional["CanonicalState"], label: str) -> bool:
        """Check if an entry's state belongs to the day-off family.

        Args:
            state: Canonical state the label resolved to, if configured.
            label: The resolved state name (or trimmed raw label).

        Returns:
            True if the state is a day off or time off.
        """
        pass


@dataclass
class DefaultMatchingPolicy(MatchingPolicy):
    """Default matching policy implementation.

    Exception phrases are checked as substrings of the lowercased raw
    label and of its normalized form.
    """

    stopwords: frozenset[str] = DEFAULT_STOPWORDS
    jaccard_threshold: float = 0.20
    exceptions: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_MATCHING_EXCEPTIONS)
    )

    def get_stopwords(self) -> frozenset[str]:
        return self.stopwords

    def get_jaccard_threshold(self) -> float:
        return self.jaccard_threshold

    def is_excluded(self, candidate_name: str, labels: tuple[str, ...]) -> bool:
        phrases = self.exceptions.get(candidate_name, ())
        return any(phrase.lower() in label for phrase in phrases for label in labels)


@dataclass
class DefaultDayOffPolicy(DayOffPolicy):
    """Default day-off policy implementation.

    A configured state is a day off when its category or group is in the
    day-off family. Labels that match no configured state fall back to a
    keyword check so that an unconfigured "Day Off" row still counts.
    """

    categories: frozenset[str] = frozenset({"time off"})
    groups: frozenset[str] = frozenset({"day off", "paid time off"})
    keywords: tuple[str, ...] = ("day off", "time off", "off day", "pto", "vacation")

    def is_day_off(self, state: Optional["CanonicalState"], label: str) -> bool:
        if state is not None:
            return (
                state.category.lower() in self.categories
                or state.group.lower() in self.groups
            )
        lowered = label.strip().lower()
        return any(
            re.search(rf"\b{re.escape(keyword)}\b", lowered) for keyword in self.keywords
        )
