"""Canonical schedule state configuration.

A StateConfig is an immutable snapshot of the canonical state vocabulary.
One snapshot is taken per analysis run so that every row of that run sees
the same definitions.

Example:
    >>> config = StateConfig.default()
    >>> config.find_matching_state("Break 15 mins")
    'Break'
"""

import json
import logging
from dataclasses import dataclass, field, replace
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

from schedaudit.domain.policies import DEFAULT_MATCHING_EXCEPTIONS, DefaultMatchingPolicy
from schedaudit.exceptions import StateConfigError

if TYPE_CHECKING:
    from schedaudit.matching.state_matcher import StateMatcher

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    "Break",
    "Meeting",
    "Work",
    "Time Off",
    "Training",
    "Supervisor Time",
    "Loan",
    "Coaching",
    "Other",
)

DEFAULT_GROUPS = (
    "MEETING, TRAINING and COACHING",
    "OTHER DUTIES",
    "PAID TIME OFF",
    "SYSTEM",
    "UNSCHEDULED TIME",
    "OUTBOUND",
    "OTHER LEAVE",
    "NEW HIRE TRAINING",
    "MISCELLANEOUS",
    "LATE AND UNKNOWN",
    "INBOUND ACTIVITY",
    "DAY OFF",
    "CCA ACTIVITY",
    "BREAK",
    "BCP EVENT",
    "ABSENCE",
)

# Checked in order; the first group with a keyword contained in the name wins.
GROUP_KEYWORDS: dict[str, tuple[str, ...]] = {
    "MEETING, TRAINING and COACHING": (
        "meeting",
        "training",
        "coaching",
        "coach",
        "train",
        "seminar",
        "workshop",
        "session",
    ),
    "BREAK": ("break", "lunch", "meal", "rest"),
    "INBOUND ACTIVITY": ("work", "inbound", "call", "handle", "service", "support", "agent"),
    "PAID TIME OFF": ("time off", "pto", "vacation", "holiday", "paid time"),
    "OUTBOUND": ("outbound", "call out", "out call"),
    "OTHER DUTIES": ("duty", "task", "assignment", "other duty", "admin", "administrative"),
    "SYSTEM": ("system", "maintenance", "update", "downtime"),
    "UNSCHEDULED TIME": ("unscheduled", "unplanned", "ad-hoc"),
    "OTHER LEAVE": ("leave", "sick", "sick leave", "personal leave", "unpaid leave"),
    "NEW HIRE TRAINING": ("new hire", "onboarding", "orientation", "new employee"),
    "MISCELLANEOUS": ("misc", "miscellaneous", "other", "general"),
    "LATE AND UNKNOWN": ("late", "unknown", "unidentified", "tardy"),
    "DAY OFF": ("day off", "off day", "rest day"),
    "CCA ACTIVITY": ("cca", "customer care", "care activity"),
    "BCP EVENT": ("bcp", "business continuity", "continuity plan"),
    "ABSENCE": ("absence", "absent", "no show", "absentee"),
}


@dataclass(frozen=True)
class CanonicalState:
    """A configured schedule state.

    Attributes:
        name: Display name, unique case-insensitively.
        category: Broad category (e.g. "Break", "Time Off").
        group: Reporting group (e.g. "BREAK", "PAID TIME OFF"), may be empty.
        is_paid: Whether time in this state is paid.
        is_default: Whether the state ships with the default configuration.
    """

    name: str
    category: str
    group: str = ""
    is_paid: bool = True
    is_default: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CanonicalState":
        name = str(data.get("name") or "").strip()
        category = str(data.get("category") or "").strip()
        if not name or not category:
            raise StateConfigError("State name and category are required")
        return cls(
            name=name,
            category=category,
            group=str(data.get("group") or "").strip(),
            is_paid=bool(data.get("isPaid", data.get("is_paid", True))),
            is_default=bool(data.get("isDefault", data.get("is_default", False))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "group": self.group,
            "isPaid": self.is_paid,
            "isDefault": self.is_default,
        }


DEFAULT_STATES = (
    CanonicalState("Break", "Break", "BREAK", is_paid=True, is_default=True),
    CanonicalState(
        "Meeting", "Meeting", "MEETING, TRAINING and COACHING", is_paid=True, is_default=True
    ),
    CanonicalState("Work", "Work", "INBOUND ACTIVITY", is_paid=True, is_default=True),
    CanonicalState("Lunch", "Break", "BREAK", is_paid=False, is_default=True),
    CanonicalState("Time Off", "Time Off", "PAID TIME OFF", is_paid=False, is_default=False),
)


def auto_assign_group(state_name: str) -> Optional[str]:
    """Guess a reporting group from keywords in a state name.

    Args:
        state_name: Name of the state.

    Returns:
        The first group whose keyword appears in the name, or None.
    """
    if not state_name:
        return None
    lowered = state_name.strip().lower()
    for group, keywords in GROUP_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return group
    return None


@dataclass(frozen=True)
class StateConfig:
    """Immutable snapshot of the canonical state configuration.

    Attributes:
        states: Configured canonical states, in configuration order.
        custom_groups: Groups added on top of the default group list.
        custom_categories: Categories added on top of the default list.
        matching_exceptions: State name -> phrases never matched to it.
    """

    states: tuple[CanonicalState, ...] = ()
    custom_groups: tuple[str, ...] = ()
    custom_categories: tuple[str, ...] = ()
    matching_exceptions: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_MATCHING_EXCEPTIONS),
        hash=False,
        compare=False,
    )

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for state in self.states:
            key = state.name.lower()
            if key in seen:
                raise StateConfigError(f'State "{state.name}" already exists')
            seen.add(key)

    @classmethod
    def default(cls) -> "StateConfig":
        """Create the configuration shipped with the tool."""
        return cls(states=DEFAULT_STATES)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StateConfig":
        """Build a configuration from a decoded JSON document.

        Raises:
            StateConfigError: If the document is malformed.
        """
        if not isinstance(data, dict):
            raise StateConfigError("State configuration must be a JSON object")
        raw_states = data.get("states", [])
        if not isinstance(raw_states, list):
            raise StateConfigError('"states" must be a list')

        exceptions = data.get("matchingExceptions")
        if exceptions is None:
            exceptions = dict(DEFAULT_MATCHING_EXCEPTIONS)
        elif not isinstance(exceptions, dict):
            raise StateConfigError('"matchingExceptions" must be an object')

        return cls(
            states=tuple(CanonicalState.from_dict(s) for s in raw_states),
            custom_groups=tuple(data.get("customGroups", ())),
            custom_categories=tuple(data.get("customCategories", ())),
            matching_exceptions={
                name: tuple(phrases) for name, phrases in exceptions.items()
            },
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StateConfig":
        """Load a configuration from a JSON file.

        Raises:
            StateConfigError: If the file cannot be read or decoded.
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StateConfigError(f"Cannot load state configuration {path}: {e}") from e
        config = cls.from_dict(data)
        logger.info("Loaded %d states from %s", len(config.states), path)
        return config

    def to_dict(self) -> dict[str, Any]:
        return {
            "states": [state.to_dict() for state in self.states],
            "customGroups": list(self.custom_groups),
            "customCategories": list(self.custom_categories),
            "matchingExceptions": {
                name: list(phrases) for name, phrases in self.matching_exceptions.items()
            },
        }

    def get_all_states(self) -> list[CanonicalState]:
        return list(self.states)

    def get_state_by_name(self, name: str) -> Optional[CanonicalState]:
        """Look up a state by name, case-insensitively."""
        key = name.strip().lower()
        for state in self.states:
            if state.name.lower() == key:
                return state
        return None

    def get_states_by_group(self, group: str) -> list[CanonicalState]:
        return [s for s in self.states if s.group == group]

    def get_states_by_category(self, category: str) -> list[CanonicalState]:
        return [s for s in self.states if s.category == category]

    def get_all_categories(self) -> list[str]:
        return sorted(set(DEFAULT_CATEGORIES) | set(self.custom_categories))

    def get_all_groups(self) -> list[str]:
        """All known groups: defaults, custom groups and groups used by states."""
        groups = set(DEFAULT_GROUPS) | set(self.custom_groups)
        groups.update(s.group.strip() for s in self.states if s.group.strip())
        return sorted(groups)

    @cached_property
    def matcher(self) -> "StateMatcher":
        """Label matcher bound to this snapshot."""
        from schedaudit.matching.state_matcher import StateMatcher

        policy = DefaultMatchingPolicy(exceptions=dict(self.matching_exceptions))
        return StateMatcher(self.states, policy=policy)

    def find_matching_state(self, label: str) -> str:
        """Resolve a free-text label to a canonical state name.

        Returns the trimmed label itself when nothing matches.
        """
        return self.matcher.match(label)

    def with_state(self, state: CanonicalState) -> "StateConfig":
        """Return a new snapshot with one more state.

        Raises:
            StateConfigError: If a state with the same name exists.
        """
        if self.get_state_by_name(state.name) is not None:
            raise StateConfigError(f'State "{state.name}" already exists')
        return replace(self, states=self.states + (state,))

    def with_auto_assigned_groups(self) -> "StateConfig":
        """Return a new snapshot where ungrouped states get a keyword group."""
        states = []
        for state in self.states:
            if not state.group.strip():
                group = auto_assign_group(state.name)
                if group:
                    state = replace(state, group=group)
            states.append(state)
        return replace(self, states=tuple(states))
