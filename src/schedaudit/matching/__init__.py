"""Free-text schedule state matching."""

from schedaudit.matching.state_matcher import StateMatcher, normalize

__all__ = [
    "StateMatcher",
    "normalize",
]
