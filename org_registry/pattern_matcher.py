"""
Project Pattern Matcher

Decides whether a live AWS resource name belongs to this project, based
on plain substring containment of the derived project patterns.

Matching is intentionally broad: it is a pre-filter for destroy
operations, not a final decision. Callers must confirm before deleting.
"""

import logging
from collections.abc import Iterable

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# AWS CLI / JMESPath render missing names as the literal "null"
NULL_NAMES = {"", "null"}


class PatternMatcher:
    """Matches resource names against project patterns."""

    @staticmethod
    def matches(resource_name: str | None, patterns: Iterable[str]) -> bool:
        """
        Check whether a resource name contains any project pattern.

        Args:
            resource_name: Resource name as reported by AWS.
            patterns: Literal substrings (case-sensitive, no wildcards).

        Returns:
            False for empty or "null" names, otherwise True if any
            pattern is a substring of the name.
        """
        if resource_name is None or resource_name in NULL_NAMES:
            return False
        return any(pattern and pattern in resource_name for pattern in patterns)

    @classmethod
    def filter_project_resources(
        cls, resource_names: Iterable[str | None], patterns: Iterable[str]
    ) -> tuple[list[str], list[str]]:
        """
        Split resource names into project-owned and foreign.

        Returns:
            Tuple of (matching_names, other_names). Empty and "null" names
            are dropped.
        """
        patterns = tuple(patterns)
        matching = []
        other = []

        for name in resource_names:
            if name is None or name in NULL_NAMES:
                continue
            if cls.matches(name, patterns):
                matching.append(name)
            else:
                other.append(name)
                logger.debug("Not a project resource: %s", name)

        logger.info(
            "Pattern filter: %d project resources, %d other",
            len(matching),
            len(other),
        )
        return matching, other


def matches(resource_name: str | None, patterns: Iterable[str]) -> bool:
    return PatternMatcher.matches(resource_name, patterns)
