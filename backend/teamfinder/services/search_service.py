"""
Teammate Search Service

Ranks users of the directory against a set of wanted skills. Pure read over a
snapshot of ``UserDirectory.list_all()``.
"""

from __future__ import annotations

from typing import Iterable, Optional

from teamfinder.core.logging import get_logger
from teamfinder.core.utils import normalize_skills
from teamfinder.core.validation import validate_limit
from teamfinder.repositories.base import UserDirectory
from teamfinder.schemas.models import SearchResult, User

logger = get_logger("teamfinder.services.search")


def parse_skill_query(raw: Optional[str]) -> list[str]:
    """Split a comma-separated query string such as ``"python, React"``."""
    if not raw:
        return []
    return normalize_skills(raw.split(","))


def _default_order(user: User) -> tuple[int, str]:
    return (-user.stats.events_participated, user.id)


class TeammateSearchService:
    def __init__(
        self,
        users: UserDirectory,
        default_limit: int = 20,
        max_limit: int = 100,
    ) -> None:
        self.users = users
        self.default_limit = default_limit
        self.max_limit = max_limit

    def search(
        self,
        query_skills: Iterable[str] | None,
        exclude_user_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[SearchResult]:
        """
        Rank candidate teammates by skill overlap.

        Args:
            query_skills: Wanted skills; compared trimmed and case-insensitively
            exclude_user_id: Usually the searching user
            limit: Maximum number of results

        Returns:
            Results ordered by match score, then events participated (desc),
            then user id. With no query skills every user is returned with a
            score of 0.
        """
        limit = validate_limit(limit, self.default_limit, self.max_limit)
        wanted = set(normalize_skills(query_skills))
        candidates = [user for user in self.users.list_all() if user.id != exclude_user_id]

        if not wanted:
            ranked = [SearchResult(user=user) for user in sorted(candidates, key=_default_order)]
            return ranked[:limit]

        scored = []
        for user in candidates:
            score = len(wanted.intersection(normalize_skills(user.skills)))
            if score > 0:
                scored.append(SearchResult(user=user, match_score=score))

        scored.sort(key=lambda r: (-r.match_score, *_default_order(r.user)))
        logger.debug(f"Skill search {sorted(wanted)} matched {len(scored)} of {len(candidates)} users")
        return scored[:limit]
