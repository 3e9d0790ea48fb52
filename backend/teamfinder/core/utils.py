"""
Core utilities for TeamFinder backend.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable
from urllib.parse import quote


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def normalize_skill(skill: str) -> str:
    """Normalize a single skill for comparison: trimmed and lower-cased."""
    return skill.strip().lower()


def normalize_skills(skills: Iterable[str] | None) -> list[str]:
    """Normalize and de-duplicate skills, keeping first-seen order.

    Empty entries are dropped, so ``[" Python", "python", ""]`` becomes
    ``["python"]``.

    Args:
        skills: Raw skill strings as entered by a user

    Returns:
        Normalized skill list
    """
    seen: dict[str, None] = {}
    for skill in skills or []:
        if not isinstance(skill, str):
            continue
        normalized = normalize_skill(skill)
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


def membership_key(event_id: str, user_id: str) -> str:
    """Key of the one-team-per-event index entry for a user.

    Both parts are percent-encoded, so the ``:`` separator only ever appears
    between them and distinct pairs never share a key.
    """
    return f"{quote(event_id, safe='')}:{quote(user_id, safe='')}"
