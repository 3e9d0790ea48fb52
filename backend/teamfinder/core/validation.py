"""
Input validation for membership and search operations.

Each engine operation calls these first so malformed input is rejected with
``InvalidArgumentError`` before any storage is touched.
"""

from __future__ import annotations

from typing import Any

from teamfinder.core.exceptions import InvalidArgumentError

MAX_ID_LENGTH = 128
MAX_TEAM_NAME_LENGTH = 100


def validate_id(value: Any, field: str) -> str:
    """Return a stripped identifier or raise.

    Ids double as Firestore document ids, so they may not contain ``/``.
    """
    if not isinstance(value, str):
        raise InvalidArgumentError(f"{field} must be a string", {"field": field})
    value = value.strip()
    if not value:
        raise InvalidArgumentError(f"{field} is required", {"field": field})
    if len(value) > MAX_ID_LENGTH:
        raise InvalidArgumentError(
            f"{field} cannot exceed {MAX_ID_LENGTH} characters", {"field": field}
        )
    if "/" in value:
        raise InvalidArgumentError(f"{field} cannot contain '/'", {"field": field})
    return value


def validate_team_name(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError("Team name is required", {"field": "name"})
    value = value.strip()
    if len(value) > MAX_TEAM_NAME_LENGTH:
        raise InvalidArgumentError(
            f"Team name cannot exceed {MAX_TEAM_NAME_LENGTH} characters", {"field": "name"}
        )
    return value


def validate_limit(value: Any, default: int, maximum: int) -> int:
    """Resolve a search limit: ``None`` means default, larger values are clamped."""
    if value is None:
        return default
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError("limit must be an integer", {"field": "limit"})
    if value < 1:
        raise InvalidArgumentError("limit must be at least 1", {"field": "limit"})
    return min(value, maximum)
