"""Custom exceptions for the TeamFinder application."""

from __future__ import annotations


class TeamFinderError(Exception):
    """Base exception for all TeamFinder errors."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(TeamFinderError):
    """Raised when a team, user, event or invite does not exist."""

    kind = "not_found"
    status_code = 404


class ConflictError(TeamFinderError):
    """Raised when a transition would break a membership or capacity rule."""

    kind = "conflict"
    status_code = 409


class PermissionDeniedError(TeamFinderError):
    """Raised when a non-leader attempts a leader-only action."""

    kind = "permission_denied"
    status_code = 403


class InvalidArgumentError(TeamFinderError):
    """Raised when input validation fails."""

    kind = "invalid_argument"
    status_code = 400
