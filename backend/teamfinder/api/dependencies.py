"""
Dependency wiring for the API routers.

Storage handles are built once from ``Settings`` and passed explicitly into
the services; tests swap them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from teamfinder.core.config import get_settings
from teamfinder.core.logging import get_logger
from teamfinder.services.membership_service import TeamMembershipService
from teamfinder.services.search_service import TeammateSearchService

logger = get_logger("teamfinder.api.dependencies")


@lru_cache
def get_backends() -> tuple:
    """Return ``(teams, users, events)`` for the configured storage backend."""
    settings = get_settings()
    if settings.storage_backend == "firestore":
        from teamfinder.repositories.firestore_repo import (
            FirestoreEventDirectory,
            FirestoreTeamRepository,
            FirestoreUserDirectory,
            get_client,
        )

        db = get_client()
        backends = (FirestoreTeamRepository(db), FirestoreUserDirectory(db), FirestoreEventDirectory(db))
    else:
        from teamfinder.repositories.local_repo import (
            LocalEventDirectory,
            LocalTeamRepository,
            LocalUserDirectory,
        )

        backends = (
            LocalTeamRepository(),
            LocalUserDirectory(settings.data_dir),
            LocalEventDirectory(settings.data_dir),
        )
    logger.info(f"Using {settings.storage_backend} storage backend")
    return backends


def get_membership_service() -> TeamMembershipService:
    teams, users, events = get_backends()
    return TeamMembershipService(
        teams,
        users,
        events,
        cap_outstanding_invites=get_settings().cap_outstanding_invites,
    )


def get_search_service() -> TeammateSearchService:
    _, users, _ = get_backends()
    settings = get_settings()
    return TeammateSearchService(
        users,
        default_limit=settings.default_search_limit,
        max_limit=settings.max_search_limit,
    )
