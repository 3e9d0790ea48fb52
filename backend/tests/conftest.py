"""Pytest fixtures and configuration."""

from __future__ import annotations

import os
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Set environment variables before importing app modules
os.environ["STORAGE_BACKEND"] = "local"
os.environ["DEMO_MODE"] = "true"

from teamfinder.repositories.local_repo import (  # noqa: E402
    LocalEventDirectory,
    LocalTeamRepository,
    LocalUserDirectory,
)
from teamfinder.schemas.models import Event, TeamSizeBounds, User, UserStats  # noqa: E402
from teamfinder.services.membership_service import TeamMembershipService  # noqa: E402
from teamfinder.services.search_service import TeammateSearchService  # noqa: E402


def make_user(user_id: str, skills: list[str] | None = None, participated: int = 0) -> User:
    return User(
        id=user_id,
        name=user_id.replace("u-", "").title(),
        email=f"{user_id}@campus.test",
        skills=skills or [],
        stats=UserStats(events_participated=participated),
    )


@pytest.fixture
def users() -> LocalUserDirectory:
    """Directory with a leader, a handful of candidates and a zero-skill user."""
    directory = LocalUserDirectory()
    for user in [
        make_user("u-leader", ["Python", "FastAPI"], participated=5),
        make_user("u-alice", ["python", "React"], participated=2),
        make_user("u-bob", ["Go", "python"], participated=3),
        make_user("u-carol", ["Figma"], participated=1),
        make_user("u-dave", ["react"], participated=3),
        make_user("u-erin", [], participated=0),
    ]:
        directory.save_user(user)
    return directory


@pytest.fixture
def events() -> LocalEventDirectory:
    directory = LocalEventDirectory()
    directory.save_event(Event(id="hack-3", title="Hackathon", team_size=TeamSizeBounds(min=2, max=3)))
    directory.save_event(Event(id="quiz-2", title="Quiz", team_size=TeamSizeBounds(min=1, max=2)))
    return directory


@pytest.fixture
def team_repo() -> LocalTeamRepository:
    return LocalTeamRepository()


@pytest.fixture
def membership(team_repo, users, events) -> TeamMembershipService:
    return TeamMembershipService(team_repo, users, events)


@pytest.fixture
def search(users) -> TeammateSearchService:
    return TeammateSearchService(users)


@pytest.fixture
def api_client(membership, search) -> Generator[TestClient, None, None]:
    """Test client wired to the in-memory services."""
    from teamfinder.api.dependencies import get_membership_service, get_search_service
    from teamfinder.main import app

    app.dependency_overrides[get_membership_service] = lambda: membership
    app.dependency_overrides[get_search_service] = lambda: search

    client = TestClient(app)
    client.headers["X-Demo-User-Id"] = "u-leader"
    yield client

    app.dependency_overrides.pop(get_membership_service, None)
    app.dependency_overrides.pop(get_search_service, None)
