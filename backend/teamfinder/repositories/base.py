"""
Repository Contracts

Interfaces shared by the local and Firestore backends. The membership
service only talks to these.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Protocol, TypeVar

from teamfinder.schemas.models import Event, MemberRole, Team, TeamSizeBounds, User, UserStats

T = TypeVar("T")


class UserDirectory(Protocol):
    def get_user(self, user_id: str) -> User: ...

    def get_users_by_ids(self, user_ids: Iterable[str]) -> list[User]: ...

    def list_all(self) -> list[User]: ...

    def get_user_skills(self, user_id: str) -> list[str]: ...

    def get_user_stats(self, user_id: str) -> UserStats: ...


class EventDirectory(Protocol):
    def get_event(self, event_id: str) -> Event: ...

    def get_team_size_bounds(self, event_id: str) -> TeamSizeBounds: ...

    def event_exists(self, event_id: str) -> bool: ...


class TeamUnitOfWork(Protocol):
    """Reads and staged writes for one team, applied together on commit."""

    team_id: str

    def get_team(self) -> Optional[Team]: ...

    def membership_of(self, event_id: str, user_id: str) -> Optional[str]:
        """Team id the user belongs to for the event, if any."""
        ...

    def claim_membership(self, event_id: str, user_id: str, role: MemberRole) -> None: ...

    def release_membership(self, event_id: str, user_id: str) -> None: ...

    def save(self, team: Team) -> None: ...

    def delete(self, team: Team) -> None: ...


class TeamStore(Protocol):
    def run(self, team_id: str, work: Callable[[TeamUnitOfWork], T]) -> T:
        """Execute ``work`` atomically against one team."""
        ...

    def get_team(self, team_id: str) -> Optional[Team]: ...

    def list_event_teams(self, event_id: str) -> list[Team]: ...

    def list_user_teams(self, user_id: str) -> list[Team]: ...

    def list_invited_teams(self, user_id: str) -> list[Team]: ...
