"""
Local Repository

In-process backend for development and tests. Users and events may be seeded
from JSON files; teams live in memory.

Directory layout when seeded:
    <data_dir>/users/{user_id}.json
    <data_dir>/events/{event_id}.json
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, TypeVar

from teamfinder.core.exceptions import ConflictError, NotFoundError
from teamfinder.core.logging import get_logger
from teamfinder.core.utils import membership_key
from teamfinder.schemas.models import Event, MemberRole, Team, TeamSizeBounds, User, UserStats

logger = get_logger("teamfinder.repositories.local")

T = TypeVar("T")


def _load_json_dir(directory: Path) -> list[dict[str, Any]]:
    if not directory.exists():
        return []
    return [json.loads(path.read_text(encoding="utf-8")) for path in sorted(directory.glob("*.json"))]


class LocalUserDirectory:
    def __init__(self, data_dir: Path | None = None) -> None:
        self._users: dict[str, User] = {}
        if data_dir is not None:
            for payload in _load_json_dir(Path(data_dir) / "users"):
                self.save_user(User(**payload))
            logger.info(f"Loaded {len(self._users)} users from {data_dir}")

    def save_user(self, user: User) -> User:
        self._users[user.id] = user
        return user

    def get_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", {"user_id": user_id})
        return user

    def get_users_by_ids(self, user_ids: Iterable[str]) -> list[User]:
        return [self._users[uid] for uid in user_ids if uid in self._users]

    def list_all(self) -> list[User]:
        return list(self._users.values())

    def get_user_skills(self, user_id: str) -> list[str]:
        return list(self.get_user(user_id).skills)

    def get_user_stats(self, user_id: str) -> UserStats:
        return self.get_user(user_id).stats


class LocalEventDirectory:
    def __init__(self, data_dir: Path | None = None) -> None:
        self._events: dict[str, Event] = {}
        if data_dir is not None:
            for payload in _load_json_dir(Path(data_dir) / "events"):
                self.save_event(Event(**payload))
            logger.info(f"Loaded {len(self._events)} events from {data_dir}")

    def save_event(self, event: Event) -> Event:
        self._events[event.id] = event
        return event

    def get_event(self, event_id: str) -> Event:
        event = self._events.get(event_id)
        if event is None:
            raise NotFoundError(f"Event {event_id} not found", {"event_id": event_id})
        return event

    def get_team_size_bounds(self, event_id: str) -> TeamSizeBounds:
        return self.get_event(event_id).team_size

    def event_exists(self, event_id: str) -> bool:
        return event_id in self._events


class _LocalUnitOfWork:
    """Stages writes for one team; ``LocalTeamRepository`` applies them on commit."""

    def __init__(self, repo: "LocalTeamRepository", team_id: str) -> None:
        self._repo = repo
        self.team_id = team_id
        self.claims: dict[str, dict[str, str]] = {}
        self.releases: set[str] = set()
        self.saved: Optional[Team] = None
        self.deleted = False

    def get_team(self) -> Optional[Team]:
        team = self._repo._teams.get(self.team_id)
        return team.model_copy(deep=True) if team else None

    def membership_of(self, event_id: str, user_id: str) -> Optional[str]:
        key = membership_key(event_id, user_id)
        if key in self.claims:
            return self.team_id
        if key in self.releases:
            return None
        with self._repo._index_lock:
            entry = self._repo._memberships.get(key)
        return entry["team_id"] if entry else None

    def claim_membership(self, event_id: str, user_id: str, role: MemberRole) -> None:
        owner = self.membership_of(event_id, user_id)
        if owner is not None and owner != self.team_id:
            raise ConflictError(
                "User is already on another team for this event",
                {"user_id": user_id, "event_id": event_id, "team_id": owner},
            )
        key = membership_key(event_id, user_id)
        self.releases.discard(key)
        self.claims[key] = {
            "event_id": event_id,
            "user_id": user_id,
            "team_id": self.team_id,
            "role": role.value,
        }

    def release_membership(self, event_id: str, user_id: str) -> None:
        key = membership_key(event_id, user_id)
        self.claims.pop(key, None)
        self.releases.add(key)

    def save(self, team: Team) -> None:
        self.saved = team.model_copy(deep=True)
        self.deleted = False

    def delete(self, team: Team) -> None:
        self.saved = None
        self.deleted = True


class LocalTeamRepository:
    """In-memory team store.

    Each unit of work holds the lock of its team id, so two units touching the
    same team never interleave. Membership index entries play the part of a
    unique index: claims are re-checked and applied under ``_index_lock`` at
    commit, and a claim lost to another team aborts the whole unit.
    """

    def __init__(self) -> None:
        self._teams: dict[str, Team] = {}
        self._memberships: dict[str, dict[str, str]] = {}
        self._team_locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._index_lock = threading.Lock()

    def _lock_for(self, team_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._team_locks.setdefault(team_id, threading.Lock())

    def run(self, team_id: str, work: Callable[[_LocalUnitOfWork], T]) -> T:
        with self._lock_for(team_id):
            unit = _LocalUnitOfWork(self, team_id)
            result = work(unit)
            self._commit(unit)
            if unit.deleted:
                with self._locks_guard:
                    self._team_locks.pop(team_id, None)
            return result

    def _commit(self, unit: _LocalUnitOfWork) -> None:
        with self._index_lock:
            for key, claim in unit.claims.items():
                entry = self._memberships.get(key)
                if entry is not None and entry["team_id"] != unit.team_id:
                    raise ConflictError(
                        "User is already on another team for this event",
                        {"user_id": claim["user_id"], "event_id": claim["event_id"]},
                    )
            for key in unit.releases:
                entry = self._memberships.get(key)
                if entry is not None and entry["team_id"] == unit.team_id:
                    del self._memberships[key]
            self._memberships.update(unit.claims)

            if unit.deleted:
                self._teams.pop(unit.team_id, None)
            elif unit.saved is not None:
                self._teams[unit.team_id] = unit.saved

    def get_team(self, team_id: str) -> Optional[Team]:
        team = self._teams.get(team_id)
        return team.model_copy(deep=True) if team else None

    def _snapshot(self) -> list[Team]:
        with self._index_lock:
            return [team.model_copy(deep=True) for team in self._teams.values()]

    def list_event_teams(self, event_id: str) -> list[Team]:
        return [team for team in self._snapshot() if team.event_id == event_id]

    def list_user_teams(self, user_id: str) -> list[Team]:
        with self._index_lock:
            team_ids = [e["team_id"] for e in self._memberships.values() if e["user_id"] == user_id]
        teams = [self.get_team(team_id) for team_id in team_ids]
        return [team for team in teams if team is not None]

    def list_invited_teams(self, user_id: str) -> list[Team]:
        return [team for team in self._snapshot() if user_id in team.pending_invites]
