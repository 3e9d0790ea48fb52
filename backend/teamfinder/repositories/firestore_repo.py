"""
Firestore Repository

Firestore-backed user directory, event directory and team store.

Data Structure:
    users/{user_id}                             - Profiles, skills, stats
    events/{event_id}                           - Event metadata incl. team_size
    teams/{team_id}                             - Team roster and pending invites
    team_memberships/{event}:{user}             - One-team-per-event index (parts percent-encoded)
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, TypeVar

import firebase_admin
from firebase_admin import firestore
from google.cloud.firestore_v1 import FieldFilter

from teamfinder.core.exceptions import ConflictError, NotFoundError
from teamfinder.core.logging import get_logger
from teamfinder.core.utils import membership_key, utc_now_iso
from teamfinder.schemas.models import Event, MemberRole, Team, TeamSizeBounds, User, UserStats

logger = get_logger("teamfinder.repositories.firestore")

T = TypeVar("T")

USERS_COLLECTION = "users"
EVENTS_COLLECTION = "events"
TEAMS_COLLECTION = "teams"
MEMBERSHIPS_COLLECTION = "team_memberships"


def get_client():
    """Return a Firestore client, initializing the Admin SDK on first use."""
    if not firebase_admin._apps:
        firebase_admin.initialize_app()
    return firestore.client()


def _with_id(doc) -> dict[str, Any]:
    data = doc.to_dict() or {}
    data.setdefault("id", doc.id)
    return data


class FirestoreUserDirectory:
    def __init__(self, db=None) -> None:
        self.db = db or get_client()

    def get_user(self, user_id: str) -> User:
        doc = self.db.collection(USERS_COLLECTION).document(user_id).get()
        if not doc.exists:
            raise NotFoundError(f"User {user_id} not found", {"user_id": user_id})
        return User(**_with_id(doc))

    def get_users_by_ids(self, user_ids: Iterable[str]) -> list[User]:
        user_ids = list(user_ids)
        if not user_ids:
            return []
        refs = [self.db.collection(USERS_COLLECTION).document(uid) for uid in user_ids]
        found = {doc.id: User(**_with_id(doc)) for doc in self.db.get_all(refs) if doc.exists}
        # get_all does not preserve request order
        return [found[uid] for uid in user_ids if uid in found]

    def list_all(self) -> list[User]:
        return [User(**_with_id(doc)) for doc in self.db.collection(USERS_COLLECTION).stream()]

    def get_user_skills(self, user_id: str) -> list[str]:
        return list(self.get_user(user_id).skills)

    def get_user_stats(self, user_id: str) -> UserStats:
        return self.get_user(user_id).stats


class FirestoreEventDirectory:
    def __init__(self, db=None) -> None:
        self.db = db or get_client()

    def get_event(self, event_id: str) -> Event:
        doc = self.db.collection(EVENTS_COLLECTION).document(event_id).get()
        if not doc.exists:
            raise NotFoundError(f"Event {event_id} not found", {"event_id": event_id})
        return Event(**_with_id(doc))

    def get_team_size_bounds(self, event_id: str) -> TeamSizeBounds:
        return self.get_event(event_id).team_size

    def event_exists(self, event_id: str) -> bool:
        return self.db.collection(EVENTS_COLLECTION).document(event_id).get().exists


class _FirestoreUnitOfWork:
    """Transactional view of one team.

    Firestore requires every read of a transaction to happen before its first
    write, so writes are staged here and flushed once ``work`` returns.
    """

    def __init__(self, db, transaction, team_id: str) -> None:
        self.db = db
        self.transaction = transaction
        self.team_id = team_id
        self._team_ref = db.collection(TEAMS_COLLECTION).document(team_id)
        self._writes: list[Callable[[], None]] = []
        self._claimed: set[str] = set()
        self._released: set[str] = set()

    def _membership_ref(self, event_id: str, user_id: str):
        return self.db.collection(MEMBERSHIPS_COLLECTION).document(membership_key(event_id, user_id))

    def get_team(self) -> Optional[Team]:
        doc = self._team_ref.get(transaction=self.transaction)
        if not doc.exists:
            return None
        return Team(**_with_id(doc))

    def membership_of(self, event_id: str, user_id: str) -> Optional[str]:
        key = membership_key(event_id, user_id)
        if key in self._claimed:
            return self.team_id
        if key in self._released:
            return None
        doc = self._membership_ref(event_id, user_id).get(transaction=self.transaction)
        if not doc.exists:
            return None
        return (doc.to_dict() or {}).get("team_id")

    def claim_membership(self, event_id: str, user_id: str, role: MemberRole) -> None:
        owner = self.membership_of(event_id, user_id)
        if owner is not None and owner != self.team_id:
            raise ConflictError(
                "User is already on another team for this event",
                {"user_id": user_id, "event_id": event_id, "team_id": owner},
            )
        key = membership_key(event_id, user_id)
        self._claimed.add(key)
        self._released.discard(key)
        ref = self._membership_ref(event_id, user_id)
        payload = {
            "event_id": event_id,
            "user_id": user_id,
            "team_id": self.team_id,
            "role": role.value,
            "joined_at": utc_now_iso(),
        }
        self._writes.append(lambda: self.transaction.set(ref, payload))

    def release_membership(self, event_id: str, user_id: str) -> None:
        key = membership_key(event_id, user_id)
        self._claimed.discard(key)
        self._released.add(key)
        ref = self._membership_ref(event_id, user_id)
        self._writes.append(lambda: self.transaction.delete(ref))

    def save(self, team: Team) -> None:
        payload = team.model_dump()
        self._writes.append(lambda: self.transaction.set(self._team_ref, payload))

    def delete(self, team: Team) -> None:
        self._writes.append(lambda: self.transaction.delete(self._team_ref))

    def flush(self) -> None:
        for write in self._writes:
            write()
        self._writes.clear()


class FirestoreTeamRepository:
    """Team store using Firestore transactions for every mutation."""

    def __init__(self, db=None) -> None:
        self.db = db or get_client()

    def run(self, team_id: str, work: Callable[[_FirestoreUnitOfWork], T]) -> T:
        transaction = self.db.transaction()

        @firestore.transactional
        def _apply(transaction) -> T:
            unit = _FirestoreUnitOfWork(self.db, transaction, team_id)
            result = work(unit)
            unit.flush()
            return result

        return _apply(transaction)

    def get_team(self, team_id: str) -> Optional[Team]:
        doc = self.db.collection(TEAMS_COLLECTION).document(team_id).get()
        if not doc.exists:
            return None
        return Team(**_with_id(doc))

    def list_event_teams(self, event_id: str) -> list[Team]:
        query = self.db.collection(TEAMS_COLLECTION).where(
            filter=FieldFilter("event_id", "==", event_id)
        )
        return [Team(**_with_id(doc)) for doc in query.stream()]

    def list_user_teams(self, user_id: str) -> list[Team]:
        query = self.db.collection(MEMBERSHIPS_COLLECTION).where(
            filter=FieldFilter("user_id", "==", user_id)
        )
        teams = []
        for doc in query.stream():
            team = self.get_team(doc.to_dict()["team_id"])
            if team is not None:
                teams.append(team)
        return teams

    def list_invited_teams(self, user_id: str) -> list[Team]:
        query = self.db.collection(TEAMS_COLLECTION).where(
            filter=FieldFilter("pending_invites", "array_contains", user_id)
        )
        return [Team(**_with_id(doc)) for doc in query.stream()]
