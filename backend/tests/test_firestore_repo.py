"""Tests for Firestore document mapping with a mocked client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from teamfinder.core.exceptions import ConflictError, NotFoundError
from teamfinder.repositories import firestore_repo
from teamfinder.repositories.firestore_repo import (
    FirestoreEventDirectory,
    FirestoreTeamRepository,
    FirestoreUserDirectory,
)
from teamfinder.schemas.models import MemberRole
from teamfinder.services.membership_service import TeamMembershipService


def _doc(doc_id: str, data: dict | None):
    doc = MagicMock()
    doc.id = doc_id
    doc.exists = data is not None
    doc.to_dict.return_value = data
    return doc


@pytest.fixture
def db():
    return MagicMock()


class TestFirestoreUserDirectory:
    def test_get_user(self, db):
        db.collection.return_value.document.return_value.get.return_value = _doc(
            "u-1", {"name": "Ana", "skills": ["Rust", " rust "]}
        )

        user = FirestoreUserDirectory(db).get_user("u-1")

        assert user.id == "u-1"
        assert user.skills == ["rust"]
        db.collection.assert_called_with("users")

    def test_get_missing_user(self, db):
        db.collection.return_value.document.return_value.get.return_value = _doc("u-1", None)

        with pytest.raises(NotFoundError):
            FirestoreUserDirectory(db).get_user("u-1")

    def test_get_users_by_ids_restores_order(self, db):
        db.get_all.return_value = [_doc("u-2", {"name": "Ben"}), _doc("u-1", {"name": "Ana"}), _doc("u-3", None)]

        users = FirestoreUserDirectory(db).get_users_by_ids(["u-1", "u-3", "u-2"])

        assert [u.id for u in users] == ["u-1", "u-2"]

    def test_get_users_by_ids_empty(self, db):
        assert FirestoreUserDirectory(db).get_users_by_ids([]) == []
        db.get_all.assert_not_called()


class TestFirestoreEventDirectory:
    def test_bounds(self, db):
        db.collection.return_value.document.return_value.get.return_value = _doc(
            "e-1", {"title": "Hack", "team_size": {"min": 2, "max": 4}}
        )

        bounds = FirestoreEventDirectory(db).get_team_size_bounds("e-1")

        assert (bounds.min, bounds.max) == (2, 4)


class TestFirestoreTeamRepository:
    def test_list_user_teams_follows_index(self, db):
        repo = FirestoreTeamRepository(db)
        memberships = db.collection.return_value.where.return_value
        memberships.stream.return_value = [_doc("e-1:u-1", {"team_id": "t-1", "user_id": "u-1"})]
        db.collection.return_value.document.return_value.get.return_value = _doc(
            "t-1", {"event_id": "e-1", "name": "T", "leader_id": "u-1", "members": ["u-1"]}
        )

        teams = repo.list_user_teams("u-1")

        assert [t.id for t in teams] == ["t-1"]
        db.collection.assert_any_call("team_memberships")


class _RecordingFirestore:
    """Document store double that logs transactional reads and writes in order."""

    def __init__(self, docs: dict[tuple[str, str], dict]) -> None:
        self.docs = docs
        self.calls: list[tuple] = []
        self._refs: dict[tuple[str, str], MagicMock] = {}

    def collection(self, name: str):
        collection = MagicMock()
        collection.document.side_effect = lambda doc_id: self._ref(name, doc_id)
        return collection

    def _ref(self, name: str, doc_id: str):
        key = (name, doc_id)
        if key not in self._refs:
            ref = MagicMock()
            ref.key = key
            ref.get.side_effect = lambda transaction=None, key=key: self._get(key)
            self._refs[key] = ref
        return self._refs[key]

    def _get(self, key):
        self.calls.append(("get", key))
        data = self.docs.get(key)
        return _doc(key[1], dict(data) if data is not None else None)

    def transaction(self):
        transaction = MagicMock()
        transaction.set.side_effect = lambda ref, data: self.calls.append(("set", ref.key, data))
        transaction.delete.side_effect = lambda ref: self.calls.append(("delete", ref.key))
        return transaction

    def writes(self) -> list[tuple]:
        return [call for call in self.calls if call[0] != "get"]


def _team_doc(**overrides) -> dict:
    data = {"event_id": "hack-3", "name": "T", "leader_id": "u-leader", "members": ["u-leader"], "pending_invites": []}
    data.update(overrides)
    return data


class TestFirestoreTransactions:
    @pytest.fixture(autouse=True)
    def run_transactions_inline(self):
        with patch.object(firestore_repo.firestore, "transactional", lambda fn: fn):
            yield

    @staticmethod
    def _service(store, users, events) -> TeamMembershipService:
        return TeamMembershipService(FirestoreTeamRepository(store), users, events)

    def test_claim_held_by_other_team_writes_nothing(self, users, events):
        store = _RecordingFirestore({("team_memberships", "hack-3:u-leader"): {"team_id": "t-other"}})

        with pytest.raises(ConflictError):
            self._service(store, users, events).create_team("hack-3", "u-leader", "Late")

        assert store.writes() == []

    def test_join_reads_everything_before_first_write(self, users, events):
        store = _RecordingFirestore({("teams", "t-1"): _team_doc(pending_invites=["u-alice"])})

        team = self._service(store, users, events).join("t-1", "u-alice")

        kinds = [call[0] for call in store.calls]
        assert "set" in kinds
        assert "get" not in kinds[kinds.index("set"):]
        assert team.members == ["u-leader", "u-alice"]

        index_write, team_write = store.writes()
        assert index_write[:2] == ("set", ("team_memberships", "hack-3:u-alice"))
        assert index_write[2]["team_id"] == "t-1"
        assert index_write[2]["role"] == MemberRole.MEMBER.value
        assert team_write[:2] == ("set", ("teams", "t-1"))
        assert team_write[2]["members"] == ["u-leader", "u-alice"]
        assert team_write[2]["pending_invites"] == []

    def test_join_full_team_commits_withdrawn_invite(self, users, events):
        store = _RecordingFirestore(
            {("teams", "t-1"): _team_doc(event_id="quiz-2", members=["u-leader", "u-bob"], pending_invites=["u-alice"])}
        )

        with pytest.raises(ConflictError, match="full"):
            self._service(store, users, events).join("t-1", "u-alice")

        writes = store.writes()
        assert len(writes) == 1
        assert writes[0][:2] == ("set", ("teams", "t-1"))
        assert writes[0][2]["pending_invites"] == []
        assert writes[0][2]["members"] == ["u-leader", "u-bob"]

    def test_deleting_team_stages_team_and_index_deletes(self, users, events):
        store = _RecordingFirestore(
            {
                ("teams", "t-1"): _team_doc(),
                ("team_memberships", "hack-3:u-leader"): {"team_id": "t-1", "user_id": "u-leader"},
            }
        )

        self._service(store, users, events).delete_team("t-1", "u-leader")

        assert ("delete", ("team_memberships", "hack-3:u-leader")) in store.writes()
        assert ("delete", ("teams", "t-1")) in store.writes()
        assert all(call[0] == "delete" for call in store.writes())
