"""Tests for the local repositories."""

from __future__ import annotations

import json

import pytest

from teamfinder.core.exceptions import ConflictError, NotFoundError
from teamfinder.repositories.local_repo import (
    LocalEventDirectory,
    LocalTeamRepository,
    LocalUserDirectory,
)
from teamfinder.schemas.models import EventStatus, MemberRole, Team


@pytest.fixture
def seeded_dir(tmp_path):
    (tmp_path / "users").mkdir()
    (tmp_path / "events").mkdir()
    (tmp_path / "users" / "u-1.json").write_text(
        json.dumps({"id": "u-1", "name": "Ana", "skills": [" Rust", "rust", "SQL"], "stats": {"events_participated": 4}}),
        encoding="utf-8",
    )
    (tmp_path / "users" / "u-2.json").write_text(json.dumps({"id": "u-2", "name": "Ben"}), encoding="utf-8")
    (tmp_path / "events" / "e-1.json").write_text(
        json.dumps({
            "id": "e-1",
            "title": "Hack Night",
            "deadlines": {"event_start": "2020-01-01T10:00:00Z", "event_end": "2020-01-02T10:00:00Z"},
        }),
        encoding="utf-8",
    )
    return tmp_path


def _team(team_id: str, event_id: str = "e-1", leader: str = "u-1") -> Team:
    return Team(id=team_id, event_id=event_id, name=team_id, leader_id=leader, members=[leader])


class TestLocalUserDirectory:
    def test_loads_and_normalizes_seed_files(self, seeded_dir):
        directory = LocalUserDirectory(seeded_dir)

        assert directory.get_user_skills("u-1") == ["rust", "sql"]
        assert directory.get_user_stats("u-1").events_participated == 4
        assert len(directory.list_all()) == 2

    def test_get_users_by_ids_keeps_order_and_skips_missing(self, seeded_dir):
        directory = LocalUserDirectory(seeded_dir)

        users = directory.get_users_by_ids(["u-2", "missing", "u-1"])

        assert [u.id for u in users] == ["u-2", "u-1"]

    def test_missing_user(self):
        with pytest.raises(NotFoundError):
            LocalUserDirectory().get_user("nobody")


class TestLocalEventDirectory:
    def test_defaults_and_status(self, seeded_dir):
        directory = LocalEventDirectory(seeded_dir)

        bounds = directory.get_team_size_bounds("e-1")
        assert (bounds.min, bounds.max) == (1, 6)
        assert directory.get_event("e-1").status == EventStatus.PAST
        assert directory.event_exists("e-1")
        assert not directory.event_exists("e-2")

    def test_missing_event_bounds(self):
        with pytest.raises(NotFoundError):
            LocalEventDirectory().get_team_size_bounds("nope")


class TestLocalTeamRepository:
    def test_writes_applied_on_commit(self):
        repo = LocalTeamRepository()

        def work(unit):
            unit.claim_membership("e-1", "u-1", MemberRole.LEADER)
            unit.save(_team("t-1"))

        repo.run("t-1", work)

        assert repo.get_team("t-1").members == ["u-1"]
        assert [t.id for t in repo.list_user_teams("u-1")] == ["t-1"]

    def test_failed_unit_leaves_store_unchanged(self):
        repo = LocalTeamRepository()

        def work(unit):
            unit.claim_membership("e-1", "u-1", MemberRole.LEADER)
            unit.save(_team("t-1"))
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            repo.run("t-1", work)

        assert repo.get_team("t-1") is None
        assert repo.list_user_teams("u-1") == []

    def test_claim_held_by_other_team_conflicts(self):
        repo = LocalTeamRepository()
        repo.run("t-1", lambda unit: (unit.claim_membership("e-1", "u-1", MemberRole.LEADER), unit.save(_team("t-1"))))

        with pytest.raises(ConflictError):
            repo.run("t-2", lambda unit: unit.claim_membership("e-1", "u-1", MemberRole.MEMBER))

    def test_returned_teams_are_copies(self):
        repo = LocalTeamRepository()
        repo.run("t-1", lambda unit: unit.save(_team("t-1")))

        repo.get_team("t-1").members.append("intruder")

        assert repo.get_team("t-1").members == ["u-1"]

    def test_release_and_delete(self):
        repo = LocalTeamRepository()
        repo.run("t-1", lambda unit: (unit.claim_membership("e-1", "u-1", MemberRole.LEADER), unit.save(_team("t-1"))))

        def work(unit):
            team = unit.get_team()
            unit.release_membership(team.event_id, "u-1")
            unit.delete(team)

        repo.run("t-1", work)

        assert repo.get_team("t-1") is None
        assert repo.list_user_teams("u-1") == []
        assert repo.list_event_teams("e-1") == []
