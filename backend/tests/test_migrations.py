"""Tests for the Firestore migrations."""

from __future__ import annotations

import importlib.util
from pathlib import Path
from unittest.mock import MagicMock

from migrations import runner

MIGRATIONS_DIR = Path(runner.__file__).parent


def _load(stem: str):
    spec = importlib.util.spec_from_file_location(stem, MIGRATIONS_DIR / f"{stem}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _doc(doc_id: str, data: dict):
    doc = MagicMock()
    doc.id = doc_id
    doc.to_dict.return_value = data
    return doc


class TestMembershipIndexMigration:
    def test_backfills_index_and_normalizes_skills(self):
        migration = _load("m_20261019_001_membership_index")
        db = MagicMock()
        teams = [_doc("t-1", {"event_id": "e-1", "leader_id": "u-1", "members": ["u-1", "u-2"]})]
        user_doc = _doc("u-1", {"skills": ["Python", "python "]})
        clean_user = _doc("u-2", {"skills": ["go"]})
        collections = {
            "teams": MagicMock(),
            "users": MagicMock(),
            "team_memberships": MagicMock(),
        }
        collections["teams"].stream.return_value = teams
        collections["users"].stream.return_value = [user_doc, clean_user]
        db.collection.side_effect = lambda name: collections[name]

        migration.upgrade(db)

        index = collections["team_memberships"]
        index.document.assert_any_call("e-1:u-1")
        index.document.assert_any_call("e-1:u-2")
        written = [c.args[0] for c in index.document.return_value.set.call_args_list]
        assert [w["role"] for w in written] == ["leader", "member"]
        user_doc.reference.update.assert_called_once_with({"skills": ["python"]})
        clean_user.reference.update.assert_not_called()


class TestRunner:
    def test_pending_excludes_executed(self):
        db = MagicMock()
        db.collection.return_value.stream.return_value = []

        pending = runner.get_pending_migrations(db)

        assert "m_20261019_001_membership_index" in [mid for mid, _ in pending]

    def test_create_writes_template(self, tmp_path):
        path = runner.cmd_create("add team tags", migrations_dir=tmp_path)

        assert path.name.endswith("_001_add_team_tags.py")
        assert "def upgrade(db: Client)" in path.read_text()
