"""Tests for gt.engine.stash module."""

import pytest

from gt.engine.stash import StashManager
from gt.git.status import check_status
from gt.lib.errors import StashConflict, StashNotFound

from gitutil import commit_file, git


@pytest.fixture
def stash(repo):
    return StashManager(repo)


def _dirty(repo):
    """Leave one staged, one modified and one untracked file."""
    (repo / "staged.txt").write_text("staged\n")
    git(repo, "add", "staged.txt")
    (repo / "README.md").write_text("modified\n")
    (repo / "untracked.txt").write_text("untracked\n")


class TestCreateStash:
    """Test snapshotting the working tree."""

    def test_nothing_to_stash_returns_none(self, stash):
        assert stash.create_stash("empty") is None
        assert stash.list_stashes() == []

    def test_stash_leaves_clean_tree(self, repo, stash):
        _dirty(repo)
        entry = stash.create_stash("wip")
        assert entry.index == 0
        assert "wip" in entry.message
        assert check_status(repo).is_clean

    def test_default_message_names_branch(self, repo, stash):
        _dirty(repo)
        entry = stash.create_stash()
        assert "gt auto-stash on main" in entry.message

    def test_list_is_newest_first(self, repo, stash):
        (repo / "a.txt").write_text("a")
        stash.create_stash("first")
        (repo / "b.txt").write_text("b")
        stash.create_stash("second")
        entries = stash.list_stashes()
        assert [e.index for e in entries] == [0, 1]
        assert "second" in entries[0].message
        assert "first" in entries[1].message


class TestPopStash:
    """Test restoring snapshots."""

    def test_round_trip_restores_classification(self, repo, stash):
        _dirty(repo)
        before = check_status(repo)

        stash.create_stash("round trip")
        stash.pop_stash(0)

        after = check_status(repo)
        assert sorted(after.staged) == sorted(before.staged)
        assert sorted(after.modified) == sorted(before.modified)
        assert sorted(after.untracked) == sorted(before.untracked)
        assert stash.list_stashes() == []

    def test_conflict_keeps_entry(self, repo, stash):
        (repo / "README.md").write_text("stashed edit\n")
        stash.create_stash("conflicting")
        commit_file(repo, "README.md", "committed edit\n", "Diverge")

        with pytest.raises(StashConflict) as exc:
            stash.pop_stash(0)
        assert exc.value.index == 0
        assert "README.md" in exc.value.files
        entries = stash.list_stashes()
        assert len(entries) == 1
        assert "conflicting" in entries[0].message

    def test_missing_index(self, stash):
        with pytest.raises(StashNotFound):
            stash.pop_stash(3)

    def test_apply_keeps_entry(self, repo, stash):
        (repo / "a.txt").write_text("a")
        stash.create_stash("keep me")
        stash.apply_stash(0)
        assert (repo / "a.txt").exists()
        assert len(stash.list_stashes()) == 1

    def test_drop_shifts_indices(self, repo, stash):
        (repo / "a.txt").write_text("a")
        stash.create_stash("older")
        (repo / "b.txt").write_text("b")
        stash.create_stash("newer")
        stash.drop_stash(0)
        entries = stash.list_stashes()
        assert len(entries) == 1
        assert entries[0].index == 0
        assert "older" in entries[0].message
