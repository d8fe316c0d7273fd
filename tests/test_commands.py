"""Tests for the workflow orchestrators in gt.commands."""

from unittest.mock import patch

import pytest

from gt.commands.clean import run_clean
from gt.commands.save import run_save
from gt.commands.ship import run_ship
from gt.commands.sp import run_sp
from gt.commands.start import normalize_branch_name, run_start
from gt.commands.update import run_update
from gt.git.status import check_status, is_rebase_in_progress
from gt.lib.errors import (
    BranchAlreadyExists,
    BranchNotFound,
    EmptyCommitMessage,
    GitHubUnavailable,
    NetworkTimeout,
    OperationNotPermitted,
    RebaseConflict,
    UncommittedChanges,
    UserCancelled,
)
from gt.lib.prompter import AutoPrompter, ScriptedPrompter
from gt.lib.types import MergeStrategy, PullRequestOptions

from gitutil import commit_file, current_branch, git, head, make_context


def _push_upstream_change(upstream, name, content, message):
    sha = commit_file(upstream, name, content, message)
    git(upstream, "push", "--quiet", "origin", "main")
    return sha


class TestStart:
    """Test the start orchestrator."""

    def test_normalize_branch_name(self):
        assert normalize_branch_name("  My Feature_X ") == "my-feature-x"
        assert normalize_branch_name("feature/x") == "feature/x"

    def test_branches_from_fetched_origin_main(self, repo, origin, upstream):
        remote_tip = _push_upstream_change(upstream, "up.txt", "u", "Upstream work")

        name = run_start(make_context(repo), "feature/x")

        assert name == "feature/x"
        assert current_branch(repo) == "feature/x"
        assert head(repo) == remote_tip
        assert head(repo, "origin/main") == remote_tip

    def test_checks_out_base_first(self, repo, origin):
        git(repo, "checkout", "--quiet", "-b", "elsewhere")
        run_start(make_context(repo), "next")
        assert current_branch(repo) == "next"
        assert head(repo) == head(repo, "main")

    def test_local_skips_network(self, repo):
        # No remote configured: any fetch would fail
        run_start(make_context(repo), "offline", local=True)
        assert current_branch(repo) == "offline"

    def test_dirty_tree_declined(self, repo):
        (repo / "README.md").write_text("dirty\n")
        prompter = ScriptedPrompter(confirmations=[False])
        with pytest.raises(UserCancelled):
            run_start(make_context(repo, prompter=prompter), "x", local=True)
        assert current_branch(repo) == "main"
        assert prompter.questions == ["Continue with uncommitted changes?"]

    def test_dirty_tree_confirmed_keeps_changes(self, repo):
        (repo / "README.md").write_text("dirty\n")
        run_start(make_context(repo, prompter=ScriptedPrompter(confirmations=[True])), "x", local=True)
        assert current_branch(repo) == "x"
        assert (repo / "README.md").read_text() == "dirty\n"

    def test_existing_branch_fails_without_force(self, repo):
        git(repo, "branch", "taken")
        with pytest.raises(BranchAlreadyExists):
            run_start(make_context(repo), "taken", local=True)

    def test_force_recreates_branch(self, repo):
        git(repo, "checkout", "--quiet", "-b", "taken")
        commit_file(repo, "old.txt", "old", "Old work")
        git(repo, "checkout", "--quiet", "main")

        run_start(make_context(repo), "taken", local=True, force=True)
        assert current_branch(repo) == "taken"
        assert head(repo) == head(repo, "main")

    def test_dry_run_changes_nothing(self, repo, origin, capsys):
        run_start(make_context(repo, dry_run=True), "planned")
        assert current_branch(repo) == "main"
        assert "planned" not in git(repo, "branch")
        assert "[dry-run] would create branch planned" in capsys.readouterr().out


class TestSave:
    """Test the save orchestrator."""

    def test_commits_all_changes(self, repo):
        (repo / "new.txt").write_text("new")
        (repo / "README.md").write_text("changed\n")
        sha = run_save(make_context(repo), message="Save work")
        assert sha == head(repo)
        assert git(repo, "log", "--format=%s", "-1") == "Save work"
        assert check_status(repo).is_clean

    def test_stages_only_given_files(self, repo):
        (repo / "a.txt").write_text("a")
        (repo / "b.txt").write_text("b")
        run_save(make_context(repo), message="Only a", files=["a.txt"])
        assert check_status(repo).untracked == ["b.txt"]

    def test_nothing_staged_is_a_noop(self, repo, capsys):
        before = head(repo)
        assert run_save(make_context(repo), message="Nothing") is None
        assert head(repo) == before
        assert "Nothing staged" in capsys.readouterr().out

    def test_empty_interactive_message_fails(self, repo):
        (repo / "README.md").write_text("changed\n")
        git(repo, "add", "README.md")
        before = head(repo)

        prompter = ScriptedPrompter(lines=[""])
        with pytest.raises(EmptyCommitMessage):
            run_save(make_context(repo, prompter=prompter))
        assert head(repo) == before

    def test_blank_supplied_message_fails(self, repo):
        (repo / "README.md").write_text("changed\n")
        before = head(repo)

        with pytest.raises(EmptyCommitMessage):
            run_save(make_context(repo), message="   ")
        assert head(repo) == before

    def test_blank_typed_message_fails(self, repo):
        (repo / "x.txt").write_text("x")
        before = head(repo)
        with pytest.raises(EmptyCommitMessage):
            run_save(make_context(repo, prompter=ScriptedPrompter(lines=["   ", ""])))
        assert head(repo) == before

    def test_multiline_message_until_blank_line(self, repo):
        (repo / "x.txt").write_text("x")
        prompter = ScriptedPrompter(lines=["Subject line", "", "ignored"])
        run_save(make_context(repo, prompter=prompter))
        assert git(repo, "log", "--format=%B", "-1") == "Subject line"

    def test_edit_replaces_message(self, repo):
        (repo / "x.txt").write_text("x")
        prompter = ScriptedPrompter(confirmations=[False], lines=["Better message", "More detail", ""])
        run_save(make_context(repo, prompter=prompter), message="draft", edit=True)
        assert git(repo, "log", "--format=%B", "-1") == "Better message\nMore detail"

    def test_edit_keeps_message(self, repo):
        (repo / "x.txt").write_text("x")
        prompter = ScriptedPrompter(confirmations=[True])
        run_save(make_context(repo, prompter=prompter), message="draft", edit=True)
        assert git(repo, "log", "--format=%s", "-1") == "draft"

    def test_non_interactive_without_message_fails(self, repo):
        (repo / "x.txt").write_text("x")
        with pytest.raises(EmptyCommitMessage):
            run_save(make_context(repo, prompter=AutoPrompter(True)))


class TestSp:
    """Test save-and-push."""

    def test_commits_and_pushes(self, repo, origin):
        (repo / "x.txt").write_text("x")
        run_sp(make_context(repo), message="Quick fix")
        assert git(origin, "rev-parse", "main") == head(repo)


class TestUpdate:
    """Test the update orchestrator."""

    def _feature(self, repo, name="feature", file="feature.txt", content="f"):
        git(repo, "checkout", "--quiet", "-b", name)
        return commit_file(repo, file, content, "Feature work")

    def test_rebases_feature_onto_refreshed_main(self, repo, origin, upstream):
        self._feature(repo)
        remote_tip = _push_upstream_change(upstream, "up.txt", "u", "Upstream work")

        run_update(make_context(repo))

        assert current_branch(repo) == "feature"
        assert head(repo, "main") == remote_tip
        assert head(repo, "HEAD~1") == remote_tip

    def test_stashes_and_restores_local_changes(self, repo, origin, upstream):
        self._feature(repo)
        _push_upstream_change(upstream, "up.txt", "u", "Upstream work")
        (repo / "scratch.txt").write_text("local only\n")
        (repo / "feature.txt").write_text("edited\n")

        run_update(make_context(repo))

        status = check_status(repo)
        assert status.untracked == ["scratch.txt"]
        assert status.modified == ["feature.txt"]
        assert git(repo, "stash", "list") == ""

    def test_no_stash_refuses_dirty_tree(self, repo, origin):
        (repo / "README.md").write_text("dirty\n")
        with pytest.raises(UncommittedChanges):
            run_update(make_context(repo), stash=False)

    def test_on_main_pulls_directly(self, repo, origin, upstream):
        remote_tip = _push_upstream_change(upstream, "up.txt", "u", "Upstream work")
        run_update(make_context(repo))
        assert current_branch(repo) == "main"
        assert head(repo) == remote_tip

    def test_main_only_leaves_branch(self, repo, origin, upstream):
        feature_tip = self._feature(repo)
        remote_tip = _push_upstream_change(upstream, "up.txt", "u", "Upstream work")

        run_update(make_context(repo), main_only=True)

        assert current_branch(repo) == "feature"
        assert head(repo) == feature_tip
        assert head(repo, "main") == remote_tip

    def test_conflicting_rebase_is_left_for_resolution(self, repo, origin, upstream):
        feature_tip = self._feature(repo, file="README.md", content="feature version\n")
        _push_upstream_change(upstream, "README.md", "upstream version\n", "Upstream edit")

        with pytest.raises(RebaseConflict) as exc:
            run_update(make_context(repo))

        assert "README.md" in exc.value.files
        assert is_rebase_in_progress(repo)
        # Neither side is discarded
        assert head(repo, "refs/heads/feature") == feature_tip
        assert git(repo, "show", "origin/main:README.md") == "upstream version"

    def test_creates_main_from_remote_before_stashing(self, repo, origin, upstream):
        self._feature(repo)
        git(repo, "branch", "-D", "main")
        remote_tip = _push_upstream_change(upstream, "up.txt", "u", "Upstream work")
        (repo / "README.md").write_text("local edit\n")

        run_update(make_context(repo))

        assert current_branch(repo) == "feature"
        assert head(repo, "main") == remote_tip
        assert head(repo, "HEAD~1") == remote_tip
        assert (repo / "README.md").read_text() == "local edit\n"
        assert git(repo, "stash", "list") == ""

    def test_missing_main_fails_before_stashing(self, repo):
        self._feature(repo)
        git(repo, "branch", "-D", "main")
        (repo / "README.md").write_text("local edit\n")

        with pytest.raises(BranchNotFound):
            run_update(make_context(repo))

        assert (repo / "README.md").read_text() == "local edit\n"
        assert git(repo, "stash", "list") == ""

    def test_network_failure_hint_names_stash(self, repo, origin, tmp_path):
        self._feature(repo)
        git(repo, "remote", "set-url", "origin", str(tmp_path / "gone.git"))
        (repo / "README.md").write_text("local edit\n")

        with pytest.raises(NetworkTimeout) as exc:
            run_update(make_context(repo))

        assert "stash@{0}" in exc.value.hint
        assert current_branch(repo) == "feature"
        assert "gt update auto-stash on feature" in git(repo, "stash", "list")

    def test_conflict_hint_names_stash(self, repo, origin, upstream):
        self._feature(repo, file="README.md", content="feature version\n")
        _push_upstream_change(upstream, "README.md", "upstream version\n", "Upstream edit")
        (repo / "notes.txt").write_text("keep me\n")

        with pytest.raises(RebaseConflict) as exc:
            run_update(make_context(repo))
        assert "stash@{0}" in exc.value.hint
        assert "gt update auto-stash on feature" in git(repo, "stash", "list")


class TestShip:
    """Test the ship orchestrator."""

    def test_main_declined_pushes_nothing(self, repo, origin):
        before = git(origin, "rev-parse", "main")
        commit_file(repo, "local.txt", "l", "Local only")

        with pytest.raises(UserCancelled):
            run_ship(make_context(repo, prompter=AutoPrompter(False)))

        assert git(origin, "rev-parse", "main") == before

    def test_main_confirmed_pushes(self, repo, origin):
        tip = commit_file(repo, "local.txt", "l", "Local")
        run_ship(make_context(repo, prompter=AutoPrompter(True)))
        assert git(origin, "rev-parse", "main") == tip

    def test_feature_push_switch_and_delete(self, repo, origin):
        git(repo, "checkout", "--quiet", "-b", "feature")
        tip = commit_file(repo, "f.txt", "f", "Feature")

        run_ship(make_context(repo), delete_branch=True)

        assert git(origin, "rev-parse", "feature") == tip
        assert current_branch(repo) == "main"
        assert "feature" not in git(repo, "branch")

    def test_no_switch_stays_on_branch(self, repo, origin):
        git(repo, "checkout", "--quiet", "-b", "feature")
        commit_file(repo, "f.txt", "f", "Feature")
        run_ship(make_context(repo), no_switch=True, delete_branch=True)
        assert current_branch(repo) == "feature"

    def test_dirty_tree_declined(self, repo, origin):
        git(repo, "checkout", "--quiet", "-b", "feature")
        (repo / "f.txt").write_text("f")
        with pytest.raises(UncommittedChanges):
            run_ship(make_context(repo, prompter=ScriptedPrompter(confirmations=[False])))
        assert "feature" not in git(origin, "branch")

    def test_dirty_tree_saved_then_pushed(self, repo, origin):
        git(repo, "checkout", "--quiet", "-b", "feature")
        (repo / "f.txt").write_text("f")
        prompter = ScriptedPrompter(confirmations=[True], lines=["Finish feature", ""])

        run_ship(make_context(repo, prompter=prompter), no_switch=True)

        assert git(origin, "log", "--format=%s", "-1", "feature") == "Finish feature"

    @patch("gt.commands.ship.github.enable_auto_merge", return_value=(True, ""))
    @patch("gt.commands.ship.github.create_pull_request",
           return_value=(True, "https://github.com/o/r/pull/3", 3))
    @patch("gt.commands.ship.github.check_gh_available", return_value=(True, ""))
    def test_pr_and_auto_merge(self, mock_check, mock_create, mock_merge, repo, origin):
        git(repo, "checkout", "--quiet", "-b", "feature")
        commit_file(repo, "f.txt", "f", "Feature")
        options = PullRequestOptions(title="Feature", reviewers=["ann"])

        run_ship(make_context(repo), pr=True, auto_merge=True, strategy=MergeStrategy.SQUASH,
                 no_switch=True, pr_options=options)

        mock_create.assert_called_once()
        assert mock_create.call_args[0][1:3] == ("feature", "main")
        assert mock_create.call_args[0][3] is options
        mock_merge.assert_called_once()
        assert mock_merge.call_args[0][1:3] == ("https://github.com/o/r/pull/3", MergeStrategy.SQUASH)

    @patch("gt.commands.ship.github.check_gh_available", return_value=(False, "GitHub CLI (gh) not found"))
    def test_pr_without_gh_fails_after_push(self, mock_check, repo, origin):
        git(repo, "checkout", "--quiet", "-b", "feature")
        tip = commit_file(repo, "f.txt", "f", "Feature")
        with pytest.raises(GitHubUnavailable):
            run_ship(make_context(repo), pr=True)
        assert git(origin, "rev-parse", "feature") == tip
        assert current_branch(repo) == "feature"


class TestClean:
    """Test the clean orchestrator."""

    def test_deletes_merged_branch_from_main(self, repo, origin):
        git(repo, "checkout", "--quiet", "-b", "done")
        commit_file(repo, "d.txt", "d", "Done")
        git(repo, "push", "--quiet", "-u", "origin", "done")

        assert run_clean(make_context(repo), "done") == ["done"]
        assert current_branch(repo) == "main"
        assert "done" not in git(repo, "branch")

    def test_refuses_main(self, repo):
        with pytest.raises(OperationNotPermitted):
            run_clean(make_context(repo), "main")

    def test_without_remote_still_cleans(self, repo, caplog):
        git(repo, "branch", "merged")
        assert run_clean(make_context(repo), "merged") == ["merged"]
        assert "not configured" in caplog.text

    def test_all_removes_only_merged(self, repo):
        git(repo, "branch", "merged-a")
        git(repo, "branch", "merged-b")
        git(repo, "checkout", "--quiet", "-b", "unmerged")
        commit_file(repo, "u.txt", "u", "Unmerged")
        git(repo, "checkout", "--quiet", "main")

        deleted = run_clean(make_context(repo), "all")

        assert sorted(deleted) == ["merged-a", "merged-b"]
        assert "unmerged" in git(repo, "branch")
