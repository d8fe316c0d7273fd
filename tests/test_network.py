"""Tests for gt.engine.network module."""

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from gt.engine.network import NetworkOps, RetryPolicy, retry
from gt.git.runner import GitResult
from gt.lib.errors import NetworkTimeout, RemoteNotFound, RebaseConflict

from gitutil import commit_file, git, head, make_config

OK = GitResult(returncode=0, stdout="", stderr="")
FAIL = GitResult(returncode=128, stdout="", stderr="fatal: unable to access remote")


class TestRetryPolicy:
    """Test RetryPolicy construction."""

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 50
        assert policy.delay_seconds == 1.0

    def test_from_config(self):
        policy = RetryPolicy.from_config(make_config(max_attempts=7, delay_seconds=0.5))
        assert (policy.max_attempts, policy.delay_seconds) == (7, 0.5)

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_rejects_negative_delay(self):
        with pytest.raises(ValueError):
            RetryPolicy(delay_seconds=-1)


class TestRetry:
    """Test the bounded retry loop."""

    def test_invokes_exactly_max_attempts_then_fails(self):
        operation = MagicMock(return_value=FAIL)
        sleep = MagicMock()
        with pytest.raises(NetworkTimeout) as exc:
            retry("push origin/main", operation, RetryPolicy(max_attempts=4, delay_seconds=2), sleep)
        assert operation.call_count == 4
        assert exc.value.attempts == 4
        assert "unable to access" in exc.value.last_error
        # No sleep after the final attempt
        assert sleep.call_count == 3
        sleep.assert_called_with(2)

    def test_first_success_stops_immediately(self):
        operation = MagicMock(return_value=OK)
        sleep = MagicMock()
        result = retry("fetch", operation, RetryPolicy(max_attempts=5, delay_seconds=1), sleep)
        assert result.success
        assert operation.call_count == 1
        sleep.assert_not_called()

    def test_recovers_after_transient_failures(self):
        operation = MagicMock(side_effect=[FAIL, FAIL, OK])
        sleep = MagicMock()
        retry("fetch", operation, RetryPolicy(max_attempts=5, delay_seconds=0), sleep)
        assert operation.call_count == 3
        assert sleep.call_count == 2

    def test_logs_each_failure(self, caplog):
        operation = MagicMock(side_effect=[FAIL, OK])
        retry("push origin/x", operation, RetryPolicy(max_attempts=3, delay_seconds=0), lambda s: None)
        assert "push origin/x failed (attempt 1/3)" in caplog.text

    def test_single_attempt_policy(self):
        operation = MagicMock(return_value=FAIL)
        with pytest.raises(NetworkTimeout):
            retry("push", operation, RetryPolicy(max_attempts=1, delay_seconds=0), lambda s: None)
        assert operation.call_count == 1


class TestNetworkOps:
    """Test push/fetch/pull_rebase wiring."""

    @patch("gt.engine.network.remote_exists", return_value=False)
    def test_missing_remote_is_not_retried(self, mock_exists):
        ops = NetworkOps(Path("/r"), make_config(), branches=MagicMock(), sleep=MagicMock())
        with patch("gt.engine.network.push") as mock_push:
            with pytest.raises(RemoteNotFound):
                ops.push("main")
            mock_push.assert_not_called()

    @patch("gt.engine.network.remote_exists", return_value=True)
    @patch("gt.engine.network.push")
    def test_push_retries_with_config_budget(self, mock_push, mock_exists):
        mock_push.return_value = FAIL
        sleep = MagicMock()
        ops = NetworkOps(Path("/r"), make_config(max_attempts=3, delay_seconds=0), branches=MagicMock(), sleep=sleep)
        with pytest.raises(NetworkTimeout):
            ops.push("feature")
        assert mock_push.call_count == 3
        mock_push.assert_called_with(Path("/r"), "origin", "feature", True, False)

    @patch("gt.engine.network.remote_exists", return_value=True)
    @patch("gt.engine.network.fetch", return_value=OK)
    def test_pull_rebase_fetches_then_rebases(self, mock_fetch, mock_exists):
        branches = MagicMock()
        ops = NetworkOps(Path("/r"), make_config(remote_name="upstream"), branches=branches)
        ops.pull_rebase("main")
        mock_fetch.assert_called_once_with(Path("/r"), "upstream", "main")
        branches.rebase.assert_called_once_with("upstream/main")

    @patch("gt.engine.network.remote_exists", return_value=True)
    @patch("gt.engine.network.fetch", return_value=OK)
    def test_rebase_conflict_is_not_retried(self, mock_fetch, mock_exists):
        branches = MagicMock()
        branches.rebase.side_effect = RebaseConflict("stopped", ["a.txt"])
        ops = NetworkOps(Path("/r"), make_config(max_attempts=5), branches=branches)
        with pytest.raises(RebaseConflict):
            ops.pull_rebase("main")
        assert branches.rebase.call_count == 1
        assert mock_fetch.call_count == 1


class TestNetworkOpsWithRemote:
    """Round trips against a local bare remote."""

    def test_push_and_pull_rebase(self, repo, origin, upstream):
        from gt.engine.branches import BranchEngine

        config = make_config()
        ops = NetworkOps(repo, config, BranchEngine(repo, config), sleep=lambda s: None)

        pushed = commit_file(repo, "mine.txt", "m", "Mine")
        ops.push("main")
        assert git(origin, "rev-parse", "main") == pushed

        commit_file(upstream, "theirs.txt", "t", "Theirs")
        git(upstream, "pull", "--quiet", "--rebase", "origin", "main")
        git(upstream, "push", "--quiet", "origin", "main")

        ops.pull_rebase("main")
        assert head(repo) == git(origin, "rev-parse", "main")
        assert (repo / "theirs.txt").exists()
        assert git(repo, "log", "--format=%s", "-1") == "Theirs"

    def test_unreachable_remote_times_out(self, repo, tmp_path):
        git(repo, "remote", "add", "origin", str(tmp_path / "missing.git"))
        config = make_config(max_attempts=2)
        ops = NetworkOps(repo, config, branches=MagicMock(), sleep=lambda s: None)
        with pytest.raises(NetworkTimeout) as exc:
            ops.fetch()
        assert exc.value.attempts == 2
