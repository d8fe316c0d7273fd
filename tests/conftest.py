"""Shared fixtures: isolated git environment and sample repositories."""

import shutil

import pytest

from gitutil import add_origin, clone, init_repo

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


@pytest.fixture(autouse=True)
def isolated_git_env(tmp_path_factory, monkeypatch):
    """Keep user/system git config and gt env overrides out of every test."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    monkeypatch.setenv("GIT_EDITOR", "true")
    for var in ("REMOTE_NAME", "MAX_ATTEMPTS", "DELAY_SECONDS", "DEFAULT_MAIN_BRANCH"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def repo(tmp_path):
    """A repository on main with one commit and no remote."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    return init_repo(tmp_path / "work")


@pytest.fixture
def origin(tmp_path, repo):
    """A bare 'origin' remote that repo's main is pushed to."""
    return add_origin(repo, tmp_path / "origin.git")


@pytest.fixture
def upstream(tmp_path, origin):
    """A second clone of origin, used to land commits 'from someone else'."""
    return clone(origin, tmp_path / "upstream")
