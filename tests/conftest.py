"""Shared fixtures for ReviewGuard tests."""

import os

import pytest

from reviewguard.policy.rules import (
    ENV_ALLOW_FORCE,
    ENV_ALLOWED_ROOT,
    ENV_ALLOWLIST,
    ENV_EXPECTED_BRANCH,
    GuardConfig,
)


@pytest.fixture(autouse=True)
def clean_review_env(monkeypatch):
    """Keep the runner's own environment out of policy tests."""
    for name in (ENV_ALLOWED_ROOT, ENV_ALLOWLIST, ENV_EXPECTED_BRANCH, ENV_ALLOW_FORCE):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def allowed_root(tmp_path):
    root = tmp_path / "worktree"
    (root / "src").mkdir(parents=True)
    (root / "src" / "app.py").write_text("print('hello')\n")
    return os.path.realpath(root)


@pytest.fixture
def guard_config(allowed_root):
    return GuardConfig(
        allowed_root=allowed_root,
        allowlist=(
            "git status",
            "git diff *",
            "git log *",
            "git push *",
            "echo *",
            "pwd",
        ),
        expected_branch="feature-x",
    )
