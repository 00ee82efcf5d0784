"""
Review Workspace Preparation for ReviewGuard.

The agent never works in the runner's own checkout. The PR head is
checked out into a separate detached worktree, which becomes the allowed
root, and the diff context the agent reads is written inside it.
"""

import os
import shutil
from dataclasses import dataclass

from git import GitCommandError, Repo
from rich.console import Console

console = Console(stderr=True)

# Context directory created inside the worktree
CONTEXT_DIRNAME = ".ai-review"


@dataclass
class DiffContext:
    """Files the agent is pointed at when the review starts."""

    diff_path: str
    log_path: str
    files_path: str


def remove_worktree(
    repo_path: str,
    worktree_dir: str,
    verbose: bool = False,
) -> bool:
    """
    Remove a review worktree left over from a previous run.

    Args:
        repo_path: Path to the main repository
        worktree_dir: Worktree directory to remove
        verbose: Whether to print progress

    Returns:
        True if git removed a registered worktree
    """
    repo = Repo(repo_path)
    removed = True

    try:
        repo.git.worktree("remove", "--force", worktree_dir)
    except GitCommandError as e:
        removed = False
        if verbose:
            console.print(f"[dim]No worktree to remove: {e.stderr.strip()}[/dim]")

    shutil.rmtree(worktree_dir, ignore_errors=True)
    repo.git.worktree("prune")

    return removed


def prepare_worktree(
    repo_path: str,
    pr_number: int,
    worktree_dir: str,
    remote: str = "origin",
    verbose: bool = False,
) -> str:
    """
    Check out a pull request head into a fresh detached worktree.

    ``refs/pull/<n>/head`` is published by GitHub for every PR, including
    PRs from forks.

    Args:
        repo_path: Path to the main repository
        pr_number: Pull request number
        worktree_dir: Where to create the worktree
        remote: Remote to fetch the PR ref from
        verbose: Whether to print progress

    Returns:
        Absolute path of the worktree

    Raises:
        GitCommandError: If the fetch or worktree creation fails
    """
    worktree_dir = os.path.abspath(worktree_dir)
    remove_worktree(repo_path, worktree_dir, verbose=verbose)

    repo = Repo(repo_path)
    local_ref = f"refs/remotes/{remote}/pr-{pr_number}"

    repo.git.fetch("--no-tags", remote, f"+refs/pull/{pr_number}/head:{local_ref}")
    repo.git.worktree("add", "--detach", worktree_dir, local_ref)

    if verbose:
        console.print(f"[blue]Prepared PR #{pr_number} worktree: {worktree_dir}[/blue]")

    return worktree_dir


def _write(path: str, text: str) -> None:
    # GitPython strips the trailing newline from command output
    with open(path, "w", encoding="utf-8") as f:
        f.write(text + "\n" if text else "")


def build_diff_context(
    worktree_dir: str,
    base_sha: str,
    head_sha: str,
) -> DiffContext:
    """
    Write the PR diff, commit log and changed-file list for the agent.

    Args:
        worktree_dir: PR worktree
        base_sha: Base commit of the pull request
        head_sha: Head commit of the pull request

    Returns:
        DiffContext with the paths of the written files
    """
    repo = Repo(worktree_dir)
    context_dir = os.path.join(worktree_dir, CONTEXT_DIRNAME)
    os.makedirs(context_dir, exist_ok=True)

    context = DiffContext(
        diff_path=os.path.join(context_dir, "pr.diff"),
        log_path=os.path.join(context_dir, "pr.log"),
        files_path=os.path.join(context_dir, "pr.files"),
    )

    _write(context.diff_path, repo.git.diff("--patch", "--unified=3", f"{base_sha}...{head_sha}"))
    _write(context.log_path, repo.git.log("--oneline", "--no-decorate", f"{base_sha}..{head_sha}"))
    _write(context.files_path, repo.git.diff("--name-status", f"{base_sha}...{head_sha}"))

    return context
