"""
GitHub API Client for ReviewGuard.

Provides authenticated access to GitHub for posting reviews.
"""

import os
import re
from typing import Optional

from dotenv import load_dotenv
from git import InvalidGitRepositoryError, NoSuchPathError, Repo
from github import Auth, Github

# Load environment variables
load_dotenv()


def get_github_client() -> Github:
    """
    Get authenticated GitHub client.

    Returns:
        Authenticated Github instance

    Raises:
        RuntimeError: If GITHUB_TOKEN is not set
    """
    token = os.getenv("GITHUB_TOKEN")

    if not token:
        raise RuntimeError(
            "GITHUB_TOKEN environment variable is not set. "
            "It needs 'pull_requests: write' permission to post reviews."
        )

    return Github(auth=Auth.Token(token))


def parse_repo_identifier(remote_url: str) -> Optional[str]:
    """
    Extract "owner/repo" from a GitHub remote URL.

    Handles SSH (git@github.com:owner/repo.git) and
    HTTPS (https://github.com/owner/repo.git) forms.
    """
    ssh_match = re.match(r"git@github\.com:(.+?)(?:\.git)?$", remote_url)
    if ssh_match:
        return ssh_match.group(1)

    https_match = re.match(r"https://github\.com/(.+?)(?:\.git)?$", remote_url)
    if https_match:
        return https_match.group(1)

    return None


def get_repo_from_remote(repo_path: str, remote: str = "origin") -> Optional[str]:
    """
    Extract GitHub repository identifier from git remote.

    Args:
        repo_path: Path to the git repository
        remote: Remote name to inspect

    Returns:
        Repository identifier (e.g., "owner/repo") or None
    """
    try:
        repo = Repo(repo_path)
        remote_url = repo.remote(remote).url
    except (InvalidGitRepositoryError, NoSuchPathError, ValueError):
        return None

    return parse_repo_identifier(remote_url.strip())


def get_repo_identifier(repo_path: str = ".") -> Optional[str]:
    """Repository from GITHUB_REPOSITORY, falling back to the origin remote."""
    return os.getenv("GITHUB_REPOSITORY") or get_repo_from_remote(repo_path)
