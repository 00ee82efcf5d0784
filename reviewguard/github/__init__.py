"""
GitHub Integration for ReviewGuard.

Handles:
- Authenticated client setup
- Repository discovery from the git remote
- Posting COMMENT-only reviews with position-mapped inline comments
"""

from reviewguard.github.client import get_github_client, get_repo_from_remote, get_repo_identifier
from reviewguard.github.review import map_inline_comments, parse_review_output, post_review

__all__ = [
    "get_github_client",
    "get_repo_from_remote",
    "get_repo_identifier",
    "map_inline_comments",
    "parse_review_output",
    "post_review",
]
