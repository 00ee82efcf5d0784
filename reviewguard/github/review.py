"""
Pull Request Review Posting for ReviewGuard.

Turns the agent's review output into a COMMENT-only GitHub review.
Inline comments are anchored by diff position; comments whose line
cannot be found in the file's patch are dropped rather than failing the
whole review.
"""

import json
from typing import Any, Optional

from github import GithubException
from rich.console import Console
from rich.markup import escape

from reviewguard.diff.hunks import find_position
from reviewguard.github.client import get_github_client

console = Console(stderr=True)

MAX_INLINE_COMMENTS = 20
REVIEW_EVENT = "COMMENT"
EMPTY_SUMMARY = "(no summary)"


def parse_review_output(text: str) -> dict:
    """
    Extract the review object from agent output.

    The agent is asked for strict JSON but may wrap it in prose or a
    code fence, so the outermost ``{...}`` span is parsed.

    Args:
        text: Raw agent output

    Returns:
        Parsed review dictionary

    Raises:
        ValueError: If no JSON object can be found
    """
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last <= first:
        raise ValueError(f"Agent did not return JSON. Output:\n{text}")

    review = json.loads(text[first:last + 1])
    if not isinstance(review, dict):
        raise ValueError("Agent review output is not a JSON object")

    return review


def review_summary(review: dict) -> str:
    summary = review.get("summary")
    return summary if isinstance(summary, str) and summary.strip() else EMPTY_SUMMARY


def _valid_line(line: Any) -> bool:
    if isinstance(line, bool) or not isinstance(line, (int, float)):
        return False
    return line > 0 and float(line).is_integer()


def map_inline_comments(
    comments: Any,
    patch_by_path: dict[str, Optional[str]],
    max_comments: int = MAX_INLINE_COMMENTS,
) -> list[dict]:
    """
    Convert line-addressed comments into position-addressed ones.

    Args:
        comments: Agent comments, each ``{"path", "line", "body"}``
        patch_by_path: File path -> patch text from the PR files listing
        max_comments: Maximum number of agent comments considered

    Returns:
        List of ``{"path", "position", "body"}`` dicts ready to post
    """
    if not isinstance(comments, list):
        return []

    mapped = []
    for comment in comments[:max(0, max_comments)]:
        if not isinstance(comment, dict):
            continue

        path = comment.get("path")
        line = comment.get("line")
        body = comment.get("body")
        if not isinstance(path, str) or not path:
            continue
        if not isinstance(body, str) or not body:
            continue
        if not _valid_line(line):
            continue

        position = find_position(patch_by_path.get(path), int(line))
        if position is None:
            continue

        mapped.append({"path": path, "position": position, "body": body})

    return mapped


def fetch_patches(pull) -> dict[str, Optional[str]]:
    """Map each changed file of a PullRequest to its patch text."""
    return {f.filename: f.patch for f in pull.get_files()}


def post_review(
    repo_id: str,
    pr_number: int,
    head_sha: str,
    summary: str,
    comments: Any = None,
    max_comments: int = MAX_INLINE_COMMENTS,
    verbose: bool = False,
) -> Optional[str]:
    """
    Post a COMMENT-only review on a pull request.

    Args:
        repo_id: Repository in "owner/repo" format
        pr_number: Pull request number
        head_sha: Commit the review is attached to
        summary: Review body markdown
        comments: Agent inline comments (line-addressed)
        max_comments: Maximum number of inline comments
        verbose: Whether to print progress

    Returns:
        Review URL if successful, None otherwise
    """
    try:
        gh = get_github_client()
        gh_repo = gh.get_repo(repo_id)
        pull = gh_repo.get_pull(pr_number)

        inline = map_inline_comments(comments or [], fetch_patches(pull), max_comments)
        if verbose:
            console.print(f"[dim]Mapped {len(inline)} inline comments[/dim]")

        review_kwargs = {
            "commit": gh_repo.get_commit(head_sha),
            "body": summary,
            "event": REVIEW_EVENT,
        }
        if inline:
            review_kwargs["comments"] = inline

        review = pull.create_review(**review_kwargs)

        if verbose:
            console.print(f"[green]Created review: {review.html_url}[/green]")

        return review.html_url

    except GithubException as e:
        if verbose:
            console.print(f"[red]Failed to create review: {escape(str(e))}[/red]")
        return None
