"""
ReviewGuard CLI Entry Point.

Usage:
    reviewguard check-command "git diff --stat"
    reviewguard check-path src/app.py --cwd /path/to/worktree
    reviewguard exec "git log --oneline -5" --timeout 30
    reviewguard position file.patch 42
    reviewguard hook < tool_call.json
    reviewguard prepare --pr 12 --base-sha 1a2b3c --head-sha abc123 --worktree ../pr-12
    reviewguard post-review review.json --pr 12 --head-sha abc123
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Optional

from git import GitCommandError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from reviewguard import __version__
from reviewguard.diff.hunks import find_position
from reviewguard.github.client import get_repo_identifier
from reviewguard.github.review import (
    MAX_INLINE_COMMENTS,
    parse_review_output,
    post_review,
    review_summary,
)
from reviewguard.interceptor import ToolCallInterceptor
from reviewguard.metrics.logger import AuditLogger
from reviewguard.models import BlockDecision, CallContext, ExecutionState, ToolCallEvent
from reviewguard.policy.rules import RESTRICTED_TOOL, GuardConfig
from reviewguard.workspace import build_diff_context, prepare_worktree

console = Console()
err_console = Console(stderr=True)

# Exit codes
EXIT_ALLOWED = 0
EXIT_BLOCKED = 1
EXIT_HOOK_BLOCKED = 2
EXIT_TIMED_OUT = 124
EXIT_ABORTED = 130


def build_interceptor(args: argparse.Namespace) -> ToolCallInterceptor:
    """Session gate from environment configuration and CLI flags."""
    config = GuardConfig.from_env(verbose=args.verbose)
    audit = AuditLogger(args.audit_log) if args.audit_log else None
    return ToolCallInterceptor(config, audit=audit, verbose=args.verbose)


def print_decision(decision: Optional[BlockDecision], subject: str) -> int:
    if decision is None:
        console.print(f"[green]✓ Allowed:[/green] {escape(subject)}")
        return EXIT_ALLOWED

    console.print(f"[red]✗ {escape(decision.reason)}[/red]")
    return EXIT_BLOCKED


def cmd_check_command(args: argparse.Namespace) -> int:
    interceptor = build_interceptor(args)
    event = ToolCallEvent(tool_name=RESTRICTED_TOOL, input={"command": args.command})
    return print_decision(interceptor.intercept(event), args.command)


def cmd_check_path(args: argparse.Namespace) -> int:
    interceptor = build_interceptor(args)
    event = ToolCallEvent(tool_name="read", input={"path": args.path})
    context = CallContext(working_directory=args.cwd or os.getcwd())
    return print_decision(interceptor.intercept(event, context), args.path)


def cmd_exec(args: argparse.Namespace) -> int:
    interceptor = build_interceptor(args)
    result = interceptor.execute(args.command, timeout_seconds=args.timeout)

    if result.state == ExecutionState.COMPLETED:
        console.print(result.to_tool_text(), markup=False, highlight=False)
        return result.exit_code

    err_console.print(result.to_tool_text(), markup=False, highlight=False)

    if result.state == ExecutionState.TIMED_OUT:
        return EXIT_TIMED_OUT
    if result.state == ExecutionState.ABORTED:
        return EXIT_ABORTED
    return EXIT_BLOCKED


def cmd_position(args: argparse.Namespace) -> int:
    patch = Path(args.patch_file).read_text(encoding="utf-8")
    position = find_position(patch, args.line)

    if position is None:
        err_console.print(f"[yellow]Line {args.line} is not part of the patch[/yellow]")
        return EXIT_BLOCKED

    console.print(position)
    return EXIT_ALLOWED


def cmd_hook(args: argparse.Namespace) -> int:
    """
    Host-runtime hook: tool call JSON on stdin, decision via exit code.

    Unreadable input is blocked; a gate that cannot see the call must not
    let it through.
    """
    try:
        payload = json.load(sys.stdin)
        if not isinstance(payload, dict):
            raise ValueError("tool call payload must be a JSON object")
    except ValueError as e:
        decision = BlockDecision(f"Blocked: unreadable tool call ({e})")
        sys.stdout.write(json.dumps(decision.to_dict()) + "\n")
        return EXIT_HOOK_BLOCKED

    interceptor = build_interceptor(args)
    event = ToolCallEvent.from_payload(payload)
    context = CallContext(working_directory=payload.get("cwd") or os.getcwd())

    decision = interceptor.intercept(event, context)
    if decision is None:
        return EXIT_ALLOWED

    sys.stdout.write(json.dumps(decision.to_dict()) + "\n")
    return EXIT_HOOK_BLOCKED


def cmd_prepare(args: argparse.Namespace) -> int:
    try:
        worktree = prepare_worktree(
            args.repo_path,
            args.pr,
            args.worktree,
            remote=args.remote,
            verbose=args.verbose,
        )
        context = build_diff_context(worktree, args.base_sha, args.head_sha)
    except GitCommandError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        return EXIT_BLOCKED

    console.print(Panel.fit(
        f"[bold green]✅ Worktree ready[/bold green]\n\n"
        f"[bold]REVIEW_ROOT:[/bold] {escape(worktree)}\n"
        f"[bold]Diff:[/bold] {escape(context.diff_path)}\n"
        f"[bold]Log:[/bold] {escape(context.log_path)}\n"
        f"[bold]Files:[/bold] {escape(context.files_path)}",
        title=f"PR #{args.pr}",
        border_style="green",
    ))
    return EXIT_ALLOWED


def cmd_post_review(args: argparse.Namespace) -> int:
    text = Path(args.review_file).read_text(encoding="utf-8")

    try:
        review = parse_review_output(text)
    except ValueError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        return EXIT_BLOCKED

    repo_id = args.repo or get_repo_identifier()
    if not repo_id:
        err_console.print("[red]Error: could not determine GitHub repository[/red]")
        return EXIT_BLOCKED

    summary = review_summary(review)
    url = post_review(
        repo_id=repo_id,
        pr_number=args.pr,
        head_sha=args.head_sha,
        summary=summary,
        comments=review.get("comments"),
        max_comments=args.max_comments,
        verbose=args.verbose,
    )

    if url is None:
        err_console.print("[red]Failed to post review[/red]")
        return EXIT_BLOCKED

    console.print(Panel.fit(
        f"[bold green]✅ Review posted[/bold green]\n\n"
        f"[bold]PR:[/bold] {repo_id}#{args.pr}\n"
        f"[bold]URL:[/bold] {url}",
        title="Review",
        border_style="green",
    ))
    return EXIT_ALLOWED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reviewguard",
        description="ReviewGuard - policy gate for PR review agents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration (environment or .env):
  REVIEW_ROOT             Directory the agent is confined to (default: cwd)
  REVIEW_BASH_ALLOWLIST   Allowed commands, newline/comma separated, * wildcard
  REVIEW_PR_HEAD_REF      PR branch that git push may target
  REVIEW_ALLOW_FORCE      "true" to permit an unqualified --force push
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"ReviewGuard {__version__}",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print policy decisions and progress",
    )
    parser.add_argument(
        "--audit-log",
        default=None,
        help="Append every decision to this JSONL file",
    )

    subparsers = parser.add_subparsers(dest="command_name", required=True)

    check_command = subparsers.add_parser("check-command", help="Check a restricted bash command")
    check_command.add_argument("command", help="Command string to check")
    check_command.set_defaults(handler=cmd_check_command)

    check_path = subparsers.add_parser("check-path", help="Check a filesystem tool path")
    check_path.add_argument("path", help="Path argument to check")
    check_path.add_argument("--cwd", default=None, help="Caller working directory")
    check_path.set_defaults(handler=cmd_check_path)

    exec_parser = subparsers.add_parser("exec", help="Run a command through the restricted shell")
    exec_parser.add_argument("command", help="Command string to run")
    exec_parser.add_argument("--timeout", type=float, default=None, help="Timeout in seconds")
    exec_parser.set_defaults(handler=cmd_exec)

    position = subparsers.add_parser("position", help="Map a new-file line to a diff position")
    position.add_argument("patch_file", help="File containing one file's patch")
    position.add_argument("line", type=int, help="Line number in the new file")
    position.set_defaults(handler=cmd_position)

    hook = subparsers.add_parser("hook", help="Evaluate a tool call read from stdin")
    hook.set_defaults(handler=cmd_hook)

    prepare = subparsers.add_parser("prepare", help="Check out a PR into a worktree with diff context")
    prepare.add_argument("--pr", type=int, required=True, help="Pull request number")
    prepare.add_argument("--base-sha", required=True, help="PR base commit SHA")
    prepare.add_argument("--head-sha", required=True, help="PR head commit SHA")
    prepare.add_argument("--worktree", required=True, help="Directory for the PR worktree")
    prepare.add_argument("--repo-path", default=".", help="Main repository (default: .)")
    prepare.add_argument("--remote", default="origin", help="Remote to fetch the PR ref from")
    prepare.set_defaults(handler=cmd_prepare)

    review = subparsers.add_parser("post-review", help="Post agent review output to a PR")
    review.add_argument("review_file", help="File containing the agent's JSON review")
    review.add_argument("--pr", type=int, required=True, help="Pull request number")
    review.add_argument("--head-sha", required=True, help="PR head commit SHA")
    review.add_argument("--repo", default=None, help="owner/repo (default: GITHUB_REPOSITORY or origin)")
    review.add_argument(
        "--max-comments",
        type=int,
        default=MAX_INLINE_COMMENTS,
        help=f"Maximum inline comments (default: {MAX_INLINE_COMMENTS})",
    )
    review.set_defaults(handler=cmd_post_review)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        code = args.handler(args)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(EXIT_ABORTED)

    sys.exit(code)


if __name__ == "__main__":
    main()
