"""
Command Allowlist Matching for ReviewGuard.

Operators authorise restricted commands with a deliberately tiny pattern
language: literal text plus ``*`` (zero or more of any character),
matched against the whole command. There are no escapes and no character
classes.
"""

import re

from rich.console import Console
from rich.markup import escape

console = Console(stderr=True)

WILDCARD = "*"
COMMENT_PREFIX = "#"

_SEPARATORS = re.compile(r"\r?\n|,")


def is_unsafe_pattern(pattern: str) -> bool:
    """A bare or leading wildcard would authorise arbitrary commands."""
    return pattern == WILDCARD or pattern.startswith(WILDCARD)


def parse_allowlist(raw: str, verbose: bool = False) -> tuple[str, ...]:
    """
    Parse operator-supplied allowlist text.

    Entries are separated by newlines or commas. Blank entries and
    ``#`` comments are ignored. Unsafe patterns are refused here so they
    never reach the matcher.

    Args:
        raw: Allowlist source text
        verbose: Whether to report refused patterns

    Returns:
        Tuple of surviving patterns, in source order
    """
    patterns = []

    for entry in _SEPARATORS.split(raw or ""):
        entry = entry.strip()
        if not entry or entry.startswith(COMMENT_PREFIX):
            continue

        if is_unsafe_pattern(entry):
            if verbose:
                console.print(
                    f"[yellow]Ignoring unsafe allowlist pattern: {escape(repr(entry))}[/yellow]"
                )
            continue

        patterns.append(entry)

    return tuple(patterns)


def match_wildcard(pattern: str, text: str) -> bool:
    """
    Match text against a single allowlist pattern.

    Args:
        pattern: Allowlist pattern, optionally containing ``*``
        text: Full command string

    Returns:
        True only if the pattern covers the entire text
    """
    if is_unsafe_pattern(pattern):
        return False

    regex = ".*".join(re.escape(part) for part in pattern.split(WILDCARD))
    return re.fullmatch(regex, text, flags=re.DOTALL) is not None


def is_command_allowed(command: str, patterns: tuple[str, ...]) -> bool:
    """Check whether any allowlist pattern authorises the command."""
    return any(match_wildcard(pattern, command) for pattern in patterns)
