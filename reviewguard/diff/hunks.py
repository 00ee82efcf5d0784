"""
Diff Hunk Walker for ReviewGuard.

GitHub anchors inline review comments by ``position``: the 1-based index
of a line inside a file's ``patch`` text, counted from the first hunk
header. Review agents reason in new-file line numbers, so every inline
comment is translated here before it is posted.
"""

from typing import Iterator, Optional

from unidiff.constants import (
    LINE_TYPE_NO_NEWLINE,
    LINE_TYPE_REMOVED,
    RE_HUNK_HEADER,
)

# File headers only appear in full `git diff` output, never in API patches
FILE_HEADER_PREFIXES = ("--- ", "+++ ")
HUNK_HEADER_PREFIX = "@@"


def _patch_lines(patch: str) -> list[str]:
    """Split patch text into lines, dropping CRs and the trailing newline."""
    lines = patch.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def walk_patch(patch: str) -> Iterator[tuple[int, Optional[int]]]:
    """
    Walk a patch, yielding ``(position, new_line)`` for each counted line.

    ``new_line`` is the new-file line number a line lands on, or None for
    lines that cannot carry a comment (hunk headers, removed lines,
    no-newline markers and anything before the first hunk).

    Args:
        patch: Unified diff text for a single file

    Yields:
        Tuples of (position, new_line)
    """
    position = 0
    new_line = 0
    in_hunk = False

    for line in _patch_lines(patch):
        if not in_hunk and line.startswith(FILE_HEADER_PREFIXES):
            continue

        position += 1

        if line.startswith(HUNK_HEADER_PREFIX):
            match = RE_HUNK_HEADER.match(line)
            if match:
                new_line = int(match.group(3)) - 1
            in_hunk = True
            yield position, None
            continue

        if not in_hunk:
            yield position, None
            continue

        if line.startswith((LINE_TYPE_REMOVED, LINE_TYPE_NO_NEWLINE)):
            yield position, None
            continue

        # Added line, context line, or a blank context line
        new_line += 1
        yield position, new_line


def find_position(patch: Optional[str], target_line: int) -> Optional[int]:
    """
    Map a new-file line number to its review-comment position.

    Multi-hunk patches work because ``new_line`` restarts at every hunk
    header while ``position`` keeps counting.

    Args:
        patch: Unified diff text for one file, or None when the diff
            source omitted it (binary or oversized files)
        target_line: 1-based line number in the new file

    Returns:
        1-based position, or None when the line is not part of the patch
        (deleted, outside every hunk, or no patch at all)
    """
    if not patch or target_line <= 0:
        return None

    for position, new_line in walk_patch(patch):
        if new_line == target_line:
            return position

    return None


def line_for_position(patch: Optional[str], position: int) -> Optional[int]:
    """
    Inverse of find_position: the new-file line anchored at a position.

    Returns None for hunk headers, removed lines and out-of-range positions.
    """
    if not patch or position <= 0:
        return None

    for current, new_line in walk_patch(patch):
        if current == position:
            return new_line

    return None
