"""
Diff utilities for ReviewGuard.

Translates new-file line numbers into GitHub review-comment positions so
inline comments land on the right diff line.
"""

from reviewguard.diff.hunks import find_position, line_for_position, walk_patch

__all__ = ["find_position", "line_for_position", "walk_patch"]
