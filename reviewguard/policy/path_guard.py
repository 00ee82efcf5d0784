"""
Path Confinement Guard for ReviewGuard.

Filesystem tools may only touch the PR checkout. Paths are resolved
against the caller's working directory and canonicalised with symlink
resolution before the containment check, so a symlink committed inside
the checkout cannot point the agent at the host filesystem.
"""

import os
import re
from typing import Any, Optional

from reviewguard.models import BlockDecision
from reviewguard.policy.rules import METADATA_DIR

_SEGMENT_SEPARATORS = re.compile(r"[\\/]")


def touches_metadata_dir(path: str) -> bool:
    """Check whether any path component is the git metadata directory."""
    return METADATA_DIR in _SEGMENT_SEPARATORS.split(path)


def resolve_path(path: str, cwd: str) -> str:
    """
    Resolve a tool path to a canonical absolute path.

    Args:
        path: Path argument as given by the agent
        cwd: Caller's working directory

    Returns:
        Absolute path with symlinks resolved for every existing component
    """
    absolute = path if os.path.isabs(path) else os.path.join(cwd, path)
    return os.path.realpath(absolute)


def is_within(root: str, target: str) -> bool:
    """
    Check that target is root itself or lies underneath it.

    Both arguments are expected to be canonical absolute paths.
    """
    try:
        relative = os.path.relpath(target, root)
    except ValueError:
        # Different drives on Windows
        return False

    if relative == os.curdir:
        return True

    first_segment = relative.split(os.sep, 1)[0]
    return first_segment != os.pardir and not os.path.isabs(relative)


def check_path(path: Any, cwd: str, allowed_root: str) -> Optional[BlockDecision]:
    """
    Confine a filesystem tool argument to the allowed root.

    Args:
        path: Path argument from the tool call (may be any JSON value)
        cwd: Caller's working directory
        allowed_root: Canonical directory the agent is confined to

    Returns:
        None to allow, or a BlockDecision explaining the refusal
    """
    if not isinstance(path, str):
        return BlockDecision("Blocked: invalid path")

    # No home-directory expansion
    if "~" in path:
        return BlockDecision("Blocked: ~ paths are not allowed")

    if touches_metadata_dir(path):
        return BlockDecision(f"Blocked: {METADATA_DIR} access is not allowed")

    resolved = resolve_path(path, cwd)
    if not is_within(allowed_root, resolved):
        return BlockDecision(f"Blocked: path outside allowed root ({resolved})")

    # A committed symlink can lead to the metadata directory
    if touches_metadata_dir(os.path.relpath(resolved, allowed_root)):
        return BlockDecision(f"Blocked: {METADATA_DIR} access is not allowed")

    return None
