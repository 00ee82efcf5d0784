"""
Push Refspec Guard for ReviewGuard.

An agent allowed to run ``git push`` may only publish the branch under
review, to the upstream remote, without touching tags or other refs and
without rewriting history unless force pushing was explicitly enabled.
"""

from reviewguard.exceptions import ConfigurationError, PolicyViolation
from reviewguard.policy.rules import (
    FORBIDDEN_PUSH_FLAGS,
    FORBIDDEN_SHORT_PUSH_FLAGS,
    FORCE_FLAG,
    FORCE_SHORT_FLAG,
    PUSH_OPTION_SHORT_FLAG,
    UPSTREAM_REMOTE,
)
from reviewguard.policy.shell import split_args

PUSH_VERB = ["git", "push"]


def is_push_command(command: str) -> bool:
    """Check whether a command starts with the ``git push`` verb pair."""
    return split_args(command)[:2] == PUSH_VERB


def _short_flags(flag: str) -> str:
    """Letters of a short-option cluster, stopping at -o and its value."""
    letters = flag[1:]
    return letters.split(PUSH_OPTION_SHORT_FLAG, 1)[0]


def _is_forbidden_flag(flag: str) -> bool:
    if flag.startswith("--"):
        name = flag.split("=", 1)[0]
        return any(forbidden.startswith(name) for forbidden in FORBIDDEN_PUSH_FLAGS)
    return any(letter in FORBIDDEN_SHORT_PUSH_FLAGS for letter in _short_flags(flag))


def _is_force_flag(flag: str) -> bool:
    if flag.startswith("--"):
        name = flag.split("=", 1)[0]
        return len(name) > 2 and FORCE_FLAG.startswith(name)
    return FORCE_SHORT_FLAG in _short_flags(flag)


def validate_push(
    command: str,
    expected_branch: str,
    allow_force: bool = False,
    remote: str = UPSTREAM_REMOTE,
) -> None:
    """
    Validate a ``git push`` command against the branch under review.

    Args:
        command: Raw push command
        expected_branch: Head branch of the pull request
        allow_force: Whether an unqualified --force is permitted
        remote: The only remote a push may target

    Raises:
        PolicyViolation: If any push rule is broken
        ConfigurationError: If no expected branch is configured
    """
    if not expected_branch:
        raise ConfigurationError("Blocked: no expected branch for git push validation")

    args = split_args(command)
    if args[:2] != PUSH_VERB:
        return

    if len(args) < 3:
        raise PolicyViolation("Blocked: git push must specify a remote and refspec")

    i = 2
    seen_force = False

    while i < len(args) and args[i].startswith("-"):
        flag = args[i]
        if _is_forbidden_flag(flag):
            raise PolicyViolation(f"Blocked: forbidden git push flag {flag}")
        # --force-with-lease is always permitted
        if _is_force_flag(flag):
            seen_force = True
        i += 1

    if seen_force and not allow_force:
        raise PolicyViolation("Blocked: --force is not allowed (use --force-with-lease)")

    if i >= len(args) or args[i] != remote:
        raise PolicyViolation(f"Blocked: git push remote must be '{remote}'")
    i += 1

    refspecs = args[i:]
    if len(refspecs) != 1:
        raise PolicyViolation("Blocked: git push must use exactly one refspec")

    refspec = refspecs[0]
    if refspec in (expected_branch, f"HEAD:{expected_branch}"):
        return

    raise PolicyViolation(
        f"Blocked: git push refspec must target the current PR branch ({expected_branch})"
    )
