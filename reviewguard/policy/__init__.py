"""
Policy Engine for ReviewGuard.

Enforces the hard boundaries of a review agent session:
- Filesystem access confined to the PR checkout
- No git metadata access
- Allowlisted, unchained shell commands only
- Pushes limited to the branch under review

The policy engine is deterministic and non-AI.
"""

from reviewguard.policy.allowlist import is_command_allowed, match_wildcard, parse_allowlist
from reviewguard.policy.path_guard import check_path, is_within
from reviewguard.policy.push_guard import is_push_command, validate_push
from reviewguard.policy.rules import GuardConfig
from reviewguard.policy.shell import has_shell_operators, split_args

__all__ = [
    "GuardConfig",
    "check_path",
    "has_shell_operators",
    "is_command_allowed",
    "is_push_command",
    "is_within",
    "match_wildcard",
    "parse_allowlist",
    "split_args",
    "validate_push",
]
