"""
Policy Rules Configuration for ReviewGuard.

These rules keep an autonomous review agent from:
- Reading or writing outside the PR checkout
- Touching git metadata (credentials, hooks, config)
- Running unapproved or chained shell commands
- Pushing anywhere but the branch under review
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from reviewguard.exceptions import ConfigurationError
from reviewguard.policy.allowlist import parse_allowlist


# Tool that runs restricted shell commands
RESTRICTED_TOOL = "bash"

# Tools whose "path" argument must stay inside the allowed root
FILESYSTEM_TOOLS = ("read", "grep", "find", "ls", "edit", "write")

# Version-control metadata directory
METADATA_DIR = ".git"

# The only remote a push may target
UPSTREAM_REMOTE = "origin"

# Push flags that affect other refs, tags, or delete history.
# git accepts any unambiguous prefix of a long option.
FORBIDDEN_PUSH_FLAGS = frozenset({
    "--all",
    "--mirror",
    "--tags",
    "--follow-tags",
    "--delete",
    "--prune",
})

# Short options, which git also accepts clustered (-ud)
FORBIDDEN_SHORT_PUSH_FLAGS = frozenset({"d"})

# Unqualified force push
FORCE_FLAG = "--force"
FORCE_SHORT_FLAG = "f"

# -o takes the rest of its cluster as the push option value
PUSH_OPTION_SHORT_FLAG = "o"

# Credentials the restricted shell never needs
SCRUBBED_ENV_VARS = (
    "OPENROUTER_API_KEY",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "MISTRAL_API_KEY",
    "XAI_API_KEY",
    "CEREBRAS_API_KEY",
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "ACTIONS_RUNTIME_TOKEN",
    "ACTIONS_ID_TOKEN_REQUEST_TOKEN",
)

# Tail of combined stdout/stderr kept per command
MAX_OUTPUT_BYTES = 50 * 1024

# Environment variables read by GuardConfig.from_env
ENV_ALLOWED_ROOT = "REVIEW_ROOT"
ENV_ALLOWLIST = "REVIEW_BASH_ALLOWLIST"
ENV_EXPECTED_BRANCH = "REVIEW_PR_HEAD_REF"
ENV_ALLOW_FORCE = "REVIEW_ALLOW_FORCE"


@dataclass(frozen=True)
class GuardConfig:
    """
    Session policy, fixed before the first tool call.

    Every component receives this value explicitly; nothing mutates it
    after construction.
    """

    allowed_root: str
    allowlist: tuple[str, ...] = ()
    expected_branch: str = ""
    allow_force: bool = False
    upstream_remote: str = UPSTREAM_REMOTE
    max_output_bytes: int = MAX_OUTPUT_BYTES

    def __post_init__(self):
        object.__setattr__(self, "allowed_root", os.path.realpath(self.allowed_root))
        object.__setattr__(self, "allowlist", tuple(self.allowlist))

    @classmethod
    def from_env(
        cls,
        cwd: Optional[str] = None,
        verbose: bool = False,
    ) -> "GuardConfig":
        """
        Build the session policy from the process environment.

        Args:
            cwd: Fallback allowed root when REVIEW_ROOT is unset
            verbose: Whether to report refused allowlist patterns

        Returns:
            GuardConfig instance
        """
        load_dotenv()

        return cls(
            allowed_root=os.getenv(ENV_ALLOWED_ROOT) or cwd or os.getcwd(),
            allowlist=parse_allowlist(os.getenv(ENV_ALLOWLIST, ""), verbose=verbose),
            expected_branch=os.getenv(ENV_EXPECTED_BRANCH, "").strip(),
            allow_force=os.getenv(ENV_ALLOW_FORCE, "") == "true",
        )

    def require_allowlist(self) -> tuple[str, ...]:
        """Fail closed when restricted execution has no allowlist."""
        if not self.allowlist:
            raise ConfigurationError(
                f"Blocked: bash is enabled but {ENV_ALLOWLIST} is empty"
            )
        return self.allowlist

    def require_expected_branch(self) -> str:
        """Fail closed when a push cannot be checked against the PR branch."""
        if not self.expected_branch:
            raise ConfigurationError(
                f"Blocked: {ENV_EXPECTED_BRANCH} is not set for git push validation"
            )
        return self.expected_branch
