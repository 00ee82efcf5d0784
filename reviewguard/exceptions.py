"""
Exception hierarchy for ReviewGuard.

Validators raise these internally. The tool-call interceptor converts
every one of them into a block decision, so none of them ever ends an
agent session.
"""


class ReviewGuardError(Exception):
    """Base exception for ReviewGuard."""


class PolicyViolation(ReviewGuardError):
    """A tool call breaks an execution or filesystem rule."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ConfigurationError(ReviewGuardError):
    """A restricted capability was used without the policy it needs."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
