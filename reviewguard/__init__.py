"""
ReviewGuard

Policy enforcement for automated pull-request review agents.
"""

__version__ = "0.1.0"

from reviewguard.diff.hunks import find_position
from reviewguard.interceptor import ToolCallInterceptor
from reviewguard.policy.rules import GuardConfig

__all__ = ["GuardConfig", "ToolCallInterceptor", "find_position", "__version__"]
