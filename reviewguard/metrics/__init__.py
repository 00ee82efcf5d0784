"""
Audit trail for ReviewGuard.

Every allow/block decision can be appended to a JSONL log for
post-run review of what the agent attempted.
"""

from reviewguard.metrics.logger import AuditLogger, DecisionRecord

__all__ = ["AuditLogger", "DecisionRecord"]
