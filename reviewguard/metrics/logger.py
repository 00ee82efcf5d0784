"""
Decision Audit Logger for ReviewGuard.

Stores every allow/block decision as JSON lines so a review run can be
audited after the fact.
"""

import json
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from reviewguard.models import BlockDecision


@dataclass
class DecisionRecord:
    """A single policy decision."""

    timestamp: str
    tool_name: str
    allowed: bool
    reason: Optional[str] = None
    target: Optional[str] = None


class AuditLogger:
    """
    Persistent decision logger.

    Writes JSON lines to a file for later analysis.
    """

    def __init__(self, path: str = "reviewguard_audit.jsonl"):
        self.path = Path(path)

    def log(self, record: DecisionRecord) -> None:
        """
        Append a record to the log file.

        Args:
            record: Decision to log
        """
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(record)) + "\n")

    def log_decision(
        self,
        tool_name: str,
        decision: Optional[BlockDecision],
        target: Optional[str] = None,
    ) -> DecisionRecord:
        """Record the outcome of one intercepted tool call."""
        record = DecisionRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            tool_name=tool_name,
            allowed=decision is None,
            reason=decision.reason if decision is not None else None,
            target=target,
        )
        self.log(record)
        return record

    def read_all(self) -> list[DecisionRecord]:
        """
        Read all logged decisions.

        Returns:
            List of DecisionRecord objects
        """
        if not self.path.exists():
            return []

        records = []
        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    records.append(DecisionRecord(**json.loads(line)))

        return records

    def summary(self) -> dict:
        """
        Generate summary statistics.

        Returns:
            Dictionary of summary stats
        """
        records = self.read_all()

        if not records:
            return {"total_decisions": 0}

        blocked = [r for r in records if not r.allowed]

        return {
            "total_decisions": len(records),
            "allowed": len(records) - len(blocked),
            "blocked": len(blocked),
            "block_rate": len(blocked) / len(records),
            "blocked_by_tool": dict(Counter(r.tool_name for r in blocked)),
        }
