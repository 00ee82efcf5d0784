"""
Data models for ReviewGuard.

Tool-call events come in from the host agent runtime; block decisions
and execution results go back out. All of them are plain data.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class BlockDecision:
    """Refusal returned to the agent. Allow is represented by None."""

    reason: str
    block: bool = True

    def to_dict(self) -> dict:
        return {"block": self.block, "reason": self.reason}


@dataclass
class ToolCallEvent:
    """A tool invocation the agent is about to make."""

    tool_name: str
    input: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict) -> "ToolCallEvent":
        """
        Build an event from a hook payload.

        Accepts both ``tool_name``/``tool_input`` and
        ``toolName``/``input`` spellings.
        """
        tool_name = payload.get("tool_name", payload.get("toolName", ""))
        tool_input = payload.get("tool_input", payload.get("input"))
        if not isinstance(tool_input, dict):
            tool_input = {}
        return cls(tool_name=str(tool_name), input=tool_input)


@dataclass
class CallContext:
    """Where the tool call is being made from."""

    working_directory: str = field(default_factory=os.getcwd)


class ExecutionState(str, Enum):
    """Lifecycle of a restricted command."""

    VALIDATING = "validating"
    SPAWNED = "spawned"
    COLLECTING = "collecting"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    ABORTED = "aborted"
    BLOCKED = "blocked"
    FAILED = "failed"


@dataclass
class ExecutionResult:
    """
    Outcome of one restricted command.

    ``exit_code`` is only set for COMPLETED runs. Timeouts and aborts are
    distinct states, never a fabricated exit code.
    """

    state: ExecutionState
    exit_code: Optional[int] = None
    output: str = ""
    truncated: bool = False
    reason: Optional[str] = None
    timeout_seconds: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.state == ExecutionState.COMPLETED and self.exit_code == 0

    @property
    def output_text(self) -> str:
        """Output tail, annotated when older output was dropped."""
        text = self.output or "(no output)"
        if self.truncated:
            text += "\n\n[output truncated]"
        return text

    def to_tool_text(self) -> str:
        """Render the result the way the agent sees it."""
        if self.state == ExecutionState.COMPLETED:
            return f"{self.output_text}\n[exitCode={self.exit_code}]"
        if self.state == ExecutionState.TIMED_OUT:
            return f"{self.output_text}\n[timed out after {self.timeout_seconds}s]"
        if self.state == ExecutionState.ABORTED:
            return f"{self.output_text}\n[aborted]"
        return self.reason or f"Command {self.state.value}"
