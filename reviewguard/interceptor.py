"""
Tool-Call Interceptor for ReviewGuard.

The single policy gate between a review agent and its tools. The host
runtime calls ``intercept`` before dispatching any tool and honours the
returned decision; the restricted shell tool is executed here as well so
that validation always precedes the spawn.

Every refusal is returned as a BlockDecision. Nothing in this module
raises a policy error into the host runtime.
"""

import os
import threading
from typing import Any, Callable, Optional

from rich.console import Console
from rich.markup import escape

from reviewguard.exceptions import ReviewGuardError
from reviewguard.metrics.logger import AuditLogger
from reviewguard.models import (
    BlockDecision,
    CallContext,
    ExecutionResult,
    ExecutionState,
    ToolCallEvent,
)
from reviewguard.policy.allowlist import is_command_allowed
from reviewguard.policy.path_guard import check_path, is_within
from reviewguard.policy.push_guard import is_push_command, validate_push
from reviewguard.policy.rules import FILESYSTEM_TOOLS, RESTRICTED_TOOL, GuardConfig
from reviewguard.policy.shell import has_shell_operators
from reviewguard.sandbox.runner import run_restricted

console = Console(stderr=True)


def _path_argument(tool_input: dict) -> Any:
    # Tools default to the working directory when no path is given
    path = tool_input.get("path")
    return os.curdir if path is None else path


# Tool name -> accessor for the argument that names a filesystem path
PATH_ARGUMENTS: dict[str, Callable[[dict], Any]] = {
    tool: _path_argument for tool in FILESYSTEM_TOOLS
}


def check_command(command: Any, config: GuardConfig) -> Optional[BlockDecision]:
    """
    Run every restricted-execution rule against a command.

    Args:
        command: Command argument from the tool call
        config: Session policy

    Returns:
        None to allow, or a BlockDecision explaining the refusal
    """
    command = command.strip() if isinstance(command, str) else ""
    if not command:
        return BlockDecision("Blocked: empty bash command")

    try:
        allowlist = config.require_allowlist()

        if has_shell_operators(command):
            return BlockDecision("Blocked: shell operators are not allowed in restricted bash")

        if is_push_command(command):
            validate_push(
                command,
                config.require_expected_branch(),
                allow_force=config.allow_force,
                remote=config.upstream_remote,
            )
    except ReviewGuardError as e:
        return BlockDecision(str(e))

    if not is_command_allowed(command, allowlist):
        return BlockDecision(f"Blocked: bash command not in allowlist: {command}")

    return None


class ToolCallInterceptor:
    """
    Policy gate for every tool call of one review session.

    Tool calls are processed one at a time; the configuration is
    read-only, so no locking is needed.
    """

    def __init__(
        self,
        config: GuardConfig,
        audit: Optional[AuditLogger] = None,
        verbose: bool = False,
    ):
        self.config = config
        self.audit = audit
        self.verbose = verbose

    def intercept(
        self,
        event: ToolCallEvent,
        context: Optional[CallContext] = None,
    ) -> Optional[BlockDecision]:
        """
        Decide whether a tool call may proceed.

        Args:
            event: Tool call the agent is about to make
            context: Caller context (defaults to the current directory)

        Returns:
            None to allow, or a BlockDecision for the agent
        """
        if context is None:
            context = CallContext()

        try:
            decision = self._evaluate(event, context)
        except Exception as e:
            # Fail closed on anything the checks could not classify
            console.print(f"[red]Policy check failed for {event.tool_name}: {escape(str(e))}[/red]")
            decision = BlockDecision(f"Blocked: internal policy error ({e})")

        self._record(event.tool_name, decision, self._target(event))
        return decision

    def _evaluate(self, event: ToolCallEvent, context: CallContext) -> Optional[BlockDecision]:
        tool_input = event.input or {}

        if event.tool_name == RESTRICTED_TOOL:
            return check_command(tool_input.get("command"), self.config)

        accessor = PATH_ARGUMENTS.get(event.tool_name)
        if accessor is None:
            return None

        return check_path(
            accessor(tool_input),
            context.working_directory,
            self.config.allowed_root,
        )

    def execute(
        self,
        command: str,
        timeout_seconds: Optional[float] = None,
        cwd: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
        on_state: Optional[Callable[[ExecutionState], None]] = None,
    ) -> ExecutionResult:
        """
        The restricted shell tool.

        Validates the command with the same rules as ``intercept`` and,
        only if it passes, runs it in the caller's working directory.

        Args:
            command: Command the agent wants to run
            timeout_seconds: Optional wall-clock limit
            cwd: Working directory (defaults to the allowed root)
            cancel: Event that aborts the command when set
            on_state: Called with each lifecycle state as it is entered

        Returns:
            ExecutionResult; BLOCKED results never spawned a process
        """
        if on_state is not None:
            on_state(ExecutionState.VALIDATING)

        cwd = os.path.realpath(cwd or self.config.allowed_root)

        decision = check_command(command, self.config)
        if decision is None and not is_within(self.config.allowed_root, cwd):
            decision = BlockDecision(f"Blocked: working directory outside allowed root ({cwd})")

        self._record(RESTRICTED_TOOL, decision, command)
        if decision is not None:
            if on_state is not None:
                on_state(ExecutionState.BLOCKED)
            return ExecutionResult(state=ExecutionState.BLOCKED, reason=decision.reason)

        try:
            return run_restricted(
                command.strip(),
                cwd,
                timeout_seconds=timeout_seconds,
                cancel=cancel,
                max_output_bytes=self.config.max_output_bytes,
                on_state=on_state,
                verbose=self.verbose,
            )
        except OSError as e:
            if on_state is not None:
                on_state(ExecutionState.FAILED)
            return ExecutionResult(
                state=ExecutionState.FAILED,
                reason=f"Failed to start restricted shell: {e}",
            )

    @staticmethod
    def _target(event: ToolCallEvent) -> Optional[str]:
        tool_input = event.input or {}
        value = tool_input.get("command", tool_input.get("path"))
        return value if isinstance(value, str) else None

    def _record(
        self,
        tool_name: str,
        decision: Optional[BlockDecision],
        target: Optional[str],
    ) -> None:
        if decision is not None and self.verbose:
            console.print(f"[yellow]{tool_name}: {escape(decision.reason)}[/yellow]")

        if self.audit is not None:
            self.audit.log_decision(tool_name, decision, target)
