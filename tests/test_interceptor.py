"""
Tests for the Tool-Call Interceptor.

These tests verify that the gate:
- Applies the restricted-shell rules in order
- Confines filesystem tools to the allowed root
- Lets unrelated tools through
- Fails closed on configuration gaps and internal errors
- Never spawns a process for a blocked command
"""

import os

import pytest

import reviewguard.interceptor as interceptor_module
from reviewguard.interceptor import PATH_ARGUMENTS, ToolCallInterceptor, check_command
from reviewguard.metrics.logger import AuditLogger
from reviewguard.models import CallContext, ExecutionResult, ExecutionState, ToolCallEvent
from reviewguard.policy.rules import FILESYSTEM_TOOLS, GuardConfig


def bash(command):
    return ToolCallEvent(tool_name="bash", input={"command": command})


class TestRestrictedCommands:
    """bash tool calls."""

    def test_allowlisted_command_allowed(self, guard_config):
        gate = ToolCallInterceptor(guard_config)
        assert gate.intercept(bash("git status")) is None
        assert gate.intercept(bash("  git diff --stat  ")) is None

    def test_empty_command_blocked(self, guard_config):
        gate = ToolCallInterceptor(guard_config)
        for command in ("", "   ", None, 12):
            decision = gate.intercept(bash(command))
            assert decision is not None
            assert "empty" in decision.reason

    def test_empty_allowlist_blocks_everything(self, allowed_root):
        gate = ToolCallInterceptor(GuardConfig(allowed_root=allowed_root))
        decision = gate.intercept(bash("git status"))
        assert decision is not None
        assert "REVIEW_BASH_ALLOWLIST" in decision.reason

    def test_shell_operators_blocked(self, guard_config):
        gate = ToolCallInterceptor(guard_config)
        decision = gate.intercept(bash("git status; rm -rf /"))
        assert decision is not None
        assert "shell operators" in decision.reason

    def test_quoted_operators_reach_allowlist(self, guard_config):
        gate = ToolCallInterceptor(guard_config)
        assert gate.intercept(bash('git log --grep "a && b"')) is None

    def test_command_not_in_allowlist(self, guard_config):
        gate = ToolCallInterceptor(guard_config)
        decision = gate.intercept(bash("rm -rf /"))
        assert decision is not None
        assert "not in allowlist" in decision.reason

    def test_push_to_pr_branch_allowed(self, guard_config):
        gate = ToolCallInterceptor(guard_config)
        assert gate.intercept(bash("git push origin feature-x")) is None
        assert gate.intercept(bash("git push origin HEAD:feature-x")) is None

    def test_push_to_other_branch_blocked(self, guard_config):
        gate = ToolCallInterceptor(guard_config)
        decision = gate.intercept(bash("git push origin main"))
        assert decision is not None
        assert "feature-x" in decision.reason

    def test_push_validated_before_allowlist(self, guard_config):
        """'git push *' is allowlisted, but --all is still refused."""
        gate = ToolCallInterceptor(guard_config)
        decision = gate.intercept(bash("git push --all origin feature-x"))
        assert decision is not None
        assert "--all" in decision.reason

    def test_force_push_follows_config(self, allowed_root):
        strict = GuardConfig(allowed_root=allowed_root, allowlist=("git push *",), expected_branch="b")
        relaxed = GuardConfig(
            allowed_root=allowed_root,
            allowlist=("git push *",),
            expected_branch="b",
            allow_force=True,
        )
        assert check_command("git push --force origin b", strict) is not None
        assert check_command("git push --force origin b", relaxed) is None

    def test_push_without_expected_branch_blocked(self, allowed_root):
        config = GuardConfig(allowed_root=allowed_root, allowlist=("git push *",))
        decision = check_command("git push origin feature-x", config)
        assert decision is not None
        assert "REVIEW_PR_HEAD_REF" in decision.reason


class TestFilesystemTools:
    """Path-bearing tool calls."""

    def test_lookup_table_covers_filesystem_tools(self):
        assert set(PATH_ARGUMENTS) == set(FILESYSTEM_TOOLS)

    @pytest.mark.parametrize("tool", FILESYSTEM_TOOLS)
    def test_inside_root_allowed(self, guard_config, allowed_root, tool):
        gate = ToolCallInterceptor(guard_config)
        event = ToolCallEvent(tool_name=tool, input={"path": "src/app.py"})
        assert gate.intercept(event, CallContext(allowed_root)) is None

    @pytest.mark.parametrize("tool", FILESYSTEM_TOOLS)
    def test_escape_blocked(self, guard_config, allowed_root, tool):
        gate = ToolCallInterceptor(guard_config)
        event = ToolCallEvent(tool_name=tool, input={"path": "../../etc/passwd"})
        decision = gate.intercept(event, CallContext(allowed_root))
        assert decision is not None
        assert decision.to_dict()["block"] is True

    def test_git_config_blocked(self, guard_config, allowed_root):
        gate = ToolCallInterceptor(guard_config)
        event = ToolCallEvent(tool_name="read", input={"path": ".git/config"})
        assert gate.intercept(event, CallContext(allowed_root)) is not None

    def test_missing_path_checks_working_directory(self, guard_config, allowed_root, tmp_path):
        gate = ToolCallInterceptor(guard_config)
        event = ToolCallEvent(tool_name="grep", input={"pattern": "TODO"})
        assert gate.intercept(event, CallContext(allowed_root)) is None
        assert gate.intercept(event, CallContext(str(tmp_path))) is not None

    def test_non_string_path_blocked(self, guard_config, allowed_root):
        gate = ToolCallInterceptor(guard_config)
        event = ToolCallEvent(tool_name="write", input={"path": ["a", "b"]})
        assert gate.intercept(event, CallContext(allowed_root)) is not None

    def test_missing_input(self, guard_config, allowed_root):
        gate = ToolCallInterceptor(guard_config)
        event = ToolCallEvent(tool_name="ls", input=None)
        assert gate.intercept(event, CallContext(allowed_root)) is None

    def test_unrelated_tool_allowed(self, guard_config, allowed_root):
        gate = ToolCallInterceptor(guard_config)
        event = ToolCallEvent(tool_name="web_search", input={"path": "/etc/passwd"})
        assert gate.intercept(event, CallContext(allowed_root)) is None


class TestFailClosed:

    def test_internal_error_blocks(self, guard_config, allowed_root, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("scanner exploded")

        monkeypatch.setattr(interceptor_module, "check_path", broken)
        gate = ToolCallInterceptor(guard_config)
        event = ToolCallEvent(tool_name="read", input={"path": "src/app.py"})

        decision = gate.intercept(event, CallContext(allowed_root))
        assert decision is not None
        assert "internal policy error" in decision.reason


class TestAudit:

    def test_decisions_recorded(self, guard_config, allowed_root, tmp_path):
        audit = AuditLogger(str(tmp_path / "audit.jsonl"))
        gate = ToolCallInterceptor(guard_config, audit=audit)

        gate.intercept(bash("git status"))
        gate.intercept(bash("rm -rf /"))
        gate.intercept(ToolCallEvent("read", {"path": ".git/config"}), CallContext(allowed_root))

        records = audit.read_all()
        assert [r.allowed for r in records] == [True, False, False]
        assert records[1].target == "rm -rf /"
        assert records[2].tool_name == "read"


class TestExecute:
    """The restricted shell tool itself."""

    def test_blocked_command_never_spawns(self, guard_config, monkeypatch):
        calls = []
        monkeypatch.setattr(interceptor_module, "run_restricted", lambda *a, **k: calls.append(a))

        gate = ToolCallInterceptor(guard_config)
        result = gate.execute("git status; rm -rf /")

        assert result.state == ExecutionState.BLOCKED
        assert "shell operators" in result.reason
        assert result.exit_code is None
        assert calls == []

    def test_allowed_command_runs_in_root(self, guard_config, allowed_root):
        gate = ToolCallInterceptor(guard_config)
        result = gate.execute("pwd")

        assert result.state == ExecutionState.COMPLETED
        assert result.exit_code == 0
        assert result.output == allowed_root

    def test_runs_in_caller_directory(self, guard_config, allowed_root):
        gate = ToolCallInterceptor(guard_config)
        result = gate.execute("pwd", cwd=os.path.join(allowed_root, "src"))
        assert result.output == os.path.join(allowed_root, "src")

    def test_working_directory_outside_root_blocked(self, guard_config, tmp_path, monkeypatch):
        calls = []
        monkeypatch.setattr(interceptor_module, "run_restricted", lambda *a, **k: calls.append(a))

        gate = ToolCallInterceptor(guard_config)
        result = gate.execute("pwd", cwd=str(tmp_path))

        assert result.state == ExecutionState.BLOCKED
        assert calls == []

    def test_output_and_exit_code(self, guard_config):
        gate = ToolCallInterceptor(guard_config)
        result = gate.execute("echo hello")
        assert result.ok
        assert result.to_tool_text() == "hello\n[exitCode=0]"

    def test_spawn_failure_reported(self, guard_config, monkeypatch):
        def no_bash(*args, **kwargs):
            raise FileNotFoundError("bash")

        monkeypatch.setattr(interceptor_module, "run_restricted", no_bash)
        result = ToolCallInterceptor(guard_config).execute("git status")

        assert result.state == ExecutionState.FAILED
        assert "Failed to start" in result.reason

    def test_lifecycle_starts_with_validation(self, guard_config):
        states = []
        ToolCallInterceptor(guard_config).execute("echo hi", on_state=states.append)
        assert states == [
            ExecutionState.VALIDATING,
            ExecutionState.SPAWNED,
            ExecutionState.COLLECTING,
            ExecutionState.COMPLETED,
        ]

    def test_blocked_lifecycle(self, guard_config):
        states = []
        ToolCallInterceptor(guard_config).execute("rm -rf /", on_state=states.append)
        assert states == [ExecutionState.VALIDATING, ExecutionState.BLOCKED]

    def test_timeout_passed_through(self, guard_config, monkeypatch):
        seen = {}

        def fake_run(command, cwd, **kwargs):
            seen.update(kwargs, command=command, cwd=cwd)
            return ExecutionResult(state=ExecutionState.TIMED_OUT, timeout_seconds=kwargs["timeout_seconds"])

        monkeypatch.setattr(interceptor_module, "run_restricted", fake_run)
        result = ToolCallInterceptor(guard_config).execute(" git status ", timeout_seconds=5)

        assert result.state == ExecutionState.TIMED_OUT
        assert seen["command"] == "git status"
        assert seen["timeout_seconds"] == 5
        assert seen["max_output_bytes"] == guard_config.max_output_bytes


class TestToolCallEvent:

    def test_from_hook_payload(self):
        event = ToolCallEvent.from_payload({"tool_name": "read", "tool_input": {"path": "a"}})
        assert event.tool_name == "read"
        assert event.input == {"path": "a"}

    def test_from_runtime_payload(self):
        event = ToolCallEvent.from_payload({"toolName": "bash", "input": {"command": "ls"}})
        assert event.tool_name == "bash"
        assert event.input == {"command": "ls"}

    def test_non_dict_input(self):
        event = ToolCallEvent.from_payload({"tool_name": "read", "tool_input": "oops"})
        assert event.input == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
