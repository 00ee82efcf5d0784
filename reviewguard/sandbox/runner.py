"""
Restricted Command Runner for ReviewGuard.

Runs one already-approved shell command inside the PR checkout:
- Credentials scrubbed from the environment
- stdout and stderr merged into a bounded tail buffer
- Optional wall-clock timeout
- Cooperative cancellation through a threading.Event

Timeouts and cancellation kill the whole process group immediately.
Restricted commands are short and mostly read-only, so there is no
graceful shutdown step.
"""

import os
import signal
import subprocess
import threading
import time
from collections import deque
from typing import Callable, Mapping, Optional

from rich.console import Console
from rich.markup import escape

from reviewguard.models import ExecutionResult, ExecutionState
from reviewguard.policy.rules import MAX_OUTPUT_BYTES, SCRUBBED_ENV_VARS

console = Console(stderr=True)

CHUNK_SIZE = 4096

# How often the supervisor checks the timeout and cancel event (seconds)
POLL_INTERVAL = 0.05

# Grace period for the reader thread after the process is gone (seconds)
READER_JOIN_TIMEOUT = 2.0


def scrub_env(env: Mapping[str, str]) -> dict[str, str]:
    """
    Copy an environment without model-provider or GitHub credentials.

    Args:
        env: Source environment

    Returns:
        New dict safe to hand to the child process
    """
    return {
        key: value
        for key, value in env.items()
        if key not in SCRUBBED_ENV_VARS
    }


class TailBuffer:
    """
    Keeps the most recent output of a command.

    While the total exceeds ``max_bytes`` the oldest chunk is dropped.
    A single chunk larger than the cap is trimmed from the front.
    """

    def __init__(self, max_bytes: int = MAX_OUTPUT_BYTES):
        self.max_bytes = max_bytes
        self.chunks: deque[bytes] = deque()
        self.size = 0
        self.truncated = False

    def append(self, chunk: bytes) -> None:
        self.chunks.append(chunk)
        self.size += len(chunk)

        while self.size > self.max_bytes and len(self.chunks) > 1:
            dropped = self.chunks.popleft()
            self.size -= len(dropped)
            self.truncated = True

        if self.size > self.max_bytes:
            remaining = self.chunks[0][-self.max_bytes:] if self.max_bytes > 0 else b""
            self.chunks[0] = remaining
            self.size = len(remaining)
            self.truncated = True

    def getvalue(self) -> bytes:
        return b"".join(self.chunks)

    def text(self) -> str:
        # A dropped chunk can split a multi-byte character
        return self.getvalue().decode("utf-8", errors="replace")


def _drain(stream, buffer: TailBuffer) -> None:
    for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
        buffer.append(chunk)


def _kill(process: subprocess.Popen) -> None:
    """SIGKILL the command's process group. Safe to call repeatedly."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        # Already exited
        return


def _exit_code(returncode: int) -> int:
    # Report signal deaths the way a shell does
    if returncode < 0:
        return 128 - returncode
    return returncode


def run_restricted(
    command: str,
    cwd: str,
    timeout_seconds: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
    max_output_bytes: int = MAX_OUTPUT_BYTES,
    env: Optional[Mapping[str, str]] = None,
    on_state: Optional[Callable[[ExecutionState], None]] = None,
    verbose: bool = False,
) -> ExecutionResult:
    """
    Execute one approved command with bash in the given directory.

    The caller is responsible for policy checks; nothing here decides
    whether the command is allowed.

    Args:
        command: Command line, passed to ``bash -c``
        cwd: Working directory for the child process
        timeout_seconds: Kill the command after this many seconds
            (None or <= 0 disables the timeout)
        cancel: Event that aborts the command when set
        max_output_bytes: Size of the output tail to keep
        env: Base environment (defaults to os.environ), scrubbed before use
        on_state: Called with each lifecycle state as it is entered
        verbose: Whether to print progress

    Returns:
        ExecutionResult in the COMPLETED, TIMED_OUT or ABORTED state

    Raises:
        OSError: If bash cannot be started
    """
    def transition(new_state: ExecutionState) -> ExecutionState:
        if on_state is not None:
            on_state(new_state)
        return new_state

    if cancel is not None and cancel.is_set():
        return ExecutionResult(
            state=transition(ExecutionState.ABORTED),
            reason="Cancelled before start",
        )

    if verbose:
        console.print(f"[dim]Running restricted: {escape(command)}[/dim]")

    process = subprocess.Popen(
        ["bash", "-c", command],
        cwd=cwd,
        env=scrub_env(os.environ if env is None else env),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        bufsize=0,
        start_new_session=True,
    )
    state = transition(ExecutionState.SPAWNED)

    buffer = TailBuffer(max_output_bytes)
    reader = threading.Thread(target=_drain, args=(process.stdout, buffer), daemon=True)
    reader.start()
    state = transition(ExecutionState.COLLECTING)

    deadline = None
    if timeout_seconds is not None and timeout_seconds > 0:
        deadline = time.monotonic() + timeout_seconds

    while state == ExecutionState.COLLECTING:
        try:
            process.wait(timeout=POLL_INTERVAL)
            state = ExecutionState.COMPLETED
            break
        except subprocess.TimeoutExpired:
            pass

        if deadline is not None and time.monotonic() >= deadline:
            state = ExecutionState.TIMED_OUT
        elif cancel is not None and cancel.is_set():
            state = ExecutionState.ABORTED

    transition(state)

    # Kill leftover background children so the pipe reaches EOF
    _kill(process)
    process.wait()

    reader.join(timeout=READER_JOIN_TIMEOUT)
    if not reader.is_alive():
        process.stdout.close()

    result = ExecutionResult(
        state=state,
        output=buffer.text().rstrip(),
        truncated=buffer.truncated,
        timeout_seconds=timeout_seconds,
    )

    if state == ExecutionState.COMPLETED:
        result.exit_code = _exit_code(process.returncode)
    elif state == ExecutionState.TIMED_OUT:
        result.reason = f"Command timed out after {timeout_seconds}s"
    else:
        result.reason = "Command aborted"

    if verbose:
        console.print(f"[dim]Restricted command {state.value} (exit={result.exit_code})[/dim]")

    return result
