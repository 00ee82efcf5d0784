"""
Restricted execution for ReviewGuard.

Approved agent commands run as a local child process:
- Scrubbed environment (no API keys, no GitHub token)
- Working directory pinned to the PR checkout
- Bounded output, timeout and cancellation
"""

from reviewguard.sandbox.runner import TailBuffer, run_restricted, scrub_env

__all__ = ["TailBuffer", "run_restricted", "scrub_env"]
