"""Bounded retry counters and the job → tunnel escalation rule.

Retries are immediate stop/start cycles, there is no backoff delay. Each job
and the tunnel own one `RetryBudget`. When a job has spent its own budget on
a failure that doesn't look like a genuine test failure, the failure is
escalated to a tunnel restart as long as the tunnel still has budget left.

The escalation is a policy choice: a platform specific defect that keeps
producing error messages will be blamed on the tunnel until the tunnel budget
runs out too.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from saucefleet.core.sessions import Verdict


@dataclass
class RetryBudget:
    """
    Counts restarts against a fixed limit.

    Attributes:
        limit: Number of restarts allowed after the first attempt.
        attempts: Restarts performed so far.
    """

    limit: int = 3
    attempts: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.limit

    def consume(self) -> int:
        """Record one restart and return the new attempt number."""
        self.attempts += 1
        return self.attempts

    def reset(self) -> None:
        self.attempts = 0


class Decision(str, Enum):
    """What to do with a failed attempt."""

    RETRY_JOB = "RETRY_JOB"
    RESTART_TUNNEL = "RESTART_TUNNEL"
    FAIL = "FAIL"


def on_start_failure(job_budget: RetryBudget) -> Decision:
    """Decide how to handle a failed create-session request."""
    return Decision.FAIL if job_budget.exhausted else Decision.RETRY_JOB


def on_resolved_failure(
    verdict: Verdict,
    job_budget: RetryBudget,
    tunnel_budget: RetryBudget,
) -> Decision:
    """
    Decide how to handle a session that resolved without passing.

    Args:
        verdict: Classification of the resolved session. Must not be PASSED.
        job_budget: The job's own restart budget.
        tunnel_budget: The shared tunnel restart budget.

    Returns:
        RETRY_JOB while the job has budget left, RESTART_TUNNEL when only the
        tunnel has budget left and the failure isn't a test failure, FAIL
        otherwise.
    """
    if verdict is Verdict.PASSED:
        raise ValueError("a passing session is not a failure")
    if not job_budget.exhausted:
        return Decision.RETRY_JOB
    if verdict is not Verdict.TEST_FAILURES and not tunnel_budget.exhausted:
        return Decision.RESTART_TUNNEL
    return Decision.FAIL
