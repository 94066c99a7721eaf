"""Remote session contract and result classification.

The orchestration core never talks HTTP directly. It depends on the small
`RemoteSessionAPI` and `TunnelConnection` interfaces defined here; concrete
implementations live in `saucefleet.core.adapters`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Protocol

from saucefleet.core.options import JobOptions
from saucefleet.core.platforms import PlatformSpec

IN_PROGRESS = "test session in progress"

ERROR_PATTERN = re.compile(r"\berror\b", re.IGNORECASE)


@dataclass(frozen=True)
class SessionReport:
    """
    Snapshot of a remote session as returned by a status poll.

    Attributes:
        status: Free-form status text reported by the service, if any.
        completed: True once the service considers the session finished.
        result: Raw result object reported by the test framework, if any.
        url: Link to the session's report page, if known.
    """

    status: str | None = None
    completed: bool = False
    result: Mapping[str, Any] | None = None
    url: str | None = None

    @property
    def in_progress(self) -> bool:
        return self.status == IN_PROGRESS

    @property
    def failures(self) -> int:
        """Number of failing tests in the result (0 when unknown)."""
        if not self.result:
            return 0
        try:
            return int(self.result.get("failed") or 0)
        except (TypeError, ValueError):
            return 0

    @property
    def message(self) -> str | None:
        if not self.result:
            return None
        message = self.result.get("message")
        return None if message is None else str(message)


class Verdict(str, Enum):
    """
    Classification of a resolved session.

    Values:
        PASSED: Result present, no failing tests, no error message.
        TEST_FAILURES: The framework reported failing tests.
        ERROR: The result message matches the error pattern.
        NO_RESULT: The session resolved without any result.
    """

    PASSED = "PASSED"
    TEST_FAILURES = "TEST_FAILURES"
    ERROR = "ERROR"
    NO_RESULT = "NO_RESULT"


def classify(report: SessionReport) -> Verdict:
    """Classify a resolved session report."""
    if not report.result:
        return Verdict.NO_RESULT
    if report.failures > 0:
        return Verdict.TEST_FAILURES
    if report.message and ERROR_PATTERN.search(report.message):
        return Verdict.ERROR
    return Verdict.PASSED


class RemoteSessionAPI(Protocol):
    """Interface for creating, polling and stopping remote test sessions."""

    async def create_session(
        self, platform: PlatformSpec, options: JobOptions
    ) -> str:
        """Create a session and return its identifier."""
        ...

    async def poll_session(self, session_id: str) -> SessionReport:
        """Return the current state of a session."""
        ...

    async def stop_session(self, session_id: str) -> None:
        """Ask the service to stop a session."""
        ...


class TunnelConnection(Protocol):
    """Interface for the shared tunnel the sessions are routed through."""

    async def open(self) -> bool:
        """Open the tunnel, returning True once it's usable."""
        ...

    async def close(self) -> None:
        """Close the tunnel. Must be safe to call when it isn't open."""
        ...
