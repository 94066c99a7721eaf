"""In-memory stand-ins for the remote session API and the tunnel connection."""

from __future__ import annotations

import asyncio
from collections import Counter
from typing import Callable

from saucefleet.core.errors import TransportError
from saucefleet.core.options import JobOptions
from saucefleet.core.platforms import PlatformSpec
from saucefleet.core.retry import RetryBudget
from saucefleet.core.sessions import IN_PROGRESS, SessionReport

CHROME = PlatformSpec("Windows 8.1", "googlechrome", "34")
FIREFOX = PlatformSpec("Windows 8.1", "firefox", "28")
SAFARI = PlatformSpec("OS X 10.9", "safari", "7")

OPTIONS = JobOptions(url="http://localhost:9001/test/index.html")


def passed(url: str = "https://saucelabs.com/jobs/ok") -> SessionReport:
    return SessionReport(
        status="test complete",
        completed=True,
        result={"failed": 0, "passed": 10, "message": "all good"},
        url=url,
    )


def failed_tests(count: int = 2) -> SessionReport:
    return SessionReport(
        status="test complete",
        completed=True,
        result={"failed": count, "passed": 8},
        url="https://saucelabs.com/jobs/bad",
    )


def errored(message: str = "Error: script timed out") -> SessionReport:
    return SessionReport(
        status="test error",
        completed=True,
        result={"failed": 0, "message": message},
        url="https://saucelabs.com/jobs/err",
    )


def in_progress() -> SessionReport:
    return SessionReport(status=IN_PROGRESS)


def queued() -> SessionReport:
    return SessionReport(status="job queued")


class FakeSessionAPI:
    """
    Scriptable session API.

    `create(platform, n)` returns an id, raises, or returns an exception to
    raise, where n counts creates for that platform. `poll(platform, n)`
    returns the report for the n-th poll of that platform's current session.
    """

    def __init__(
        self,
        create: Callable[[PlatformSpec, int], object] | None = None,
        poll: Callable[[PlatformSpec, int], SessionReport] | None = None,
    ):
        self._create = create or (lambda platform, n: f"{platform.browser}-{n}")
        self._poll = poll or (lambda platform, n: passed())
        self.calls: list[tuple[str, object]] = []
        self.creates: Counter = Counter()
        self.polls: Counter = Counter()
        self.stops: list[str] = []
        self.hold_creates: asyncio.Event | None = None
        self._owner: dict[str, PlatformSpec] = {}
        self._session_polls: Counter = Counter()
        self._inflight: Counter = Counter()
        self.overlaps: list[tuple[str, object]] = []
        self.open_sessions: set[str] = set()
        self.max_open = 0

    def _enter(self, kind: str, key) -> None:
        self._inflight[(kind, key)] += 1
        if self._inflight[(kind, key)] > 1:
            self.overlaps.append((kind, key))

    def _exit(self, kind: str, key) -> None:
        self._inflight[(kind, key)] -= 1

    async def create_session(self, platform: PlatformSpec, options: JobOptions) -> str:
        self._enter("create", platform)
        try:
            if self.hold_creates is not None:
                await self.hold_creates.wait()
            await asyncio.sleep(0)
            self.creates[platform] += 1
            self.calls.append(("create", platform))
            outcome = self._create(platform, self.creates[platform])
        finally:
            self._exit("create", platform)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome:
            self._owner[outcome] = platform
            self.open_sessions.add(outcome)
            self.max_open = max(self.max_open, len(self.open_sessions))
        return outcome

    async def poll_session(self, session_id: str) -> SessionReport:
        platform = self._owner[session_id]
        self._enter("poll", platform)
        try:
            await asyncio.sleep(0)
            self.polls[platform] += 1
            self._session_polls[session_id] += 1
            self.calls.append(("poll", platform))
            report = self._poll(platform, self._session_polls[session_id])
        finally:
            self._exit("poll", platform)
        if isinstance(report, Exception):
            raise report
        if report.completed:
            self.open_sessions.discard(session_id)
            self.calls.append(("done", platform))
        return report

    async def stop_session(self, session_id: str) -> None:
        platform = self._owner.get(session_id)
        self._enter("stop", platform)
        try:
            await asyncio.sleep(0)
            self.stops.append(session_id)
            self.calls.append(("stop", platform))
            self.open_sessions.discard(session_id)
        finally:
            self._exit("stop", platform)


class FakeConnection:
    """Tunnel connection whose successive `open` results are scripted."""

    def __init__(self, results=()):
        self._results = list(results)
        self.opens = 0
        self.closes = 0
        self.is_open = False

    async def open(self) -> bool:
        await asyncio.sleep(0)
        self.opens += 1
        ok = self._results.pop(0) if self._results else True
        self.is_open = ok
        return ok

    async def close(self) -> None:
        await asyncio.sleep(0)
        self.closes += 1
        self.is_open = False


class StubTunnel:
    """Minimal tunnel gate for driving a JobController on its own."""

    def __init__(self, retries: int = 0):
        self.budget = RetryBudget(retries)
        self.running = True
        self.restarting = False
        self.restart_requests = 0

    def admitted(self, job) -> bool:
        return True

    def request_restart(self) -> bool:
        if self.budget.exhausted:
            return False
        self.restart_requests += 1
        return True


def boom(message: str = "connection reset") -> TransportError:
    return TransportError(message)


class Clock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


async def settle(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the event loop until `predicate()` holds."""

    async def _wait():
        while not predicate():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_wait(), timeout)
