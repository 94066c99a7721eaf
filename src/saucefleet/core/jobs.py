"""Lifecycle of a single remote test session.

A `JobController` drives one platform through create → poll → terminate.
It runs on the event loop of its tunnel and never blocks: every remote call
is awaited and status checks are rescheduled with `loop.call_later`, so
many jobs interleave on a single thread.

Every operation is idempotent. A create, poll or stop request is never sent
while an earlier request of the same kind is still outstanding for the job,
and a pending poll is always cancelled before the job enters STOPPING so a
late answer can't revive a stopped job.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Protocol

from saucefleet.core import retry
from saucefleet.core.errors import JobStateError, ProtocolError, SessionError
from saucefleet.core.options import JobOptions
from saucefleet.core.platforms import PlatformSpec
from saucefleet.core.retry import Decision, RetryBudget
from saucefleet.core.sessions import (
    RemoteSessionAPI,
    SessionReport,
    Verdict,
    classify,
)
from saucefleet.core.tasks import BackgroundTasks

log = logging.getLogger(__name__)


class JobState(str, Enum):
    """
    Lifecycle states of a job.

    Values:
        IDLE: Not started, or stopped and waiting to be started again.
        STARTING: A create-session request is outstanding.
        RUNNING: The session exists and is being polled.
        STOPPING: A stop is in progress.
        DONE: A terminal outcome was reported; only `reset` leaves this state.
    """

    IDLE = "IDLE"
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    DONE = "DONE"


class TunnelGate(Protocol):
    """The parts of the owning tunnel a job is allowed to see."""

    budget: RetryBudget

    @property
    def running(self) -> bool: ...

    @property
    def restarting(self) -> bool: ...

    def admitted(self, job: JobController) -> bool: ...

    def request_restart(self) -> bool: ...


JobObserver = Callable[["JobController"], None]


class JobController:
    """
    Runs one platform's remote session with bounded retries.

    Attributes:
        platform: The platform this job runs on.
        options: Shared job options used to build the create payload.
        state: Current lifecycle state.
        checking: True while a status poll is outstanding.
        failed: True once the job reported a terminal failure.
        budget: Restart budget of this job.
        session_id: Remote identifier of the current session.
        started_at: Clock reading taken when the session was created.
        remote_status: Last status text reported by the service.
        result: Last result object reported by the service.
        url: Last report URL reported by the service.
    """

    def __init__(
        self,
        platform: PlatformSpec,
        options: JobOptions,
        api: RemoteSessionAPI,
        tunnel: TunnelGate,
        *,
        retries: int = 3,
        poll_interval: float = 5.0,
        queue_timeout: float = 360.0,
        clock: Callable[[], float] = time.monotonic,
        tasks: BackgroundTasks | None = None,
    ):
        self.platform = platform
        self.options = options
        self.api = api
        self.tunnel = tunnel
        self.budget = RetryBudget(retries)
        self.poll_interval = poll_interval
        self.queue_timeout = queue_timeout
        self.clock = clock

        self.state = JobState.IDLE
        self.checking = False
        self.failed = False
        self.session_id: str | None = None
        self.started_at: float | None = None
        self.remote_status: str | None = None
        self.result = None
        self.url: str | None = None

        self._tasks = tasks if tasks is not None else BackgroundTasks()
        self._create_idle = asyncio.Event()
        self._create_idle.set()
        self._stopping: asyncio.Future | None = None
        self._poll_timer: asyncio.TimerHandle | None = None
        self._poll_task: asyncio.Task | None = None
        self._complete_observers: list[JobObserver] = []
        self._restart_observers: list[JobObserver] = []

    def __repr__(self) -> str:
        return f"JobController({self.platform.description!r}, {self.state.value})"

    @property
    def label(self) -> str:
        return f"{self.options.name}:"

    @property
    def description(self) -> str:
        return self.platform.description

    @property
    def running(self) -> bool:
        return self.state is JobState.RUNNING

    def on_complete(self, callback: JobObserver) -> None:
        """Call `callback(job)` whenever the job reports a terminal outcome."""
        self._complete_observers.append(callback)

    def on_restart(self, callback: JobObserver) -> None:
        """Call `callback(job)` (on the next loop iteration) whenever the job restarts."""
        self._restart_observers.append(callback)

    def _notify(self, observers: list[JobObserver]) -> None:
        for callback in list(observers):
            callback(self)

    # -- start ---------------------------------------------------------------

    async def start(self) -> None:
        """
        Create the remote session and begin polling it.

        No-op while the job is starting, running, stopping or done, and while
        the tunnel isn't running or hasn't admitted the job. Failures are
        retried with `restart` until the job budget is spent, after which the
        job completes as failed.
        """
        if (
            self.state is not JobState.IDLE
            or not self._create_idle.is_set()
            or not self.tunnel.running
            or not self.tunnel.admitted(self)
        ):
            return

        self.state = JobState.STARTING
        self._create_idle.clear()
        try:
            session_id, error = await self._create()
            if self.state is not JobState.STARTING:
                # stopped while the request was outstanding
                if session_id is not None:
                    await self._discard(session_id)
                return
        finally:
            self._create_idle.set()

        if error is not None:
            self.state = JobState.IDLE
            if retry.on_start_failure(self.budget) is Decision.RETRY_JOB:
                log.debug("%s %s failed to start: %s", self.label, self.description, error)
                await self.restart()
                return
            log.error(
                "%s %s failed to start: %s", self.label, self.description, error
            )
            self._finish(failed=True)
            return

        self.session_id = session_id
        self.started_at = self.clock()
        self.state = JobState.RUNNING
        log.debug("%s %s started session %s", self.label, self.description, session_id)
        self._schedule_poll(0)

    async def _create(self) -> tuple[str | None, SessionError | None]:
        try:
            session_id = await self.api.create_session(self.platform, self.options)
        except SessionError as exc:
            return None, exc
        if not session_id:
            return None, ProtocolError("create-session response has no job id")
        return session_id, None

    async def _discard(self, session_id: str) -> None:
        """Stop a session whose create answer arrived after the job was stopped."""
        try:
            await self.api.stop_session(session_id)
        except SessionError as exc:
            log.warning("%s could not stop orphaned session %s: %s", self.label, session_id, exc)

    # -- status --------------------------------------------------------------

    async def status(self) -> None:
        """
        Poll the remote session once.

        A session resolves when the service reports it completed, or when it
        never reported "in progress" and `queue_timeout` seconds have passed
        since it was created. Unresolved sessions are polled again after
        `poll_interval` seconds.
        """
        if self.checking or self.state is not JobState.RUNNING or not self.tunnel.running:
            return

        self.checking = True
        self._poll_task = asyncio.current_task()
        try:
            report = await self.api.poll_session(self.session_id)
        except SessionError as exc:
            log.debug("%s %s status check failed: %s", self.label, self.description, exc)
            report = SessionReport()
        finally:
            self.checking = False
            self._poll_task = None

        if self.state is not JobState.RUNNING:
            return

        self.remote_status = report.status
        elapsed = self.clock() - self.started_at
        expired = not report.in_progress and elapsed >= self.queue_timeout

        if not report.completed and not expired:
            self._schedule_poll(self.poll_interval)
            return

        await self._resolve(report)

    async def _resolve(self, report: SessionReport) -> None:
        self.result = report.result
        self.url = report.url

        verdict = classify(report)
        if verdict is Verdict.PASSED:
            log.info("%s %s passed", self.label, self.description)
            self._finish(failed=False)
            return

        decision = retry.on_resolved_failure(verdict, self.budget, self.tunnel.budget)
        if decision is Decision.RETRY_JOB:
            await self.restart()
            return
        if self.tunnel.restarting:
            # the restart already underway resets and reruns this job
            log.info(
                "%s %s out of retries; waiting for the tunnel restart",
                self.label,
                self.description,
            )
            return
        if decision is Decision.RESTART_TUNNEL and self.tunnel.request_restart():
            log.warning(
                "%s %s out of retries; restarting the tunnel", self.label, self.description
            )
            return

        self._log_failure(report, verdict)
        self._finish(failed=True)

    def _log_failure(self, report: SessionReport, verdict: Verdict) -> None:
        details = f"See {report.url} for details." if report.url else ""
        if verdict is Verdict.TEST_FAILURES:
            count = report.failures
            log.error(
                "%s %s failed %d test%s. %s",
                self.label,
                self.description,
                count,
                "s" if count > 1 else "",
                details,
            )
            return
        message = report.message or f"no results available. {details}"
        log.error("%s %s failed; %s", self.label, self.description, message)

    def _schedule_poll(self, delay: float) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._poll_timer = loop.call_later(delay, self._poll_now)

    def _poll_now(self) -> None:
        self._poll_timer = None
        self._tasks.spawn(self.status(), name=f"status {self.description}")

    def _cancel_timer(self) -> None:
        if self._poll_timer is not None:
            self._poll_timer.cancel()
            self._poll_timer = None

    def _cancel_poll(self) -> asyncio.Task | None:
        """Cancel the poll timer and any outstanding poll; returns the task to wait for."""
        self._cancel_timer()
        task = self._poll_task
        if task is None or not self.checking or task is asyncio.current_task():
            return None
        task.cancel()
        return task

    # -- stop / restart / reset ----------------------------------------------

    async def stop(self) -> None:
        """
        Stop the job.

        Resolves at once when nothing is running. Otherwise the poll is
        cancelled, an outstanding create is allowed to finish (its session is
        discarded), and the remote session is asked to stop. Concurrent
        callers share the same stop.
        """
        if self._stopping is not None:
            await asyncio.shield(self._stopping)
            return

        previous = self.state
        if previous in (JobState.IDLE, JobState.DONE):
            self._cancel_timer()
            return

        self._stopping = asyncio.get_running_loop().create_future()
        self.state = JobState.STOPPING
        try:
            pending = self._cancel_poll()
            if pending is not None:
                await asyncio.wait({pending})
            await self._create_idle.wait()
            if previous is JobState.RUNNING and self.session_id is not None:
                try:
                    await self.api.stop_session(self.session_id)
                except SessionError as exc:
                    log.warning(
                        "%s %s stop request failed: %s", self.label, self.description, exc
                    )
        finally:
            self.state = JobState.IDLE
            waiter, self._stopping = self._stopping, None
            waiter.set_result(None)

    async def restart(self) -> None:
        """Spend one retry, signal the restart and run a stop/start cycle."""
        attempt = self.budget.consume()
        log.info(
            "%s %s restart #%d of %d",
            self.label,
            self.description,
            attempt,
            self.budget.limit,
        )
        asyncio.get_running_loop().call_soon(self._notify, self._restart_observers)
        await self.stop()
        await self.start()

    async def reset(self) -> None:
        """
        Forget every attempt so the job can run again from scratch.

        Raises:
            JobStateError: If the job is starting, running or stopping.
        """
        if self.state in (JobState.STARTING, JobState.RUNNING, JobState.STOPPING):
            raise JobStateError(
                f"cannot reset {self.description} while {self.state.value}"
            )
        self._cancel_timer()
        self.budget.reset()
        self.failed = False
        self.session_id = None
        self.started_at = None
        self.remote_status = None
        self.result = None
        self.url = None
        self.state = JobState.IDLE
        await asyncio.sleep(0)

    def _finish(self, *, failed: bool) -> None:
        self._cancel_timer()
        self.failed = failed
        self.state = JobState.DONE
        self._notify(self._complete_observers)
