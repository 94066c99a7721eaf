"""The shared tunnel and the fleet of jobs that depend on it.

`TunnelController` owns the tunnel connection, one `JobController` per
platform, the admission queue and the completion aggregator. Once the tunnel
is open every job is queued and admitted up to the throttle; each completion
frees a slot and admits the next job. When every job has completed the fleet
result is published and the tunnel is shut down.

The tunnel is cycled as a unit (stop, reset every job, start) when it fails
to open, when a job escalates its failure, or when every active job has asked
for a restart, which suggests the tunnel itself is unhealthy.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Iterable

from saucefleet.core.config import FleetConfig
from saucefleet.core.errors import TunnelError, TunnelOpenError
from saucefleet.core.fleet import FleetAggregator, FleetResult, JobOutcome
from saucefleet.core.jobs import JobController
from saucefleet.core.options import JobOptions
from saucefleet.core.platforms import PlatformSpec
from saucefleet.core.queue import AdmissionQueue
from saucefleet.core.retry import RetryBudget
from saucefleet.core.sessions import RemoteSessionAPI, TunnelConnection
from saucefleet.core.tasks import BackgroundTasks

log = logging.getLogger(__name__)


class TunnelState(str, Enum):
    """Lifecycle states of the tunnel. A restart passes STOPPING → STARTING."""

    INIT = "INIT"
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"


class TunnelController:
    """
    Owns the tunnel connection and drives the fleet of jobs through it.

    Attributes:
        id: Tunnel identifier.
        state: Current lifecycle state.
        budget: Tunnel restart budget.
        queue: Pending and active jobs; `len(queue.active) <= throttle`.
        jobs: Every job of the fleet, one per platform, in platform order.
        fleet: Completion aggregator for the current cycle.
    """

    def __init__(
        self,
        connection: TunnelConnection,
        api: RemoteSessionAPI,
        platforms: Iterable[PlatformSpec],
        options: JobOptions,
        config: FleetConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        config = config or FleetConfig()
        self.id = config.tunnel_id
        self.config = config
        self.connection = connection
        self.options = options
        self.state = TunnelState.INIT
        self.budget = RetryBudget(config.tunnel_retries)
        self.queue: AdmissionQueue[JobController] = AdmissionQueue(config.throttle)

        self._tasks = BackgroundTasks(on_error=self._fail)
        self.jobs = [
            JobController(
                platform,
                options,
                api,
                self,
                retries=config.job_retries,
                poll_interval=config.poll_interval,
                queue_timeout=config.queue_timeout,
                clock=clock,
                tasks=self._tasks,
            )
            for platform in platforms
        ]
        self.fleet = FleetAggregator(len(self.jobs))

        self._connected = False
        self._open_idle = asyncio.Event()
        self._open_idle.set()
        self._stopping: asyncio.Future | None = None
        self._restarting = False
        self._restarted: set[JobController] = set()
        self._outcome: asyncio.Future | None = None

        for job in self.jobs:
            job.on_complete(self._on_job_complete)
            job.on_restart(self._on_job_restart)

    @property
    def running(self) -> bool:
        return self.state is TunnelState.RUNNING

    @property
    def throttle(self) -> int:
        return self.queue.throttle

    @property
    def active(self) -> list[JobController]:
        return self.queue.active

    @property
    def restarting(self) -> bool:
        """True while a restart requested through `request_restart` is underway."""
        return self._restarting

    def admitted(self, job: JobController) -> bool:
        return job in self.queue.active

    async def run(self) -> FleetResult:
        """
        Run the whole fleet and return its aggregated result.

        The tunnel is always stopped before returning.

        Raises:
            TunnelOpenError: If the tunnel couldn't be opened within its
                             retry budget.
        """
        self._outcome = asyncio.get_running_loop().create_future()
        try:
            await self.start()
            return await self._outcome
        finally:
            await self.stop()
            await self._tasks.cancel_all()

    async def start(self) -> None:
        """Open the tunnel, then queue every job and start admitting them."""
        if self.state in (TunnelState.STARTING, TunnelState.RUNNING):
            return
        if self._outcome is None:
            self._outcome = asyncio.get_running_loop().create_future()

        self.state = TunnelState.STARTING
        log.info("Opening tunnel %s...", self.id)
        self._open_idle.clear()
        try:
            try:
                opened = await self.connection.open()
            except TunnelError as exc:
                log.warning("Tunnel %s failed to open: %s", self.id, exc)
                opened = False
            self._connected = opened
            if self.state is not TunnelState.STARTING:
                return
        finally:
            self._open_idle.set()

        if not opened:
            self.state = TunnelState.STOPPED
            if not self.budget.exhausted:
                await self.restart()
                return
            log.error("Failed to open tunnel %s", self.id)
            self._fail(
                TunnelOpenError(
                    f"tunnel {self.id} failed to open after {self.budget.attempts} restart(s)"
                )
            )
            return

        log.info("Tunnel %s opened", self.id)
        self.state = TunnelState.RUNNING
        self.queue.enqueue(self.jobs)
        if not self.jobs:
            self._complete(self.fleet.result())
            return
        log.info("Starting %d job(s), %d at a time...", len(self.jobs), self.throttle)
        self.dequeue()

    def dequeue(self) -> list[JobController]:
        """Admit queued jobs up to the throttle and start them."""
        if not self.running:
            return []
        admitted = self.queue.admit()
        for job in admitted:
            self._tasks.spawn(job.start(), name=f"start {job.description}")
        return admitted

    async def stop(self) -> None:
        """
        Stop every active job, then close the connection.

        Pending jobs are dropped from the queue. Concurrent callers share
        the same stop.
        """
        if self._stopping is not None:
            await asyncio.shield(self._stopping)
            return
        self.queue.clear()
        if self.state in (TunnelState.INIT, TunnelState.STOPPED) and not self._connected:
            return

        self._stopping = asyncio.get_running_loop().create_future()
        self.state = TunnelState.STOPPING
        log.info("Shutting down tunnel %s...", self.id)
        try:
            await self._open_idle.wait()
            active = list(self.queue.active)
            try:
                if active:
                    await asyncio.gather(*(job.stop() for job in active))
            finally:
                for job in active:
                    self.queue.release(job)
                if self._connected:
                    self._connected = False
                    await self.connection.close()
        finally:
            self.state = TunnelState.STOPPED
            waiter, self._stopping = self._stopping, None
            waiter.set_result(None)

    async def restart(self) -> None:
        """Spend one tunnel retry and cycle the tunnel, resetting every job."""
        attempt = self.budget.consume()
        log.info("Tunnel %s: restart #%d of %d", self.id, attempt, self.budget.limit)
        await self.stop()
        await self._reset_jobs()
        await self.start()

    def request_restart(self) -> bool:
        """
        Schedule a tunnel restart on behalf of a job.

        Returns False when the tunnel isn't running, a restart is already
        underway, or the tunnel budget is spent.
        """
        if not self.running or self._restarting or self.budget.exhausted:
            return False
        self._restarting = True
        self._tasks.spawn(self._restart_once(), name=f"restart tunnel {self.id}")
        return True

    async def _restart_once(self) -> None:
        try:
            await self.restart()
        finally:
            self._restarting = False

    async def _reset_jobs(self) -> None:
        await asyncio.gather(*(job.reset() for job in self.jobs))
        self.fleet.reset()
        self._restarted.clear()

    def _on_job_restart(self, job: JobController) -> None:
        self._restarted.add(job)
        active = self.queue.active
        if self.running and active and all(j in self._restarted for j in active):
            if self.request_restart():
                log.warning(
                    "All %d active job(s) restarted; cycling tunnel %s",
                    len(active),
                    self.id,
                )

    def _on_job_complete(self, job: JobController) -> None:
        self.queue.release(job)
        if self._restarting:
            return
        result = self.fleet.record(JobOutcome(job.platform, job.failed, job.url))
        if result is not None:
            self._complete(result)
            return
        self.dequeue()

    def _complete(self, result: FleetResult) -> None:
        log.info(
            "Fleet complete: %d passed, %d failed",
            len(result.passed),
            len(result.failed),
        )
        if self._outcome is not None and not self._outcome.done():
            self._outcome.set_result(result)
        self._tasks.spawn(self.stop(), name=f"stop tunnel {self.id}")

    def _fail(self, exc: BaseException) -> None:
        if self._outcome is not None and not self._outcome.done():
            self._outcome.set_exception(exc)
