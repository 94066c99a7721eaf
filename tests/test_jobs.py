import asyncio

import pytest

from fakes import (
    CHROME,
    OPTIONS,
    Clock,
    FakeSessionAPI,
    StubTunnel,
    boom,
    errored,
    failed_tests,
    in_progress,
    passed,
    queued,
    settle,
)
from saucefleet.core.errors import JobStateError
from saucefleet.core.jobs import JobController, JobState
from saucefleet.core.sessions import SessionReport


def _job(api, tunnel=None, **kwargs):
    kwargs.setdefault("poll_interval", 0)
    job = JobController(CHROME, OPTIONS, api, tunnel or StubTunnel(), **kwargs)
    done = []
    job.on_complete(done.append)
    return job, done


@pytest.mark.asyncio
async def test_job_polls_until_the_session_completes():
    api = FakeSessionAPI(poll=lambda p, n: passed() if n >= 3 else in_progress())
    job, done = _job(api)

    await job.start()
    await settle(lambda: done)

    assert job.state is JobState.DONE
    assert not job.failed
    assert job.session_id == "googlechrome-1"
    assert job.url == "https://saucelabs.com/jobs/ok"
    assert api.creates[CHROME] == 1
    assert api.polls[CHROME] == 3
    assert api.overlaps == []


@pytest.mark.asyncio
async def test_start_failures_are_retried_then_terminal():
    api = FakeSessionAPI(create=lambda p, n: boom())
    job, done = _job(api, retries=3)
    restarts = []
    job.on_restart(restarts.append)

    await job.start()
    await asyncio.sleep(0)

    assert api.creates[CHROME] == 4
    assert done == [job]
    assert job.failed
    assert job.state is JobState.DONE
    assert len(restarts) == 3


@pytest.mark.asyncio
async def test_missing_session_id_counts_as_start_failure():
    api = FakeSessionAPI(create=lambda p, n: "")
    job, done = _job(api, retries=0)

    await job.start()

    assert api.creates[CHROME] == 1
    assert job.failed
    assert job.session_id is None


@pytest.mark.asyncio
async def test_start_is_a_no_op_while_the_tunnel_is_down():
    api = FakeSessionAPI()
    tunnel = StubTunnel()
    tunnel.running = False
    job, _ = _job(api, tunnel)

    await job.start()

    assert job.state is JobState.IDLE
    assert api.creates[CHROME] == 0


@pytest.mark.asyncio
async def test_start_is_idempotent_while_create_is_outstanding():
    api = FakeSessionAPI(poll=lambda p, n: in_progress())
    api.hold_creates = asyncio.Event()
    job, _ = _job(api, poll_interval=60)

    first = asyncio.create_task(job.start())
    await asyncio.sleep(0)
    await job.start()
    api.hold_creates.set()
    await first

    assert api.creates[CHROME] == 1
    assert api.overlaps == []
    await job.stop()


@pytest.mark.asyncio
async def test_test_failures_are_retried_then_terminal_without_escalating():
    api = FakeSessionAPI(poll=lambda p, n: failed_tests())
    tunnel = StubTunnel(retries=3)
    job, done = _job(api, tunnel, retries=2)

    await job.start()
    await settle(lambda: done)

    assert api.creates[CHROME] == 3
    assert len(api.stops) == 2
    assert job.failed
    assert tunnel.restart_requests == 0


@pytest.mark.asyncio
async def test_job_passes_after_earlier_attempts_failed():
    api = FakeSessionAPI()
    api._poll = lambda p, n: passed() if api.creates[p] >= 3 else errored()
    job, done = _job(api, retries=3)

    await job.start()
    await settle(lambda: done)

    assert not job.failed
    assert job.budget.attempts == 2
    assert api.creates[CHROME] == 3


@pytest.mark.asyncio
async def test_exhausted_job_escalates_errors_to_the_tunnel():
    api = FakeSessionAPI(poll=lambda p, n: errored())
    tunnel = StubTunnel(retries=1)
    job, done = _job(api, tunnel, retries=1, poll_interval=60)

    await job.start()
    await settle(lambda: tunnel.restart_requests == 1)

    assert done == []
    assert not job.failed
    assert api.creates[CHROME] == 2


@pytest.mark.asyncio
async def test_missing_result_fails_when_both_budgets_are_spent():
    api = FakeSessionAPI(poll=lambda p, n: SessionReport(completed=True))
    tunnel = StubTunnel(retries=0)
    job, done = _job(api, tunnel, retries=0)

    await job.start()
    await settle(lambda: done)

    assert job.failed
    assert job.result is None
    assert tunnel.restart_requests == 0


@pytest.mark.asyncio
async def test_session_expires_when_it_never_reports_progress():
    clock = Clock()

    def poll(platform, n):
        clock.now += 100
        return queued()

    api = FakeSessionAPI(poll=poll)
    job, done = _job(api, retries=0, queue_timeout=360, clock=clock)

    await job.start()
    await settle(lambda: done)

    assert api.polls[CHROME] == 4
    assert job.failed
    assert job.remote_status == "job queued"


@pytest.mark.asyncio
async def test_session_in_progress_never_expires():
    clock = Clock()

    def poll(platform, n):
        clock.now += 1000
        return passed() if n >= 6 else in_progress()

    api = FakeSessionAPI(poll=poll)
    job, done = _job(api, retries=0, queue_timeout=360, clock=clock)

    await job.start()
    await settle(lambda: done)

    assert api.polls[CHROME] == 6
    assert not job.failed


@pytest.mark.asyncio
async def test_poll_errors_keep_the_session_polling():
    def poll(platform, n):
        return passed() if n >= 3 else boom()

    api = FakeSessionAPI(poll=poll)
    job, done = _job(api, retries=0)

    await job.start()
    await settle(lambda: done)

    assert not job.failed
    assert api.polls[CHROME] == 3


@pytest.mark.asyncio
async def test_stop_cancels_the_pending_poll():
    api = FakeSessionAPI(poll=lambda p, n: in_progress())
    job, _ = _job(api, poll_interval=60)

    await job.start()
    await settle(lambda: api.polls[CHROME] == 1 and not job.checking)
    await job.stop()
    await asyncio.sleep(0.01)

    assert job.state is JobState.IDLE
    assert job._poll_timer is None
    assert api.stops == ["googlechrome-1"]
    assert api.polls[CHROME] == 1


@pytest.mark.asyncio
async def test_concurrent_stops_send_one_stop_request():
    api = FakeSessionAPI(poll=lambda p, n: in_progress())
    job, _ = _job(api, poll_interval=60)

    await job.start()
    await asyncio.gather(job.stop(), job.stop())

    assert api.stops == ["googlechrome-1"]
    assert api.overlaps == []


@pytest.mark.asyncio
async def test_stop_before_start_is_a_no_op():
    api = FakeSessionAPI()
    job, _ = _job(api)

    await job.stop()

    assert api.stops == []
    assert job.state is JobState.IDLE


@pytest.mark.asyncio
async def test_stop_while_starting_discards_the_late_session():
    api = FakeSessionAPI(poll=lambda p, n: in_progress())
    api.hold_creates = asyncio.Event()
    job, _ = _job(api)

    starting = asyncio.create_task(job.start())
    await asyncio.sleep(0)
    stopping = asyncio.create_task(job.stop())
    await asyncio.sleep(0)
    api.hold_creates.set()
    await asyncio.gather(starting, stopping)

    assert job.state is JobState.IDLE
    assert job.session_id is None
    assert api.stops == ["googlechrome-1"]
    assert api.polls[CHROME] == 0


@pytest.mark.asyncio
async def test_reset_is_refused_while_running():
    api = FakeSessionAPI(poll=lambda p, n: in_progress())
    job, _ = _job(api, poll_interval=60)
    await job.start()

    with pytest.raises(JobStateError):
        await job.reset()
    await job.stop()


@pytest.mark.asyncio
async def test_reset_clears_a_finished_job():
    api = FakeSessionAPI(poll=lambda p, n: failed_tests())
    job, done = _job(api, retries=1)
    await job.start()
    await settle(lambda: done)

    await job.reset()

    assert job.state is JobState.IDLE
    assert not job.failed
    assert job.budget.attempts == 0
    assert job.session_id is None
    assert job.url is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "report, tunnel_retries",
    [(errored(), 1), (errored(), 0), (failed_tests(), 1)],
)
async def test_exhausted_job_waits_for_a_tunnel_restart_already_underway(report, tunnel_retries):
    api = FakeSessionAPI(poll=lambda p, n: report)
    tunnel = StubTunnel(retries=tunnel_retries)
    tunnel.restarting = True
    job, done = _job(api, tunnel, retries=0, poll_interval=60)

    await job.start()
    await settle(lambda: api.polls[CHROME] == 1 and not job.checking)

    assert done == []
    assert not job.failed
    assert tunnel.restart_requests == 0
    assert job.state is JobState.RUNNING
    await job.stop()
