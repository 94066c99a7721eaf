"""Run-level settings for a tunnel and its fleet of jobs."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_THROTTLE = 10
DEFAULT_JOB_RETRIES = 3
DEFAULT_TUNNEL_RETRIES = 3
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_QUEUE_TIMEOUT = 360.0
DEFAULT_TUNNEL_TIMEOUT = 60.0


def default_tunnel_id() -> str:
    """Return `tunnel_<n>` where n is the CI job number (0 outside CI)."""
    return f"tunnel_{os.getenv('TRAVIS_JOB_NUMBER') or 0}"


def default_build() -> str:
    """Return the short commit hash CI exposes, or an empty label."""
    return (os.getenv("TRAVIS_COMMIT") or "")[:10]


@dataclass(frozen=True)
class FleetConfig:
    """
    Settings shared by the tunnel controller and every job it owns.

    Attributes:
        tunnel_id: Identifier of the shared tunnel.
        throttle: Maximum number of simultaneously active jobs.
        job_retries: Restarts allowed per job before it fails.
        tunnel_retries: Restarts allowed for the tunnel.
        poll_interval: Seconds between status checks of a running job.
        queue_timeout: Seconds after which a job that never reported progress
            is treated as expired.
        tunnel_timeout: Seconds to wait for the tunnel to come up.
        tunneled: Whether jobs are routed through the tunnel at all.
    """

    tunnel_id: str = "tunnel_0"
    throttle: int = DEFAULT_THROTTLE
    job_retries: int = DEFAULT_JOB_RETRIES
    tunnel_retries: int = DEFAULT_TUNNEL_RETRIES
    poll_interval: float = DEFAULT_POLL_INTERVAL
    queue_timeout: float = DEFAULT_QUEUE_TIMEOUT
    tunnel_timeout: float = DEFAULT_TUNNEL_TIMEOUT
    tunneled: bool = True

    def __post_init__(self):
        if self.throttle < 1:
            raise ValueError("throttle must be >= 1")
        if self.job_retries < 0 or self.tunnel_retries < 0:
            raise ValueError("retry limits must be >= 0")
        if self.poll_interval < 0 or self.queue_timeout < 0:
            raise ValueError("intervals must be >= 0")
