"""Fleet execution entry point.

Wires the Sauce Labs adapter, the tunnel connection and the platform list
into a `TunnelController` and runs it to completion. Frontends (CLI,
automation, tests) call `run_fleet` from inside an event loop, or
`asyncio.run(run_fleet(...))` from synchronous code.
"""

from __future__ import annotations

from typing import Sequence

import httpx

from saucefleet.core.adapters.saucelabs import SauceLabsAdapter
from saucefleet.core.auth import SAUCE_API_URL, Credentials, get_client
from saucefleet.core.config import FleetConfig
from saucefleet.core.fleet import FleetResult
from saucefleet.core.options import JobOptions
from saucefleet.core.platforms import PlatformSpec
from saucefleet.core.sessions import TunnelConnection
from saucefleet.core.tunnel import TunnelController


async def run_fleet(
    credentials: Credentials,
    connection: TunnelConnection,
    platforms: Sequence[PlatformSpec],
    options: JobOptions,
    config: FleetConfig,
    *,
    base_url: str = SAUCE_API_URL,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FleetResult:
    """
    Run every platform through the tunnel and return the fleet result.

    Args:
        credentials: Sauce Labs credentials for the REST API.
        connection: Tunnel connection shared by every job.
        platforms: Platforms to run, one job each.
        options: Shared job options.
        config: Throttle, retry and timing settings.
        base_url: REST API base URL.
        transport: Optional httpx transport (used by tests).

    Returns:
        The aggregated FleetResult.

    Raises:
        TunnelOpenError: If the tunnel couldn't be opened within its budget.
    """
    async with get_client(credentials, base_url=base_url, transport=transport) as client:
        adapter = SauceLabsAdapter(client, credentials.username)
        tunnel = TunnelController(connection, adapter, platforms, options, config)
        return await tunnel.run()
