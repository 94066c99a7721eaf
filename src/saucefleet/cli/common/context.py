"""Application context management for the CLI."""

from __future__ import annotations

from dataclasses import dataclass

from saucefleet.cli.common.exits import die
from saucefleet.core.adapters.sauceconnect import SauceConnectTunnel
from saucefleet.core.auth import AuthError, Credentials, load_credentials
from saucefleet.core.config import FleetConfig


@dataclass
class RunAppContext:
    """Credentials, run settings and tunnel connection for one invocation."""

    credentials: Credentials
    config: FleetConfig
    connection: SauceConnectTunnel


def build_run_context(
    username: str | None,
    access_key: str | None,
    config: FleetConfig,
) -> RunAppContext:
    """Resolve credentials and build the tunnel connection.

    Args:
        username: Sauce Labs username (falls back to SAUCE_USERNAME).
        access_key: Sauce Labs access key (falls back to SAUCE_ACCESS_KEY).
        config: Run settings providing the tunnel id and timeout.

    Returns:
        RunAppContext: Context ready to drive a fleet.
    """
    try:
        credentials = load_credentials(username, access_key)
    except AuthError as exc:
        die(str(exc), code=1)
    connection = SauceConnectTunnel(
        credentials,
        config.tunnel_id,
        tunneled=config.tunneled,
        timeout=config.tunnel_timeout,
    )
    return RunAppContext(credentials=credentials, config=config, connection=connection)
