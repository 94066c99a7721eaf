"""Configuration construction utilities.

This module translates raw CLI input (repeatable `key=value` and
`os,browser,version` strings, optional overrides) into the immutable
`JobOptions`, `FleetConfig` and platform list the core works with. It
centralizes validation so commands only deal with well-formed values.
"""

from __future__ import annotations

import json
from typing import Any, Iterable

from saucefleet.core.config import FleetConfig, default_build, default_tunnel_id
from saucefleet.core.options import JobOptions
from saucefleet.core.platforms import PlatformSpec

DEFAULT_PLATFORMS: tuple[PlatformSpec, ...] = tuple(
    PlatformSpec(*p)
    for p in (
        ("Linux", "android", "4.3"),
        ("Linux", "android", "4.0"),
        ("Windows 8.1", "firefox", "28"),
        ("Windows 8.1", "firefox", "27"),
        ("Windows 8.1", "firefox", "20"),
        ("Windows 8.1", "firefox", "3.0"),
        ("Windows 8.1", "googlechrome", "34"),
        ("Windows 8.1", "googlechrome", "33"),
        ("Windows 8.1", "internet explorer", "11"),
        ("Windows 8", "internet explorer", "10"),
        ("Windows 7", "internet explorer", "9"),
        ("Windows 7", "internet explorer", "8"),
        ("Windows XP", "internet explorer", "7"),
        ("Windows XP", "internet explorer", "6"),
        ("Windows 7", "opera", "12"),
        ("Windows 7", "opera", "11"),
        ("OS X 10.9", "ipad", "7.1"),
        ("OS X 10.9", "safari", "7"),
        ("OS X 10.8", "safari", "6"),
        ("OS X 10.6", "safari", "5"),
    )
)


def build_platforms(values: Iterable[str]) -> list[PlatformSpec]:
    """
    Parse `os,browser,version` strings, falling back to DEFAULT_PLATFORMS.

    Raises:
        ValueError: If any value is malformed.
    """
    platforms = [PlatformSpec.parse(v) for v in values]
    return platforms or list(DEFAULT_PLATFORMS)


def _coerce(value: str) -> Any:
    """Decode JSON scalars (numbers, booleans, null, quoted strings); keep the rest as text."""
    try:
        return json.loads(value)
    except ValueError:
        return value


def build_custom_data(items: Iterable[str]) -> dict[str, Any]:
    """
    Convert repeatable `key=value` strings into a custom-data mapping.

    Raises:
        ValueError: If an item isn't in the `key=value` form.
    """
    data: dict[str, Any] = {}
    for item in items:
        if "=" not in item:
            raise ValueError(f"Invalid custom data '{item}' (expected key=value)")
        key, value = item.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError(f"Invalid custom data '{item}' (empty key)")
        data[key] = _coerce(value.strip())
    return data


def build_config(
    *,
    tunnel_id: str | None,
    throttle: int,
    job_retries: int,
    tunnel_retries: int,
    poll_interval: float,
    queue_timeout: float,
    tunnel_timeout: float,
    tunneled: bool,
) -> FleetConfig:
    """Build the run settings, resolving the CI-derived tunnel id default."""
    return FleetConfig(
        tunnel_id=tunnel_id or default_tunnel_id(),
        throttle=throttle,
        job_retries=job_retries,
        tunnel_retries=tunnel_retries,
        poll_interval=poll_interval,
        queue_timeout=queue_timeout,
        tunnel_timeout=tunnel_timeout,
        tunneled=tunneled,
    )


def build_job_options(
    config: FleetConfig,
    *,
    url: str,
    build: str | None = None,
    custom_data: Iterable[str] = (),
    tags: Iterable[str] = (),
    **settings: Any,
) -> JobOptions:
    """
    Build the shared job options.

    `settings` carries the remaining `JobOptions` fields unchanged. The
    tunnel identifier is only set when the run is tunnelled.
    """
    return JobOptions(
        url=url,
        build=build if build is not None else default_build(),
        custom_data=build_custom_data(custom_data),
        tags=tuple(t.strip() for t in tags if t.strip()),
        tunnel_identifier=config.tunnel_id if config.tunneled else None,
        **settings,
    )
