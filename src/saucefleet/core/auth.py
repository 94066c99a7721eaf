"""Authentication helpers for Sauce Labs.

This module centralizes credential lookup and creation of the HTTP client
used to talk to the Sauce Labs REST API, so adapters never read the
environment themselves.
"""

import os
from dataclasses import dataclass

import httpx

SAUCE_API_URL = "https://saucelabs.com"
USERNAME_ENV = "SAUCE_USERNAME"
ACCESS_KEY_ENV = "SAUCE_ACCESS_KEY"


class AuthError(RuntimeError):
    """Raised when Sauce Labs credentials are missing."""


@dataclass(frozen=True)
class Credentials:
    """Sauce Labs username and access key."""

    username: str
    access_key: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, access_key='***')"


def load_credentials(
    username: str | None = None, access_key: str | None = None
) -> Credentials:
    """
    Resolve Sauce Labs credentials.

    Explicit values win; otherwise SAUCE_USERNAME and SAUCE_ACCESS_KEY are
    read from the environment.

    Raises:
        AuthError: If either value is missing.
    """
    username = username or os.getenv(USERNAME_ENV)
    access_key = access_key or os.getenv(ACCESS_KEY_ENV)
    missing = [
        name
        for name, value in ((USERNAME_ENV, username), (ACCESS_KEY_ENV, access_key))
        if not value
    ]
    if missing:
        raise AuthError(
            "Sauce Labs credentials missing. Set " + " and ".join(missing) + "."
        )
    return Credentials(username=username, access_key=access_key)


def _sanitize_base_url(url: str) -> str:
    """Strip query strings and trailing slashes from the API base URL."""
    return url.split("?", 1)[0].rstrip("/")


def get_client(
    credentials: Credentials,
    *,
    base_url: str = SAUCE_API_URL,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Create an authenticated async HTTP client for the Sauce Labs REST API.

    The caller owns the client and must close it (`async with` or `aclose`).
    """
    return httpx.AsyncClient(
        base_url=_sanitize_base_url(base_url),
        auth=(credentials.username, credentials.access_key),
        timeout=timeout,
        transport=transport,
    )
