"""Sauce Connect tunnel process management.

The tunnel is the `sc` binary run as a child process. It is considered open
once it prints its ready line; closing terminates the process.
"""

from __future__ import annotations

import asyncio
import logging
import shutil

from saucefleet.core.auth import Credentials

log = logging.getLogger(__name__)

READY_MARKER = "Sauce Connect is up"


class SauceConnectTunnel:
    """`TunnelConnection` backed by a Sauce Connect child process."""

    def __init__(
        self,
        credentials: Credentials,
        tunnel_id: str,
        *,
        tunneled: bool = True,
        timeout: float = 60.0,
        binary: str = "sc",
        extra_args: tuple[str, ...] = (),
    ):
        self.credentials = credentials
        self.tunnel_id = tunnel_id
        self.tunneled = tunneled
        self.timeout = timeout
        self.binary = binary
        self.extra_args = extra_args
        self._proc: asyncio.subprocess.Process | None = None
        self._pump: asyncio.Task | None = None

    def command(self) -> list[str]:
        """Return the argv used to launch the tunnel."""
        return [
            shutil.which(self.binary) or self.binary,
            "-u",
            self.credentials.username,
            "-k",
            self.credentials.access_key,
            "-i",
            self.tunnel_id,
            *self.extra_args,
        ]

    async def open(self) -> bool:
        """Launch the tunnel and wait for it to report ready."""
        if not self.tunneled:
            return True
        if self._proc is not None and self._proc.returncode is None:
            return True

        try:
            self._proc = await asyncio.create_subprocess_exec(
                *self.command(),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as exc:
            log.error("Could not launch Sauce Connect (%s): %s", self.binary, exc)
            return False

        try:
            ready = await asyncio.wait_for(
                self._wait_ready(self._proc.stdout), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            log.warning("Sauce Connect not ready after %.0fs", self.timeout)
            ready = False
        if not ready:
            await self.close()
            return False
        # keep reading so a full pipe never stalls the tunnel
        self._pump = asyncio.get_running_loop().create_task(
            self._drain(self._proc.stdout)
        )
        return True

    @staticmethod
    async def _readline(stream: asyncio.StreamReader) -> str | None:
        line = await stream.readline()
        if not line:
            return None
        text = line.decode(errors="replace").rstrip()
        log.debug("sc: %s", text)
        return text

    async def _wait_ready(self, stream: asyncio.StreamReader) -> bool:
        while True:
            text = await self._readline(stream)
            if text is None:
                return False
            if READY_MARKER in text:
                return True

    async def _drain(self, stream: asyncio.StreamReader) -> None:
        while await self._readline(stream) is not None:
            pass

    async def close(self) -> None:
        """Terminate the tunnel process (no-op when it isn't running)."""
        proc, self._proc = self._proc, None
        pump, self._pump = self._pump, None
        if pump is not None:
            pump.cancel()
        if proc is None or proc.returncode is not None:
            return
        try:
            proc.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(proc.wait(), timeout=self.timeout)
        except asyncio.TimeoutError:
            log.warning("Sauce Connect did not exit; killing it")
            proc.kill()
            await proc.wait()
