"""
TCP Probe Connectivity

Decides whether the device is online by opening a TCP connection to a
well-known host (public DNS by default) within a short timeout.

DESIGN DECISION: A probe only reports state; it never triggers a drain
itself. Listeners are notified on a state change, not on every probe,
so an unchanged "online" never causes a second drain.
"""

import asyncio
from typing import Optional

import structlog

from daybook.config import get_settings
from daybook.services.connectivity.interface import ConnectivitySource


logger = structlog.get_logger(__name__)


class TcpProbeConnectivity(ConnectivitySource):
    """Connectivity source backed by periodic TCP probes."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        timeout: Optional[float] = None,
        initially_online: bool = True,
    ):
        super().__init__()
        if host is None or port is None or timeout is None:
            settings = get_settings().sync
            host = host or settings.probe_host
            port = port or settings.probe_port
            timeout = timeout or settings.probe_timeout_seconds
        self._host = host
        self._port = port
        self._timeout = timeout
        self._online = initially_online

    def is_online(self) -> bool:
        return self._online

    async def probe(self) -> bool:
        """Try one TCP connection. Never raises."""
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                timeout=self._timeout,
            )
        except (OSError, asyncio.TimeoutError):
            return False
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True

    async def check(self) -> bool:
        """Probe, record the new state, and notify listeners if it changed."""
        online = await self.probe()
        await self.set_online(online)
        return online

    async def set_online(self, online: bool) -> None:
        """Record an externally observed state (e.g. an OS network event)."""
        if online == self._online:
            return
        self._online = online
        logger.info("connectivity_changed", online=online, host=self._host)
        await self._notify(online)
