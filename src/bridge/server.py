# src/bridge/server.py
"""WebSocket server binding a HostChannel to the UI process connection."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

import websockets

from bridge.host_channel import HostChannel
from bridge.transport import WebSocketTransport
from bridge.ui_bridge import UIBridge

logger = logging.getLogger(__name__)

BRIDGE_PATH = "/bridge"

# Called with each new channel before it starts; returns a cleanup callable
ChannelSetup = Callable[[HostChannel], Callable[[], None] | None]


@dataclass
class ServerStats:
    """Statistics for the host server."""

    clients_connected: int = 0
    clients_disconnected: int = 0
    clients_rejected: int = 0


class HostServer:
    """
    WebSocket server for the host process.

    Accepts a single UI connection at ws://host:port/bridge. A second
    connection while one is live is refused (single UI session).
    """

    def __init__(self, setup: ChannelSetup, host: str = "localhost", port: int = 9100):
        self.host = host
        self.port = port
        self._setup = setup
        self._server = None
        self._channel: HostChannel | None = None
        self._stop_event: asyncio.Event | None = None
        self._ready = asyncio.Event()
        self._stats = ServerStats()

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def has_client(self) -> bool:
        return self._channel is not None

    @property
    def bound_port(self) -> int:
        """Actual listening port (useful when started with port 0)."""
        if self._server is None:
            return self.port
        return self._server.sockets[0].getsockname()[1]

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.bound_port}{BRIDGE_PATH}"

    async def wait_ready(self) -> None:
        await self._ready.wait()

    async def start(self) -> None:
        """Serve until stop() is called."""
        self._stop_event = asyncio.Event()

        async with websockets.serve(
            self._handle_client,
            self.host,
            self.port,
            ping_interval=30,
            ping_timeout=10,
        ) as server:
            self._server = server
            self._ready.set()
            logger.info(f"Host server listening on {self.url}")
            await self._stop_event.wait()

        self._server = None
        self._ready.clear()
        logger.info("Host server stopped")

    async def stop(self) -> None:
        if self._channel is not None:
            await self._channel.stop()
        if self._stop_event is not None:
            self._stop_event.set()

    async def _handle_client(self, websocket) -> None:
        path = websocket.request.path if websocket.request else ""
        remote = getattr(websocket, "remote_address", "unknown")

        if path != BRIDGE_PATH:
            logger.warning(f"Rejecting connection from {remote} on {path!r}")
            self._stats.clients_rejected += 1
            await websocket.close(code=1008, reason="unknown path")
            return
        if self._channel is not None:
            logger.warning(f"Rejecting second UI connection from {remote}")
            self._stats.clients_rejected += 1
            await websocket.close(code=1013, reason="UI session already connected")
            return

        self._stats.clients_connected += 1
        logger.info(f"UI connected from {remote}")

        channel = HostChannel(WebSocketTransport(websocket))
        self._channel = channel
        cleanup = self._setup(channel)
        try:
            await channel.start()
            await channel.wait_closed()
        finally:
            if cleanup is not None:
                cleanup()
            await channel.stop()
            self._channel = None
            self._stats.clients_disconnected += 1
            logger.info(f"UI {remote} disconnected")

    def get_stats(self) -> dict:
        return {
            "is_running": self.is_running,
            "has_client": self.has_client,
            "clients_connected": self._stats.clients_connected,
            "clients_disconnected": self._stats.clients_disconnected,
            "clients_rejected": self._stats.clients_rejected,
        }


async def connect_ui(url: str, request_timeout: float = 10.0) -> UIBridge:
    """Open the UI side of the bridge against a running HostServer."""
    logger.info(f"Connecting to host at {url}...")
    websocket = await websockets.connect(url)
    bridge = UIBridge(WebSocketTransport(websocket), request_timeout=request_timeout)
    await bridge.start()
    return bridge
