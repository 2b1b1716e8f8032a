"""
Transports - move JSON envelopes across the UI/host process boundary.

Both ends only ever see JSON text, so no Python object is shared between
the two sides even when they run in one event loop.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod

from websockets.exceptions import ConnectionClosed

logger = logging.getLogger(__name__)


class TransportClosed(Exception):
    """Raised by receive() once the transport has been closed by either side."""


class Transport(ABC):
    """One end of a reliable, FIFO-per-direction message channel."""

    @abstractmethod
    async def send(self, message: dict) -> None: ...

    @abstractmethod
    async def receive(self) -> dict: ...

    @abstractmethod
    async def close(self) -> None: ...

    @property
    @abstractmethod
    def is_closed(self) -> bool: ...


# Wakes a pending receive() when the channel closes
_CLOSED = object()


class InProcessEndpoint(Transport):
    """One side of an InProcessChannel."""

    def __init__(self, name: str, inbox: asyncio.Queue, outbox: asyncio.Queue):
        self.name = name
        self._inbox = inbox
        self._outbox = outbox
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def send(self, message: dict) -> None:
        if self._closed:
            raise TransportClosed(f"{self.name} endpoint is closed")
        await self._outbox.put(json.dumps(message))

    async def receive(self) -> dict:
        if self._closed and self._inbox.empty():
            raise TransportClosed(f"{self.name} endpoint is closed")
        item = await self._inbox.get()
        if item is _CLOSED:
            self._closed = True
            raise TransportClosed(f"{self.name} endpoint is closed")
        return json.loads(item)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Unblock both our own reader and the peer's
        self._inbox.put_nowait(_CLOSED)
        self._outbox.put_nowait(_CLOSED)
        logger.debug(f"In-process {self.name} endpoint closed")


class InProcessChannel:
    """
    A connected pair of endpoints backed by one asyncio.Queue per direction.

    Usage:
        channel = InProcessChannel()
        ui_bridge = UIBridge(channel.ui)
        host_channel = HostChannel(channel.host)
    """

    def __init__(self):
        to_host: asyncio.Queue = asyncio.Queue()
        to_ui: asyncio.Queue = asyncio.Queue()
        self.ui = InProcessEndpoint("ui", inbox=to_ui, outbox=to_host)
        self.host = InProcessEndpoint("host", inbox=to_host, outbox=to_ui)

    async def close(self) -> None:
        await self.ui.close()
        await self.host.close()


class WebSocketTransport(Transport):
    """Transport over an open `websockets` connection (client or server side)."""

    def __init__(self, websocket):
        self._ws = websocket
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def remote_address(self):
        return getattr(self._ws, "remote_address", "unknown")

    async def send(self, message: dict) -> None:
        if self._closed:
            raise TransportClosed("websocket transport is closed")
        try:
            await self._ws.send(json.dumps(message))
        except ConnectionClosed as e:
            self._closed = True
            raise TransportClosed(str(e)) from e

    async def receive(self) -> dict:
        while True:
            try:
                raw = await self._ws.recv()
            except ConnectionClosed as e:
                self._closed = True
                raise TransportClosed(str(e)) from e
            try:
                return json.loads(raw)
            except json.JSONDecodeError as e:
                logger.error(f"Dropping malformed frame: {e}")

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._ws.close()
