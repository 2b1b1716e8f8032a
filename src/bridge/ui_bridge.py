"""
UI Bridge - the UI process's end of the message bridge.

Provides:
- send/emit of command envelopes to the host
- on(type, handler) fan-out subscription (handlers fire in registration order)
- request() correlation by requestId with a timeout that resolves to a
  synthetic failure envelope instead of leaving the caller waiting forever
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from bridge.transport import Transport, TransportClosed
from models.messages import HostMessage, HostMessageType, UIMessage, UIMessageType, now_ms

logger = logging.getLogger(__name__)

HostHandler = Callable[[HostMessage], None]

# Subscribe to every host envelope regardless of type
ANY = "*"


class UIBridge:
    """
    Bidirectional pub/sub endpoint owned by one UI session.

    Usage:
        bridge = UIBridge(transport)
        bridge.on(HostMessageType.NODES_DATA, on_snapshot)
        await bridge.start()
        await bridge.emit(UIMessageType.UI_READY)
    """

    def __init__(self, transport: Transport, request_timeout: float = 10.0):
        self._transport = transport
        self.request_timeout = request_timeout

        # type -> handlers in registration order
        self._listeners: dict[str, list[HostHandler]] = {}
        # requestId -> (future, expected type or None for first reply)
        self._pending: dict[str, tuple[asyncio.Future, str | None]] = {}

        self._reader: asyncio.Task | None = None
        self._received = 0

    @property
    def is_running(self) -> bool:
        return self._reader is not None and not self._reader.done()

    @property
    def pending_requests(self) -> int:
        return len(self._pending)

    async def start(self) -> None:
        """Start reading host envelopes."""
        if self.is_running:
            return
        self._reader = asyncio.create_task(self._read_loop(), name="ui-bridge-reader")
        logger.debug("UI bridge started")

    async def stop(self) -> None:
        """Stop reading, close the transport and fail any outstanding requests."""
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None

        await self._transport.close()

        for request_id, (future, _) in list(self._pending.items()):
            if not future.done():
                future.set_result(HostMessage.failure("Bridge stopped", request_id=request_id))
        self._pending.clear()
        self._listeners.clear()
        logger.debug(f"UI bridge stopped after {self._received} messages")

    def on(self, message_type: str, handler: HostHandler) -> Callable[[], None]:
        """
        Register a handler for a host message type ('*' for all).

        Returns:
            Unsubscribe function, safe to call more than once and after stop()
        """
        handlers = self._listeners.setdefault(str(message_type), [])
        if handler not in handlers:
            handlers.append(handler)

        def unsubscribe():
            registered = self._listeners.get(str(message_type))
            if registered and handler in registered:
                registered.remove(handler)

        return unsubscribe

    async def send(self, message: UIMessage) -> None:
        """Send a command envelope as-is."""
        await self._transport.send(message.to_wire())

    async def emit(self, message_type: UIMessageType, payload: Any = None) -> UIMessage:
        """Build and send a command envelope without waiting for a reply."""
        message = UIMessage(type=message_type, payload=_to_wire(payload), timestamp=now_ms())
        await self.send(message)
        return message

    async def request(
        self,
        message_type: UIMessageType,
        payload: Any = None,
        expect: HostMessageType | None = None,
        timeout: float | None = None,
    ) -> HostMessage:
        """
        Send a command and wait for the host's correlated reply.

        Args:
            message_type: Command type
            payload: Command payload (model or JSON-ready value)
            expect: Reply type to wait for; None returns the first reply.
                A failure envelope always completes the request.
            timeout: Seconds to wait; defaults to request_timeout

        Returns:
            The reply envelope, or a synthetic failure envelope on timeout
        """
        timeout = self.request_timeout if timeout is None else timeout
        request_id = uuid.uuid4().hex
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = (future, str(expect) if expect else None)

        message = UIMessage(
            type=message_type,
            payload=_to_wire(payload),
            request_id=request_id,
            timestamp=now_ms(),
        )
        try:
            await self.send(message)
            return await asyncio.wait_for(future, timeout)
        except TimeoutError:
            failure = HostMessage.failure(
                f"Request timed out after {timeout}s: {message_type}", request_id=request_id
            )
            logger.warning(failure.error)
            self._dispatch(failure)
            return failure
        except TransportClosed as e:
            failure = HostMessage.failure(f"Bridge closed: {e}", request_id=request_id)
            self._dispatch(failure)
            return failure
        finally:
            self._pending.pop(request_id, None)

    async def _read_loop(self) -> None:
        while True:
            try:
                raw = await self._transport.receive()
            except TransportClosed:
                logger.info("Host connection closed")
                return

            try:
                message = HostMessage.from_raw(raw)
            except ValidationError as e:
                logger.error(f"Dropping malformed host envelope: {e}")
                continue

            self._received += 1
            logger.debug(f"<- {message.type} ({message.channel}) request={message.request_id}")
            self._dispatch(message)
            self._resolve(message)

    def _resolve(self, message: HostMessage) -> None:
        if message.request_id is None:
            return
        entry = self._pending.get(message.request_id)
        if entry is None:
            return
        future, expected = entry
        if future.done():
            return
        if not message.success or expected is None or message.type == expected:
            future.set_result(message)

    def _dispatch(self, message: HostMessage) -> None:
        """Fan a host envelope out to its handlers, then to wildcard handlers."""
        for key in (str(message.type), ANY):
            for handler in list(self._listeners.get(key, ())):
                try:
                    handler(message)
                except Exception as e:
                    logger.error(f"Error in listener for {message.type}: {e}")


def _to_wire(payload: Any) -> Any:
    if hasattr(payload, "to_wire"):
        return payload.to_wire()
    return payload
