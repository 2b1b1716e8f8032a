"""
Host Channel - the host process's end of the message bridge.

Commands are dispatched 1:1: one handler per message type, and a later
registration replaces an earlier one. Every inbound command runs in its own
task, serialized per type by an asyncio.Lock, so commands of different types
may interleave but two commands of the same type never overlap.

Any exception raised by a handler (including payload validation errors) is
converted into a single `error` envelope; nothing propagates into the host.
Outbound envelopes go through one FIFO queue drained by a writer task, so
synchronous document callbacks can post events too.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from bridge.transport import Transport, TransportClosed
from models.messages import (
    HostMessage,
    HostMessageType,
    MessageChannel,
    UIMessage,
    parse_ui_payload,
)
from services.logger import PerformanceLogger

logger = logging.getLogger(__name__)

# handler(message, parsed_payload)
CommandHandler = Callable[[UIMessage, Any], Awaitable[None]]


class UnknownMessageTypeError(Exception):
    """No handler is registered for an inbound message type."""

    def __init__(self, message_type: str):
        self.message_type = message_type
        super().__init__(f"Unknown message type: {message_type}")


class HostChannel:
    """Command dispatcher and event publisher bound to one UI connection."""

    def __init__(self, transport: Transport):
        self._transport = transport
        self._handlers: dict[str, CommandHandler] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._tasks: set[asyncio.Task] = set()
        self._outbox: asyncio.Queue = asyncio.Queue()

        self._reader: asyncio.Task | None = None
        self._writer: asyncio.Task | None = None
        self._stats = {"handled": 0, "failed": 0, "sent": 0}

    @property
    def is_running(self) -> bool:
        return self._reader is not None and not self._reader.done()

    def on(self, message_type: str, handler: CommandHandler) -> None:
        """Register the handler for a command type, replacing any previous one."""
        key = str(message_type)
        if key in self._handlers:
            logger.debug(f"Replacing handler for {key}")
        self._handlers[key] = handler

    def has_handler(self, message_type: str) -> bool:
        return str(message_type) in self._handlers

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def post(self, message: HostMessage) -> None:
        """Queue an envelope for sending, preserving order."""
        self._outbox.put_nowait(message)

    def send_success(
        self,
        message_type: HostMessageType,
        data: Any = None,
        request_id: str | None = None,
        push: bool = False,
    ) -> None:
        channel = MessageChannel.PUSH if push else MessageChannel.REPLY
        self.post(HostMessage.ok(message_type, data, request_id=request_id, channel=channel))

    def send_error(self, error: str, request_id: str | None = None) -> None:
        self.post(HostMessage.failure(error, request_id=request_id))

    def push(self, message_type: HostMessageType, data: Any = None) -> None:
        """Publish a host-originated event (not a reply to any command)."""
        self.send_success(message_type, data, push=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self.is_running:
            return
        self._writer = asyncio.create_task(self._write_loop(), name="host-channel-writer")
        self._reader = asyncio.create_task(self._read_loop(), name="host-channel-reader")
        logger.debug("Host channel started")

    async def join(self) -> None:
        """Wait until every in-flight command and queued envelope has been handled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        if self._writer is not None and not self._writer.done():
            await self._outbox.join()

    async def wait_closed(self) -> None:
        """Wait until the UI side closes the connection."""
        if self._reader is not None:
            try:
                await self._reader
            except asyncio.CancelledError:
                pass

    async def stop(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        for task in (self._reader, self._writer):
            if task is not None:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._reader = None
        self._writer = None
        await self._transport.close()
        logger.info(f"Host channel stopped: {self.get_stats()}")

    def get_stats(self) -> dict:
        return {**self._stats, "in_flight": len(self._tasks)}

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def _read_loop(self) -> None:
        while True:
            try:
                raw = await self._transport.receive()
            except TransportClosed:
                logger.info("UI connection closed")
                return
            self._accept(raw)

    def _accept(self, raw: dict) -> None:
        request_id = raw.get("requestId") if isinstance(raw, dict) else None
        if not isinstance(request_id, str):
            request_id = None
        try:
            self._dispatch(raw, request_id)
        except Exception as e:
            logger.error(f"Failed to accept envelope: {e}")
            self._stats["failed"] += 1
            self.post(HostMessage.failure(str(e), request_id=request_id))

    def _dispatch(self, raw: dict, request_id: str | None) -> None:
        message_type = raw.get("type") if isinstance(raw, dict) else None

        if not isinstance(message_type, str) or message_type not in self._handlers:
            error = UnknownMessageTypeError(message_type)
            logger.warning(str(error))
            self._stats["failed"] += 1
            self.send_error(str(error), request_id=request_id)
            return

        try:
            message = UIMessage.from_raw(raw)
        except ValidationError as e:
            logger.error(f"Malformed {message_type} envelope: {e}")
            self._stats["failed"] += 1
            self.send_error(str(e), request_id=request_id)
            return

        task = asyncio.create_task(self._run(message), name=f"host-{message_type}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, message: UIMessage) -> None:
        key = str(message.type)
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            # Re-read: a later registration may have replaced the handler
            handler = self._handlers[key]
            logger.info(f"-> {key} request={message.request_id}")
            try:
                with PerformanceLogger(logger, f"handle {key}"):
                    payload = parse_ui_payload(key, message.payload)
                    await handler(message, payload)
                self._stats["handled"] += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # PerformanceLogger has already logged the failure
                self._stats["failed"] += 1
                self.send_error(str(e), request_id=message.request_id)

    async def _write_loop(self) -> None:
        while True:
            message = await self._outbox.get()
            try:
                await self._transport.send(message.to_wire())
                self._stats["sent"] += 1
            except TransportClosed:
                logger.debug(f"Dropping {message.type}: transport closed")
            except Exception as e:
                logger.error(f"Send error: {e}")
            finally:
                self._outbox.task_done()
