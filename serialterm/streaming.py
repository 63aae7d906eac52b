"""Streaming a serial port to WebSocket clients.

Clients connect at ``/ws/serial``. Each receives a status message on connect.
It may then send ``write``, ``subscribe`` and ``unsubscribe`` commands. While
subscribed, a client receives the data read from the port.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable

from aiohttp import WSMsgType, web
from serial import SerialException, SerialTimeoutException

from .messages import (
    CommandError,
    DataMessage,
    ErrorMessage,
    Message,
    PortMetrics,
    PortStatusState,
    StatusMessage,
    SubscribeCommand,
    UnsubscribeCommand,
    WriteCommand,
    encode_message,
    parse_command,
)

__all__ = [
    "OpenPort",
    "SerialState",
    "Broadcaster",
    "status_message",
    "write_data",
    "poll_serial",
    "serial_reader",
    "ws_handler",
    "create_app",
    "STATE_KEY",
    "BROADCASTER_KEY",
]

log = logging.getLogger(__name__)

WS_BUFFER_SIZE = 100
"""Messages buffered per client before the oldest are dropped."""

SERIAL_READ_INTERVAL = 0.05
"""Seconds between reads of the serial port."""

READ_CHUNK = 1024

IDLE_TIMEOUT = "idle_timeout"


def _millis_since(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


@dataclass
class OpenPort:
    """An open serial device with its settings and counters.

    ``port`` is any object with pyserial's ``read(size)`` and ``write(data)``.
    """

    port: Any
    port_name: str = ""
    terminator: str | None = "\n"
    idle_disconnect_ms: int | None = None
    last_activity: float = field(default_factory=time.monotonic)
    open_started: float = field(default_factory=time.monotonic)
    timeout_streak: int = 0
    bytes_read_total: int = 0
    bytes_written_total: int = 0
    idle_close_count: int = 0


class SerialState:
    """The current port, if any, guarded by a lock shared with worker threads."""

    def __init__(self, port: OpenPort | None = None) -> None:
        self.lock = threading.RLock()
        self.port: OpenPort | None = port

    @property
    def is_open(self) -> bool:
        return self.port is not None

    def open(self, port: OpenPort) -> None:
        """Make ``port`` the current port."""
        with self.lock:
            self.port = port

    def close(self) -> None:
        """Forget the current port."""
        with self.lock:
            self.port = None


class _Subscription(asyncio.Queue):
    """A bounded queue that drops its oldest message when full."""

    def __init__(self, maxsize: int) -> None:
        super().__init__(maxsize)
        self.skipped = 0

    def push(self, message: Message) -> None:
        if self.full():
            self.get_nowait()
            self.skipped += 1
        self.put_nowait(message)

    def take_skipped(self) -> int:
        """Return how many messages were dropped since the last call."""
        skipped, self.skipped = self.skipped, 0
        return skipped


class Broadcaster:
    """Fans messages out to every subscribed queue."""

    def __init__(self, buffer_size: int = WS_BUFFER_SIZE) -> None:
        self._buffer_size = buffer_size
        self._subscribers: list[_Subscription] = []

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> _Subscription:
        """Return a new queue that receives every published message."""
        subscription = _Subscription(self._buffer_size)
        self._subscribers.append(subscription)
        return subscription

    def unsubscribe(self, queue: _Subscription) -> None:
        """Stop delivering messages to ``queue``."""
        with contextlib.suppress(ValueError):
            self._subscribers.remove(queue)

    def publish(self, message: Message) -> None:
        """Deliver ``message`` to all subscribers; no subscribers is not an error."""
        for subscription in self._subscribers:
            subscription.push(message)


def status_message(state: SerialState) -> StatusMessage:
    """The current status, with metrics when the port is open."""
    with state.lock:
        port = state.port
        if port is None:
            return StatusMessage(PortStatusState.CLOSED)
        return StatusMessage(
            PortStatusState.OPEN,
            PortMetrics(
                bytes_read_total=port.bytes_read_total,
                bytes_written_total=port.bytes_written_total,
                open_duration_ms=_millis_since(port.open_started),
                last_activity_ms=_millis_since(port.last_activity),
                timeout_streak=port.timeout_streak,
            ),
        )


def write_data(state: SerialState, data: str) -> Message:
    """Write ``data`` to the port, adding the terminator if it is missing.

    Returns a status acknowledgement, or an error message when the port is
    closed or the write fails.
    """
    with state.lock:
        port = state.port
        if port is None:
            return ErrorMessage("Port not open")
        payload = data
        if port.terminator is not None and not payload.endswith(port.terminator):
            payload += port.terminator
        raw = payload.encode("utf-8")
        try:
            written = port.port.write(raw)
        except (SerialException, OSError) as exc:
            log.error("Write error: %s", exc)
            return ErrorMessage(f"Write failed: {exc}")
        if written is None:
            written = len(raw)
        port.bytes_written_total += written
        port.last_activity = time.monotonic()
        log.debug("Wrote %d bytes to serial port", written)
        return StatusMessage(
            PortStatusState.OPEN,
            PortMetrics(
                bytes_read_total=0,
                bytes_written_total=port.bytes_written_total,
                open_duration_ms=0,
                last_activity_ms=0,
                timeout_streak=0,
            ),
        )


def _strip_terminator(text: str, terminator: str | None) -> str:
    if not terminator:
        return text
    while text.endswith(terminator):
        text = text[: -len(terminator)]
    return text


def poll_serial(state: SerialState) -> Message | None:
    """Read once from the port and return the message to broadcast, if any.

    Data becomes a data message. An idle port past its idle limit is closed
    and reported as a closed status. Read failures other than timeouts become
    error messages.
    """
    with state.lock:
        port = state.port
        if port is None:
            return None
        try:
            chunk = port.port.read(READ_CHUNK)
        except (SerialTimeoutException, TimeoutError):
            port.timeout_streak += 1
            return None
        except (SerialException, OSError) as exc:
            return ErrorMessage(str(exc))

        if chunk:
            port.last_activity = time.monotonic()
            port.timeout_streak = 0
            port.bytes_read_total += len(chunk)
            text = bytes(chunk).decode("utf-8", errors="replace")
            return DataMessage(
                data=_strip_terminator(text, port.terminator),
                timestamp=datetime.now(timezone.utc).isoformat(),
            )

        port.timeout_streak += 1
        idle_limit = port.idle_disconnect_ms
        if idle_limit is not None and _millis_since(port.last_activity) >= idle_limit:
            port.idle_close_count += 1
            state.close()
            return StatusMessage(PortStatusState.CLOSED)
        return None


async def serial_reader(
    state: SerialState,
    broadcaster: Broadcaster,
    interval: float = SERIAL_READ_INTERVAL,
) -> None:
    """Poll the port forever, publishing whatever it yields."""
    while True:
        await asyncio.sleep(interval)
        message = await asyncio.to_thread(poll_serial, state)
        if message is not None:
            broadcaster.publish(message)


STATE_KEY = web.AppKey("serial_state", SerialState)
BROADCASTER_KEY = web.AppKey("broadcaster", Broadcaster)

_Sender = Callable[[Message], Awaitable[None]]


async def _forward(
    subscription: _Subscription,
    subscribed: asyncio.Event,
    send: _Sender,
    ws: web.WebSocketResponse,
) -> None:
    try:
        while True:
            message = await subscription.get()
            await subscribed.wait()
            skipped = subscription.take_skipped()
            if skipped:
                log.warning("Client lagged, skipped %d messages", skipped)
                await send(ErrorMessage(f"Lagged: {skipped} messages skipped"))
            await send(message)
    except ConnectionError as exc:
        log.error("Failed to send broadcast: %s", exc)
        await ws.close()


async def _handle_text(
    text: str, state: SerialState, subscribed: asyncio.Event, send: _Sender
) -> None:
    try:
        command = parse_command(text)
    except CommandError as exc:
        log.error("Error handling client message: %s", exc)
        await send(ErrorMessage(f"Command error: {exc}"))
        return
    if isinstance(command, WriteCommand):
        await send(await asyncio.to_thread(write_data, state, command.data))
    elif isinstance(command, SubscribeCommand):
        subscribed.set()
        log.debug("Client subscribed to serial data stream")
    elif isinstance(command, UnsubscribeCommand):
        subscribed.clear()
        log.debug("Client unsubscribed from serial data stream")


async def ws_handler(request: web.Request) -> web.WebSocketResponse:
    """Serve one WebSocket client of the serial stream."""
    state = request.app[STATE_KEY]
    broadcaster = request.app[BROADCASTER_KEY]
    ws = web.WebSocketResponse()
    await ws.prepare(request)

    client_id = uuid.uuid4()
    log.info("WebSocket client connected: %s", client_id)

    subscription = broadcaster.subscribe()
    subscribed = asyncio.Event()
    send_lock = asyncio.Lock()

    async def send(message: Message) -> None:
        async with send_lock:
            await ws.send_str(encode_message(message))

    try:
        try:
            await send(status_message(state))
        except ConnectionError as exc:
            log.error("Failed to send initial status to %s: %s", client_id, exc)
            return ws

        forwarder = asyncio.create_task(_forward(subscription, subscribed, send, ws))
        try:
            async for msg in ws:
                if msg.type is WSMsgType.TEXT:
                    try:
                        await _handle_text(msg.data, state, subscribed, send)
                    except ConnectionError as exc:
                        log.error("Failed to reply to %s: %s", client_id, exc)
                        break
                elif msg.type is WSMsgType.ERROR:
                    log.error("WebSocket error for %s: %s", client_id, ws.exception())
                    break
        finally:
            forwarder.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await forwarder
    finally:
        broadcaster.unsubscribe(subscription)
        log.info("WebSocket handler finished for %s", client_id)
    return ws


async def _reader_context(app: web.Application) -> AsyncIterator[None]:
    task = asyncio.create_task(serial_reader(app[STATE_KEY], app[BROADCASTER_KEY]))
    yield
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


def create_app(state: SerialState) -> web.Application:
    """Build the web application serving ``/ws/serial`` for ``state``."""
    app = web.Application()
    app[STATE_KEY] = state
    app[BROADCASTER_KEY] = Broadcaster()
    app.router.add_get("/ws/serial", ws_handler)
    app.cleanup_ctx.append(_reader_context)
    return app