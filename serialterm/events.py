"""Events for the terminal interface and a threaded event pump."""

from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional, Union


class KeyCode(Enum):
    """Keys the interface distinguishes."""

    CHAR = auto()
    ENTER = auto()
    ESC = auto()
    BACKSPACE = auto()
    DELETE = auto()
    LEFT = auto()
    RIGHT = auto()
    UP = auto()
    DOWN = auto()
    HOME = auto()
    END = auto()
    PAGE_UP = auto()
    PAGE_DOWN = auto()
    TAB = auto()
    F1 = auto()
    F2 = auto()
    F3 = auto()
    F4 = auto()
    F5 = auto()
    F6 = auto()
    F7 = auto()
    F8 = auto()
    F9 = auto()
    F10 = auto()
    F11 = auto()
    F12 = auto()


@dataclass(frozen=True)
class KeyEvent:
    """A key press; ``char`` is set for KeyCode.CHAR."""

    code: KeyCode
    char: str = ""
    ctrl: bool = False

    @classmethod
    def from_char(cls, char: str, ctrl: bool = False) -> "KeyEvent":
        return cls(KeyCode.CHAR, char, ctrl)


@dataclass(frozen=True)
class Tick:
    """Periodic refresh tick."""


@dataclass(frozen=True)
class Key:
    """Keyboard input."""

    key: KeyEvent


@dataclass(frozen=True)
class Mouse:
    """Mouse input at a terminal cell."""

    column: int
    row: int
    button: str = ""


@dataclass(frozen=True)
class Resize:
    """Terminal resized."""

    width: int
    height: int


@dataclass(frozen=True)
class SerialRx:
    """Serial data received."""

    data: bytes


@dataclass(frozen=True)
class PortConnected:
    """Serial port connected."""

    port: str


@dataclass(frozen=True)
class PortDisconnected:
    """Serial port disconnected."""

    port: str


@dataclass(frozen=True)
class ErrorEvent:
    """An error occurred."""

    message: str


Event = Union[Tick, Key, Mouse, Resize, SerialRx, PortConnected, PortDisconnected, ErrorEvent]

EventSource = Callable[[float], Optional[Event]]

_CLOSED = object()


class EventHandler:
    """Pumps events from a source on a background thread, adding ticks.

    ``source`` is called with the time in seconds it may wait and returns an
    event or None. Without a source only ticks and sent events arrive.
    """

    def __init__(self, tick_rate: float = 0.033, source: EventSource | None = None) -> None:
        self._tick_rate = tick_rate
        self._source = source
        self._queue: queue.Queue = queue.Queue()
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        last_tick = time.monotonic()
        while not self._stop.is_set():
            timeout = max(0.0, self._tick_rate - (time.monotonic() - last_tick))
            if self._source is None:
                self._stop.wait(timeout)
            else:
                try:
                    event = self._source(timeout)
                except Exception as exc:  # the source's failure becomes an event
                    self._queue.put(ErrorEvent(str(exc)))
                else:
                    if event is not None:
                        self._queue.put(event)
            if self._stop.is_set():
                break
            if time.monotonic() - last_tick >= self._tick_rate:
                self._queue.put(Tick())
                last_tick = time.monotonic()

    def next(self, timeout: float | None = None) -> Event:
        """Return the next event, blocking.

        Raises TimeoutError if none arrives in ``timeout`` seconds and
        EOFError once the handler is closed.
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError("no event within timeout") from None
        if item is _CLOSED:
            self._queue.put(_CLOSED)
            raise EOFError("event handler closed")
        return item

    def try_next(self) -> Event | None:
        """Return the next event if one is waiting, else None."""
        try:
            item = self._queue.get_nowait()
        except queue.Empty:
            return None
        if item is _CLOSED:
            self._queue.put(_CLOSED)
            return None
        return item

    def send(self, event: Event) -> None:
        """Push a custom event."""
        self._queue.put(event)

    def close(self) -> None:
        """Stop the background thread; further ``next`` calls raise EOFError."""
        if self._stop.is_set():
            return
        self._stop.set()
        self._thread.join()
        self._queue.put(_CLOSED)

    def __enter__(self) -> "EventHandler":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()