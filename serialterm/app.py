"""State and key handling for the interactive serial terminal."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto

from serial.tools import list_ports

from .events import (
    ErrorEvent,
    Event,
    Key,
    KeyCode,
    KeyEvent,
    PortConnected,
    PortDisconnected,
    SerialRx,
)
from .theme import Theme, default_theme, theme_by_name

__all__ = ["Mode", "FocusArea", "AppState", "DataLine", "App"]

_PAGE = 10


class Mode(Enum):
    """Interaction mode of the interface."""

    NORMAL = auto()
    INSERT = auto()
    COMMAND = auto()
    CONFIG_EDIT = auto()
    HEX_VIEW = auto()
    HELP = auto()


class FocusArea(Enum):
    """Panel that currently has focus."""

    PORT_LIST = auto()
    TERMINAL = auto()
    INPUT = auto()
    CONFIG_EDITOR = auto()


_NEXT_FOCUS = {
    FocusArea.PORT_LIST: FocusArea.TERMINAL,
    FocusArea.TERMINAL: FocusArea.INPUT,
    FocusArea.INPUT: FocusArea.PORT_LIST,
    FocusArea.CONFIG_EDITOR: FocusArea.PORT_LIST,
}


class AppState(Enum):
    """Whether the application keeps running."""

    RUNNING = auto()
    QUITTING = auto()


@dataclass
class DataLine:
    """A chunk of data shown in the terminal panel."""

    is_tx: bool
    data: bytes
    timestamp: float = field(default_factory=time.monotonic)


class App:
    """The terminal application's state and its reactions to input."""

    def __init__(
        self,
        theme_name: str = "dark",
        history_size: int = 100,
        default_baud: int = 9600,
        default_timeout_ms: int = 1000,
        buffer_size: int = 1000,
    ) -> None:
        self.state = AppState.RUNNING
        self.mode = Mode.NORMAL
        self.theme_name = theme_name
        self.theme: Theme = theme_by_name(theme_name) or default_theme()
        self.focus = FocusArea.INPUT

        self.history_size = history_size
        self.default_baud = default_baud
        self.default_timeout_ms = default_timeout_ms

        self.buffer_size = buffer_size
        self.rx_buffer: deque[DataLine] = deque(maxlen=buffer_size)

        self.input = ""
        self.cursor_pos = 0

        self.history: list[str] = []
        self.history_index: int | None = None

        self.available_ports: list[str] = []
        self.selected_port = 0

        self.connected_port: str | None = None
        self.connect_time: float | None = None

        self.status_message: str | None = None
        self.show_hex = False
        self.scroll_offset = 0

    # ------------------------------------------------------------------ events

    def handle_event(self, event: Event) -> None:
        """Apply one event from the event handler."""
        if isinstance(event, Key):
            self.handle_key(event.key)
        elif isinstance(event, SerialRx):
            self.add_rx_data(event.data)
        elif isinstance(event, PortConnected):
            self.connected_port = event.port
            self.connect_time = time.monotonic()
            self.status_message = f"Connected to {event.port}"
        elif isinstance(event, PortDisconnected):
            if self.connected_port == event.port:
                self.connected_port = None
                self.connect_time = None
            self.status_message = f"Disconnected from {event.port}"
        elif isinstance(event, ErrorEvent):
            self.status_message = f"Error: {event.message}"

    def handle_key(self, key: KeyEvent) -> None:
        """Dispatch a key press according to the current mode."""
        handler = {
            Mode.NORMAL: self._handle_normal_key,
            Mode.INSERT: self._handle_insert_key,
            Mode.COMMAND: self._handle_command_key,
            Mode.HELP: self._handle_help_key,
            Mode.HEX_VIEW: self._handle_hex_key,
            Mode.CONFIG_EDIT: self._handle_config_key,
        }[self.mode]
        handler(key)

    def _handle_normal_key(self, key: KeyEvent) -> None:
        code, char = key.code, key.char if key.code is KeyCode.CHAR else None
        if char == "q":
            self.state = AppState.QUITTING
        elif char == "i":
            self.mode = Mode.INSERT
        elif char == ":":
            self.mode = Mode.COMMAND
            self.input = ""
            self.cursor_pos = 0
        elif char == "h" and key.ctrl:
            self.show_hex = not self.show_hex
        elif char == "l" and key.ctrl:
            self.rx_buffer.clear()
        elif code is KeyCode.F1 or char == "?":
            self.mode = Mode.HELP
        elif code is KeyCode.TAB:
            self.focus = _NEXT_FOCUS[self.focus]
        elif code is KeyCode.UP:
            self._scroll_up()
        elif code is KeyCode.DOWN:
            self._scroll_down()
        elif code is KeyCode.PAGE_UP:
            self._page_up()
        elif code is KeyCode.PAGE_DOWN:
            self._page_down()
        elif code is KeyCode.ENTER:
            if self.focus is FocusArea.PORT_LIST and self.available_ports:
                self._connect_selected_port()
            else:
                self.mode = Mode.INSERT
        elif char == "j":
            if self.selected_port < max(len(self.available_ports) - 1, 0):
                self.selected_port += 1
        elif char == "k":
            if self.selected_port > 0:
                self.selected_port -= 1

    def _handle_insert_key(self, key: KeyEvent) -> None:
        code = key.code
        if code is KeyCode.ESC:
            self.mode = Mode.NORMAL
        elif code is KeyCode.ENTER:
            self._send_input()
        elif code is KeyCode.BACKSPACE:
            self._backspace()
        elif code is KeyCode.DELETE:
            if self.cursor_pos < len(self.input):
                self.input = self.input[: self.cursor_pos] + self.input[self.cursor_pos + 1 :]
        elif code is KeyCode.LEFT:
            if self.cursor_pos > 0:
                self.cursor_pos -= 1
        elif code is KeyCode.RIGHT:
            if self.cursor_pos < len(self.input):
                self.cursor_pos += 1
        elif code is KeyCode.HOME:
            self.cursor_pos = 0
        elif code is KeyCode.END:
            self.cursor_pos = len(self.input)
        elif code is KeyCode.UP:
            self._history_previous()
        elif code is KeyCode.DOWN:
            self._history_next()
        elif code is KeyCode.TAB:
            self.status_message = "No completions available"
        elif code is KeyCode.CHAR:
            self._insert_char(key.char)

    def _handle_command_key(self, key: KeyEvent) -> None:
        code = key.code
        if code is KeyCode.ESC:
            self.mode = Mode.NORMAL
            self.input = ""
        elif code is KeyCode.ENTER:
            self._execute_command()
            self.mode = Mode.NORMAL
        elif code is KeyCode.BACKSPACE:
            self._backspace()
            if not self.input:
                self.mode = Mode.NORMAL
        elif code is KeyCode.CHAR:
            self._insert_char(key.char)

    def _handle_help_key(self, key: KeyEvent) -> None:
        if key.code in (KeyCode.ESC, KeyCode.F1) or (
            key.code is KeyCode.CHAR and key.char == "q"
        ):
            self.mode = Mode.NORMAL

    def _handle_hex_key(self, key: KeyEvent) -> None:
        code = key.code
        leaving = code is KeyCode.ESC or (code is KeyCode.CHAR and key.char == "h")
        if leaving and key.ctrl:
            self.show_hex = False
            self.mode = Mode.NORMAL
        elif code is KeyCode.UP:
            self._scroll_up()
        elif code is KeyCode.DOWN:
            self._scroll_down()
        elif code is KeyCode.PAGE_UP:
            self._page_up()
        elif code is KeyCode.PAGE_DOWN:
            self._page_down()

    def _handle_config_key(self, key: KeyEvent) -> None:
        if key.code is KeyCode.ESC:
            self.mode = Mode.NORMAL

    # ----------------------------------------------------------------- editing

    def _insert_char(self, char: str) -> None:
        self.input = self.input[: self.cursor_pos] + char + self.input[self.cursor_pos :]
        self.cursor_pos += len(char)

    def _backspace(self) -> None:
        if self.cursor_pos > 0:
            self.cursor_pos -= 1
            self.input = self.input[: self.cursor_pos] + self.input[self.cursor_pos + 1 :]

    # --------------------------------------------------------------- scrolling

    def _max_scroll(self) -> int:
        return max(len(self.rx_buffer) - 1, 0)

    def _scroll_up(self) -> None:
        if self.scroll_offset < self._max_scroll():
            self.scroll_offset += 1

    def _scroll_down(self) -> None:
        if self.scroll_offset > 0:
            self.scroll_offset -= 1

    def _page_up(self) -> None:
        self.scroll_offset = min(self.scroll_offset + _PAGE, self._max_scroll())

    def _page_down(self) -> None:
        self.scroll_offset = max(self.scroll_offset - _PAGE, 0)

    # ----------------------------------------------------------------- history

    def _history_previous(self) -> None:
        if not self.history:
            return
        if self.history_index is None:
            index = len(self.history) - 1
        else:
            index = max(self.history_index - 1, 0)
        self.input = self.history[index]
        self.cursor_pos = len(self.input)
        self.history_index = index

    def _history_next(self) -> None:
        if self.history_index is None:
            return
        if self.history_index >= len(self.history) - 1:
            self.input = ""
            self.cursor_pos = 0
            self.history_index = None
        else:
            self.history_index += 1
            self.input = self.history[self.history_index]
            self.cursor_pos = len(self.input)

    # ---------------------------------------------------------------- actions

    def _send_input(self) -> None:
        if not self.input:
            return
        data = self.input
        if not self.history or self.history[-1] != data:
            self.history.append(data)
            if len(self.history) > self.history_size:
                del self.history[0]
        self.history_index = None

        self.rx_buffer.append(DataLine(is_tx=True, data=data.encode("utf-8") + b"\r\n"))

        self.input = ""
        self.cursor_pos = 0
        self.status_message = f"Sent: {data}"

    def _execute_command(self) -> None:
        command = self.input.strip().lower()
        if command in ("q", "quit"):
            self.state = AppState.QUITTING
        elif command == "config":
            self.mode = Mode.CONFIG_EDIT
        elif command == "hex":
            self.show_hex = not self.show_hex
        elif command == "clear":
            self.rx_buffer.clear()
        elif command == "help":
            self.mode = Mode.HELP
        elif command == "refresh":
            self.refresh_ports()
        else:
            self.status_message = f"Unknown command: {command}"
        self.input = ""

    def refresh_ports(self) -> None:
        """Reload the list of serial ports present on the system."""
        try:
            ports = list_ports.comports()
        except OSError as exc:
            self.status_message = f"Failed to list ports: {exc}"
            return
        self.available_ports = [port.device for port in ports]
        if self.selected_port >= len(self.available_ports):
            self.selected_port = max(len(self.available_ports) - 1, 0)

    def _connect_selected_port(self) -> None:
        if not self.available_ports:
            self.status_message = "No ports available"
            return
        port_name = self.available_ports[self.selected_port]
        self.status_message = f"Connecting to {port_name}..."
        self.connected_port = port_name
        self.connect_time = time.monotonic()

    def add_rx_data(self, data: bytes) -> None:
        """Append received data to the terminal buffer."""
        self.rx_buffer.append(DataLine(is_tx=False, data=bytes(data)))

    def uptime_string(self) -> str:
        """Time since connecting as HH:MM:SS, or dashes when not connected."""
        if self.connect_time is None:
            return "--:--:--"
        seconds = int(time.monotonic() - self.connect_time)
        hours, rest = divmod(seconds, 3600)
        minutes, secs = divmod(rest, 60)
        return f"{hours:02}:{minutes:02}:{secs:02}"