"""Plain-text rendering of the serial terminal interface."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import islice
from typing import Iterable

from .app import App, FocusArea, Mode

__all__ = [
    "Rect",
    "centered_rect",
    "format_data",
    "mode_indicator",
    "header_text",
    "status_text",
    "help_lines",
    "config_lines",
    "render_lines",
]

KEYBINDS = "q:quit  i:insert  Tab:focus  Ctrl+H:hex  F1:help  :cmd"

_HEADER_ROWS = 1
_INPUT_ROWS = 3
_STATUS_ROWS = 1
_PORT_LIST_WIDTH = 20

_HELP_TEXT = (
    "Keybindings",
    "",
    "Normal Mode:",
    "  q          - Quit",
    "  i          - Enter insert mode",
    "  :          - Enter command mode",
    "  Tab        - Cycle focus",
    "  Ctrl+H     - Toggle hex view",
    "  Ctrl+L     - Clear terminal",
    "  F1 / ?     - Show help",
    "  j/k        - Move selection",
    "  Enter      - Connect/send",
    "",
    "Insert Mode:",
    "  Esc        - Return to normal",
    "  Enter      - Send data",
    "  Tab        - Autocomplete",
    "  Up/Down    - History navigation",
    "",
    "Commands (:)",
    "  :quit      - Exit application",
    "  :config    - Open config editor",
    "  :hex       - Toggle hex view",
    "  :clear     - Clear terminal",
    "  :refresh   - Refresh port list",
    "",
    "Press Esc or F1 to close",
)

_MODE_INDICATORS = {
    Mode.NORMAL: "[NORMAL]",
    Mode.INSERT: "[INSERT]",
    Mode.COMMAND: "[COMMAND]",
}


@dataclass(frozen=True)
class Rect:
    """A rectangle of terminal cells."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def inner(self, margin: int = 1) -> "Rect":
        """The area inside a border of ``margin`` cells."""
        return Rect(
            self.x + margin,
            self.y + margin,
            max(self.width - 2 * margin, 0),
            max(self.height - 2 * margin, 0),
        )


def centered_rect(percent_x: int, percent_y: int, area: Rect) -> Rect:
    """A rectangle of the given percentages of ``area``, centred within it."""
    if not (0 <= percent_x <= 100 and 0 <= percent_y <= 100):
        raise ValueError("percentages must lie between 0 and 100")
    top = area.height * ((100 - percent_y) // 2) // 100
    left = area.width * ((100 - percent_x) // 2) // 100
    height = area.height * percent_y // 100
    width = area.width * percent_x // 100
    return Rect(area.x + left, area.y + top, width, height)


def format_data(data: bytes, show_hex: bool) -> str:
    """Show bytes as spaced hex pairs, or as text with line ends marked."""
    if show_hex:
        return " ".join(f"{byte:02X}" for byte in data)
    text = bytes(data).decode("utf-8", errors="replace")
    return text.replace("\r", "").replace("\n", "↵")


def mode_indicator(mode: Mode) -> str:
    """The bracketed mode name shown in the input title."""
    return _MODE_INDICATORS.get(mode, "")


def header_text(app: App) -> str:
    """The single header line: title, port, connection state and uptime."""
    if app.connected_port is not None:
        port_info = f"{app.connected_port} @ {app.default_baud}"
        status = "Connected"
    else:
        port_info = "Not connected"
        status = "Disconnected"
    return " | ".join((" serialterm TUI ", port_info, status, app.uptime_string()))


def status_text(app: App) -> str:
    """The status bar line: the current message and the key bindings."""
    message = app.status_message if app.status_message is not None else "Ready"
    return f" {message }  | {KEYBINDS}"


def help_lines() -> list[str]:
    """Lines of the help overlay."""
    return list(_HELP_TEXT)


def config_lines(app: App) -> list[str]:
    """Lines of the configuration overlay."""
    return [
        "Configuration",
        "",
        f"Theme: {app.theme_name}",
        f"Default Baud: {app.default_baud}",
        f"Timeout: {app.default_timeout_ms} ms",
        f"History Size: {app.history_size}",
        "",
        "Press Esc to close",
    ]


def _wrap(line: str, width: int) -> list[str]:
    if width <= 0:
        return []
    if not line:
        return [""]
    return [line[start : start + width] for start in range(0, len(line), width)]


class _Canvas:
    """A grid of characters that silently clips what falls outside it."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._rows = [[" "] * width for _ in range(height)]

    def put(self, x: int, y: int, text: str, limit: int | None = None) -> None:
        if not 0 <= y < self.height:
            return
        row = self._rows[y]
        for offset, char in enumerate(text):
            if limit is not None and offset >= limit:
                break
            column = x + offset
            if 0 <= column < self.width:
                row[column] = char

    def fill(self, rect: Rect) -> None:
        for y in range(rect.y, rect.bottom):
            self.put(rect.x, y, " " * rect.width)

    def box(self, rect: Rect, title: str = "") -> None:
        if rect.width <= 0 or rect.height <= 0:
            return
        if rect.width >= 2:
            top = "┌" + "─" * (rect.width - 2) + "┐"
            bottom = "└" + "─" * (rect.width - 2) + "┘"
        else:
            top = bottom = "─"
        self.put(rect.x, rect.y, top)
        if rect.height >= 2:
            self.put(rect.x, rect.bottom - 1, bottom)
        for y in range(rect.y + 1, rect.bottom - 1):
            self.put(rect.x, y, "│")
            if rect.width >= 2:
                self.put(rect.right - 1, y, "│")
        if title:
            self.put(rect.x + 1, rect.y, title, limit=max(rect.width - 2, 0))

    def text(self, rect: Rect, lines: Iterable[str], wrap: bool = True) -> None:
        rows: list[str] = []
        for line in lines:
            rows.extend(_wrap(line, rect.width) if wrap else [line])
        for y, row in zip(range(rect.y, rect.bottom), rows):
            self.put(rect.x, y, row, limit=rect.width)

    def lines(self) -> list[str]:
        return ["".join(row) for row in self._rows]


def _port_list_lines(app: App) -> list[str]:
    lines = []
    for index, port in enumerate(app.available_ports):
        if app.connected_port == port:
            prefix = "● "
        elif index == app.selected_port:
            prefix = "> "
        else:
            prefix = "  "
        lines.append(f"{prefix}{port}")
    return lines


def _terminal_lines(app: App, rows: int) -> list[str]:
    visible = islice(app.rx_buffer, app.scroll_offset, app.scroll_offset + max(rows, 0))
    return [
        ("TX: " if line.is_tx else "RX: ") + format_data(line.data, app.show_hex)
        for line in visible
    ]


def render_lines(app: App, width: int, height: int) -> list[str]:
    """Render the whole interface as ``height`` lines of ``width`` characters."""
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive")
    canvas = _Canvas(width, height)
    area = Rect(0, 0, width, height)

    body_height = max(height - _HEADER_ROWS - _INPUT_ROWS - _STATUS_ROWS, 0)
    header = Rect(0, 0, width, _HEADER_ROWS)
    body = Rect(0, header.bottom, width, body_height)
    input_area = Rect(0, body.bottom, width, _INPUT_ROWS)
    status = Rect(0, height - _STATUS_ROWS, width, _STATUS_ROWS)

    canvas.put(header.x, header.y, header_text(app))

    list_width = min(_PORT_LIST_WIDTH, width)
    port_list = Rect(body.x, body.y, list_width, body.height)
    terminal = Rect(port_list.right, body.y, width - list_width, body.height)

    canvas.box(port_list, " Ports ")
    canvas.text(port_list.inner(), _port_list_lines(app), wrap=False)

    title = " Terminal (Hex) " if app.show_hex else " Terminal "
    canvas.box(terminal, title)
    inner_terminal = terminal.inner()
    canvas.text(inner_terminal, _terminal_lines(app, inner_terminal.height))

    canvas.box(input_area, f" Input {mode_indicator(app.mode)} ")
    content = f":{app.input}" if app.mode is Mode.COMMAND else app.input
    canvas.text(input_area.inner(), [content], wrap=False)

    canvas.put(status.x, status.y, status_text(app))

    if app.mode is Mode.HELP:
        popup = centered_rect(60, 70, area)
        canvas.fill(popup)
        canvas.box(popup, " Help ")
        canvas.text(popup.inner(), help_lines())
    elif app.mode is Mode.CONFIG_EDIT:
        popup = centered_rect(70, 80, area)
        canvas.fill(popup)
        canvas.box(popup, " Config ")
        canvas.text(popup.inner(), config_lines(app))

    return canvas.lines()


def focused_panel(app: App) -> FocusArea:
    """The panel drawn as focused; insert mode always focuses the input."""
    return FocusArea.INPUT if app.mode is Mode.INSERT else app.focus