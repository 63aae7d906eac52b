import re
import time
from types import SimpleNamespace
from unittest import mock

import pytest

from serialterm.app import App, AppState, FocusArea, Mode
from serialterm.events import (
    ErrorEvent,
    Key,
    KeyCode,
    KeyEvent,
    PortConnected,
    PortDisconnected,
    SerialRx,
)
from serialterm.theme import default_theme, theme_by_name


def press(app, code, ctrl=False):
    app.handle_key(KeyEvent(code, ctrl=ctrl))


def type_text(app, text):
    for ch in text:
        app.handle_key(KeyEvent.from_char(ch))


def run_command(app, text):
    app.handle_key(KeyEvent.from_char(":"))
    type_text(app, text)
    press(app, KeyCode.ENTER)


def test_initial_state():
    app = App()
    assert app.state is AppState.RUNNING
    assert app.mode is Mode.NORMAL
    assert app.focus is FocusArea.INPUT
    assert app.theme == default_theme()
    assert app.uptime_string() == "--:--:--"


def test_theme_lookup_and_fallback():
    assert App(theme_name="nord").theme == theme_by_name("nord")
    assert App(theme_name="nonexistent").theme == default_theme()


def test_quit_key():
    app = App()
    app.handle_key(KeyEvent.from_char("q"))
    assert app.state is AppState.QUITTING


def test_insert_and_send():
    app = App()
    app.handle_key(KeyEvent.from_char("i"))
    assert app.mode is Mode.INSERT
    type_text(app, "AT")
    assert app.input == "AT"
    assert app.cursor_pos == 2
    press(app, KeyCode.ENTER)
    assert app.input == ""
    assert app.cursor_pos == 0
    assert app.history == ["AT"]
    assert app.status_message == "Sent: AT"
    line = app.rx_buffer[-1]
    assert line.is_tx
    assert line.data == b"AT\r\n"


def test_send_empty_does_nothing():
    app = App()
    app.mode = Mode.INSERT
    press(app, KeyCode.ENTER)
    assert len(app.rx_buffer) == 0
    assert app.history == []


def test_duplicate_history_not_repeated():
    app = App()
    app.mode = Mode.INSERT
    for _ in range(2):
        type_text(app, "x")
        press(app, KeyCode.ENTER)
    assert app.history == ["x"]
    assert len(app.rx_buffer) == 2


def test_history_size_limit():
    app = App(history_size=2)
    app.mode = Mode.INSERT
    for word in ("a", "b", "c"):
        type_text(app, word)
        press(app, KeyCode.ENTER)
    assert app.history == ["b", "c"]


def test_history_navigation():
    app = App()
    app.mode = Mode.INSERT
    for word in ("one", "two"):
        type_text(app, word)
        press(app, KeyCode.ENTER)
    press(app, KeyCode.UP)
    assert app.input == "two"
    press(app, KeyCode.UP)
    assert app.input == "one"
    press(app, KeyCode.UP)
    assert app.input == "one"
    assert app.cursor_pos == len("one")
    press(app, KeyCode.DOWN)
    assert app.input == "two"
    press(app, KeyCode.DOWN)
    assert app.input == ""
    assert app.history_index is None


def test_cursor_editing():
    app = App()
    app.mode = Mode.INSERT
    type_text(app, "abc")
    press(app, KeyCode.LEFT)
    press(app, KeyCode.BACKSPACE)
    assert app.input == "ac"
    assert app.cursor_pos == 1
    press(app, KeyCode.HOME)
    press(app, KeyCode.DELETE)
    assert app.input == "c"
    press(app, KeyCode.END)
    assert app.cursor_pos == len(app.input)
    type_text(app, "d")
    assert app.input == "cd"
    press(app, KeyCode.RIGHT)
    assert app.cursor_pos == len(app.input)


def test_escape_leaves_insert():
    app = App()
    app.mode = Mode.INSERT
    press(app, KeyCode.ESC)
    assert app.mode is Mode.NORMAL


def test_command_quit():
    app = App()
    run_command(app, "quit")
    assert app.state is AppState.QUITTING
    assert app.mode is Mode.NORMAL


def test_command_hex_and_clear():
    app = App()
    app.add_rx_data(b"hello")
    run_command(app, "hex")
    assert app.show_hex is True
    run_command(app, "clear")
    assert len(app.rx_buffer) == 0


def test_command_unknown():
    app = App()
    run_command(app, "bogus")
    assert app.status_message == "Unknown command: bogus"
    assert app.input == ""


def test_command_backspace_to_empty_returns_normal():
    app = App()
    app.handle_key(KeyEvent.from_char(":"))
    type_text(app, "q")
    press(app, KeyCode.BACKSPACE)
    assert app.input == ""
    assert app.mode is Mode.NORMAL


def test_help_mode_enter_and_leave():
    app = App()
    press(app, KeyCode.F1)
    assert app.mode is Mode.HELP
    app.handle_key(KeyEvent.from_char("q"))
    assert app.mode is Mode.NORMAL
    assert app.state is AppState.RUNNING
    app.handle_key(KeyEvent.from_char("?"))
    assert app.mode is Mode.HELP


def test_ctrl_shortcuts():
    app = App()
    app.add_rx_data(b"data")
    app.handle_key(KeyEvent.from_char("h", ctrl=True))
    assert app.show_hex is True
    app.handle_key(KeyEvent.from_char("l", ctrl=True))
    assert len(app.rx_buffer) == 0


def test_hex_view_escape_needs_ctrl():
    app = App()
    app.mode = Mode.HEX_VIEW
    app.show_hex = True
    press(app, KeyCode.ESC)
    assert app.mode is Mode.HEX_VIEW
    press(app, KeyCode.ESC, ctrl=True)
    assert app.mode is Mode.NORMAL
    assert app.show_hex is False


def test_focus_cycles():
    app = App()
    seen = []
    for _ in range(3):
        press(app, KeyCode.TAB)
        seen.append(app.focus)
    assert seen == [FocusArea.PORT_LIST, FocusArea.TERMINAL, FocusArea.INPUT]


def test_scrolling_bounded():
    app = App()
    for _ in range(5):
        app.add_rx_data(b"x")
    press(app, KeyCode.PAGE_UP)
    assert app.scroll_offset == len(app.rx_buffer) - 1
    press(app, KeyCode.UP)
    assert app.scroll_offset == len(app.rx_buffer) - 1
    press(app, KeyCode.PAGE_DOWN)
    assert app.scroll_offset == 0
    press(app, KeyCode.DOWN)
    assert app.scroll_offset == 0


def test_buffer_trimmed():
    app = App(buffer_size=3)
    for i in range(5):
        app.add_rx_data(bytes([i]))
    assert [line.data for line in app.rx_buffer] == [bytes([2]), bytes([3]), bytes([4])]
    assert all(not line.is_tx for line in app.rx_buffer)


def test_events():
    app = App()
    app.handle_event(SerialRx(b"abc"))
    assert app.rx_buffer[-1].data == b"abc"
    app.handle_event(PortConnected("COM1"))
    assert app.connected_port == "COM1"
    assert app.status_message == "Connected to COM1"
    assert re.fullmatch(r"\d\d:\d\d:\d\d", app.uptime_string())
    app.handle_event(PortDisconnected("COM2"))
    assert app.connected_port == "COM1"
    app.handle_event(PortDisconnected("COM1"))
    assert app.connected_port is None
    assert app.uptime_string() == "--:--:--"
    app.handle_event(ErrorEvent("oops"))
    assert app.status_message == "Error: oops"
    app.handle_event(Key(KeyEvent.from_char("q")))
    assert app.state is AppState.QUITTING


def test_uptime_format():
    app = App()
    app.connect_time = time.monotonic() - 3661
    assert app.uptime_string() == "01:01:01"


def test_refresh_ports_and_connect():
    app = App()
    ports = [SimpleNamespace(device="/dev/ttyUSB0"), SimpleNamespace(device="/dev/ttyUSB1")]
    with mock.patch("serial.tools.list_ports.comports", return_value=ports):
        app.refresh_ports()
    assert app.available_ports == ["/dev/ttyUSB0", "/dev/ttyUSB1"]
    app.handle_key(KeyEvent.from_char("j"))
    app.handle_key(KeyEvent.from_char("j"))
    assert app.selected_port == 1
    app.focus = FocusArea.PORT_LIST
    press(app, KeyCode.ENTER)
    assert app.connected_port == "/dev/ttyUSB1"
    assert app.status_message == "Connecting to /dev/ttyUSB1..."
    app.handle_key(KeyEvent.from_char("k"))
    assert app.selected_port == 0


def test_refresh_clamps_selection():
    app = App()
    app.selected_port = 4
    with mock.patch("serial.tools.list_ports.comports", return_value=[]):
        app.refresh_ports()
    assert app.available_ports == []
    assert app.selected_port == 0


def test_refresh_failure_reports_status():
    app = App()
    with mock.patch("serial.tools.list_ports.comports", side_effect=OSError("boom")):
        app.refresh_ports()
    assert app.status_message.startswith("Failed to list ports:")


@pytest.mark.parametrize("focus", [FocusArea.INPUT, FocusArea.PORT_LIST])
def test_enter_without_ports_goes_to_insert(focus):
    app = App()
    app.focus = focus
    press(app, KeyCode.ENTER)
    assert app.mode is Mode.INSERT
    assert app.connected_port is None