import pytest

from serialterm.app import App, FocusArea, Mode
from serialterm.ui import (
    KEYBINDS,
    Rect,
    centered_rect,
    config_lines,
    focused_panel,
    format_data,
    header_text,
    help_lines,
    mode_indicator,
    render_lines,
    status_text,
)


def test_rect_edges_and_inner():
    rect = Rect(2, 3, 10, 6)
    assert rect.right == 12
    assert rect.bottom == 9
    inner = rect.inner()
    assert (inner.x, inner.y) == (3, 4)
    assert inner.width == rect.width - 2
    assert inner.height == rect.height - 2


@pytest.mark.parametrize("px,py", [(60, 70), (70, 80), (50, 50), (100, 100)])
def test_centered_rect_inside_area(px, py):
    area = Rect(0, 0, 100, 100)
    popup = centered_rect(px, py, area)
    assert popup.width == px
    assert popup.height == py
    assert popup.x >= area.x and popup.right <= area.right
    assert popup.y >= area.y and popup.bottom <= area.bottom
    assert abs(popup.x - (area.right - popup.right)) <= 1


def test_centered_rect_rejects_bad_percentage():
    with pytest.raises(ValueError):
        centered_rect(120, 50, Rect(0, 0, 10, 10))


def test_format_data_hex():
    assert format_data(b"\x01\xab", True) == "01 AB"


def test_format_data_text_marks_newlines():
    assert format_data(b"hi\r\n", False) == "hi↵"
    assert "\r" not in format_data(b"a\rb", False)


def test_mode_indicator():
    assert mode_indicator(Mode.NORMAL) == "[NORMAL]"
    assert mode_indicator(Mode.INSERT) == "[INSERT]"
    assert mode_indicator(Mode.COMMAND) == "[COMMAND]"
    assert mode_indicator(Mode.HELP) == ""


def test_header_disconnected():
    text = header_text(App())
    assert "Not connected" in text
    assert "Disconnected" in text
    assert text.endswith("--:--:--")


def test_header_connected():
    app = App(default_baud=115200)
    app.connected_port = "COM1"
    app.connect_time = None
    text = header_text(app)
    assert "COM1 @ 115200" in text
    assert "| Connected |" in text


def test_status_text_default_and_message():
    app = App()
    assert " Ready " in status_text(app)
    assert status_text(app).endswith(KEYBINDS)
    app.status_message = "Sent: x"
    assert "Sent: x" in status_text(app)


def test_help_lines():
    lines = help_lines()
    assert lines[0] == "Keybindings"
    assert lines[-1] == "Press Esc or F1 to close"
    assert "  :refresh   - Refresh port list" in lines


def test_config_lines():
    app = App(theme_name="nord", default_baud=19200, default_timeout_ms=250, history_size=7)
    lines = config_lines(app)
    assert "Theme: nord" in lines
    assert "Default Baud: 19200" in lines
    assert "Timeout: 250 ms" in lines
    assert "History Size: 7" in lines


@pytest.mark.parametrize("width,height", [(80, 24), (100, 40), (10, 3), (1, 1)])
def test_render_dimensions(width, height):
    lines = render_lines(App(), width, height)
    assert len(lines) == height
    assert all(len(line) == width for line in lines)


def test_render_rejects_empty_screen():
    with pytest.raises(ValueError):
        render_lines(App(), 0, 10)


def test_render_normal_screen():
    lines = render_lines(App(), 80, 24)
    screen = "\n".join(lines)
    assert "[NORMAL]" in screen
    assert " Ports " in screen
    assert " Terminal " in screen
    assert lines[-1].startswith(" Ready ")


def test_render_rx_and_tx_data():
    app = App()
    app.add_rx_data(b"hello")
    app.handle_key_text = None
    screen = "\n".join(render_lines(app, 80, 24))
    assert "RX: hello" in screen


def test_render_hex_view():
    app = App()
    app.show_hex = True
    app.add_rx_data(b"\x01\xab")
    screen = "\n".join(render_lines(app, 80, 24))
    assert "Terminal (Hex)" in screen
    assert "RX: 01 AB" in screen


def test_render_scroll_offset_skips_lines():
    app = App()
    app.add_rx_data(b"first")
    app.add_rx_data(b"second")
    app.scroll_offset = 1
    screen = "\n".join(render_lines(app, 80, 24))
    assert "RX: first" not in screen
    assert "RX: second" in screen


def test_render_port_list_markers():
    app = App()
    app.available_ports = ["COM1", "COM2"]
    app.selected_port = 0
    app.connected_port = "COM2"
    screen = "\n".join(render_lines(app, 80, 24))
    assert "> COM1" in screen
    assert "● COM2" in screen


def test_render_command_input():
    app = App()
    app.mode = Mode.COMMAND
    app.input = "quit"
    screen = "\n".join(render_lines(app, 80, 24))
    assert ":quit" in screen
    assert "[COMMAND]" in screen


def test_render_help_overlay():
    app = App()
    app.mode = Mode.HELP
    screen = "\n".join(render_lines(app, 100, 40))
    assert "Keybindings" in screen
    assert " Help " in screen


def test_render_config_overlay():
    app = App(default_baud=57600)
    app.mode = Mode.CONFIG_EDIT
    screen = "\n".join(render_lines(app, 100, 40))
    assert "Configuration" in screen
    assert "Default Baud: 57600" in screen


def test_focused_panel():
    app = App()
    app.focus = FocusArea.PORT_LIST
    assert focused_panel(app) is FocusArea.PORT_LIST
    app.mode = Mode.INSERT
    assert focused_panel(app) is FocusArea.INPUT