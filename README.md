# serialterm

Building blocks for working with serial devices from Python:

- the state model of an interactive serial terminal (modes, key handling,
  input editing, history, a bounded receive buffer, port selection),
- plain-text rendering of that terminal,
- an aiohttp WebSocket endpoint, `/ws/serial`, that streams data read
  from an open serial port to its clients and accepts writes from them.

It needs `aiohttp` and `pyserial`.

## Modules

### `serialterm.theme`

`Theme` is a frozen dataclass of RGB tuples (`bg`, `fg`, `rx_color`,
`tx_color`, `error_color`, `success_color`, `warning_color`, `border`,
`selection`, `cursor`, `inactive`, `accent`). Five themes are defined:
`dark`, `light`, `solarized`, `dracula` and `nord`, collected in `THEMES`.

```python
from serialterm.theme import default_theme, theme_by_name

theme_by_name("nord").accent   # (180, 142, 173)
theme_by_name("missing")       # None
default_theme().name           # "dark"
```

### `serialterm.events`

Event dataclasses: `Tick`, `Key` (wrapping a `KeyEvent`), `Mouse`,
`Resize`, `SerialRx`, `PortConnected`, `PortDisconnected` and
`ErrorEvent`. `KeyEvent` holds a `KeyCode`, a character for
`KeyCode.CHAR` and a `ctrl` flag; `KeyEvent.from_char("q")` builds one.

`EventHandler(tick_rate=0.033, source=None)` runs a background thread
that queues a `Tick` every `tick_rate` seconds. If a `source` callable is
given, it is called with the number of seconds it may wait and whatever
event it returns is queued; an exception it raises becomes an
`ErrorEvent`.

```python
from serialterm.events import EventHandler, SerialRx

with EventHandler(tick_rate=0.05) as events:
    events.send(SerialRx(b"OK\r\n"))
    event = events.next(timeout=1.0)
```

`next(timeout)` blocks and raises `TimeoutError` if nothing arrives in
time, or `EOFError` after `close()`. `try_next()` returns `None` when the
queue is empty.

### `serialterm.app`

`App(theme_name="dark", history_size=100, default_baud=9600,
default_timeout_ms=1000, buffer_size=1000)` holds the terminal state.
Feed it keys with `handle_key(KeyEvent)` or any event with
`handle_event(event)`.

- **Normal mode**: `q` quits, `i` enters insert mode, `:` enters command
  mode, Ctrl+H toggles hex view, Ctrl+L clears the buffer, F1 or `?`
  opens help, Tab cycles focus (port list → terminal → input), Up/Down
  and PageUp/PageDown scroll, `j`/`k` move the port selection, Enter
  connects the selected port when the port list has focus and otherwise
  enters insert mode.
- **Insert mode**: a text field with cursor movement (Left, Right, Home,
  End), Backspace and Delete, history with Up/Down, and Enter to send.
  Sending records the line in the history (skipping an immediate
  repeat, keeping at most `history_size` lines) and appends it with
  `\r\n` to the buffer as a TX line. Esc returns to normal mode.
- **Command mode**: `:q`/`:quit`, `:config`, `:hex`, `:clear`, `:help`
  and `:refresh`; anything else sets an "Unknown command" status.

`add_rx_data(data)` appends a received chunk; the buffer keeps the last
`buffer_size` lines. `refresh_ports()` lists the system's serial ports
through pyserial. `uptime_string()` gives `HH:MM:SS` since connecting, or
`--:--:--`.

### `serialterm.ui`

Turns an `App` into text.

- `render_lines(app, width, height)` draws the whole interface (header,
  port list, terminal panel, input box, status bar, and the help or
  config overlay when open) as `height` strings of `width` characters.
- `header_text`, `status_text`, `help_lines`, `config_lines` and
  `mode_indicator` produce the individual pieces.
- `format_data(data, show_hex)` shows bytes as `"4F 4B"` or as text with
  `\r` dropped and `\n` shown as `↵`.
- `Rect` and `centered_rect(percent_x, percent_y, area)` are the layout
  helpers.

### `serialterm.messages`

The JSON protocol of the WebSocket endpoint. `parse_command(text)`
returns a `WriteCommand`, `SubscribeCommand` or `UnsubscribeCommand`,
and raises `CommandError` (a `ValueError`) for anything else.
`encode_message` turns a `DataMessage`, `StatusMessage` or
`ErrorMessage` into compact JSON.

```python
from serialterm.messages import ErrorMessage, encode_message, parse_command

parse_command('{"type": "write", "data": "hello"}')   # WriteCommand(data='hello')
encode_message(ErrorMessage("Port not open"))        # '{"type":"error","message":"Port not open"}'
```

### `serialterm.streaming`

- `OpenPort` wraps any object with pyserial's `read(size)` and
  `write(data)`, plus its terminator (default `"\n"`), optional idle
  limit and byte/timeout counters.
- `SerialState` holds the current port behind a lock; `open(port)` and
  `close()` change it.
- `Broadcaster` fans messages out to subscriber queues.
- `status_message`, `write_data` and `poll_serial` are the operations the
  server performs; `serial_reader` polls the port every 50 ms and
  publishes the results.
- `create_app(state)` returns an aiohttp application serving
  `/ws/serial` and running the reader while the application is up.

## The WebSocket protocol

From the client:

```json
{"type": "write", "data": "AT"}
{"type": "subscribe"}
{"type": "unsubscribe"}
```

From the server:

```json
{"type": "status", "state": "Open", "metrics": {"bytes_read_total": 0, "bytes_written_total": 3, "open_duration_ms": 0, "last_activity_ms": 0, "timeout_streak": 0}}
{"type": "status", "state": "Closed"}
{"type": "data", "data": "OK", "timestamp": "2024-01-01T00:00:00+00:00"}
{"type": "error", "message": "Port not open"}
```

- On connecting, a client receives the current status.
- A `write` appends the port's terminator unless the data already ends
  with it, and is answered with an `Open` status carrying the written
  byte total, or with an error if the port is closed or the write fails.
- Data read from the port, decoded as UTF-8 with trailing terminators
  removed, is forwarded to a client while it is subscribed. Each client
  buffers up to 100 messages; when older ones are dropped the client is
  sent `Lagged: N messages skipped`.
- A port idle longer than its `idle_disconnect_ms` is closed and a
  `Closed` status is broadcast. Read errors other than timeouts are
  broadcast as `error` messages.
- Malformed commands are answered with a `Command error: ...` message.

## Serving serial data

```python
import serial
from aiohttp import web

from serialterm.streaming import OpenPort, SerialState, create_app

state = SerialState()
device = serial.Serial("/dev/ttyUSB0", 115200, timeout=0.05)
state.open(OpenPort(port=device, port_name="/dev/ttyUSB0"))
web.run_app(create_app(state))
```

## What it does not do

- There is no command-line program. The terminal model has no screen
  loop of its own: drive `App` with events and draw it with
  `render_lines` in your own program.
- `App` does not open serial ports. Sending input only records it in the
  buffer and history, and connecting the selected port only marks it as
  connected; Tab in insert mode offers no completions.
- The WebSocket endpoint does not open or configure ports itself; it
  serves whatever port is set on its `SerialState`. There is no REST
  interface and no storage of sessions or transcripts.

## Tests

```
pip install -e ".[test]"
pytest
```