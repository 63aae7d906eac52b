"""JSON messages exchanged with WebSocket clients of the serial stream."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class CommandError(ValueError):
    """Raised when a client command cannot be parsed."""


class PortStatusState(Enum):
    """Whether the serial port is open or closed."""

    OPEN = "Open"
    CLOSED = "Closed"


@dataclass(frozen=True)
class PortMetrics:
    """Counters describing an open port."""

    bytes_read_total: int
    bytes_written_total: int
    open_duration_ms: int
    last_activity_ms: int
    timeout_streak: int

    def to_dict(self) -> dict[str, int]:
        return {
            "bytes_read_total": self.bytes_read_total,
            "bytes_written_total": self.bytes_written_total,
            "open_duration_ms": self.open_duration_ms,
            "last_activity_ms": self.last_activity_ms,
            "timeout_streak": self.timeout_streak,
        }


@dataclass(frozen=True)
class DataMessage:
    """Data received from the serial port."""

    data: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "data", "data": self.data, "timestamp": self.timestamp}


@dataclass(frozen=True)
class StatusMessage:
    """A port status update, with metrics when the port is open."""

    state: PortStatusState
    metrics: PortMetrics | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": "status", "state": self.state.value}
        if self.metrics is not None:
            result["metrics"] = self.metrics.to_dict()
        return result


@dataclass(frozen=True)
class ErrorMessage:
    """An error notification."""

    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "error", "message": self.message}


Message = Union[DataMessage, StatusMessage, ErrorMessage]


@dataclass(frozen=True)
class WriteCommand:
    """Request to write data to the serial port."""

    data: str


@dataclass(frozen=True)
class SubscribeCommand:
    """Request to receive the serial data stream."""


@dataclass(frozen=True)
class UnsubscribeCommand:
    """Request to stop receiving the serial data stream."""


Command = Union[WriteCommand, SubscribeCommand, UnsubscribeCommand]


def parse_command(text: str) -> Command:
    """Parse a client command from JSON text, raising CommandError if invalid."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CommandError(str(exc)) from exc
    if not isinstance(payload, dict):
        raise CommandError("expected a JSON object")
    if "type" not in payload:
        raise CommandError("missing field `type`")
    kind = payload["type"]
    if kind == "write":
        if "data" not in payload:
            raise CommandError("missing field `data`")
        data = payload["data"]
        if not isinstance(data, str):
            raise CommandError("field `data` must be a string")
        return WriteCommand(data)
    if kind == "subscribe":
        return SubscribeCommand()
    if kind == "unsubscribe":
        return UnsubscribeCommand()
    raise CommandError(
        f"unknown variant `{kind}`, expected one of `write`, `subscribe`, `unsubscribe`"
    )


def encode_message(message: Message) -> str:
    """Serialise a message to compact JSON text."""
    return json.dumps(message.to_dict(), separators=(",", ":"), ensure_ascii=False)