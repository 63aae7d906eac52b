"""Serial terminal state and text rendering, and WebSocket streaming of serial port data."""

__version__ = "3.2.0"