"""Write destinations the streaming engine sends responses to."""

import logging
from typing import List, Protocol, Tuple

logger = logging.getLogger(__name__)

DISCONNECT_ERRORS = (BrokenPipeError, ConnectionResetError, ConnectionAbortedError)


class TransportSink(Protocol):
    """Headers, body and liveness of one HTTP response."""

    def start_response(self, status: int, headers: List[Tuple[str, str]]) -> None:
        ...

    def write(self, data: bytes) -> None:
        ...

    def flush(self) -> None:
        ...

    def is_connected(self) -> bool:
        ...


class HandlerTransport:
    """
    TransportSink over an http.server.BaseHTTPRequestHandler.

    A broken pipe while writing marks the client as gone; the engine
    notices on its next liveness check and stops.
    """

    def __init__(self, handler):
        self.handler = handler
        self._connected = True

    def start_response(self, status: int, headers: List[Tuple[str, str]]) -> None:
        self.handler.send_response(status)
        for name, value in headers:
            self.handler.send_header(name, value)
        self.handler.end_headers()

    def write(self, data: bytes) -> None:
        if not self._connected:
            return
        try:
            self.handler.wfile.write(data)
        except DISCONNECT_ERRORS:
            logger.info("Client disconnected during transfer")
            self._connected = False

    def flush(self) -> None:
        if not self._connected:
            return
        try:
            self.handler.wfile.flush()
        except DISCONNECT_ERRORS:
            logger.info("Client disconnected while flushing")
            self._connected = False

    def is_connected(self) -> bool:
        return self._connected
