"""Chunked file-to-transport copy with flow control and cancellation."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from common.constants import FLUSH_INTERVAL_BYTES
from delivery.exceptions import OpenFailureError
from delivery.transports import TransportSink

logger = logging.getLogger(__name__)


class TransferState(Enum):
    OPEN = "open"
    SEEKING = "seeking"
    TRANSMITTING = "transmitting"
    CLOSED = "closed"


@dataclass(frozen=True)
class TransferResult:
    """
    Outcome of one transfer.
    """
    bytes_sent: int
    aborted: bool = False


class Transfer:
    """
    A single copy of [start, start + length) from a file into a sink.

    Each request gets its own Transfer, so the file handle and counters are
    never shared between requests.
    """

    def __init__(
        self,
        file_path: str,
        sink: TransportSink,
        start: int,
        length: int,
        chunk_size: int,
        flush_interval: int = FLUSH_INTERVAL_BYTES,
    ):
        self.file_path = file_path
        self.sink = sink
        self.start = start
        self.length = length
        self.chunk_size = chunk_size
        self.flush_interval = flush_interval
        self.state = TransferState.OPEN
        self.bytes_sent = 0
        self._handle = None

    def open(self) -> None:
        """
        Open the source file for binary reading.

        Raises:
            OpenFailureError: If the file vanished or became unreadable since the probe
        """
        try:
            self._handle = open(self.file_path, "rb")
        except OSError as e:
            self.state = TransferState.CLOSED
            logger.error(f"Cannot open {self.file_path} for reading: {e}")
            raise OpenFailureError("Cannot open file for reading") from e

    def run(self, status: int, headers: List[Tuple[str, str]]) -> TransferResult:
        """
        Commit the response head and copy the byte window to the sink.

        The handle is closed and the sink flushed on every exit path,
        including a client disconnect or a read error.

        Args:
            status: HTTP status to send
            headers: Response headers to send

        Returns:
            TransferResult with the byte count and whether the client went away
        """
        if self._handle is None:
            self.open()

        aborted = False
        unflushed = 0

        try:
            self.sink.start_response(status, headers)

            if self.start > 0:
                self.state = TransferState.SEEKING
                self._handle.seek(self.start)

            self.state = TransferState.TRANSMITTING

            while self.bytes_sent < self.length:
                if not self.sink.is_connected():
                    aborted = True
                    logger.info(
                        f"Client disconnected after {self.bytes_sent}/{self.length} bytes of {self.file_path}"
                    )
                    break

                buffer = self._handle.read(min(self.chunk_size, self.length - self.bytes_sent))
                if not buffer:
                    # File shrank underneath us; what was sent is all there is.
                    logger.warning(
                        f"Reached end of {self.file_path} after {self.bytes_sent}/{self.length} bytes"
                    )
                    break

                self.sink.write(buffer)
                self.bytes_sent += len(buffer)
                unflushed += len(buffer)

                if unflushed >= self.flush_interval:
                    self.sink.flush()
                    unflushed = 0
        except OSError as e:
            logger.error(
                f"I/O error streaming {self.file_path} after {self.bytes_sent}/{self.length} bytes: {e}"
            )
            raise
        finally:
            self._handle.close()
            self.state = TransferState.CLOSED
            self.sink.flush()

        return TransferResult(bytes_sent=self.bytes_sent, aborted=aborted)


class StreamingEngine:
    """
    Streams byte windows of files to transport sinks in bounded chunks.

    Memory use per transfer is bounded by the chunk size, never by the
    file size.
    """

    def __init__(self, flush_interval: int = FLUSH_INTERVAL_BYTES):
        if flush_interval <= 0:
            raise ValueError(f"flush_interval must be positive, got {flush_interval}")
        self.flush_interval = flush_interval

    def transmit(
        self,
        file_path: str,
        sink: TransportSink,
        status: int,
        headers: List[Tuple[str, str]],
        start: int,
        length: int,
        chunk_size: int,
    ) -> TransferResult:
        """
        Open the file, then send the head and the requested bytes.

        Args:
            file_path: Absolute path of the file
            sink: Destination transport
            status: HTTP status code (200 or 206)
            headers: Response headers
            start: First byte offset
            length: Number of bytes to send
            chunk_size: Maximum bytes per read/write

        Returns:
            TransferResult

        Raises:
            OpenFailureError: If the file cannot be opened; nothing has been sent to the sink
        """
        transfer = Transfer(
            file_path=file_path,
            sink=sink,
            start=start,
            length=length,
            chunk_size=chunk_size,
            flush_interval=self.flush_interval,
        )
        transfer.open()
        result = transfer.run(status, headers)

        logger.info(
            f"Transfer of {file_path} finished: {result.bytes_sent}/{length} bytes"
            f"{' (client disconnected)' if result.aborted else ''}"
        )
        return result
