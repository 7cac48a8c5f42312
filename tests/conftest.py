"""Shared pytest fixtures for all tests."""

import pytest

from delivery.service import Delivery


class RecordingTransport:
    """
    In-memory TransportSink that records everything the engine does.

    disconnect_after, when set, makes the client go away once that many
    body bytes have been written.
    """

    def __init__(self, disconnect_after=None):
        self.status = None
        self.headers = []
        self.chunks = []
        self.flushes = 0
        self.start_calls = 0
        self.disconnect_after = disconnect_after

    def start_response(self, status, headers):
        self.start_calls += 1
        self.status = status
        self.headers = list(headers)

    def write(self, data):
        self.chunks.append(bytes(data))

    def flush(self):
        self.flushes += 1

    def is_connected(self):
        if self.disconnect_after is None:
            return True
        return len(self.body) < self.disconnect_after

    @property
    def body(self):
        return b''.join(self.chunks)

    def header(self, name):
        values = self.header_values(name)
        return values[0] if values else None

    def header_values(self, name):
        return [value for key, value in self.headers if key.lower() == name.lower()]


@pytest.fixture
def transport():
    """
    Create a recording transport.

    Returns:
        RecordingTransport with a live connection
    """
    return RecordingTransport()


@pytest.fixture
def payload():
    """
    1000 bytes of non-repeating test data.

    Returns:
        bytes of length 1000
    """
    return bytes(i % 251 for i in range(1000))


@pytest.fixture
def sample_file(tmp_path, payload):
    """
    Create a 1000-byte binary file.

    Args:
        tmp_path: pytest tmp_path fixture
        payload: File contents fixture

    Returns:
        Absolute path string of the file
    """
    file_path = tmp_path / 'sample.bin'
    file_path.write_bytes(payload)
    return str(file_path)


@pytest.fixture
def delivery():
    """
    Create a Delivery with no offload support.

    Returns:
        Delivery instance
    """
    return Delivery()
