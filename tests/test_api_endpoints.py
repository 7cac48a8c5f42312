"""Tests for the delivery API endpoints."""

import os
from unittest.mock import patch

import anyio
import pytest
from fastapi.testclient import TestClient

from delivery import responses, streaming
from delivery.deps import get_delivery, get_delivery_root
from delivery.main import app
from delivery.service import Delivery
from delivery.types import ServerEnvironment


@pytest.fixture
def files_root(tmp_path, payload):
    """
    Create a delivery root with a few files.

    Args:
        tmp_path: pytest tmp_path fixture
        payload: 1000-byte test data

    Returns:
        Path to the root directory
    """
    root = tmp_path / 'root'
    root.mkdir()
    (root / 'sample.bin').write_bytes(payload)
    (root / 'photo.png').write_bytes(b'\x89PNG\r\n\x1a\n' + b'\0' * 100)
    (root / 'docs').mkdir()
    (root / 'docs' / 'guide.pdf').write_bytes(b'%PDF-1.7')
    return root


@pytest.fixture
def client(files_root):
    """Create FastAPI test client serving files_root with no offload."""
    app.dependency_overrides[get_delivery] = lambda: Delivery()
    app.dependency_overrides[get_delivery_root] = lambda: str(files_root)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_endpoint(client):
    """Test health check endpoint."""
    response = client.get('/')
    assert response.status_code == 200
    assert response.json() == {'status': 'running', 'service': 'delivery'}


def test_full_download(client, payload):
    response = client.get('/files/sample.bin')

    assert response.status_code == 200
    assert response.content == payload
    assert response.headers['content-length'] == '1000'
    assert response.headers['accept-ranges'] == 'bytes'
    assert response.headers['content-type'] == 'application/octet-stream'
    assert response.headers['content-disposition'] == 'attachment; filename="sample.bin"'
    assert response.headers['x-content-type-options'] == 'nosniff'
    assert 'x-request-id' in response.headers


def test_range_download(client, payload):
    response = client.get('/files/sample.bin', headers={'Range': 'bytes=0-99'})

    assert response.status_code == 206
    assert response.headers['content-range'] == 'bytes 0-99/1000'
    assert response.headers['content-length'] == '100'
    assert response.content == payload[:100]


def test_range_not_satisfiable(client):
    response = client.get('/files/sample.bin', headers={'Range': 'bytes=2000-3000'})

    assert response.status_code == 416
    assert response.headers['content-range'] == 'bytes */1000'
    assert response.content == b''


def test_nested_path(client):
    response = client.get('/files/docs/guide.pdf')

    assert response.status_code == 200
    assert response.content == b'%PDF-1.7'
    assert response.headers['content-disposition'] == 'inline; filename="guide.pdf"'


def test_missing_file(client):
    response = client.get('/files/nothing-here.zip')

    assert response.status_code == 404
    assert response.json()['code'] == 'FILE_NOT_FOUND'


def test_symlink_outside_root_is_not_served(client, files_root, tmp_path):
    outside = tmp_path / 'outside.txt'
    outside.write_text('secret')
    os.symlink(outside, files_root / 'link.txt')

    response = client.get('/files/link.txt')

    assert response.status_code == 404


def test_download_override(client):
    response = client.get('/files/photo.png', params={'download': 'true'})

    assert response.status_code == 200
    assert response.headers['content-disposition'] == 'attachment; filename="photo.png"'


def test_filename_override(client):
    response = client.get('/files/sample.bin', params={'filename': 'Quarterly report.bin'})

    assert response.headers['content-disposition'] == (
        'attachment; filename="Quarterly_report.bin"; '
        "filename*=UTF-8''Quarterly%20report.bin"
    )


def test_range_disabled_by_query(client, payload):
    response = client.get(
        '/files/sample.bin',
        params={'range': 'false'},
        headers={'Range': 'bytes=0-99'}
    )

    assert response.status_code == 200
    assert response.headers['accept-ranges'] == 'none'
    assert response.content == payload


def test_chunk_size_validation(client):
    """Test that request validation rejects a non-positive chunk size."""
    response = client.get('/files/sample.bin', params={'chunk_size': 0})

    assert response.status_code == 422


def test_small_chunk_size(client, payload):
    response = client.get('/files/sample.bin', params={'chunk_size': 7})

    assert response.content == payload


def test_xsendfile_offload(files_root, monkeypatch):
    def forbidden_open(*args, **kwargs):
        raise AssertionError('file should not be opened')

    monkeypatch.setattr(streaming, 'open', forbidden_open, raising=False)
    delivery = Delivery(environment=ServerEnvironment(
        software='Apache/2.4',
        modules=frozenset({'mod_xsendfile'})
    ))
    app.dependency_overrides[get_delivery] = lambda: delivery
    app.dependency_overrides[get_delivery_root] = lambda: str(files_root)
    try:
        response = TestClient(app).get('/files/sample.bin')
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.headers['x-sendfile'] == os.path.realpath(files_root / 'sample.bin')
    assert response.content == b''


def test_open_failure(client, monkeypatch):
    def failing_open(*args, **kwargs):
        raise PermissionError('permission denied')

    monkeypatch.setattr(streaming, 'open', failing_open, raising=False)

    response = client.get('/files/sample.bin')

    assert response.status_code == 500
    assert response.json()['code'] == 'OPEN_FAILURE'


def test_mime_type_override(client):
    response = client.get('/files/sample.bin', params={'mime_type': 'image/webp'})

    assert response.status_code == 200
    assert response.headers['content-type'] == 'image/webp'
    assert response.headers['content-disposition'] == 'inline; filename="sample.bin"'


def test_mime_type_override_cannot_render_markup(client):
    response = client.get('/files/sample.bin', params={'mime_type': 'text/html'})

    assert response.headers['content-type'] == 'application/octet-stream'
    assert response.headers['content-disposition'].startswith('attachment;')


def test_xsendfile_offload_non_latin1_name(files_root):
    (files_root / '日本.pdf').write_bytes(b'%PDF-1.7')
    delivery = Delivery(environment=ServerEnvironment(
        software='Apache/2.4',
        modules=frozenset({'mod_xsendfile'})
    ))
    app.dependency_overrides[get_delivery] = lambda: delivery
    app.dependency_overrides[get_delivery_root] = lambda: str(files_root)
    try:
        response = TestClient(app).get('/files/日本.pdf')
    finally:
        app.dependency_overrides.clear()

    raw_headers = {name.lower(): value for name, value in response.headers.raw}
    assert response.status_code == 200
    assert raw_headers[b'x-sendfile'] == os.fsencode(os.path.realpath(files_root / '日本.pdf'))
    assert response.content == b''


def test_delivery_logs_completion_after_body(client, payload):
    with patch.object(responses, 'logger') as mock_logger:
        response = client.get('/files/sample.bin')

    assert response.content == payload
    messages = [call.args[0] for call in mock_logger.info.call_args_list]
    assert any(
        message.startswith('Delivery finished: sample.bin status=200 bytes=1000 aborted=False')
        for message in messages
    )


def test_client_disconnect_stops_asgi_transfer(files_root):
    """Test that http.disconnect from the server ends the transfer early."""
    size = 8 * 1024 * 1024
    (files_root / 'large.bin').write_bytes(b'\0' * size)
    app.dependency_overrides[get_delivery] = lambda: Delivery()
    app.dependency_overrides[get_delivery_root] = lambda: str(files_root)

    sent = []
    scope = {
        'type': 'http',
        'asgi': {'version': '3.0', 'spec_version': '2.3'},
        'http_version': '1.1',
        'method': 'GET',
        'scheme': 'http',
        'path': '/files/large.bin',
        'raw_path': b'/files/large.bin',
        'root_path': '',
        'query_string': b'chunk_size=65536',
        'headers': [(b'host', b'testserver')],
        'client': ('testclient', 50000),
        'server': ('testserver', 80),
    }

    async def run_request():
        first_chunk = anyio.Event()
        request_read = False

        async def receive():
            nonlocal request_read
            if not request_read:
                request_read = True
                return {'type': 'http.request', 'body': b'', 'more_body': False}
            await first_chunk.wait()
            return {'type': 'http.disconnect'}

        async def send(message):
            sent.append(message)
            if message['type'] == 'http.response.body' and message.get('body'):
                first_chunk.set()
                await anyio.sleep(0.01)

        await app(scope, receive, send)

    try:
        anyio.run(run_request)
    finally:
        app.dependency_overrides.clear()

    starts = [message for message in sent if message['type'] == 'http.response.start']
    body_bytes = sum(
        len(message.get('body', b'')) for message in sent
        if message['type'] == 'http.response.body'
    )
    assert starts[0]['status'] == 200
    assert 0 < body_bytes < size
