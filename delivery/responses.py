"""ASGI bridge running the blocking streaming engine under FastAPI."""

import logging
import os
import threading
import time
from typing import List, Optional, Tuple

import anyio
import anyio.from_thread
import anyio.to_thread
from starlette.background import BackgroundTask
from starlette.responses import JSONResponse, Response
from starlette.types import Receive, Scope, Send

from delivery.exceptions import (
    DeliveryException,
    FileMissingError,
    FileNotReadableError,
    InvalidOptionError,
    OpenFailureError,
    RangeNotSatisfiableError,
)
from delivery.headers import error_headers
from delivery.schemas.common import ErrorResponse
from delivery.service import Delivery, DeliveryPlan

logger = logging.getLogger(__name__)

ERROR_CODES = {
    FileMissingError: "FILE_NOT_FOUND",
    FileNotReadableError: "FILE_NOT_READABLE",
    OpenFailureError: "OPEN_FAILURE",
    RangeNotSatisfiableError: "RANGE_NOT_SATISFIABLE",
    InvalidOptionError: "INVALID_OPTION",
}


def error_code(exc: DeliveryException) -> str:
    return ERROR_CODES.get(type(exc), "INTERNAL_ERROR")


def error_response(exc: DeliveryException) -> Response:
    """
    Render a delivery error.

    416 responses have an empty body and carry Content-Range; other
    errors return an ErrorResponse JSON body.

    Args:
        exc: Delivery error to render

    Returns:
        Starlette response
    """
    headers = {name: value for name, value in error_headers(exc) if name != "Content-Length"}

    if isinstance(exc, RangeNotSatisfiableError):
        return Response(status_code=exc.status_code, headers=headers)

    body = ErrorResponse(detail=str(exc), code=error_code(exc))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=headers)


class ASGITransport:
    """
    TransportSink writing ASGI messages from a worker thread.

    Every call blocks the worker until the event loop has handed the
    message to the server, so at most one chunk is in flight.
    """

    def __init__(self, send: Send):
        self._send = send
        self._disconnected = threading.Event()
        self.started = False

    def mark_disconnected(self) -> None:
        self._disconnected.set()

    def start_response(self, status: int, headers: List[Tuple[str, str]]) -> None:
        raw_headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in headers
        ]
        self._call({"type": "http.response.start", "status": status, "headers": raw_headers})
        self.started = True

    def write(self, data: bytes) -> None:
        self._call({"type": "http.response.body", "body": data, "more_body": True})

    def flush(self) -> None:
        # Messages reach the server as soon as they are sent.
        pass

    def is_connected(self) -> bool:
        return not self._disconnected.is_set()

    def _call(self, message: dict) -> None:
        anyio.from_thread.run(self._send, message)


class DeliveryResponse(Response):
    """
    Response that carries out a DeliveryPlan.

    The engine runs in a worker thread while a task on the event loop
    watches for http.disconnect and flips the transport's liveness.
    """

    def __init__(
        self,
        delivery: Delivery,
        plan: DeliveryPlan,
        background: Optional[BackgroundTask] = None,
    ):
        self.delivery = delivery
        self.plan = plan
        self.status_code = plan.status
        self.background = background
        self.init_headers(dict(plan.headers))

    async def _watch_disconnect(self, receive: Receive, transport: ASGITransport) -> None:
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                transport.mark_disconnected()
                break

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        transport = ASGITransport(send)
        failure = None
        result = None
        start_time = time.time()

        async with anyio.create_task_group() as task_group:
            task_group.start_soon(self._watch_disconnect, receive, transport)
            try:
                result = await anyio.to_thread.run_sync(self.delivery.deliver, self.plan, transport)
            except Exception as exc:
                failure = exc
            finally:
                task_group.cancel_scope.cancel()

        if failure is not None:
            if isinstance(failure, DeliveryException) and not transport.started:
                await error_response(failure)(scope, receive, send)
                return
            raise failure

        if transport.started:
            await send({"type": "http.response.body", "body": b"", "more_body": False})

        duration = time.time() - start_time
        logger.info(
            f"Delivery finished: {os.path.basename(self.plan.file_path)} status={self.status_code} "
            f"bytes={result.bytes_sent} aborted={result.aborted} duration={duration:.3f}s"
        )

        if self.background is not None:
            await self.background()
