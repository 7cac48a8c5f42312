"""Entry point for the delivery service."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request

from common.logging_config import setup_logging
from delivery.config import DELIVERY_HOST, DELIVERY_PORT
from delivery.exceptions import (
    DeliveryException,
    FileMissingError,
    FileNotReadableError,
    OpenFailureError,
    RangeNotSatisfiableError,
)
from delivery.responses import error_response
from delivery.routes.file_routes import router as file_router
from delivery.schemas.common import HealthResponse

logger = setup_logging('delivery')

app = FastAPI(
    title="Protected File Delivery",
    description="Streams pre-authorized files with range support and server offload",
    version="1.0.0"
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.

    Streamed file bodies are still being sent when call_next returns;
    DeliveryResponse logs the finished transfer itself.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    
    start_time = time.time()
    
    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )
    
    response = await call_next(request)
    
    duration = time.time() - start_time
    
    logger.info(
        f"Request handled: {request.method} {request.url.path} "
        f"status={response.status_code} handler_duration={duration:.3f}s [request_id={request_id}]"
    )
    
    response.headers["X-Request-ID"] = request_id
    
    return response


@app.exception_handler(FileMissingError)
async def file_missing_handler(request: Request, exc: FileMissingError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"File missing error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return error_response(exc)


@app.exception_handler(FileNotReadableError)
async def file_not_readable_handler(request: Request, exc: FileNotReadableError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"File not readable error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return error_response(exc)


@app.exception_handler(RangeNotSatisfiableError)
async def range_not_satisfiable_handler(request: Request, exc: RangeNotSatisfiableError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(
        f"Range not satisfiable: {exc} [request_id={request_id}] path={request.url.path} "
        f"range={request.headers.get('range')}"
    )
    return error_response(exc)


@app.exception_handler(OpenFailureError)
async def open_failure_handler(request: Request, exc: OpenFailureError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Open failure: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return error_response(exc)


@app.exception_handler(DeliveryException)
async def delivery_exception_handler(request: Request, exc: DeliveryException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Delivery exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return error_response(exc)


app.include_router(file_router)


@app.get("/", response_model=HealthResponse)
async def root():
    """
    Root endpoint for health check.
    """
    return HealthResponse(status="running", service="delivery")


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "delivery.main:app",
        host=DELIVERY_HOST,
        port=DELIVERY_PORT,
        log_level="info"
    )


if __name__ == "__main__":
    main()
