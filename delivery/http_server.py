"""Standalone http.server host for deployments without an ASGI server."""

import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import unquote, urlparse

from common.logging_config import setup_logging
from delivery import config
from delivery.deps import build_delivery
from delivery.exceptions import FileMissingError
from delivery.headers import error_headers
from delivery.service import Delivery
from delivery.transports import HandlerTransport
from delivery.utils import resolve_under_root

logger = logging.getLogger(__name__)


class DeliveryRequestHandler(BaseHTTPRequestHandler):
    """
    Serves GET requests for files below root through Delivery.stream.

    Subclasses bind delivery and root; see make_server.
    """

    delivery: Delivery
    root: str

    def do_GET(self):
        transport = HandlerTransport(self)
        relative_path = unquote(urlparse(self.path).path)

        try:
            file_path = resolve_under_root(self.root, relative_path)
        except FileMissingError as exc:
            logger.warning(f"Rejected path {relative_path}: {exc}")
            transport.start_response(exc.status_code, error_headers(exc))
            transport.flush()
            return

        self.delivery.stream(file_path, transport, range_header=self.headers.get("Range"))

    def log_message(self, format, *args):
        logger.info(f"{self.address_string()} - {format % args}")


def make_server(delivery: Delivery, root: str, host: str, port: int) -> ThreadingHTTPServer:
    """
    Create a threaded HTTP server delivering files from root.

    Args:
        delivery: Configured Delivery instance
        root: Directory files are served from
        host: Interface to bind
        port: Port to bind (0 picks a free port)

    Returns:
        Bound, not yet serving, ThreadingHTTPServer
    """
    handler = type(
        "BoundDeliveryRequestHandler",
        (DeliveryRequestHandler,),
        {"delivery": delivery, "root": root},
    )
    return ThreadingHTTPServer((host, port), handler)


def main():
    """Run the http.server host configured from DELIVERY_* settings."""
    setup_logging('delivery')
    server = make_server(
        build_delivery(), config.DELIVERY_ROOT, config.DELIVERY_HOST, config.DELIVERY_PORT
    )
    logger.info(
        f"Serving {config.DELIVERY_ROOT} on {config.DELIVERY_HOST}:{config.DELIVERY_PORT}"
    )
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
