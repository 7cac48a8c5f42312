"""Builds the response headers for a delivery."""

import re
from typing import List, Tuple
from urllib.parse import quote

from common.constants import EXPIRES_IN_PAST, FALLBACK_MIME_TYPE
from delivery.exceptions import DeliveryException, RangeNotSatisfiableError
from delivery.types import ByteRange, DeliveryOptions

Headers = List[Tuple[str, str]]

DANGEROUS_TYPES = frozenset({
    "text/html",
    "text/javascript",
    "application/javascript",
    "application/x-javascript",
    "application/x-httpd-php",
})

UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def cache_headers() -> Headers:
    return [
        ("Expires", EXPIRES_IN_PAST),
        ("Cache-Control", "no-cache, must-revalidate, max-age=0, no-store, private"),
        ("Pragma", "no-cache"),
    ]


def security_headers() -> Headers:
    return [
        ("X-Robots-Tag", "noindex, nofollow"),
        ("X-Content-Type-Options", "nosniff"),
    ]


def effective_content_type(mime_type: str, inline: bool) -> Tuple[str, bool]:
    """
    Apply the dangerous-type override.

    Markup and script types are never rendered by the browser: they are
    sent as application/octet-stream attachments whatever the caller asked.

    Returns:
        (content type, inline flag) to actually send
    """
    if mime_type.lower() in DANGEROUS_TYPES:
        return FALLBACK_MIME_TYPE, False
    return mime_type, inline


def sanitize_filename(filename: str) -> str:
    return UNSAFE_FILENAME_CHARS.sub("_", filename)


def content_disposition(filename: str, inline: bool) -> str:
    """
    Format a Content-Disposition value.

    The plain filename parameter carries the sanitized name. When
    sanitizing changed it, an RFC 5987 filename* parameter carries the
    original name percent-encoded as UTF-8.

    Args:
        filename: Name the client should see
        inline: True for inline, False for attachment

    Returns:
        Header value
    """
    disposition = "inline" if inline else "attachment"
    safe_filename = sanitize_filename(filename)

    if safe_filename != filename:
        return (
            f'{disposition}; filename="{safe_filename}"; '
            f"filename*=UTF-8''{quote(filename, safe='')}"
        )
    return f'{disposition}; filename="{safe_filename}"'


def download_headers(options: DeliveryOptions) -> Headers:
    """
    Headers shared by streamed and offloaded deliveries.

    Args:
        options: Resolved delivery options

    Returns:
        Ordered header list: cache, security, content type, transfer
        description and disposition
    """
    content_type, inline = effective_content_type(options.mime_type, not options.force_download)

    headers = cache_headers()
    headers.extend(security_headers())
    headers.extend([
        ("Content-Type", content_type),
        ("Content-Description", "File Transfer"),
        ("Content-Transfer-Encoding", "binary"),
        ("Content-Encoding", "identity"),
        ("Content-Disposition", content_disposition(options.filename, inline)),
    ])
    return headers


def full_content_headers(size: int, enable_range: bool) -> Headers:
    return [
        ("Accept-Ranges", "bytes" if enable_range else "none"),
        ("Content-Length", str(size)),
    ]


def partial_content_headers(byte_range: ByteRange, size: int) -> Headers:
    return [
        ("Accept-Ranges", "bytes"),
        ("Content-Range", f"bytes {byte_range.start}-{byte_range.end}/{size}"),
        ("Content-Length", str(byte_range.length)),
    ]


def error_headers(exc: DeliveryException) -> Headers:
    """
    Headers for a body-less error response.

    Args:
        exc: The delivery error being reported

    Returns:
        Header list; 416 responses carry Content-Range: bytes */<size>
    """
    headers = cache_headers()
    headers.extend(security_headers())
    if isinstance(exc, RangeNotSatisfiableError):
        headers.append(("Content-Range", exc.content_range))
    headers.append(("Content-Length", "0"))
    return headers
