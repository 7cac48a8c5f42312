"""Parses single-range HTTP Range headers against a file size."""

import logging
import re
from typing import Optional

from delivery.types import ByteRange

logger = logging.getLogger(__name__)

RANGE_PATTERN = re.compile(r"^bytes=(\d*)-(\d*)$")


def parse_range_header(range_header: Optional[str], size: int) -> Optional[ByteRange]:
    """
    Resolve a Range header into a validated byte window.

    Only the single-range form bytes=<start>-<end> is recognized. A missing
    start means 0 and a missing end means the last byte. Anything else
    (multiple ranges, other units, junk) means no range was requested.

    Args:
        range_header: Raw Range header value, or None
        size: File size in bytes

    Returns:
        ByteRange to serve, or None to serve the full entity

    Raises:
        RangeNotSatisfiableError: If the range is reversed or outside the file
    """
    if not range_header:
        return None

    match = RANGE_PATTERN.match(range_header.strip())
    if not match:
        logger.debug(f"Ignoring unsupported Range header: {range_header!r}")
        return None

    raw_start, raw_end = match.groups()
    start = int(raw_start) if raw_start else 0
    end = int(raw_end) if raw_end else size - 1

    return ByteRange.within(start, end, size)
