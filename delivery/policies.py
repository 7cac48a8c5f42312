"""Disposition and chunk-size policies keyed on MIME type."""

from common.constants import (
    ARCHIVE_CHUNK_SIZE_BYTES,
    AUDIO_CHUNK_SIZE_BYTES,
    DEFAULT_CHUNK_SIZE_BYTES,
    IMAGE_CHUNK_SIZE_BYTES,
    VIDEO_CHUNK_SIZE_BYTES,
)

INLINE_TYPES = frozenset({
    "application/pdf",
    "text/plain",
    "text/csv",
})

ARCHIVE_MARKERS = ("zip", "compressed", "tar")


def should_force_download(mime_type: str) -> bool:
    """
    Decide whether a file should be saved rather than shown in the browser.

    Images, audio/video (native players), PDF, plain text and CSV render
    inline. Everything else, including archives, office documents and
    unknown types, is downloaded.

    Args:
        mime_type: Resolved MIME type

    Returns:
        True to send as attachment, False to display inline
    """
    if mime_type.startswith("image/"):
        return False

    if mime_type.startswith("video/") or mime_type.startswith("audio/"):
        return False

    if mime_type in INLINE_TYPES:
        return False

    return True


def chunk_size_for(mime_type: str) -> int:
    """
    Pick the read/write chunk size for a MIME type.

    Args:
        mime_type: Resolved MIME type

    Returns:
        Chunk size in bytes
    """
    if mime_type.startswith("video/"):
        return VIDEO_CHUNK_SIZE_BYTES

    if any(marker in mime_type for marker in ARCHIVE_MARKERS):
        return ARCHIVE_CHUNK_SIZE_BYTES

    if mime_type.startswith("audio/"):
        return AUDIO_CHUNK_SIZE_BYTES

    if mime_type.startswith("image/"):
        return IMAGE_CHUNK_SIZE_BYTES

    return DEFAULT_CHUNK_SIZE_BYTES
