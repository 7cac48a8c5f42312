"""Stats the file to deliver and classifies its MIME type."""

import logging
import mimetypes
import os
from typing import Callable, Optional

from common.constants import FALLBACK_MIME_TYPE
from delivery.exceptions import FileMissingError, FileNotReadableError
from delivery.types import FileMetadata

logger = logging.getLogger(__name__)

MimeSniffer = Callable[[str], Optional[str]]

MIME_TYPES = {
    # Documents
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",

    # Media
    "mp3": "audio/mpeg",
    "ogg": "audio/ogg",
    "wav": "audio/wav",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "avi": "video/x-msvideo",

    # Images
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",

    # Archives
    "zip": "application/zip",
    "rar": "application/x-rar-compressed",
    "7z": "application/x-7z-compressed",
    "tar": "application/x-tar",
    "gz": "application/gzip",

    # Text
    "txt": "text/plain",
    "csv": "text/csv",
    "json": "application/json",
    "xml": "application/xml",
}


def guess_mime_type(file_path: str) -> Optional[str]:
    """Default sniffer backed by the mimetypes registry."""
    mime_type, _ = mimetypes.guess_type(file_path)
    return mime_type


def detect_mime_type(file_path: str, mime_sniffer: Optional[MimeSniffer] = None) -> str:
    """
    Detect the MIME type of a file from its extension.

    Args:
        file_path: Path to the file
        mime_sniffer: Fallback used when the extension is not in MIME_TYPES

    Returns:
        MIME type string, application/octet-stream when nothing matches
    """
    extension = os.path.splitext(file_path)[1].lstrip(".").lower()

    if extension in MIME_TYPES:
        return MIME_TYPES[extension]

    sniffer = mime_sniffer or guess_mime_type
    return sniffer(file_path) or FALLBACK_MIME_TYPE


def probe_file(file_path: str, mime_sniffer: Optional[MimeSniffer] = None) -> FileMetadata:
    """
    Check that a file can be delivered and collect its metadata.

    Args:
        file_path: Absolute path to the file
        mime_sniffer: Optional fallback MIME detector

    Returns:
        FileMetadata with size and MIME type

    Raises:
        FileMissingError: If the path does not exist or is not a regular file
        FileNotReadableError: If the process lacks read permission
    """
    if not os.path.isfile(file_path):
        logger.warning(f"File not found: {file_path}")
        raise FileMissingError(f"File not found: {os.path.basename(file_path)}")

    if not os.access(file_path, os.R_OK):
        logger.warning(f"File not readable: {file_path}")
        raise FileNotReadableError(f"File not readable: {os.path.basename(file_path)}")

    size = os.path.getsize(file_path)
    return FileMetadata(size_bytes=size, mime_type=detect_mime_type(file_path, mime_sniffer))
