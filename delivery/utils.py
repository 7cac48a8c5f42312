"""Utility helper functions for the delivery server."""

import os

from delivery.exceptions import FileMissingError


def resolve_under_root(root: str, relative_path: str) -> str:
    """
    Map a request path onto an absolute path inside the delivery root.

    Args:
        root: Directory files are served from
        relative_path: Path taken from the URL

    Returns:
        Absolute, symlink-resolved path

    Raises:
        FileMissingError: If the path escapes the root
    """
    real_root = os.path.realpath(root)
    candidate = os.path.realpath(os.path.join(real_root, relative_path.lstrip("/")))

    if os.path.commonpath([real_root, candidate]) != real_root:
        raise FileMissingError(f"File not found: {relative_path}")

    return candidate
