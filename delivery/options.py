"""Layered resolution of delivery options into one immutable value per request."""

import os
from typing import Any, Mapping, Optional

from delivery.exceptions import InvalidOptionError
from delivery.policies import chunk_size_for, should_force_download
from delivery.types import DeliveryOptions, FileMetadata

OPTION_KEYS = frozenset({
    "filename",
    "mime_type",
    "force_download",
    "chunk_size",
    "enable_range",
})

DEFAULT_OPTIONS = {
    "enable_range": True,
}


def validate_option_keys(options: Mapping[str, Any]) -> None:
    """
    Reject keys that are not delivery options.

    Raises:
        InvalidOptionError: If any key is unknown
    """
    unknown = sorted(set(options) - OPTION_KEYS)
    if unknown:
        raise InvalidOptionError(f"Unknown delivery option(s): {', '.join(unknown)}")


def merge_layers(*layers: Optional[Mapping[str, Any]]) -> dict:
    """
    Merge option layers key by key, later layers winning.

    None values count as unset and never replace an earlier value.
    """
    merged = {}
    for layer in layers:
        if not layer:
            continue
        validate_option_keys(layer)
        merged.update({key: value for key, value in layer.items() if value is not None})
    return merged


def resolve_options(
    file_path: str,
    metadata: FileMetadata,
    instance_options: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> DeliveryOptions:
    """
    Resolve the effective options for one delivery.

    Layers are applied as built-in defaults, then instance configuration,
    then per-call overrides. Fields left unset are filled by detection:
    the basename for filename, the probed type for mime_type, the
    disposition policy for force_download and the chunk-size policy for
    chunk_size.

    Args:
        file_path: Path of the file being delivered
        metadata: Probe result for the file
        instance_options: Options configured on the delivery instance
        overrides: Options supplied for this call only

    Returns:
        Frozen DeliveryOptions
    """
    merged = merge_layers(DEFAULT_OPTIONS, instance_options, overrides)

    filename = merged.get("filename") or os.path.basename(file_path)
    mime_type = merged.get("mime_type") or metadata.mime_type

    if "force_download" in merged:
        force_download = bool(merged["force_download"])
    else:
        force_download = should_force_download(mime_type)

    if "chunk_size" in merged:
        chunk_size = int(merged["chunk_size"])
        if chunk_size <= 0:
            raise InvalidOptionError(f"chunk_size must be positive, got {chunk_size}")
    else:
        chunk_size = chunk_size_for(mime_type)

    return DeliveryOptions(
        filename=filename,
        mime_type=mime_type,
        force_download=force_download,
        chunk_size=chunk_size,
        enable_range=bool(merged["enable_range"]),
    )
