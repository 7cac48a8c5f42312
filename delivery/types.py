"""Delivery data type definitions (FileMetadata, DeliveryOptions, ByteRange, etc.)."""

from dataclasses import dataclass, field
from typing import FrozenSet

from delivery.exceptions import RangeNotSatisfiableError


@dataclass(frozen=True)
class FileMetadata:
    """
    Facts about the file being delivered, gathered once per request.
    """
    size_bytes: int
    mime_type: str


@dataclass(frozen=True)
class DeliveryOptions:
    """
    Fully resolved options for a single delivery.
    """
    filename: str
    mime_type: str
    force_download: bool
    chunk_size: int
    enable_range: bool

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")


@dataclass(frozen=True)
class ByteRange:
    """
    Inclusive byte window [start, end] of a file.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.start > self.end:
            raise ValueError(f"Invalid byte range {self.start}-{self.end}")

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @classmethod
    def within(cls, start: int, end: int, size: int) -> 'ByteRange':
        """
        Build a range that is guaranteed to lie inside a file of the given size.

        Args:
            start: First byte offset
            end: Last byte offset (inclusive)
            size: Total file size in bytes

        Returns:
            Validated ByteRange

        Raises:
            RangeNotSatisfiableError: If the window is reversed or falls outside the file
        """
        if start > end or start >= size or end >= size:
            raise RangeNotSatisfiableError(size, f"Range {start}-{end} not satisfiable for size {size}")
        return cls(start=start, end=end)


@dataclass(frozen=True)
class ServerEnvironment:
    """
    Read-only description of the web server hosting the application.
    """
    software: str = ""
    modules: FrozenSet[str] = field(default_factory=frozenset)
