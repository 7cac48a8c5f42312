"""Pydantic schemas for file delivery endpoints."""

from typing import Optional

from pydantic import BaseModel, Field


class DeliveryOverrides(BaseModel):
    """Per-request delivery overrides taken from the query string."""
    filename: Optional[str] = None
    mime_type: Optional[str] = None
    download: Optional[bool] = None
    chunk_size: Optional[int] = Field(default=None, gt=0)
    enable_range: Optional[bool] = None

    def to_options(self) -> dict:
        """
        Convert to delivery option keys, leaving out anything not given.

        Returns:
            Dict suitable as per-call overrides for Delivery.prepare
        """
        options = {
            "filename": self.filename,
            "mime_type": self.mime_type,
            "force_download": self.download,
            "chunk_size": self.chunk_size,
            "enable_range": self.enable_range,
        }
        return {key: value for key, value in options.items() if value is not None}
