"""Pydantic schemas for API requests and responses."""

from delivery.schemas.common import ErrorResponse, HealthResponse
from delivery.schemas.files import DeliveryOverrides

__all__ = [
    "DeliveryOverrides",
    "ErrorResponse",
    "HealthResponse",
]
