"""API routes package."""

from delivery.routes.file_routes import router as file_router

__all__ = ["file_router"]
