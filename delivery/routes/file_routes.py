"""File delivery API routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query

from delivery.deps import get_delivery, get_delivery_root
from delivery.responses import DeliveryResponse
from delivery.schemas.files import DeliveryOverrides
from delivery.service import Delivery
from delivery.utils import resolve_under_root

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["Files"])


@router.get("/{file_path:path}")
def download_file(
    file_path: str,
    range_header: Optional[str] = Header(None, alias="Range"),
    filename: Optional[str] = Query(None, description="Name presented to the client"),
    mime_type: Optional[str] = Query(None, description="Content-Type to send instead of the detected one"),
    download: Optional[bool] = Query(None, description="Force attachment (true) or inline (false)"),
    chunk_size: Optional[int] = Query(None, gt=0, description="Read/write chunk size in bytes"),
    enable_range: Optional[bool] = Query(None, alias="range", description="Honor Range requests"),
    delivery: Delivery = Depends(get_delivery),
    root: str = Depends(get_delivery_root),
):
    """
    Deliver a file from the delivery root.

    Parameters:
        - file_path: Path relative to the delivery root
        - Range header: bytes=<start>-<end> (optional)
        - filename, mime_type, download, chunk_size, range: per-request overrides

    Returns:
        - 200 with the full file, 206 with the requested range, or a
          delegation header for the front-end server

    Raises:
        - 404: File missing, unreadable or outside the root
        - 416: Range not satisfiable
        - 500: File could not be opened
    """
    absolute_path = resolve_under_root(root, file_path)

    overrides = DeliveryOverrides(
        filename=filename,
        mime_type=mime_type,
        download=download,
        chunk_size=chunk_size,
        enable_range=enable_range,
    )

    plan = delivery.prepare(absolute_path, range_header=range_header, overrides=overrides.to_options())
    logger.info(
        f"Serving {file_path} status={plan.status} size={plan.size} "
        f"offload={plan.offload.value}"
    )
    return DeliveryResponse(delivery, plan)
