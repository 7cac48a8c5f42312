"""FastAPI dependencies providing the shared Delivery instance."""

from typing import Optional

from delivery import config
from delivery.file_probe import guess_mime_type
from delivery.service import Delivery

_delivery: Optional[Delivery] = None


def build_delivery() -> Delivery:
    """
    Create a Delivery configured from DELIVERY_* settings.

    Returns:
        Delivery instance
    """
    return Delivery(
        options=config.instance_options(),
        environment=config.load_server_environment(),
        nginx_offload_enabled=lambda: config.DELIVERY_NGINX_OFFLOAD,
        nginx_internal_prefix=lambda file_path: config.DELIVERY_NGINX_INTERNAL_PREFIX,
        mime_sniffer=guess_mime_type,
        flush_interval=config.DELIVERY_FLUSH_INTERVAL,
    )


def get_delivery() -> Delivery:
    """Get global delivery instance, building it on first use"""
    global _delivery
    if _delivery is None:
        _delivery = build_delivery()
    return _delivery


def get_delivery_root() -> str:
    return config.DELIVERY_ROOT
