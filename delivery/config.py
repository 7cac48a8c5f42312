"""Configuration settings for the delivery server."""

import os
from typing import Optional

from common.constants import DEFAULT_NGINX_INTERNAL_PREFIX, FLUSH_INTERVAL_BYTES
from delivery.types import ServerEnvironment


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if not value:
        return None
    return int(value)


DELIVERY_HOST = os.environ.get("DELIVERY_HOST", "0.0.0.0")

DELIVERY_PORT = int(os.environ.get("DELIVERY_PORT", "8080"))

DELIVERY_ROOT = os.environ.get("DELIVERY_ROOT", "/srv/protected")

DELIVERY_CHUNK_SIZE = _env_int("DELIVERY_CHUNK_SIZE")

DELIVERY_ENABLE_RANGE = _env_bool("DELIVERY_ENABLE_RANGE", True)

DELIVERY_FLUSH_INTERVAL = _env_int("DELIVERY_FLUSH_INTERVAL") or FLUSH_INTERVAL_BYTES

DELIVERY_SERVER_SOFTWARE = os.environ.get("DELIVERY_SERVER_SOFTWARE", "")

DELIVERY_SERVER_MODULES = os.environ.get("DELIVERY_SERVER_MODULES", "")

DELIVERY_NGINX_OFFLOAD = _env_bool("DELIVERY_NGINX_OFFLOAD", False)

DELIVERY_NGINX_INTERNAL_PREFIX = os.environ.get(
    "DELIVERY_NGINX_INTERNAL_PREFIX", DEFAULT_NGINX_INTERNAL_PREFIX
)


def load_server_environment() -> ServerEnvironment:
    """
    Build the server description from DELIVERY_SERVER_* settings.

    Returns:
        ServerEnvironment with the configured software identity and module list
    """
    modules = frozenset(
        module.strip() for module in DELIVERY_SERVER_MODULES.split(",") if module.strip()
    )
    return ServerEnvironment(software=DELIVERY_SERVER_SOFTWARE, modules=modules)


def instance_options() -> dict:
    """
    Instance-level delivery options taken from the environment.

    Returns:
        Option dict containing only the keys that were configured
    """
    options = {"enable_range": DELIVERY_ENABLE_RANGE}
    if DELIVERY_CHUNK_SIZE is not None:
        options["chunk_size"] = DELIVERY_CHUNK_SIZE
    return options
