"""Detects front-end servers that can send the file on our behalf."""

import logging
import os
from enum import Enum
from typing import Callable, Optional, Tuple
from urllib.parse import quote

from common.constants import DEFAULT_NGINX_INTERNAL_PREFIX, XSENDFILE_MODULE
from delivery.types import ServerEnvironment

logger = logging.getLogger(__name__)

NginxDecision = Callable[[], bool]
InternalPrefix = Callable[[str], str]


class OffloadMode(Enum):
    """Ways a front-end server can take over the transfer."""
    APACHE = "apache"
    NGINX = "nginx"
    LITESPEED = "litespeed"
    NONE = "none"


def never() -> bool:
    return False


def default_internal_prefix(file_path: str) -> str:
    return DEFAULT_NGINX_INTERNAL_PREFIX


def detect_offload_mode(
    environment: ServerEnvironment,
    nginx_enabled: Optional[NginxDecision] = None,
) -> OffloadMode:
    """
    Work out whether the hosting server can deliver the file itself.

    Nginx needs an internal location configured by the operator, which
    cannot be verified from here, so it is only used when nginx_enabled
    says so.

    Args:
        environment: Description of the hosting server
        nginx_enabled: Decision function for Nginx X-Accel-Redirect support

    Returns:
        OffloadMode to use for this request
    """
    if XSENDFILE_MODULE in environment.modules:
        return OffloadMode.APACHE

    software = environment.software.lower()

    if "nginx" in software:
        decide = nginx_enabled or never
        return OffloadMode.NGINX if decide() else OffloadMode.NONE

    if "litespeed" in software:
        return OffloadMode.LITESPEED

    return OffloadMode.NONE


def _sendfile_header(file_path: str, internal_prefix: InternalPrefix) -> Tuple[str, str]:
    # Header values travel as Latin-1; carry the raw filesystem bytes.
    return "X-Sendfile", os.fsencode(file_path).decode("latin-1")


def _accel_redirect_header(file_path: str, internal_prefix: InternalPrefix) -> Tuple[str, str]:
    return "X-Accel-Redirect", internal_prefix(file_path) + quote(os.path.basename(file_path))


_HEADER_BUILDERS = {
    OffloadMode.APACHE: _sendfile_header,
    OffloadMode.LITESPEED: _sendfile_header,
    OffloadMode.NGINX: _accel_redirect_header,
}


def offload_header(
    mode: OffloadMode,
    file_path: str,
    internal_prefix: Optional[InternalPrefix] = None,
) -> Tuple[str, str]:
    """
    Build the single header that hands the transfer to the front-end server.

    Args:
        mode: Detected offload mode (must not be NONE)
        file_path: Absolute path of the file
        internal_prefix: Maps the file path to the Nginx internal location prefix

    Returns:
        (header name, header value)

    Raises:
        ValueError: If mode is OffloadMode.NONE
    """
    if mode is OffloadMode.NONE:
        raise ValueError("No offload header for OffloadMode.NONE")

    build = _HEADER_BUILDERS[mode]
    return build(file_path, internal_prefix or default_internal_prefix)
