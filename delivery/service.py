"""Delivery facade: resolves a request into a plan and carries it out."""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from common.constants import FLUSH_INTERVAL_BYTES
from delivery.exceptions import DeliveryException
from delivery.file_probe import MimeSniffer, probe_file
from delivery.headers import (
    download_headers,
    error_headers,
    full_content_headers,
    partial_content_headers,
)
from delivery.offload import (
    InternalPrefix,
    NginxDecision,
    OffloadMode,
    detect_offload_mode,
    offload_header,
)
from delivery.options import merge_layers, resolve_options, validate_option_keys
from delivery.range_parser import parse_range_header
from delivery.streaming import StreamingEngine, TransferResult
from delivery.transports import TransportSink
from delivery.types import ByteRange, DeliveryOptions, ServerEnvironment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryPlan:
    """
    Everything decided about a response before a single byte is sent.
    """
    file_path: str
    status: int
    headers: Tuple[Tuple[str, str], ...]
    options: DeliveryOptions
    size: int
    byte_range: Optional[ByteRange] = None
    offload: OffloadMode = OffloadMode.NONE

    @property
    def offloaded(self) -> bool:
        return self.offload is not OffloadMode.NONE

    @property
    def start(self) -> int:
        return self.byte_range.start if self.byte_range else 0

    @property
    def length(self) -> int:
        return self.byte_range.length if self.byte_range else self.size


class Delivery:
    """
    Delivers already-authorized files over HTTP.

    Options are layered as built-in defaults, then the instance options
    held here, then per-call overrides. The instance layer is meant to be
    configured up front; every request resolves its own immutable
    DeliveryOptions from a snapshot of it.
    """

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        environment: Optional[ServerEnvironment] = None,
        nginx_offload_enabled: Optional[NginxDecision] = None,
        nginx_internal_prefix: Optional[InternalPrefix] = None,
        mime_sniffer: Optional[MimeSniffer] = None,
        flush_interval: int = FLUSH_INTERVAL_BYTES,
    ):
        self._options = merge_layers(options)
        self.environment = environment or ServerEnvironment()
        self.nginx_offload_enabled = nginx_offload_enabled
        self.nginx_internal_prefix = nginx_internal_prefix
        self.mime_sniffer = mime_sniffer
        self.engine = StreamingEngine(flush_interval=flush_interval)

    def set_option(self, key: str, value: Any) -> 'Delivery':
        """
        Set one instance-level option; None unsets it.

        Returns:
            self, for chaining
        """
        validate_option_keys({key: value})
        if value is None:
            self._options.pop(key, None)
        else:
            self._options[key] = value
        return self

    def set_options(self, options: Mapping[str, Any]) -> 'Delivery':
        """
        Merge several instance-level options.

        Returns:
            self, for chaining
        """
        for key, value in options.items():
            self.set_option(key, value)
        return self

    def get_options(self) -> dict:
        return dict(self._options)

    def prepare(
        self,
        file_path: str,
        range_header: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> DeliveryPlan:
        """
        Decide how a file will be delivered.

        Args:
            file_path: Absolute, pre-authorized path of the file
            range_header: Raw Range request header, if any
            overrides: Per-call options (filename, mime_type, force_download,
                chunk_size, enable_range)

        Returns:
            DeliveryPlan describing the response

        Raises:
            FileMissingError: If the file does not exist
            FileNotReadableError: If the file cannot be read
            RangeNotSatisfiableError: If the requested range lies outside the file
            InvalidOptionError: If an option is unknown or invalid
        """
        metadata = probe_file(file_path, self.mime_sniffer)
        options = resolve_options(file_path, metadata, self._options, overrides)
        headers = download_headers(options)

        mode = detect_offload_mode(self.environment, self.nginx_offload_enabled)
        if mode is not OffloadMode.NONE:
            headers.append(offload_header(mode, file_path, self.nginx_internal_prefix))
            logger.info(f"Delegating {file_path} to the front-end server ({mode.value})")
            return DeliveryPlan(
                file_path=file_path,
                status=200,
                headers=tuple(headers),
                options=options,
                size=metadata.size_bytes,
                offload=mode,
            )

        byte_range = None
        if options.enable_range:
            byte_range = parse_range_header(range_header, metadata.size_bytes)

        if byte_range is not None:
            status = 206
            headers.extend(partial_content_headers(byte_range, metadata.size_bytes))
        else:
            status = 200
            headers.extend(full_content_headers(metadata.size_bytes, options.enable_range))

        return DeliveryPlan(
            file_path=file_path,
            status=status,
            headers=tuple(headers),
            options=options,
            size=metadata.size_bytes,
            byte_range=byte_range,
        )

    def deliver(self, plan: DeliveryPlan, sink: TransportSink) -> TransferResult:
        """
        Carry out a plan on a transport.

        Offloaded plans send only the head; the file is never opened.

        Raises:
            OpenFailureError: If the file cannot be opened; the sink is untouched
        """
        if plan.offloaded:
            sink.start_response(plan.status, list(plan.headers))
            sink.flush()
            return TransferResult(bytes_sent=0)

        return self.engine.transmit(
            file_path=plan.file_path,
            sink=sink,
            status=plan.status,
            headers=list(plan.headers),
            start=plan.start,
            length=plan.length,
            chunk_size=plan.options.chunk_size,
        )

    def stream(
        self,
        file_path: str,
        sink: TransportSink,
        range_header: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> TransferResult:
        """
        Deliver a file to a transport, answering errors on the same transport.

        Exactly one of a full body, a partial body, a delegation head or a
        body-less error response is written to the sink.

        Args:
            file_path: Absolute, pre-authorized path of the file
            sink: Destination transport
            range_header: Raw Range request header, if any
            overrides: Per-call options

        Returns:
            TransferResult (zero bytes for offloaded and failed deliveries)
        """
        try:
            plan = self.prepare(file_path, range_header=range_header, overrides=overrides)
            return self.deliver(plan, sink)
        except DeliveryException as exc:
            logger.warning(f"Delivery of {file_path} failed with {exc.status_code}: {exc}")
            sink.start_response(exc.status_code, error_headers(exc))
            sink.flush()
            return TransferResult(bytes_sent=0)
