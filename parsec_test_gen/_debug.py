"""Debug logging infrastructure for envelope diagnostics.

Provides logger instances under the ``parsec_test_gen.wire.*`` hierarchy
and formatting helpers for headers and payloads.  Enabling
``logging.getLogger("parsec_test_gen.wire").setLevel(logging.DEBUG)`` shows
every envelope written or read, which is what you want when a consumer in
another language disagrees with a fixture.

Setting ``PARSEC_TEST_GEN_WIRE_DEBUG=1`` additionally renders a structured
per-envelope trace to stderr through structlog, independent of the
``logging`` configuration.

All formatting helpers return ``str`` and never log directly.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from enum import Enum

import structlog

# ---------------------------------------------------------------------------
# Logger hierarchy: parsec_test_gen.wire.*
# ---------------------------------------------------------------------------

wire_request_logger = logging.getLogger("parsec_test_gen.wire.request")
"""Request envelope encode / decode."""

wire_response_logger = logging.getLogger("parsec_test_gen.wire.response")
"""Response envelope encode / decode."""

_WIRE_DEBUG_ENV = "PARSEC_TEST_GEN_WIRE_DEBUG"

_MAX_HEX_BYTES = 32
"""Maximum number of payload bytes rendered by ``fmt_bytes``."""

_wire_trace: structlog.stdlib.BoundLogger | None = None


def wire_trace_enabled() -> bool:
    """Whether the structlog wire trace is switched on by the environment."""
    return os.environ.get(_WIRE_DEBUG_ENV, "").lower() in ("1", "true", "yes")


def get_wire_trace() -> structlog.stdlib.BoundLogger:
    """Get or create the wire trace logger, configured to write to stderr."""
    global _wire_trace
    if _wire_trace is None:
        structlog.configure(
            processors=[
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.dev.ConsoleRenderer(colors=False),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(0),
            logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        )
        _wire_trace = structlog.get_logger().bind(component="wire")
    return _wire_trace


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def fmt_bytes(data: bytes) -> str:
    """Format a byte string as truncated hex.

    Returns:
        ``"0a036a696d (5 bytes)"``, with ``...`` after the first 32 bytes.

    """
    shown = data[:_MAX_HEX_BYTES].hex()
    if len(data) > _MAX_HEX_BYTES:
        shown += "..."
    return f"{shown} ({len(data)} bytes)"


def enum_name(value: object) -> object:
    """Return the member name of an enum *value*, anything else unchanged."""
    return value.name if isinstance(value, Enum) else value


def fmt_header(fields: Mapping[str, object]) -> str:
    """Format header fields compactly.

    Enum members are rendered by name so the output reads
    ``opcode=LIST_CLIENTS`` rather than ``opcode=27``.
    """
    return "{" + ", ".join(f"{key}={enum_name(value)}" for key, value in fields.items()) + "}"
