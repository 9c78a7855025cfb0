# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""JSON formatter for structured logging output.

Provides :class:`ParsecJsonFormatter`, a :class:`logging.Formatter`
subclass that serializes log records as single-line JSON objects.  All
``extra`` fields attached to a record (for example ``operation_kind`` and
``op_code`` on suite construction) are included automatically.

Protocol values are rendered the way the ``parsec_test_gen.wire`` debug
logs show them, so text and JSON logs read the same:

- enum members by name (``"op_code": "LIST_CLIENTS"``);
- plain integers under ``op_code``/``opcode`` and ``status`` keys looked up
  in the opcode and status tables (``27`` becomes ``"LIST_CLIENTS"``),
  unknown codes as hex;
- bytes as truncated hex with their length;
- mappings (decoded header fields) member by member.

Selected with ``parsec-test-gen --log-format json``, or explicitly::

    from parsec_test_gen.logging_utils import ParsecJsonFormatter
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from enum import Enum, IntEnum

from parsec_test_gen._debug import fmt_bytes
from parsec_test_gen.requests import Opcode, ResponseStatus

__all__ = ["ParsecJsonFormatter"]

# Anything *not* in this set was injected via ``extra``.
_DEFAULT_RECORD_ATTRS: frozenset[str] = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()) | {
    "message",
    "asctime",
}

_RESERVED_KEYS: frozenset[str] = frozenset({"timestamp", "level", "logger", "message", "exception", "stack_info"})

_CODE_TABLES: dict[str, type[IntEnum]] = {
    "op_code": Opcode,
    "opcode": Opcode,
    "status": ResponseStatus,
}


def _render_code(table: type[IntEnum], value: int) -> str:
    try:
        return table(value).name
    except ValueError:
        return f"0x{value:04x}"


def _render_extra(key: str, value: object) -> object:
    """Render one extra field into a JSON-ready value."""
    if isinstance(value, Enum):
        return value.name
    table = _CODE_TABLES.get(key)
    if table is not None and isinstance(value, int) and not isinstance(value, bool):
        return _render_code(table, value)
    if isinstance(value, bytes | bytearray):
        return fmt_bytes(bytes(value))
    if isinstance(value, Mapping):
        return {str(k): _render_extra(str(k), v) for k, v in value.items()}
    return value


class ParsecJsonFormatter(logging.Formatter):
    """JSON formatter that emits all structured extra fields.

    Standard fields (``timestamp``, ``level``, ``logger``, ``message``) are
    always present and cannot be overwritten by extra fields with the same
    name.  Exception information is included under ``"exception"``.
    Values that are still not JSON-serializable after rendering are coerced
    to strings.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a single-line JSON string."""
        record.message = record.getMessage()
        obj: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.message,
        }
        for key, value in record.__dict__.items():
            if key not in _DEFAULT_RECORD_ATTRS and key not in _RESERVED_KEYS:
                obj[key] = _render_extra(key, value)
        if record.exc_info and record.exc_info[1]:
            obj["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            obj["stack_info"] = self.formatStack(record.stack_info)
        return json.dumps(obj, default=str)
