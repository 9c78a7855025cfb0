# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Test-suite data model and its JSON document form.

A :class:`TestSuite` is the unit a conformance runner consumes: the opcode
under test plus an ordered list of :class:`TestCase` records.  Each case
pairs base64 envelopes with the JSON form of the logical values they carry.

The JSON document keeps the field order of the dataclasses::

    {"op_code": 27, "tests": [{"name": ..., "request_data": ...,
      "expected_request_binary": ..., "response_binary": ...,
      "expected_response": ..., "expect_success": ...}]}

"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from parsec_test_gen.errors import DecodingError
from parsec_test_gen.operations import NativeOperation, NativeResult
from parsec_test_gen.requests import Opcode, ResponseStatus
from parsec_test_gen.wire import DEFAULT_ENVELOPE, EnvelopeOptions, operation_to_bin, result_to_bin

__all__ = [
    "TestCase",
    "TestSuite",
    "b64decode",
    "build_test_case",
    "load_suite",
    "suite_from_dict",
    "suite_to_json",
    "write_suite",
]

_CASE_KEYS = (
    "name",
    "request_data",
    "expected_request_binary",
    "response_binary",
    "expected_response",
    "expect_success",
)


@dataclass(frozen=True)
class TestCase:
    """One named request/response fixture."""

    __test__ = False

    name: str
    request_data: Any
    expected_request_binary: str
    response_binary: str
    expected_response: Any
    expect_success: bool

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping, keys in document order."""
        return {key: getattr(self, key) for key in _CASE_KEYS}


@dataclass(frozen=True)
class TestSuite:
    """All fixtures for one operation."""

    __test__ = False

    op_code: int
    tests: tuple[TestCase, ...]

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping, keys in document order."""
        return {"op_code": int(self.op_code), "tests": [t.to_dict() for t in self.tests]}

    @property
    def names(self) -> list[str]:
        """Case names in suite order."""
        return [t.name for t in self.tests]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def b64decode(value: str, field: str) -> bytes:
    """Strictly decode a base64 fixture field.

    Raises:
        DecodingError: If *value* is not canonical standard-alphabet base64.

    """
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodingError(f"{field} is not valid base64: {e}") from e


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def build_test_case(
    name: str,
    operation: NativeOperation,
    result: NativeResult,
    status: ResponseStatus,
    options: EnvelopeOptions = DEFAULT_ENVELOPE,
    *,
    header_opcode: Opcode | None = None,
) -> TestCase:
    """Encode *operation* and *result* into a :class:`TestCase`.

    ``request_data`` and ``expected_response`` are the JSON forms of the
    logical values; ``expect_success`` follows *status*.  Both envelopes
    are framed under *header_opcode* when given.

    Raises:
        EncodingError: Propagated unchanged from the envelope encoders.

    """
    return TestCase(
        name=name,
        request_data=operation.to_json(),
        expected_request_binary=_b64encode(operation_to_bin(operation, options, opcode=header_opcode)),
        response_binary=_b64encode(result_to_bin(result, status, options, opcode=header_opcode)),
        expected_response=result.to_json(),
        expect_success=status.is_success,
    )


# ---------------------------------------------------------------------------
# JSON document
# ---------------------------------------------------------------------------


def suite_to_json(suite: TestSuite, *, indent: int | None = 2) -> str:
    """Serialize *suite* to its JSON document (no trailing newline)."""
    return json.dumps(suite.to_dict(), indent=indent, ensure_ascii=False)


def _case_from_dict(data: object, index: int) -> TestCase:
    if not isinstance(data, dict):
        raise DecodingError(f"tests[{index}] must be an object, got {type(data).__name__}")
    missing = [key for key in _CASE_KEYS if key not in data]
    if missing:
        raise DecodingError(f"tests[{index}] is missing {', '.join(missing)}")
    for key in ("name", "expected_request_binary", "response_binary"):
        if not isinstance(data[key], str):
            raise DecodingError(f"tests[{index}].{key} must be a string")
    if not isinstance(data["expect_success"], bool):
        raise DecodingError(f"tests[{index}].expect_success must be a boolean")
    return TestCase(**{key: data[key] for key in _CASE_KEYS})


def suite_from_dict(data: object) -> TestSuite:
    """Rebuild a :class:`TestSuite` from a parsed JSON document.

    Raises:
        DecodingError: If the document does not have the suite shape.

    """
    if not isinstance(data, dict):
        raise DecodingError(f"suite document must be an object, got {type(data).__name__}")
    op_code = data.get("op_code")
    if not isinstance(op_code, int) or isinstance(op_code, bool):
        raise DecodingError("op_code must be an integer")
    tests = data.get("tests")
    if not isinstance(tests, list):
        raise DecodingError("tests must be an array")
    return TestSuite(op_code=op_code, tests=tuple(_case_from_dict(t, i) for i, t in enumerate(tests)))


def load_suite(path: Path) -> TestSuite:
    """Read a suite document from *path*.

    Raises:
        OSError: If the file cannot be read.
        DecodingError: If the file is not a suite document.

    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DecodingError(f"{path}: not valid JSON: {e}") from e
    return suite_from_dict(data)


def write_suite(suite: TestSuite, path: Path, *, indent: int | None = 2) -> None:
    """Write *suite* to *path* as a JSON document with a trailing newline."""
    path.write_text(suite_to_json(suite, indent=indent) + "\n", encoding="utf-8")
