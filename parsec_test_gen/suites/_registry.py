"""Registry of suite builders, one per operation kind."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from parsec_test_gen.errors import UnknownOperationError
from parsec_test_gen.fixtures import TestSuite
from parsec_test_gen.requests import Opcode
from parsec_test_gen.wire import DEFAULT_ENVELOPE, EnvelopeOptions

_logger = logging.getLogger("parsec_test_gen.suites")

SuiteBuilder = Callable[[EnvelopeOptions], TestSuite]
"""Builds every fixture for one operation from the envelope options."""


class OperationKind(StrEnum):
    """Operations with a registered suite builder."""

    LIST_CLIENTS = "list_clients"

    @property
    def opcode(self) -> Opcode:
        """Opcode exercised by this kind's suite."""
        return _OPCODES[self]


_OPCODES: dict[OperationKind, Opcode] = {
    OperationKind.LIST_CLIENTS: Opcode.LIST_CLIENTS,
}


@dataclass(frozen=True)
class _RegisteredSuite:
    kind: OperationKind
    build: SuiteBuilder


_BUILDERS: dict[OperationKind, _RegisteredSuite] = {}


def suite_builder(kind: OperationKind) -> Callable[[SuiteBuilder], SuiteBuilder]:
    """Register the suite builder for *kind*."""

    def decorator(fn: SuiteBuilder) -> SuiteBuilder:
        if kind in _BUILDERS:
            raise ValueError(f"suite builder for {kind} already registered")
        _BUILDERS[kind] = _RegisteredSuite(kind=kind, build=fn)
        return fn

    return decorator


def list_operation_kinds() -> list[str]:
    """Return the sorted names of operation kinds with a registered builder."""
    return sorted(str(kind) for kind in _BUILDERS)


def _resolve(kind: OperationKind | str) -> _RegisteredSuite:
    try:
        return _BUILDERS[OperationKind(kind)]
    except (ValueError, KeyError):
        raise UnknownOperationError(str(kind), list_operation_kinds()) from None


def build_suite(kind: OperationKind | str, options: EnvelopeOptions = DEFAULT_ENVELOPE) -> TestSuite:
    """Build the test suite for *kind*.

    Construction is all-or-nothing: an encoding failure in any case
    propagates and no suite is returned.

    Raises:
        UnknownOperationError: If *kind* has no registered builder.
        EncodingError: If a fixture value cannot be serialized.

    """
    registered = _resolve(kind)
    suite = registered.build(options)
    _logger.info(
        "Built %s suite with %d tests",
        registered.kind,
        len(suite.tests),
        extra={"operation_kind": str(registered.kind), "op_code": suite.op_code, "test_count": len(suite.tests)},
    )
    return suite
