"""Shared test fixtures for parsec-test-gen tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from parsec_test_gen.fixtures import TestCase, TestSuite
from parsec_test_gen.suites import build_suite

# ListClients suite envelopes: default options (Core provider, no auth), framed
# under the Ping placeholder opcode.
# magic | hdr_size | ver | flags | provider | session | content | accept | auth | body_len | auth_len
# | opcode | status | reserved
LIST_CLIENTS_REQUEST_HEX = (
    "10a7c05e" "1e00" "0100" "0000" "00" "0000000000000000" "00" "00" "00" "00000000" "0000" "01000000" "0000" "0000"
)
LIST_CLIENTS_OK_RESPONSE_HEX = (
    "10a7c05e" "1e00" "0100" "0000" "00" "0000000000000000" "00" "00" "00" "0a000000" "0000" "01000000" "0000" "0000"
    "0a036a696d" "0a03626f62"  # clients: "jim", "bob"
)
LIST_CLIENTS_NOT_SUPPORTED_RESPONSE_HEX = (
    "10a7c05e" "1e00" "0100" "0000" "00" "0000000000000000" "00" "00" "00" "00000000" "0000" "01000000" "6e04" "0000"
)

_PARSEC_LOGGERS = (
    "parsec_test_gen",
    "parsec_test_gen.cli",
    "parsec_test_gen.suites",
    "parsec_test_gen.verify",
    "parsec_test_gen.wire.request",
    "parsec_test_gen.wire.response",
)


@pytest.fixture
def golden_hex() -> dict[str, str]:
    """Hex of the ListClients envelopes, keyed by scenario."""
    return {
        "request": LIST_CLIENTS_REQUEST_HEX,
        "ok_response": LIST_CLIENTS_OK_RESPONSE_HEX,
        "not_supported_response": LIST_CLIENTS_NOT_SUPPORTED_RESPONSE_HEX,
    }


@pytest.fixture
def list_clients_suite() -> TestSuite:
    """A freshly built ListClients suite with default envelope options."""
    return build_suite("list_clients")


@pytest.fixture
def normal_case(list_clients_suite: TestSuite) -> TestCase:
    """The ``normal_response`` case of the ListClients suite."""
    return next(t for t in list_clients_suite.tests if t.name == "normal_response")


@pytest.fixture
def fail_case(list_clients_suite: TestSuite) -> TestCase:
    """The ``fail_response`` case of the ListClients suite."""
    return next(t for t in list_clients_suite.tests if t.name == "fail_response")


@pytest.fixture
def reset_loggers() -> Iterator[None]:
    """Save and restore parsec_test_gen logger handlers and levels."""
    saved: dict[str, tuple[int, list[logging.Handler]]] = {}
    for name in _PARSEC_LOGGERS:
        logger = logging.getLogger(name)
        saved[name] = (logger.level, list(logger.handlers))
    yield
    for name in _PARSEC_LOGGERS:
        logger = logging.getLogger(name)
        level, handlers = saved[name]
        logger.handlers[:] = handlers
        logger.setLevel(level)
