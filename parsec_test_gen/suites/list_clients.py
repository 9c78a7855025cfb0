# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Fixtures for the ``ListClients`` admin operation.

Both envelopes of every case are framed under :data:`HEADER_OPCODE`
(``Ping``), not ``ListClients``; the suite's ``op_code`` names the
operation whose bodies they carry.  Consumers decode the bodies by
``op_code``.
"""

from __future__ import annotations

from parsec_test_gen.fixtures import TestCase, TestSuite, build_test_case
from parsec_test_gen.operations import ListClientsOperation, ListClientsResult
from parsec_test_gen.requests import Opcode, ResponseStatus
from parsec_test_gen.suites._registry import OperationKind, suite_builder
from parsec_test_gen.wire import EnvelopeOptions

CLIENTS = ("jim", "bob")

HEADER_OPCODE = Opcode.PING
"""Placeholder opcode written into every request and response header."""


def _normal_response(options: EnvelopeOptions) -> TestCase:
    return build_test_case(
        "normal_response",
        ListClientsOperation(),
        ListClientsResult(clients=CLIENTS),
        ResponseStatus.SUCCESS,
        options,
        header_opcode=HEADER_OPCODE,
    )


def _fail_response(options: EnvelopeOptions) -> TestCase:
    return build_test_case(
        "fail_response",
        ListClientsOperation(),
        ListClientsResult(clients=()),
        ResponseStatus.PSA_ERROR_NOT_SUPPORTED,
        options,
        header_opcode=HEADER_OPCODE,
    )


@suite_builder(OperationKind.LIST_CLIENTS)
def build_list_clients_suite(options: EnvelopeOptions) -> TestSuite:
    """Success listing two clients, and a not-supported failure."""
    return TestSuite(
        op_code=Opcode.LIST_CLIENTS,
        tests=(_normal_response(options), _fail_response(options)),
    )
