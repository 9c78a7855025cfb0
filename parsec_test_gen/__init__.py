# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Golden request/response fixtures for the Parsec wire protocol."""

import logging

from parsec_test_gen.errors import (
    DecodingError,
    EncodingError,
    ParsecTestGenError,
    UnknownOperationError,
)
from parsec_test_gen.fixtures import (
    TestCase,
    TestSuite,
    build_test_case,
    load_suite,
    suite_from_dict,
    suite_to_json,
    write_suite,
)
from parsec_test_gen.operations import (
    ListClientsOperation,
    ListClientsResult,
    NativeOperation,
    NativeResult,
)
from parsec_test_gen.requests import (
    AuthType,
    BodyType,
    Opcode,
    ProviderId,
    ResponseStatus,
)
from parsec_test_gen.suites import (
    OperationKind,
    build_suite,
    list_operation_kinds,
    suite_builder,
)
from parsec_test_gen.verify import CheckFailed, CheckResult, VerificationReport, verify_suite
from parsec_test_gen.wire import (
    EnvelopeOptions,
    Request,
    RequestHeader,
    Response,
    ResponseHeader,
    bin_to_request,
    bin_to_response,
    operation_to_bin,
    result_to_bin,
)

__all__ = [
    # Suites
    "OperationKind",
    "build_suite",
    "list_operation_kinds",
    "suite_builder",
    # Fixture model
    "TestCase",
    "TestSuite",
    "build_test_case",
    "load_suite",
    "suite_from_dict",
    "suite_to_json",
    "write_suite",
    # Verification
    "CheckFailed",
    "CheckResult",
    "VerificationReport",
    "verify_suite",
    # Wire
    "EnvelopeOptions",
    "Request",
    "RequestHeader",
    "Response",
    "ResponseHeader",
    "bin_to_request",
    "bin_to_response",
    "operation_to_bin",
    "result_to_bin",
    # Operations
    "ListClientsOperation",
    "ListClientsResult",
    "NativeOperation",
    "NativeResult",
    # Enumerations
    "AuthType",
    "BodyType",
    "Opcode",
    "ProviderId",
    "ResponseStatus",
    # Errors
    "DecodingError",
    "EncodingError",
    "ParsecTestGenError",
    "UnknownOperationError",
]

logging.getLogger("parsec_test_gen").addHandler(logging.NullHandler())
