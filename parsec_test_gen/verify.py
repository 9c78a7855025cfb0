# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Fixture verification.

Decodes every envelope in a :class:`~parsec_test_gen.fixtures.TestSuite`
and checks it against the JSON it is paired with, so a broken fixture is
caught before a consumer in another language trips over it.

Bodies are decoded as the messages of the suite's ``op_code``.  The
header opcode is framing only and is not compared: suites may frame every
envelope under a placeholder opcode.

Usage::

    from parsec_test_gen.fixtures import load_suite
    from parsec_test_gen.verify import verify_suite

    report = verify_suite(load_suite(Path("testdata/list_clients.json")))
    assert report.success

"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial

from parsec_test_gen.fixtures import TestCase, TestSuite, b64decode
from parsec_test_gen.wire import bin_to_request, bin_to_response

_logger = logging.getLogger("parsec_test_gen.verify")

# JSON forms accepted as the expected_response of a failure case.
_EMPTY_RESPONSES: tuple[object, ...] = ([], {}, None)

# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CheckResult:
    """Result of a single fixture check."""

    name: str
    category: str
    passed: bool
    error: str | None = None


@dataclass(frozen=True)
class VerificationReport:
    """Aggregate results of verifying one suite."""

    op_code: int
    results: list[CheckResult]

    @property
    def total(self) -> int:
        """Number of checks run."""
        return len(self.results)

    @property
    def passed(self) -> int:
        """Number of checks that passed."""
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        """Number of checks that failed."""
        return self.total - self.passed

    @property
    def success(self) -> bool:
        """Whether all checks passed."""
        return self.failed == 0


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


class CheckFailed(Exception):
    """Raised by a check whose fixture does not hold."""


def _require(condition: object, message: str) -> None:
    if not condition:
        raise CheckFailed(message)


def _check_unique_names(suite: TestSuite) -> None:
    duplicates = sorted(name for name, count in Counter(suite.names).items() if count > 1)
    _require(not duplicates, f"duplicate test names: {', '.join(duplicates)}")


def _check_not_empty(suite: TestSuite) -> None:
    _require(suite.tests, "suite has no test cases")


def _check_request(suite: TestSuite, case: TestCase) -> None:
    request = bin_to_request(
        b64decode(case.expected_request_binary, "expected_request_binary"), body_opcode=suite.op_code
    )
    actual = request.operation.to_json()
    _require(actual == case.request_data, f"request body {actual!r} != request_data {case.request_data!r}")


def _check_response(suite: TestSuite, case: TestCase) -> None:
    response = bin_to_response(b64decode(case.response_binary, "response_binary"), body_opcode=suite.op_code)
    _require(
        response.status.is_success == case.expect_success,
        f"status {response.status.name} contradicts expect_success={case.expect_success}",
    )
    if not case.expect_success:
        _require(
            case.expected_response in _EMPTY_RESPONSES,
            f"expected_response {case.expected_response!r} must be empty when expect_success is false",
        )
    elif response.result is not None:
        actual = response.result.to_json()
        _require(
            actual == case.expected_response,
            f"response body {actual!r} != expected_response {case.expected_response!r}",
        )


def _run_check(name: str, category: str, fn: Callable[[], None]) -> CheckResult:
    try:
        fn()
    except CheckFailed as e:
        return CheckResult(name=name, category=category, passed=False, error=str(e) or "Check failed")
    except Exception as e:
        return CheckResult(name=name, category=category, passed=False, error=f"{type(e).__name__}: {e}")
    return CheckResult(name=name, category=category, passed=True)


def verify_suite(
    suite: TestSuite,
    *,
    on_progress: Callable[[CheckResult], None] | None = None,
) -> VerificationReport:
    """Decode every fixture in *suite* and check it against its JSON.

    Suite-level checks (non-empty, unique names) run first, then one
    request and one response check per case, in suite order.

    Args:
        suite: The suite to verify.
        on_progress: Optional callback invoked after each check completes.

    Returns:
        A VerificationReport with one CheckResult per check.

    """
    checks: list[tuple[str, str, Callable[[], None]]] = [
        ("suite.not_empty", "suite", lambda: _check_not_empty(suite)),
        ("suite.unique_names", "suite", lambda: _check_unique_names(suite)),
    ]
    for case in suite.tests:
        checks.append((f"request.{case.name}", "request", partial(_check_request, suite, case)))
        checks.append((f"response.{case.name}", "response", partial(_check_response, suite, case)))

    results: list[CheckResult] = []
    for name, category, fn in checks:
        result = _run_check(name, category, fn)
        if not result.passed:
            _logger.warning("Check %s failed: %s", name, result.error, extra={"check": name, "op_code": suite.op_code})
        results.append(result)
        if on_progress:
            on_progress(result)

    return VerificationReport(op_code=suite.op_code, results=results)
