"""Per-operation suite builders.

Importing this package registers every builder::

    from parsec_test_gen.suites import build_suite

    suite = build_suite("list_clients")

"""

from parsec_test_gen.suites import list_clients as _list_clients  # noqa: F401
from parsec_test_gen.suites._registry import (
    OperationKind,
    SuiteBuilder,
    build_suite,
    list_operation_kinds,
    suite_builder,
)

__all__ = [
    "OperationKind",
    "SuiteBuilder",
    "build_suite",
    "list_operation_kinds",
    "suite_builder",
]
