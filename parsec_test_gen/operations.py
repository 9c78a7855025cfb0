# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Logical operation and result values.

Each supported operation contributes one frozen dataclass for its request
body and one for its result body.  ``NativeOperation`` and ``NativeResult``
are the closed unions over those classes; the body codec and the suite
builders dispatch on the ``OPCODE`` class attribute.

KEY CLASSES
-----------
ListClientsOperation : Empty request asking the service for its clients
ListClientsResult : Ordered list of client application names

"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, TypeAlias

from parsec_test_gen.requests import Opcode

__all__ = [
    "ListClientsOperation",
    "ListClientsResult",
    "NativeOperation",
    "NativeResult",
]


@dataclass(frozen=True)
class ListClientsOperation:
    """Request body of ``ListClients`` (no fields)."""

    OPCODE: ClassVar[Opcode] = Opcode.LIST_CLIENTS

    def to_json(self) -> dict[str, object]:
        """Return the JSON form used as a fixture's ``request_data``."""
        return {}


@dataclass(frozen=True)
class ListClientsResult:
    """Result body of ``ListClients``.

    Attributes:
        clients: Client application names, in the order the service lists them.

    """

    OPCODE: ClassVar[Opcode] = Opcode.LIST_CLIENTS

    clients: tuple[str, ...] = ()

    def to_json(self) -> list[str]:
        """Return the JSON form used as a fixture's ``expected_response``."""
        return list(self.clients)


NativeOperation: TypeAlias = ListClientsOperation
NativeResult: TypeAlias = ListClientsResult
