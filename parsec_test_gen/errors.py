"""Exception hierarchy for fixture generation and verification."""

from __future__ import annotations

__all__ = [
    "DecodingError",
    "EncodingError",
    "ParsecTestGenError",
    "UnknownOperationError",
]


class ParsecTestGenError(Exception):
    """Base class for all parsec-test-gen errors."""


class EncodingError(ParsecTestGenError, OSError):
    """Raised when a value cannot be represented on the wire.

    An ``OSError`` so that callers treating suite generation as I/O see
    serialization failures alongside write failures.
    """


class DecodingError(ParsecTestGenError, ValueError):
    """Raised when an envelope or body read back from a fixture is malformed."""


class UnknownOperationError(ParsecTestGenError, KeyError):
    """Raised when no suite builder is registered for an operation kind."""

    def __init__(self, kind: str, available: list[str]) -> None:
        """Initialize with the requested kind and the registered kinds."""
        self.kind = kind
        self.available = available
        super().__init__(kind)

    def __str__(self) -> str:
        """Return a message listing the registered kinds."""
        return f"Unknown operation kind '{self.kind}'. Available: {', '.join(self.available)}"
