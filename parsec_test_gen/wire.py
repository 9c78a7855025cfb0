# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Request and response envelope encoding for Parsec wire protocol 1.0.

An envelope is a fixed 36-byte little-endian header followed by the
protobuf body and, for requests, the authentication bytes::

    magic u32 | header_size u16 | version_maj u8 | version_min u8 | flags u16
    provider u8 | session u64 | content_type u8 | accept_type u8
    auth_type u8 | body_len u32 | auth_len u16 | opcode u32 | status u16
    reserved1 u8 | reserved2 u8 | body | auth

Encoding failures raise :class:`~parsec_test_gen.errors.EncodingError`;
malformed envelopes raise :class:`~parsec_test_gen.errors.DecodingError`.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import asdict, dataclass
from enum import IntEnum
from typing import NamedTuple, TypeVar

from parsec_test_gen._debug import (
    fmt_bytes,
    fmt_header,
    get_wire_trace,
    wire_request_logger,
    wire_response_logger,
    wire_trace_enabled,
)
from parsec_test_gen.errors import DecodingError, EncodingError
from parsec_test_gen.operations import NativeOperation, NativeResult
from parsec_test_gen.protobuf import body_to_operation, body_to_result, operation_to_body, result_to_body
from parsec_test_gen.requests import (
    HEADER_SIZE,
    MAGIC_NUMBER,
    WIRE_PROTOCOL_VERSION_MAJ,
    WIRE_PROTOCOL_VERSION_MIN,
    AuthType,
    BodyType,
    Opcode,
    ProviderId,
    ResponseStatus,
)

__all__ = [
    "DEFAULT_ENVELOPE",
    "ENVELOPE_HEADER_LEN",
    "EnvelopeOptions",
    "Request",
    "RequestHeader",
    "Response",
    "ResponseHeader",
    "bin_to_request",
    "bin_to_response",
    "operation_to_bin",
    "result_to_bin",
]

_HEADER_STRUCT = struct.Struct("<IHBBHBQBBBIHIHBB")

ENVELOPE_HEADER_LEN = _HEADER_STRUCT.size
"""Total fixed header length, magic number included (36)."""

_E = TypeVar("_E", bound=IntEnum)


class _RawHeader(NamedTuple):
    magic: int
    header_size: int
    version_maj: int
    version_min: int
    flags: int
    provider: int
    session: int
    content_type: int
    accept_type: int
    auth_type: int
    body_len: int
    auth_len: int
    opcode: int
    status: int
    reserved1: int
    reserved2: int


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EnvelopeOptions:
    """Header values that are not implied by the operation itself.

    Attributes:
        provider: Provider the request is addressed to.
        session: Session handle (Parsec does not use sessions yet; keep 0).
        auth_type: Authentication scheme written into request headers.
        auth: Raw authentication bytes appended to request envelopes.

    """

    provider: ProviderId = ProviderId.CORE
    session: int = 0
    auth_type: AuthType = AuthType.NO_AUTH
    auth: bytes = b""

    @classmethod
    def direct(cls, app_name: str) -> EnvelopeOptions:
        """Direct authentication: the application name is sent as UTF-8."""
        return cls(auth_type=AuthType.DIRECT, auth=app_name.encode("utf-8"))


DEFAULT_ENVELOPE = EnvelopeOptions()


@dataclass(frozen=True)
class RequestHeader:
    """Logical fields of a request header."""

    provider: ProviderId
    session: int
    content_type: BodyType
    accept_type: BodyType
    auth_type: AuthType
    opcode: Opcode


@dataclass(frozen=True)
class ResponseHeader:
    """Logical fields of a response header."""

    provider: ProviderId
    session: int
    content_type: BodyType
    opcode: Opcode
    status: ResponseStatus


@dataclass(frozen=True)
class Request:
    """A decoded request envelope."""

    header: RequestHeader
    operation: NativeOperation
    auth: bytes = b""


@dataclass(frozen=True)
class Response:
    """A decoded response envelope.

    ``result`` is ``None`` for non-success responses: their body is not
    parsed.
    """

    header: ResponseHeader
    result: NativeResult | None

    @property
    def status(self) -> ResponseStatus:
        """Shortcut for ``header.status``."""
        return self.header.status


# ---------------------------------------------------------------------------
# Header packing
# ---------------------------------------------------------------------------


def _pack_header(
    *,
    provider: int,
    session: int,
    content_type: int,
    accept_type: int,
    auth_type: int,
    body_len: int,
    auth_len: int,
    opcode: int,
    status: int,
) -> bytes:
    try:
        return _HEADER_STRUCT.pack(
            MAGIC_NUMBER,
            HEADER_SIZE,
            WIRE_PROTOCOL_VERSION_MAJ,
            WIRE_PROTOCOL_VERSION_MIN,
            0,
            provider,
            session,
            content_type,
            accept_type,
            auth_type,
            body_len,
            auth_len,
            opcode,
            status,
            0,
            0,
        )
    except struct.error as e:
        raise EncodingError(f"header field out of range: {e}") from e


def _unpack_envelope(data: bytes, kind: str) -> tuple[_RawHeader, bytes, bytes]:
    """Split *data* into raw header, body and auth, validating the framing."""
    if len(data) < ENVELOPE_HEADER_LEN:
        raise DecodingError(f"{kind} envelope truncated: {len(data)} bytes, header needs {ENVELOPE_HEADER_LEN}")
    raw = _RawHeader._make(_HEADER_STRUCT.unpack_from(data))
    if raw.magic != MAGIC_NUMBER:
        raise DecodingError(f"bad magic number 0x{raw.magic:08x}")
    if raw.header_size != HEADER_SIZE:
        raise DecodingError(f"unexpected header size {raw.header_size}, expected {HEADER_SIZE}")
    if (raw.version_maj, raw.version_min) != (WIRE_PROTOCOL_VERSION_MAJ, WIRE_PROTOCOL_VERSION_MIN):
        raise DecodingError(f"unsupported wire protocol version {raw.version_maj}.{raw.version_min}")
    if raw.reserved1 or raw.reserved2:
        raise DecodingError("reserved header bytes must be zero")
    expected = ENVELOPE_HEADER_LEN + raw.body_len + raw.auth_len
    if len(data) != expected:
        raise DecodingError(
            f"{kind} envelope length mismatch: header declares {expected} bytes, got {len(data)}"
        )
    body_end = ENVELOPE_HEADER_LEN + raw.body_len
    return raw, data[ENVELOPE_HEADER_LEN:body_end], data[body_end:]


def _to_enum(enum_cls: type[_E], value: int, field: str) -> _E:
    try:
        return enum_cls(value)
    except ValueError:
        raise DecodingError(f"invalid {field}: {value}") from None


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def operation_to_bin(
    operation: NativeOperation,
    options: EnvelopeOptions = DEFAULT_ENVELOPE,
    *,
    opcode: Opcode | None = None,
) -> bytes:
    """Serialize *operation* as a complete request envelope.

    Args:
        operation: The logical request body.
        options: Provider, session and authentication for the header.
        opcode: Opcode written into the header.  Defaults to the
            operation's own opcode; fixture suites may frame every
            envelope under a fixed opcode instead.

    Raises:
        EncodingError: If the body or a header field cannot be represented.

    """
    header = RequestHeader(
        provider=options.provider,
        session=options.session,
        content_type=BodyType.PROTOBUF,
        accept_type=BodyType.PROTOBUF,
        auth_type=options.auth_type,
        opcode=operation.OPCODE if opcode is None else opcode,
    )
    body = operation_to_body(operation)
    packed = _pack_header(
        provider=header.provider,
        session=header.session,
        content_type=header.content_type,
        accept_type=header.accept_type,
        auth_type=header.auth_type,
        body_len=len(body),
        auth_len=len(options.auth),
        opcode=header.opcode,
        status=0,
    )
    if wire_request_logger.isEnabledFor(logging.DEBUG):
        wire_request_logger.debug(
            "Write request: header=%s, body=%s, auth_len=%d",
            fmt_header(asdict(header)),
            fmt_bytes(body),
            len(options.auth),
        )
    if wire_trace_enabled():
        get_wire_trace().debug(
            "request_encoded", opcode=header.opcode.name, body_opcode=operation.OPCODE.name, body_len=len(body)
        )
    return packed + body + options.auth


def result_to_bin(
    result: NativeResult,
    status: ResponseStatus,
    options: EnvelopeOptions = DEFAULT_ENVELOPE,
    *,
    opcode: Opcode | None = None,
) -> bytes:
    """Serialize *result* with *status* as a complete response envelope.

    Response envelopes never carry authentication; ``options.auth`` is
    ignored.  *opcode* overrides the header opcode as in
    :func:`operation_to_bin`.

    Raises:
        EncodingError: If the body or a header field cannot be represented.

    """
    header = ResponseHeader(
        provider=options.provider,
        session=options.session,
        content_type=BodyType.PROTOBUF,
        opcode=result.OPCODE if opcode is None else opcode,
        status=status,
    )
    body = result_to_body(result)
    packed = _pack_header(
        provider=header.provider,
        session=header.session,
        content_type=header.content_type,
        accept_type=0,
        auth_type=0,
        body_len=len(body),
        auth_len=0,
        opcode=header.opcode,
        status=header.status,
    )
    if wire_response_logger.isEnabledFor(logging.DEBUG):
        wire_response_logger.debug(
            "Write response: header=%s, body=%s",
            fmt_header(asdict(header)),
            fmt_bytes(body),
        )
    if wire_trace_enabled():
        get_wire_trace().debug(
            "response_encoded", opcode=header.opcode.name, status=header.status.name, body_len=len(body)
        )
    return packed + body


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def bin_to_request(data: bytes, *, body_opcode: int | None = None) -> Request:
    """Parse a request envelope produced by :func:`operation_to_bin`.

    The body is parsed as the message of *body_opcode* when given, else
    as the message of the header opcode.  Pass the operation's opcode for
    envelopes framed under a placeholder opcode.

    Raises:
        DecodingError: On bad framing, unknown enum values or a malformed body.

    """
    raw, body, auth = _unpack_envelope(data, "request")
    header = RequestHeader(
        provider=_to_enum(ProviderId, raw.provider, "provider"),
        session=raw.session,
        content_type=_to_enum(BodyType, raw.content_type, "content type"),
        accept_type=_to_enum(BodyType, raw.accept_type, "accept type"),
        auth_type=_to_enum(AuthType, raw.auth_type, "auth type"),
        opcode=_to_enum(Opcode, raw.opcode, "opcode"),
    )
    if raw.status != 0:
        raise DecodingError(f"request header carries status {raw.status}")
    if wire_request_logger.isEnabledFor(logging.DEBUG):
        wire_request_logger.debug(
            "Read request: header=%s, body=%s, auth_len=%d",
            fmt_header(asdict(header)),
            fmt_bytes(body),
            len(auth),
        )
    dispatch = header.opcode if body_opcode is None else body_opcode
    return Request(header=header, operation=body_to_operation(dispatch, body), auth=auth)


def bin_to_response(data: bytes, *, body_opcode: int | None = None) -> Response:
    """Parse a response envelope produced by :func:`result_to_bin`.

    The body is only parsed when the status is ``SUCCESS``, as the message
    of *body_opcode* when given, else of the header opcode.

    Raises:
        DecodingError: On bad framing, unknown enum values or a malformed body.

    """
    raw, body, auth = _unpack_envelope(data, "response")
    if auth:
        raise DecodingError(f"response envelope carries {len(auth)} auth bytes")
    header = ResponseHeader(
        provider=_to_enum(ProviderId, raw.provider, "provider"),
        session=raw.session,
        content_type=_to_enum(BodyType, raw.content_type, "content type"),
        opcode=_to_enum(Opcode, raw.opcode, "opcode"),
        status=_to_enum(ResponseStatus, raw.status, "status"),
    )
    if wire_response_logger.isEnabledFor(logging.DEBUG):
        wire_response_logger.debug(
            "Read response: header=%s, body=%s",
            fmt_header(asdict(header)),
            fmt_bytes(body),
        )
    dispatch = header.opcode if body_opcode is None else body_opcode
    result = body_to_result(dispatch, body) if header.status.is_success else None
    return Response(header=header, result=result)
