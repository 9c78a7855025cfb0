"""Protobuf body codec for operation and result values.

Parsec bodies are proto3 messages.  The messages fixtures need are small
enough that they are encoded field by field here: varints, length-delimited
strings, and skipping of unknown fields on decode.

KEY FUNCTIONS
-------------
operation_to_body(operation) : Serialize a NativeOperation to body bytes
result_to_body(result) : Serialize a NativeResult to body bytes
body_to_operation(opcode, body) : Parse body bytes into a NativeOperation
body_to_result(opcode, body) : Parse body bytes into a NativeResult

"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import IntEnum

from parsec_test_gen.errors import DecodingError, EncodingError
from parsec_test_gen.operations import (
    ListClientsOperation,
    ListClientsResult,
    NativeOperation,
    NativeResult,
)
from parsec_test_gen.requests import Opcode

__all__ = [
    "WireType",
    "body_to_operation",
    "body_to_result",
    "decode_varint",
    "encode_varint",
    "iter_fields",
    "operation_to_body",
    "result_to_body",
]

_MAX_VARINT = (1 << 64) - 1
_MAX_VARINT_BYTES = 10


class WireType(IntEnum):
    """Protobuf field wire types."""

    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    FIXED32 = 5


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


def encode_varint(value: int) -> bytes:
    """Encode an unsigned integer as a base-128 varint.

    Raises:
        EncodingError: If *value* is negative or wider than 64 bits.

    """
    if value < 0 or value > _MAX_VARINT:
        raise EncodingError(f"varint out of range: {value}")
    out = bytearray()
    while value > 0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def decode_varint(data: bytes, pos: int = 0) -> tuple[int, int]:
    """Decode a varint starting at *pos*.

    Returns:
        ``(value, next_pos)``

    Raises:
        DecodingError: On truncated input or a varint longer than 10 bytes.

    """
    result = 0
    shift = 0
    for i in range(_MAX_VARINT_BYTES):
        if pos + i >= len(data):
            raise DecodingError("truncated varint")
        byte = data[pos + i]
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            if result > _MAX_VARINT:
                raise DecodingError("varint exceeds 64 bits")
            return result, pos + i + 1
        shift += 7
    raise DecodingError("varint longer than 10 bytes")


def _tag(field_number: int, wire_type: WireType) -> bytes:
    return encode_varint((field_number << 3) | wire_type)


def _encode_string(field_number: int, value: str) -> bytes:
    try:
        raw = value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(f"field {field_number} is not valid UTF-8: {e}") from e
    return _tag(field_number, WireType.LENGTH_DELIMITED) + encode_varint(len(raw)) + raw


def iter_fields(body: bytes) -> Iterator[tuple[int, WireType, int | bytes]]:
    """Yield ``(field_number, wire_type, value)`` for each field in *body*.

    Varint fields yield ``int``; every other wire type yields the raw bytes.

    Raises:
        DecodingError: On truncated fields or unsupported wire types.

    """
    pos = 0
    while pos < len(body):
        key, pos = decode_varint(body, pos)
        field_number = key >> 3
        if field_number == 0:
            raise DecodingError("field number 0 is reserved")
        try:
            wire_type = WireType(key & 0x07)
        except ValueError:
            raise DecodingError(f"unsupported wire type {key & 0x07} for field {field_number}") from None
        value: int | bytes
        if wire_type == WireType.VARINT:
            value, pos = decode_varint(body, pos)
        else:
            if wire_type == WireType.LENGTH_DELIMITED:
                size, pos = decode_varint(body, pos)
            else:
                size = 8 if wire_type == WireType.FIXED64 else 4
            if pos + size > len(body):
                raise DecodingError(f"field {field_number} truncated: need {size} bytes, have {len(body) - pos}")
            value = body[pos : pos + size]
            pos += size
        yield field_number, wire_type, value


def _decode_string(field_number: int, wire_type: WireType, value: int | bytes) -> str:
    if wire_type != WireType.LENGTH_DELIMITED or not isinstance(value, bytes):
        raise DecodingError(f"field {field_number}: expected length-delimited, got {wire_type.name}")
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodingError(f"field {field_number} is not valid UTF-8") from e


# ---------------------------------------------------------------------------
# ListClients
# ---------------------------------------------------------------------------

_LIST_CLIENTS_CLIENTS = 1


def _encode_list_clients_operation(operation: ListClientsOperation) -> bytes:
    return b""


def _decode_list_clients_operation(body: bytes) -> ListClientsOperation:
    # proto3: unknown fields are skipped, but they must still parse
    for _ in iter_fields(body):
        pass
    return ListClientsOperation()


def _encode_list_clients_result(result: ListClientsResult) -> bytes:
    return b"".join(_encode_string(_LIST_CLIENTS_CLIENTS, name) for name in result.clients)


def _decode_list_clients_result(body: bytes) -> ListClientsResult:
    clients: list[str] = []
    for field_number, wire_type, value in iter_fields(body):
        if field_number == _LIST_CLIENTS_CLIENTS:
            clients.append(_decode_string(field_number, wire_type, value))
    return ListClientsResult(clients=tuple(clients))


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _BodyCodec:
    encode_operation: Callable[[NativeOperation], bytes]
    decode_operation: Callable[[bytes], NativeOperation]
    encode_result: Callable[[NativeResult], bytes]
    decode_result: Callable[[bytes], NativeResult]


_CODECS: dict[Opcode, _BodyCodec] = {
    Opcode.LIST_CLIENTS: _BodyCodec(
        encode_operation=_encode_list_clients_operation,
        decode_operation=_decode_list_clients_operation,
        encode_result=_encode_list_clients_result,
        decode_result=_decode_list_clients_result,
    ),
}


def _codec_for(opcode: int, error: type[EncodingError] | type[DecodingError]) -> _BodyCodec:
    try:
        return _CODECS[Opcode(opcode)]
    except (ValueError, KeyError):
        raise error(f"no body codec for opcode 0x{opcode:04x}") from None


def operation_to_body(operation: NativeOperation) -> bytes:
    """Serialize *operation* to its protobuf body."""
    return _codec_for(operation.OPCODE, EncodingError).encode_operation(operation)


def result_to_body(result: NativeResult) -> bytes:
    """Serialize *result* to its protobuf body."""
    return _codec_for(result.OPCODE, EncodingError).encode_result(result)


def body_to_operation(opcode: int, body: bytes) -> NativeOperation:
    """Parse a request body for *opcode*."""
    return _codec_for(opcode, DecodingError).decode_operation(body)


def body_to_result(opcode: int, body: bytes) -> NativeResult:
    """Parse a response body for *opcode*."""
    return _codec_for(opcode, DecodingError).decode_result(body)
