# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Tests for parsec_test_gen.wire: request/response envelopes."""

from __future__ import annotations

import logging
import struct

import pytest

from parsec_test_gen.errors import DecodingError, EncodingError
from parsec_test_gen.operations import ListClientsOperation, ListClientsResult
from parsec_test_gen.requests import AuthType, BodyType, Opcode, ProviderId, ResponseStatus
from parsec_test_gen.wire import (
    ENVELOPE_HEADER_LEN,
    EnvelopeOptions,
    bin_to_request,
    bin_to_response,
    operation_to_bin,
    result_to_bin,
)


def _patch(data: bytes, offset: int, fmt: str, value: int) -> bytes:
    """Overwrite one little-endian header field."""
    buf = bytearray(data)
    struct.pack_into(fmt, buf, offset, value)
    return bytes(buf)


# Header field offsets
_MAGIC = 0
_HEADER_SIZE = 4
_VERSION_MAJ = 6
_AUTH_TYPE = 21
_BODY_LEN = 22
_AUTH_LEN = 26
_OPCODE = 28
_STATUS = 32
_RESERVED1 = 34


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


class TestRequestEncoding:
    """Tests for operation_to_bin."""

    def test_golden_bytes(self, golden_hex: dict[str, str]) -> None:
        """Default options under the Ping header produce the reference request."""
        assert operation_to_bin(ListClientsOperation(), opcode=Opcode.PING).hex() == golden_hex["request"]

    def test_header_opcode_defaults_to_operation(self) -> None:
        """Without an override the header carries the operation's own opcode."""
        data = operation_to_bin(ListClientsOperation())
        assert struct.unpack_from("<I", data, _OPCODE)[0] == Opcode.LIST_CLIENTS

    def test_header_opcode_override(self) -> None:
        """The override changes only the opcode field."""
        default = operation_to_bin(ListClientsOperation())
        framed = operation_to_bin(ListClientsOperation(), opcode=Opcode.PING)
        assert struct.unpack_from("<I", framed, _OPCODE)[0] == Opcode.PING
        assert default[:_OPCODE] == framed[:_OPCODE]
        assert default[_OPCODE + 4 :] == framed[_OPCODE + 4 :]

    def test_header_length(self) -> None:
        """The fixed header is 36 bytes, magic number included."""
        assert ENVELOPE_HEADER_LEN == 36
        assert len(operation_to_bin(ListClientsOperation())) == 36

    def test_direct_auth_appended(self) -> None:
        """Direct auth writes the auth type, length, and trailing bytes."""
        data = operation_to_bin(ListClientsOperation(), EnvelopeOptions.direct("root"))
        assert data[_AUTH_TYPE] == AuthType.DIRECT
        assert struct.unpack_from("<H", data, _AUTH_LEN)[0] == 4
        assert data.endswith(b"root")

    def test_auth_too_long(self) -> None:
        """auth_len is a u16; longer auth cannot be framed."""
        options = EnvelopeOptions(auth_type=AuthType.DIRECT, auth=b"x" * 0x10000)
        with pytest.raises(EncodingError, match="out of range"):
            operation_to_bin(ListClientsOperation(), options)

    def test_negative_session(self) -> None:
        """The session handle is unsigned."""
        with pytest.raises(EncodingError):
            operation_to_bin(ListClientsOperation(), EnvelopeOptions(session=-1))

    def test_debug_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        """Request encoding logs the header at DEBUG on the wire.request logger."""
        with caplog.at_level(logging.DEBUG, logger="parsec_test_gen.wire.request"):
            operation_to_bin(ListClientsOperation(), opcode=Opcode.PING)
        messages = [r.getMessage() for r in caplog.records if r.name == "parsec_test_gen.wire.request"]
        assert len(messages) == 1
        assert "opcode=PING" in messages[0]


class TestResponseEncoding:
    """Tests for result_to_bin."""

    def test_golden_success(self, golden_hex: dict[str, str]) -> None:
        """A two-client success response matches the reference bytes."""
        result = ListClientsResult(clients=("jim", "bob"))
        data = result_to_bin(result, ResponseStatus.SUCCESS, opcode=Opcode.PING)
        assert data.hex() == golden_hex["ok_response"]

    def test_golden_not_supported(self, golden_hex: dict[str, str]) -> None:
        """An empty-list error response carries the status and no body."""
        data = result_to_bin(ListClientsResult(), ResponseStatus.PSA_ERROR_NOT_SUPPORTED, opcode=Opcode.PING)
        assert data.hex() == golden_hex["not_supported_response"]

    def test_header_opcode_defaults_to_result(self) -> None:
        """Without an override the header carries the result's own opcode."""
        data = result_to_bin(ListClientsResult(), ResponseStatus.SUCCESS)
        assert struct.unpack_from("<I", data, _OPCODE)[0] == Opcode.LIST_CLIENTS

    def test_auth_never_written(self) -> None:
        """Responses ignore auth options."""
        data = result_to_bin(ListClientsResult(), ResponseStatus.SUCCESS, EnvelopeOptions.direct("root"))
        assert len(data) == ENVELOPE_HEADER_LEN
        assert data[_AUTH_TYPE] == 0


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class TestRequestDecoding:
    """Tests for bin_to_request."""

    def test_round_trip(self) -> None:
        """Decoding an encoded request recovers header and operation."""
        request = bin_to_request(operation_to_bin(ListClientsOperation(), EnvelopeOptions.direct("app")))
        assert request.operation == ListClientsOperation()
        assert request.header.opcode is Opcode.LIST_CLIENTS
        assert request.header.provider is ProviderId.CORE
        assert request.header.content_type is BodyType.PROTOBUF
        assert request.header.accept_type is BodyType.PROTOBUF
        assert request.header.auth_type is AuthType.DIRECT
        assert request.auth == b"app"

    def test_placeholder_header_decoded_by_body_opcode(self, golden_hex: dict[str, str]) -> None:
        """A Ping-framed request parses as ListClients when the body opcode is given."""
        request = bin_to_request(bytes.fromhex(golden_hex["request"]), body_opcode=Opcode.LIST_CLIENTS)
        assert request.header.opcode is Opcode.PING
        assert request.operation == ListClientsOperation()

    def test_placeholder_header_without_body_opcode(self, golden_hex: dict[str, str]) -> None:
        """The placeholder opcode has no body codec of its own."""
        with pytest.raises(DecodingError, match="no body codec for opcode 0x0001"):
            bin_to_request(bytes.fromhex(golden_hex["request"]))

    def test_truncated_header(self) -> None:
        """Input shorter than the header is rejected."""
        with pytest.raises(DecodingError, match="truncated"):
            bin_to_request(operation_to_bin(ListClientsOperation())[:20])

    def test_bad_magic(self) -> None:
        """The magic number identifies a Parsec envelope."""
        data = _patch(operation_to_bin(ListClientsOperation()), _MAGIC, "<I", 0xDEADBEEF)
        with pytest.raises(DecodingError, match="magic"):
            bin_to_request(data)

    def test_bad_header_size(self) -> None:
        """Only the 1.0 header size is understood."""
        data = _patch(operation_to_bin(ListClientsOperation()), _HEADER_SIZE, "<H", 32)
        with pytest.raises(DecodingError, match="header size"):
            bin_to_request(data)

    def test_unsupported_version(self) -> None:
        """Major versions other than 1 are rejected."""
        data = _patch(operation_to_bin(ListClientsOperation()), _VERSION_MAJ, "<B", 2)
        with pytest.raises(DecodingError, match="version 2.0"):
            bin_to_request(data)

    def test_length_mismatch(self) -> None:
        """Trailing bytes beyond the declared lengths are rejected."""
        with pytest.raises(DecodingError, match="length mismatch"):
            bin_to_request(operation_to_bin(ListClientsOperation()) + b"\x00")

    def test_unknown_opcode(self) -> None:
        """Opcodes outside the table cannot be dispatched."""
        data = _patch(operation_to_bin(ListClientsOperation()), _OPCODE, "<I", 0x7777)
        with pytest.raises(DecodingError, match="invalid opcode"):
            bin_to_request(data)

    def test_request_with_status(self) -> None:
        """Requests never carry a status."""
        data = _patch(operation_to_bin(ListClientsOperation()), _STATUS, "<H", 1)
        with pytest.raises(DecodingError, match="status"):
            bin_to_request(data)

    def test_reserved_bytes(self) -> None:
        """Reserved header bytes must stay zero."""
        data = _patch(operation_to_bin(ListClientsOperation()), _RESERVED1, "<B", 1)
        with pytest.raises(DecodingError, match="reserved"):
            bin_to_request(data)


class TestResponseDecoding:
    """Tests for bin_to_response."""

    def test_success_round_trip(self) -> None:
        """Success responses decode to the encoded result, in order."""
        result = ListClientsResult(clients=("jim", "bob"))
        response = bin_to_response(result_to_bin(result, ResponseStatus.SUCCESS))
        assert response.status is ResponseStatus.SUCCESS
        assert response.result == result
        assert response.header.opcode is Opcode.LIST_CLIENTS

    def test_error_body_not_parsed(self) -> None:
        """Error responses report the status and no result."""
        response = bin_to_response(result_to_bin(ListClientsResult(), ResponseStatus.PSA_ERROR_NOT_SUPPORTED))
        assert response.status is ResponseStatus.PSA_ERROR_NOT_SUPPORTED
        assert response.result is None

    def test_placeholder_header_decoded_by_body_opcode(self, golden_hex: dict[str, str]) -> None:
        """A Ping-framed success response parses its body as the ListClients result."""
        response = bin_to_response(bytes.fromhex(golden_hex["ok_response"]), body_opcode=Opcode.LIST_CLIENTS)
        assert response.header.opcode is Opcode.PING
        assert response.result == ListClientsResult(clients=("jim", "bob"))

    def test_placeholder_error_response_needs_no_body_opcode(self, golden_hex: dict[str, str]) -> None:
        """Error bodies are never dispatched, so the placeholder opcode is enough."""
        response = bin_to_response(bytes.fromhex(golden_hex["not_supported_response"]))
        assert response.header.opcode is Opcode.PING
        assert response.result is None

    def test_unknown_status(self) -> None:
        """Status codes outside the table are rejected."""
        data = _patch(result_to_bin(ListClientsResult(), ResponseStatus.SUCCESS), _STATUS, "<H", 999)
        with pytest.raises(DecodingError, match="invalid status"):
            bin_to_response(data)

    def test_response_with_auth(self) -> None:
        """A request envelope with auth is not a valid response."""
        data = operation_to_bin(ListClientsOperation(), EnvelopeOptions.direct("root"))
        with pytest.raises(DecodingError, match="auth bytes"):
            bin_to_response(data)

    def test_body_shorter_than_declared(self) -> None:
        """A body_len past the end of the input is a length mismatch."""
        data = _patch(result_to_bin(ListClientsResult(), ResponseStatus.SUCCESS), _BODY_LEN, "<I", 4)
        with pytest.raises(DecodingError, match="length mismatch"):
            bin_to_response(data)
