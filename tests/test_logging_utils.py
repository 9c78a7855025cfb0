"""Tests for parsec_test_gen.logging_utils and the wire debug helpers."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from parsec_test_gen._debug import enum_name, fmt_bytes, fmt_header, wire_trace_enabled
from parsec_test_gen.logging_utils import ParsecJsonFormatter
from parsec_test_gen.operations import ListClientsOperation
from parsec_test_gen.requests import AuthType, Opcode, ResponseStatus
from parsec_test_gen.wire import operation_to_bin


def _record(msg: str = "test", level: int = logging.INFO, exc_info: object = None) -> logging.LogRecord:
    return logging.LogRecord(
        name="parsec_test_gen.suites",
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=exc_info,  # type: ignore[arg-type]
    )


class TestParsecJsonFormatter:
    """Tests for ParsecJsonFormatter."""

    def test_valid_json_output(self) -> None:
        """Output should be valid JSON with the standard fields."""
        parsed = json.loads(ParsecJsonFormatter().format(_record("built")))
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "parsec_test_gen.suites"
        assert parsed["message"] == "built"
        assert "timestamp" in parsed

    def test_extra_fields_in_output(self) -> None:
        """Extra fields should appear in JSON output."""
        record = _record()
        record.operation_kind = "list_clients"
        record.test_count = 2
        parsed = json.loads(ParsecJsonFormatter().format(record))
        assert parsed["operation_kind"] == "list_clients"
        assert parsed["test_count"] == 2

    def test_extra_cannot_override_standard_fields(self) -> None:
        """An extra named like a standard field does not replace it."""
        record = _record("real")
        record.level = "fake"
        parsed = json.loads(ParsecJsonFormatter().format(record))
        assert parsed["level"] == "INFO"

    def test_bytes_rendered_as_hex(self) -> None:
        """Byte values are written the way the wire debug logs show them."""
        record = _record()
        record.body = b"\x0a\x03jim"
        parsed = json.loads(ParsecJsonFormatter().format(record))
        assert parsed["body"] == "0a036a696d (5 bytes)"

    def test_enum_rendered_by_name(self) -> None:
        """Protocol enum extras serialize as their member name."""
        record = _record()
        record.op_code = Opcode.LIST_CLIENTS
        record.auth_type = AuthType.DIRECT
        parsed = json.loads(ParsecJsonFormatter().format(record))
        assert parsed["op_code"] == "LIST_CLIENTS"
        assert parsed["auth_type"] == "DIRECT"

    def test_plain_op_code_looked_up(self) -> None:
        """Integer op_code extras, as suite builds log them, are named from the opcode table."""
        record = _record()
        record.op_code = 27
        parsed = json.loads(ParsecJsonFormatter().format(record))
        assert parsed["op_code"] == "LIST_CLIENTS"

    def test_plain_status_looked_up(self) -> None:
        """Integer status extras are named from the status table."""
        record = _record()
        record.status = 1134
        parsed = json.loads(ParsecJsonFormatter().format(record))
        assert parsed["status"] == "PSA_ERROR_NOT_SUPPORTED"

    def test_unknown_code_rendered_as_hex(self) -> None:
        """Codes missing from the table fall back to hex."""
        record = _record()
        record.op_code = 0x7777
        parsed = json.loads(ParsecJsonFormatter().format(record))
        assert parsed["op_code"] == "0x7777"

    def test_bool_not_treated_as_code(self) -> None:
        """Booleans under a code key are left alone."""
        record = _record()
        record.status = True
        parsed = json.loads(ParsecJsonFormatter().format(record))
        assert parsed["status"] is True

    def test_other_ints_untouched(self) -> None:
        """Integers under other keys stay numeric."""
        record = _record()
        record.session = 27
        parsed = json.loads(ParsecJsonFormatter().format(record))
        assert parsed["session"] == 27

    def test_header_mapping_rendered_per_field(self) -> None:
        """Mappings such as decoded header fields render member by member."""
        record = _record()
        record.header = {"opcode": Opcode.PING, "status": 1134, "session": 0, "auth": b"root"}
        parsed = json.loads(ParsecJsonFormatter().format(record))
        assert parsed["header"] == {
            "opcode": "PING",
            "status": "PSA_ERROR_NOT_SUPPORTED",
            "session": 0,
            "auth": "726f6f74 (4 bytes)",
        }

    def test_exception_info_included(self) -> None:
        """Exception info should be included in JSON output."""
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()
        parsed = json.loads(ParsecJsonFormatter().format(_record(level=logging.ERROR, exc_info=exc_info)))
        assert "ValueError" in parsed["exception"]

    def test_non_serializable_coerced(self) -> None:
        """Other non-serializable values are coerced to strings."""
        record = _record()
        record.custom_obj = object()
        parsed = json.loads(ParsecJsonFormatter().format(record))
        assert parsed["custom_obj"].startswith("<object object")


class TestFormatHelpers:
    """Tests for fmt_bytes and fmt_header."""

    def test_fmt_bytes_short(self) -> None:
        """Short payloads are shown in full."""
        assert fmt_bytes(b"\x0a\x03jim") == "0a036a696d (5 bytes)"

    def test_fmt_bytes_empty(self) -> None:
        """Empty payloads show only the length."""
        assert fmt_bytes(b"") == " (0 bytes)"

    def test_fmt_bytes_truncated(self) -> None:
        """Payloads longer than 32 bytes are truncated."""
        out = fmt_bytes(bytes(40))
        assert out == "00" * 32 + "... (40 bytes)"

    def test_fmt_header_enum_names(self) -> None:
        """Enum members are shown by name, plain values as-is."""
        assert fmt_header({"opcode": Opcode.LIST_CLIENTS, "session": 0}) == "{opcode=LIST_CLIENTS, session=0}"

    def test_enum_name(self) -> None:
        """enum_name unwraps enum members and passes other values through."""
        assert enum_name(ResponseStatus.SUCCESS) == "SUCCESS"
        assert enum_name(0) == 0
        assert enum_name("x") == "x"


class TestWireTrace:
    """Tests for the PARSEC_TEST_GEN_WIRE_DEBUG structlog trace."""

    @pytest.mark.parametrize(
        ("value", "enabled"),
        [("1", True), ("TRUE", True), ("yes", True), ("0", False), ("", False)],
    )
    def test_env_toggle(self, monkeypatch: pytest.MonkeyPatch, value: str, enabled: bool) -> None:
        """The trace follows the environment variable."""
        monkeypatch.setenv("PARSEC_TEST_GEN_WIRE_DEBUG", value)
        assert wire_trace_enabled() is enabled

    def test_trace_written_to_stderr(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """With the trace on, encoding an envelope writes a trace line."""
        monkeypatch.setenv("PARSEC_TEST_GEN_WIRE_DEBUG", "1")
        # Rebuild the trace logger so it binds the captured stderr.
        monkeypatch.setattr("parsec_test_gen._debug._wire_trace", None)
        operation_to_bin(ListClientsOperation())
        err = capsys.readouterr().err
        assert "request_encoded" in err
        assert "LIST_CLIENTS" in err
