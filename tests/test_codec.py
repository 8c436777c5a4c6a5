"""Tests for value decoding and encoding."""

import json

import pytest

from kvbrowse.codec import (
    ValueFormat,
    canonical_json,
    decode_for_edit,
    decode_for_view,
    encode,
    hex_dump,
    offset_to_line_col,
)
from kvbrowse.errors import InvalidEncoding

BINARY = bytes([0x00, 0xFF, 0x10, 0x80, 0x41])


class TestRoundTrip:
    @pytest.mark.parametrize("fmt", [ValueFormat.HEX, ValueFormat.BASE64])
    def test_binary_formats_are_lossless(self, fmt):
        assert encode(decode_for_edit(BINARY, fmt).text, fmt) == BINARY

    def test_text_round_trip(self):
        raw = "héllo\nwörld".encode("utf-8")
        assert encode(decode_for_edit(raw, ValueFormat.TEXT).text, ValueFormat.TEXT) == raw

    def test_structured_round_trip_is_canonical(self):
        raw = b'{"b":1,"a":[1,2],"s":"\xc3\xa9"}'
        text = decode_for_edit(raw, ValueFormat.STRUCTURED).text
        stored = encode(text, ValueFormat.STRUCTURED)
        assert json.loads(stored) == json.loads(raw)
        assert encode(stored.decode("utf-8"), ValueFormat.STRUCTURED) == stored

    def test_canonical_keeps_key_order_and_unicode(self):
        assert canonical_json('{"b":1,"a":"é"}') == '{\n  "b": 1,\n  "a": "é"\n}'


class TestDecodeForView:
    def test_hex_dump_layout(self):
        dump = hex_dump(b"AB")
        assert dump.startswith("00000000  41 42 ")
        assert dump.endswith("|AB|")

    def test_hex_dump_lines(self):
        dump = hex_dump(bytes(range(20)))
        lines = dump.split("\n")
        assert len(lines) == 2
        assert lines[1].startswith("00000010  10 11 12 13")
        assert lines[0].endswith("|................|")

    def test_hex_dump_empty(self):
        assert hex_dump(b"") == ""

    def test_invalid_utf8_text_warns(self):
        decoded = decode_for_view(BINARY, ValueFormat.TEXT)
        assert decoded.warning
        assert decoded.text == "AP8QgEE="

    def test_invalid_json_shows_raw_text(self):
        decoded = decode_for_view(b"{oops", ValueFormat.STRUCTURED)
        assert decoded.text == "{oops"
        assert "JSON error at 1:2" in decoded.warning

    def test_valid_json_is_structured(self):
        decoded = decode_for_view(b'{"a":1}', ValueFormat.STRUCTURED)
        assert decoded.structured
        assert decoded.text == '{\n  "a": 1\n}'
        assert decoded.warning == ""


class TestDecodeForEdit:
    @pytest.mark.parametrize("fmt", [ValueFormat.TEXT, ValueFormat.STRUCTURED])
    def test_refuses_invalid_utf8(self, fmt):
        with pytest.raises(InvalidEncoding):
            decode_for_edit(BINARY, fmt)

    def test_invalid_json_is_editable(self):
        decoded = decode_for_edit(b"[1,", ValueFormat.STRUCTURED)
        assert decoded.text == "[1,"
        assert "you can fix it" in decoded.warning

    def test_hex_edit_text(self):
        assert decode_for_edit(b"AB", ValueFormat.HEX).text == "4142"


class TestEncode:
    def test_hex_ignores_prefix_and_separators(self):
        assert encode("0x41 42\n", ValueFormat.HEX) == b"AB"
        assert encode("41:4A", ValueFormat.HEX) == b"AJ"

    def test_hex_odd_length(self):
        with pytest.raises(InvalidEncoding):
            encode("414", ValueFormat.HEX)

    def test_base64_ignores_line_breaks(self):
        assert encode("QU\r\nI=\n", ValueFormat.BASE64) == b"AB"

    def test_base64_invalid(self):
        with pytest.raises(InvalidEncoding):
            encode("not base64!", ValueFormat.BASE64)

    def test_json_error_position(self):
        with pytest.raises(InvalidEncoding) as info:
            encode('{"a":}', ValueFormat.STRUCTURED)
        assert info.value.line == 1
        assert info.value.column == 6
        assert str(info.value).startswith("JSON error at 1:6:")

    def test_json_error_on_second_line(self):
        with pytest.raises(InvalidEncoding) as info:
            encode('{\n  "a": tru\n}', ValueFormat.STRUCTURED)
        assert info.value.line == 2

    def test_nan_is_rejected(self):
        with pytest.raises(InvalidEncoding):
            encode('{"a": NaN}', ValueFormat.STRUCTURED)

    def test_lone_surrogate_is_rejected(self):
        with pytest.raises(InvalidEncoding):
            encode("bad \udcff", ValueFormat.TEXT)

    def test_escaped_lone_surrogate_in_json_can_be_saved(self):
        raw = b'{"a": "\\ud800", "b": "\xc3\xa9"}'
        text = decode_for_edit(raw, ValueFormat.STRUCTURED).text
        stored = encode(text, ValueFormat.STRUCTURED)
        assert stored == b'{\n  "a": "\\ud800",\n  "b": "\xc3\xa9"\n}'
        assert json.loads(stored) == json.loads(raw)


class TestOffsets:
    def test_offset_to_line_col(self):
        assert offset_to_line_col("ab\ncd", 0) == (1, 1)
        assert offset_to_line_col("ab\ncd", 4) == (2, 2)
        assert offset_to_line_col("ab\ncd", 99) == (2, 3)
