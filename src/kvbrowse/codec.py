"""Conversion between stored bytes and their textual representations."""

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass
from enum import Enum

from kvbrowse.errors import InvalidEncoding


class ValueFormat(Enum):
    TEXT = "text"
    HEX = "hex"
    BASE64 = "base64"
    STRUCTURED = "json"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class Decoded:
    """Text rendering of a value plus how it should be displayed."""

    text: str
    warning: str = ""
    structured: bool = False  # colorize as JSON


_NON_HEX = re.compile(r"[^0-9a-f]")
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def offset_to_line_col(text: str, offset: int) -> tuple[int, int]:
    """Return the 1-based ``(line, column)`` of character index *offset*."""
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset) + 1
    col = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, col


def _reject_constant(name: str) -> None:
    raise ValueError(f"invalid literal {name}")


def parse_json(text: str) -> object:
    """Parse *text* strictly, raising :class:`InvalidEncoding` with a position."""
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        line, col = offset_to_line_col(exc.doc, exc.pos)
        raise InvalidEncoding(
            f"JSON error at {line}:{col}: {exc.msg}", line=line, column=col
        ) from exc
    except ValueError as exc:
        raise InvalidEncoding(f"JSON error: {exc}") from exc


def canonical_json(text: str) -> str:
    out = json.dumps(parse_json(text), indent=2, ensure_ascii=False)
    # unpaired \uXXXX escapes decode to surrogates that UTF-8 cannot hold
    return _LONE_SURROGATE.sub(lambda m: f"\\u{ord(m.group()):04x}", out)


def hex_dump(raw: bytes) -> str:
    """Classic 16-bytes-per-line dump with offset and ASCII columns."""
    lines: list[str] = []
    for off in range(0, len(raw), 16):
        chunk = raw[off : off + 16]
        left = " ".join(f"{b:02x}" for b in chunk[:8])
        right = " ".join(f"{b:02x}" for b in chunk[8:])
        text = "".join(chr(b) if 32 <= b < 127 else "." for b in chunk)
        lines.append(f"{off:08x}  {left:<23}  {right:<23}  |{text}|")
    return "\n".join(lines)


def _utf8(raw: bytes) -> str | None:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def decode_for_view(raw: bytes, fmt: ValueFormat) -> Decoded:
    """Render *raw* read-only in *fmt*. Never raises."""
    if fmt is ValueFormat.HEX:
        return Decoded(hex_dump(raw))
    if fmt is ValueFormat.BASE64:
        return Decoded(_b64(raw))
    text = _utf8(raw)
    if text is None:
        what = "cannot be JSON" if fmt is ValueFormat.STRUCTURED else "showing base64"
        return Decoded(_b64(raw), warning=f"Warning: invalid UTF-8; {what}.")
    if fmt is ValueFormat.TEXT:
        return Decoded(text)
    try:
        return Decoded(canonical_json(text), structured=True)
    except InvalidEncoding as exc:
        # still colorize the raw text so the problem can be spotted
        return Decoded(text, warning=f"Warning: invalid JSON: {exc}", structured=True)


def decode_for_edit(raw: bytes, fmt: ValueFormat) -> Decoded:
    """Return the editable text of *raw* in *fmt*.

    Raises :class:`InvalidEncoding` when the bytes cannot be edited as
    text without losing data.
    """
    if fmt is ValueFormat.HEX:
        return Decoded(raw.hex())
    if fmt is ValueFormat.BASE64:
        return Decoded(_b64(raw))
    text = _utf8(raw)
    if text is None:
        raise InvalidEncoding(
            "invalid UTF-8; switch to hex or base64 to edit this value"
        )
    if fmt is ValueFormat.TEXT:
        return Decoded(text)
    try:
        return Decoded(canonical_json(text), structured=True)
    except InvalidEncoding as exc:
        return Decoded(
            text, warning=f"Warning: invalid JSON: {exc} (you can fix it)", structured=True
        )


def encode(text: str, fmt: ValueFormat) -> bytes:
    """Turn edited *text* back into the bytes to store."""
    if fmt is ValueFormat.HEX:
        clean = _NON_HEX.sub("", text.lower().replace("0x", ""))
        if len(clean) % 2:
            raise InvalidEncoding("hex length must be even")
        try:
            return bytes.fromhex(clean)
        except ValueError as exc:
            raise InvalidEncoding(f"invalid hex: {exc}") from exc
    if fmt is ValueFormat.BASE64:
        clean = text.strip().replace("\r", "").replace("\n", "")
        try:
            return base64.b64decode(clean, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidEncoding(f"invalid base64: {exc}") from exc
    try:
        if fmt is ValueFormat.STRUCTURED:
            return canonical_json(text).encode("utf-8")
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidEncoding(f"value must be valid UTF-8: {exc.reason}") from exc
