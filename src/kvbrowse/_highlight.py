"""JSON syntax tokenizer and colorizer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from rich.text import Text


class TokenKind(Enum):
    KEY = auto()
    STRING = auto()
    NUMBER = auto()
    KEYWORD = auto()  # true / false / null
    PUNCT = auto()
    PLAIN = auto()


@dataclass(frozen=True)
class Span:
    kind: TokenKind
    start: int
    end: int


STYLES: dict[TokenKind, str] = {
    TokenKind.KEY: "bold cyan",
    TokenKind.STRING: "green",
    TokenKind.NUMBER: "yellow",
    TokenKind.KEYWORD: "bold magenta",
    TokenKind.PUNCT: "bold white",
    TokenKind.PLAIN: "",
}

_PUNCT = set("{}[]:,")
_NUMBER_CHARS = set("0123456789.eE+-")
_WHITESPACE = set(" \t\r\n")
_KEYWORDS = ("true", "false", "null")


def _is_ident(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _followed_by_colon(s: str, idx: int) -> bool:
    while idx < len(s):
        if s[idx] in _WHITESPACE:
            idx += 1
            continue
        return s[idx] == ":"
    return False


def _keyword_at(s: str, idx: int) -> str:
    for kw in _KEYWORDS:
        if s.startswith(kw, idx):
            end = idx + len(kw)
            if end >= len(s) or not _is_ident(s[end]):
                return kw
    return ""


def tokenize(s: str) -> list[Span]:
    """Split *s* into consecutive, non-overlapping spans covering all of it."""
    spans: list[Span] = []
    plain_start = -1
    i = 0
    n = len(s)

    def flush(upto: int) -> None:
        nonlocal plain_start
        if plain_start >= 0:
            spans.append(Span(TokenKind.PLAIN, plain_start, upto))
            plain_start = -1

    while i < n:
        ch = s[i]
        if ch == '"':
            flush(i)
            start = i
            i += 1
            while i < n:
                if s[i] == "\\":
                    i += 2
                    continue
                if s[i] == '"':
                    i += 1
                    break
                i += 1
            i = min(i, n)
            kind = TokenKind.KEY if _followed_by_colon(s, i) else TokenKind.STRING
            spans.append(Span(kind, start, i))
            continue
        if ch in _PUNCT:
            flush(i)
            spans.append(Span(TokenKind.PUNCT, i, i + 1))
            i += 1
            continue
        if ch.isdigit() or (ch == "-" and i + 1 < n and s[i + 1].isdigit()):
            flush(i)
            start = i
            i += 1
            while i < n and s[i] in _NUMBER_CHARS:
                i += 1
            spans.append(Span(TokenKind.NUMBER, start, i))
            continue
        kw = _keyword_at(s, i)
        if kw:
            flush(i)
            spans.append(Span(TokenKind.KEYWORD, i, i + len(kw)))
            i += len(kw)
            continue
        if plain_start < 0:
            plain_start = i
        i += 1
    flush(n)
    return spans


def slice_spans(spans: list[Span], start: int, end: int) -> list[Span]:
    """Clip *spans* to the ``[start, end)`` window, rebased to *start*."""
    out: list[Span] = []
    for span in spans:
        if span.end <= start:
            continue
        if span.start >= end:
            break
        out.append(
            Span(span.kind, max(span.start, start) - start, min(span.end, end) - start)
        )
    return out


def colorize(s: str, spans: list[Span] | None = None) -> Text:
    if spans is None:
        spans = tokenize(s)
    text = Text()
    for span in spans:
        text.append(s[span.start : span.end], style=STYLES[span.kind])
    return text


def colorize_with_cursor(
    s: str,
    cursor: int,
    spans: list[Span] | None = None,
    cursor_style: str = "reverse",
) -> Text:
    """Colorize *s* and mark the cell at *cursor*.

    A cursor at or past the end is drawn as a trailing blank cell.
    """
    text = colorize(s, spans)
    cursor = max(0, cursor)
    if cursor >= len(s):
        text.append(" ", style=cursor_style)
    else:
        text.stylize(cursor_style, cursor, cursor + 1)
    return text
