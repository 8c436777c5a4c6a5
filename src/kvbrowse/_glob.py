"""Path-style glob patterns for bulk deletes.

``*`` matches any run of characters except ``/``, ``?`` one character
except ``/``, ``[...]`` a character class (``^`` negates, ``a-z`` ranges)
and ``\\`` escapes the next character.  The whole key has to match.
"""

from __future__ import annotations

import re
from functools import lru_cache

from kvbrowse.errors import InvalidPattern


def _parse_class(pattern: str, i: int) -> tuple[str, int]:
    """Translate the class starting after ``[`` at *i*; return (regex, next_i)."""
    n = len(pattern)
    negate = False
    if i < n and pattern[i] == "^":
        negate = True
        i += 1
    parts: list[str] = []
    while True:
        if i >= n:
            raise InvalidPattern(f"unclosed character class in {pattern!r}")
        ch = pattern[i]
        if ch == "]" and parts:
            i += 1
            break
        if ch == "]":
            raise InvalidPattern(f"empty character class in {pattern!r}")
        lo, i = _class_char(pattern, i)
        if i < n and pattern[i] == "-":
            if i + 1 >= n:
                raise InvalidPattern(f"unclosed character class in {pattern!r}")
            hi, i = _class_char(pattern, i + 1)
            if hi < lo:
                raise InvalidPattern(f"bad range {lo}-{hi} in {pattern!r}")
            parts.append(f"{re.escape(lo)}-{re.escape(hi)}")
        else:
            parts.append(re.escape(lo))
    body = "".join(parts)
    if negate:
        return f"[^{body}]", i
    return f"[{body}]", i


def _class_char(pattern: str, i: int) -> tuple[str, int]:
    ch = pattern[i]
    if ch in "-]":
        raise InvalidPattern(f"bad character class in {pattern!r}")
    if ch == "\\":
        i += 1
        if i >= len(pattern):
            raise InvalidPattern(f"trailing backslash in {pattern!r}")
        ch = pattern[i]
    return ch, i + 1


@lru_cache(maxsize=64)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile *pattern* or raise :class:`InvalidPattern`."""
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "*":
            out.append("[^/]*")
            i += 1
        elif ch == "?":
            out.append("[^/]")
            i += 1
        elif ch == "[":
            regex, i = _parse_class(pattern, i + 1)
            out.append(regex)
        elif ch == "\\":
            if i + 1 >= n:
                raise InvalidPattern(f"trailing backslash in {pattern!r}")
            out.append(re.escape(pattern[i + 1]))
            i += 2
        else:
            out.append(re.escape(ch))
            i += 1
    return re.compile("".join(out), re.DOTALL)


def glob_match(pattern: str, key: str) -> bool:
    return compile_glob(pattern).fullmatch(key) is not None
