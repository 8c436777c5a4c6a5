"""Value edit buffer and its key handling.

An :class:`EditSession` is an immutable snapshot; every key press yields
a new session with the buffer, the cursor and the scroll position
updated together so the wrapped layout never drifts from the cursor.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from kvbrowse._wrap import (
    Row,
    layout_rows,
    locate_cursor,
    scroll_to_cursor,
    visual_to_logical,
)
from kvbrowse.codec import ValueFormat

INDENT = "  "


@dataclass(frozen=True)
class EditSession:
    key: str
    format: ValueFormat
    lines: tuple[str, ...] = ("",)
    cursor_row: int = 0
    cursor_col: int = 0
    dirty: bool = False
    saving: bool = False
    scroll_top: int = 0

    @classmethod
    def open(cls, key: str, fmt: ValueFormat, content: str) -> EditSession:
        lines = tuple(content.split("\n")) if content else ("",)
        return cls(key=key, format=fmt, lines=lines)

    @property
    def buffer(self) -> str:
        return "\n".join(self.lines)

    @property
    def structured(self) -> bool:
        return self.format is ValueFormat.STRUCTURED


def gutter_width(session: EditSession) -> int:
    """Width of the line-number column including its trailing space."""
    return max(3, len(str(len(session.lines)))) + 1


def text_width(session: EditSession, pane_width: int) -> int:
    return max(1, pane_width - gutter_width(session))


def cursor_rows(session: EditSession, width: int) -> list[Row]:
    return layout_rows(session.lines, width, (session.cursor_row, session.cursor_col))


def follow_cursor(session: EditSession, pane_width: int, height: int) -> EditSession:
    """Scroll the minimum amount needed to keep the cursor row visible."""
    width = text_width(session, pane_width)
    rows = cursor_rows(session, width)
    vrow, _ = locate_cursor(
        session.lines, rows, session.cursor_row, session.cursor_col, width
    )
    top = scroll_to_cursor(session.scroll_top, vrow, height, len(rows))
    if top == session.scroll_top:
        return session
    return replace(session, scroll_top=top)


def _clamp(session: EditSession) -> EditSession:
    row = max(0, min(session.cursor_row, len(session.lines) - 1))
    col = max(0, min(session.cursor_col, len(session.lines[row])))
    if (row, col) == (session.cursor_row, session.cursor_col):
        return session
    return replace(session, cursor_row=row, cursor_col=col)


def _edit(session: EditSession, lines: list[str], row: int, col: int) -> EditSession:
    return replace(
        session, lines=tuple(lines), cursor_row=row, cursor_col=col, dirty=True
    )


def _current_indent(line: str) -> int:
    return len(line) - len(line.lstrip()) if line.strip() else 0


def insert_text(session: EditSession, text: str) -> EditSession:
    lines = list(session.lines)
    row, col = session.cursor_row, session.cursor_col
    line = lines[row]
    parts = text.split("\n")
    if len(parts) == 1:
        lines[row] = line[:col] + text + line[col:]
        return _edit(session, lines, row, col + len(text))
    head, tail = line[:col], line[col:]
    new_lines = [head + parts[0], *parts[1:-1], parts[-1] + tail]
    lines[row : row + 1] = new_lines
    return _edit(session, lines, row + len(parts) - 1, len(parts[-1]))


def _insert_char(session: EditSession, char: str) -> EditSession:
    if char in ("}", "]"):
        line = session.lines[session.cursor_row]
        before = line[: session.cursor_col]
        if before and before.strip() == "":
            # closing bracket typed at line start: dedent one level
            new_indent = max(0, len(before) - len(INDENT))
            lines = list(session.lines)
            lines[session.cursor_row] = (
                " " * new_indent + char + line[session.cursor_col :]
            )
            return _edit(session, lines, session.cursor_row, new_indent + 1)
    return insert_text(session, char)


def _newline(session: EditSession) -> EditSession:
    lines = list(session.lines)
    row, col = session.cursor_row, session.cursor_col
    line = lines[row]
    indent = _current_indent(line)
    before = line[:col].rstrip()
    after = line[col:].lstrip()
    lines[row] = line[:col]

    if not session.structured:
        lines.insert(row + 1, line[col:])
        return _edit(session, lines, row + 1, 0)

    if before.endswith(("{", "[")) and after and after[0] in ("}", "]"):
        inner = " " * indent + INDENT
        lines.insert(row + 1, inner)
        lines.insert(row + 2, " " * indent + after)
        return _edit(session, lines, row + 1, len(inner))

    extra = INDENT if before.endswith(("{", "[")) else ""
    lines.insert(row + 1, " " * indent + extra + line[col:])
    return _edit(session, lines, row + 1, indent + len(extra))


def _backspace(session: EditSession) -> EditSession:
    lines = list(session.lines)
    row, col = session.cursor_row, session.cursor_col
    if col > 0:
        line = lines[row]
        lines[row] = line[: col - 1] + line[col:]
        return _edit(session, lines, row, col - 1)
    if row > 0:
        prev = lines[row - 1]
        lines[row - 1] = prev + lines[row]
        lines.pop(row)
        return _edit(session, lines, row - 1, len(prev))
    return session


def _delete_forward(session: EditSession) -> EditSession:
    lines = list(session.lines)
    row, col = session.cursor_row, session.cursor_col
    line = lines[row]
    if col < len(line):
        lines[row] = line[:col] + line[col + 1 :]
        return _edit(session, lines, row, col)
    if row < len(lines) - 1:
        lines[row] = line + lines.pop(row + 1)
        return _edit(session, lines, row, col)
    return session


def _move_horizontal(session: EditSession, delta: int) -> EditSession:
    row, col = session.cursor_row, session.cursor_col + delta
    if col < 0:
        if row == 0:
            return session
        row -= 1
        col = len(session.lines[row])
    elif col > len(session.lines[row]):
        if row >= len(session.lines) - 1:
            return session
        row += 1
        col = 0
    return replace(session, cursor_row=row, cursor_col=col)


def _move_vertical(session: EditSession, delta: int, width: int) -> EditSession:
    """Move by *delta* visual rows, keeping the cell column where possible."""
    rows = cursor_rows(session, width)
    vrow, cells = locate_cursor(
        session.lines, rows, session.cursor_row, session.cursor_col, width
    )
    target = max(0, min(vrow + delta, len(rows) - 1))
    if target == vrow:
        if delta < 0:
            return replace(session, cursor_col=0) if vrow == 0 else session
        return session
    # map onto the layout without the cursor's tail row
    plain = layout_rows(session.lines, width)
    if len(plain) != len(rows) and target > vrow:
        target -= 1
    target = min(target, len(plain) - 1)
    row, col = visual_to_logical(session.lines, plain, target, cells)
    return replace(session, cursor_row=row, cursor_col=col)


def handle_key(
    session: EditSession, key: str, char: str | None, pane_width: int, height: int
) -> EditSession:
    """Apply one key press to *session* and keep the cursor in view."""
    width = text_width(session, pane_width)
    if key == "enter":
        session = _newline(session)
    elif key == "backspace":
        session = _backspace(session)
    elif key == "delete":
        session = _delete_forward(session)
    elif key == "tab":
        session = insert_text(session, INDENT)
    elif key == "left":
        session = _move_horizontal(session, -1)
    elif key == "right":
        session = _move_horizontal(session, 1)
    elif key == "up":
        session = _move_vertical(session, -1, width)
    elif key == "down":
        session = _move_vertical(session, 1, width)
    elif key == "pageup":
        session = _move_vertical(session, -max(1, height - 1), width)
    elif key == "pagedown":
        session = _move_vertical(session, max(1, height - 1), width)
    elif key == "home":
        session = replace(session, cursor_col=0)
    elif key == "end":
        session = replace(session, cursor_col=len(session.lines[session.cursor_row]))
    elif key == "ctrl+home":
        session = replace(session, cursor_row=0, cursor_col=0)
    elif key == "ctrl+end":
        last = len(session.lines) - 1
        session = replace(session, cursor_row=last, cursor_col=len(session.lines[last]))
    elif char and char.isprintable():
        session = _insert_char(session, char)
    session = _clamp(session)
    return follow_cursor(session, pane_width, height)
