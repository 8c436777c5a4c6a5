"""Width-aware word wrapping and logical/visual cursor mapping."""

from __future__ import annotations

from dataclasses import dataclass

from rich.cells import cell_len, get_character_cell_size


@dataclass(frozen=True)
class Row:
    """One visual row: ``lines[line][start:end]``."""

    line: int
    start: int
    end: int


@dataclass(frozen=True)
class VisualLine:
    """A drawable row: its fitted text plus where it came from."""

    text: str
    source_line_number: int | None  # 1-based, first row of a line only
    row: Row


def wrap_segments(line: str, width: int) -> list[tuple[int, int]]:
    """Break *line* into ``(start, end)`` ranges that fit *width* cells.

    Words (runs of non-space) are kept whole when possible; the spaces
    after a word stay on its row even if they overhang the width.  A word
    wider than the width is hard-broken at the width boundary.
    """
    n = len(line)
    if width <= 0 or n == 0:
        return [(0, n)]
    segs: list[tuple[int, int]] = []
    row_start = 0
    row_w = 0
    i = 0
    while i < n:
        j = i
        while j < n and not line[j].isspace():
            j += 1
        word_w = cell_len(line[i:j])
        if row_w and row_w + word_w > width:
            segs.append((row_start, i))
            row_start = i
            row_w = 0
        if word_w > width:
            for idx in range(i, j):
                cw = get_character_cell_size(line[idx])
                if row_w + cw > width and idx > row_start:
                    segs.append((row_start, idx))
                    row_start = idx
                    row_w = 0
                row_w += cw
        else:
            row_w += word_w
        k = j
        while k < n and line[k].isspace():
            k += 1
        row_w += cell_len(line[j:k])
        i = k
    segs.append((row_start, n))
    return segs


def fit_row(text: str, width: int) -> str:
    """Drop overhanging trailing spaces so *text* fits *width* cells."""
    while text and text[-1].isspace() and cell_len(text) > width:
        text = text[:-1]
    return text


def _needs_tail_row(line: str, width: int, segs: list[tuple[int, int]]) -> bool:
    """True if a cursor placed after the last character needs its own row."""
    if not line:
        return False
    s, e = segs[-1]
    return cell_len(line[s:e]) + 1 > width


def layout_rows(
    lines: list[str] | tuple[str, ...],
    width: int,
    cursor: tuple[int, int] | None = None,
) -> list[Row]:
    """Flatten *lines* into visual rows.

    When *cursor* sits at the end of a line whose last row is full, an
    empty row is added after it so the cursor cell has room.
    """
    rows: list[Row] = []
    for idx, line in enumerate(lines):
        segs = wrap_segments(line, width)
        for s, e in segs:
            rows.append(Row(idx, s, e))
        if (
            cursor is not None
            and cursor[0] == idx
            and cursor[1] >= len(line)
            and _needs_tail_row(line, width, segs)
        ):
            rows.append(Row(idx, len(line), len(line)))
    return rows


def visual_lines(
    lines: list[str] | tuple[str, ...],
    width: int,
    cursor: tuple[int, int] | None = None,
) -> list[VisualLine]:
    """:func:`layout_rows` with each row's text and gutter number filled in."""
    out: list[VisualLine] = []
    for row in layout_rows(lines, width, cursor):
        first = row.start == 0
        text = fit_row(lines[row.line][row.start : row.end], width)
        out.append(VisualLine(text, row.line + 1 if first else None, row))
    return out


def wrap_text(line: str, width: int) -> list[str]:
    return [vl.text for vl in visual_lines([line], width)]


def locate_cursor(
    lines: list[str] | tuple[str, ...],
    rows: list[Row],
    line: int,
    col: int,
    width: int,
) -> tuple[int, int]:
    """Map logical ``(line, col)`` to ``(visual_row, cell_offset)`` in *rows*.

    *rows* must come from :func:`layout_rows` for the same lines and width,
    so the cursor always lands on a row that is actually drawn.
    """
    found = -1
    for ri, row in enumerate(rows):
        if row.line < line:
            continue
        if row.line > line:
            break
        found = ri
        if col < row.end:
            break
    if found < 0:
        return 0, 0
    row = rows[found]
    text = lines[row.line][row.start : max(row.start, min(col, row.end))]
    cells = cell_len(text)
    if width > 0:
        cells = min(cells, width - 1)
    return found, cells


def visual_to_logical(
    lines: list[str] | tuple[str, ...], rows: list[Row], ri: int, cells: int
) -> tuple[int, int]:
    """Map a visual row and cell offset back to logical ``(line, col)``."""
    ri = max(0, min(ri, len(rows) - 1))
    row = rows[ri]
    line = lines[row.line]
    col = row.start
    used = 0
    while col < row.end:
        cw = get_character_cell_size(line[col])
        if used + cw > cells:
            break
        used += cw
        col += 1
    last_row_of_line = ri + 1 >= len(rows) or rows[ri + 1].line != row.line
    if col == row.end and not last_row_of_line and col > row.start:
        # the end of a wrapped row belongs to the next row
        col -= 1
    return row.line, col


def scroll_to_cursor(top: int, cursor_row: int, height: int, total_rows: int) -> int:
    """Shift *top* the minimum amount so *cursor_row* is visible."""
    height = max(1, height)
    if cursor_row < top:
        top = cursor_row
    elif cursor_row >= top + height:
        top = cursor_row - height + 1
    return max(0, min(top, max(0, total_rows - height)))
