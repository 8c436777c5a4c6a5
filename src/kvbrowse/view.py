"""Render an :class:`~kvbrowse.model.AppState` into a rich ``Text`` frame."""

from __future__ import annotations

from rich.cells import cell_len
from rich.text import Text

from kvbrowse import __version__, editor
from kvbrowse._highlight import colorize, colorize_with_cursor, slice_spans, tokenize
from kvbrowse._wrap import locate_cursor, visual_lines, wrap_text
from kvbrowse.model import AppState, Mode, value_lines

SEVERITY_STYLE = {
    "information": "",
    "warning": "bold yellow",
    "error": "bold red",
}
HEADER_STYLE = "bold white on dark_blue"
PANEL_TITLE_STYLE = "bold cyan"
GUTTER_STYLE = "dim"
OVERLAY_STYLE = "white on grey23"

ABOUT_LINES = (
    f"kvbrowse {__version__}",
    "Browse and edit an LMDB key-value store.",
    "",
    "↑/↓ PgUp/PgDn Home/End   move",
    "Enter                    focus value",
    "t h b j                  text / hex / base64 / json",
    "/                        filter keys",
    "e                        edit value (Ctrl+S save, Esc cancel)",
    "d / Del                  delete key",
    "p                        delete by glob pattern",
    "g                        group counts",
    "r                        retry loading keys after an error",
    "q / Ctrl+C               quit",
    "",
    "F1 / Esc to close",
)


def _fit(text: Text, width: int) -> Text:
    text.truncate(max(0, width), overflow="crop", pad=True)
    return text


def _header(state: AppState) -> Text:
    browser = state.browser
    if browser.loading:
        suffix = "…"
    elif browser.has_more:
        suffix = "+"
    else:
        suffix = ""
    label = "(memory)" if state.settings.memory else state.settings.db_path
    parts = [f" kvbrowse  {label}", f"Keys: {len(browser.keys)}{suffix}", state.format.label]
    flt = state.filter
    if flt.term.strip():
        if flt.count_loading:
            total = "…"
        elif flt.count_error:
            total = "!"
        elif flt.match_count is not None:
            total = str(flt.match_count)
        else:
            total = "?"
        parts.append(f"Filter: {flt.term.strip()}")
        parts.append(f"Matches: {len(state.visible_keys)}/{total}")
        if flt.full_scan_in_progress:
            parts.append("scanning…")
    if state.settings.read_only:
        parts.append("[readonly]")
    return Text("  ".join(parts), style=HEADER_STYLE)


def _list_rows(state: AppState) -> list[Text]:
    lay = state.layout
    keys = state.visible_keys
    rows: list[Text] = []
    title = "Keys" if not state.filter.term.strip() else f"Keys /{state.filter.term}"
    rows.append(Text(title, style=PANEL_TITLE_STYLE))
    if not len(keys):
        if state.browser.loading:
            rows.append(Text("Loading...", style="dim"))
        elif state.filter.term.strip():
            rows.append(Text("(no matches)", style="dim"))
        else:
            rows.append(Text("(no keys)", style="dim"))
    list_focused = state.mode is Mode.BROWSING and not state.filter.editing
    end = min(len(keys), state.list_top + lay.list_height)
    for idx in range(state.list_top, end):
        key = keys[idx]
        if idx == state.cursor:
            style = "reverse" if list_focused else "bold"
            row = Text("│ ", style="bold cyan")
            row.append(key, style=style)
        else:
            row = Text("  " + key)
        rows.append(row)
    return rows


def _value_rows(state: AppState) -> list[Text]:
    lay = state.layout
    width = lay.right_width
    value = state.value
    if value is None:
        return [Text("Value", style=PANEL_TITLE_STYLE), Text("(nothing selected)", style="dim")]
    title = Text(f"Value: {value.key} [{state.format.label}]", style=PANEL_TITLE_STYLE)
    if state.mode is Mode.VALUE_FOCUSED:
        title.stylize("underline")
    lines = value_lines(value)
    structured = bool(value.decoded and value.decoded.structured and not value.error)
    warning_rows = 2 if value.decoded and value.decoded.warning else 0
    out = [title]
    top = state.value_scroll
    for vl in visual_lines(lines, width)[top : top + lay.content_height]:
        row = vl.row
        if value.error or row.line < warning_rows:
            out.append(Text(vl.text, style="bold red" if value.error else "yellow"))
        elif structured:
            spans = slice_spans(tokenize(lines[row.line]), row.start, row.end)
            out.append(colorize(vl.text, spans))
        else:
            out.append(Text(vl.text))
    return out


def _editor_rows(state: AppState, session: editor.EditSession) -> list[Text]:
    lay = state.layout
    gutter = editor.gutter_width(session)
    width = editor.text_width(session, lay.right_width)
    cursor = (session.cursor_row, session.cursor_col)
    vls = visual_lines(session.lines, width, cursor)
    vrow, _ = locate_cursor(
        session.lines, [vl.row for vl in vls], session.cursor_row, session.cursor_col, width
    )
    marker = " *" if session.dirty else ""
    saving = " (saving)" if session.saving else ""
    out = [
        Text(
            f"Edit: {session.key} [{session.format.label}]{marker}{saving}",
            style="bold yellow",
        )
    ]
    spans_by_line: dict[int, list] = {}
    for ri in range(session.scroll_top, min(len(vls), session.scroll_top + lay.content_height)):
        vl = vls[ri]
        row, seg = vl.row, vl.text
        if vl.source_line_number is None:
            number = " " * (gutter - 1)
        else:
            number = str(vl.source_line_number).rjust(gutter - 1)
        text = Text(number + " ", style=GUTTER_STYLE)
        col = min(session.cursor_col - row.start, len(seg)) if ri == vrow else None
        if col is not None and seg and col >= len(seg) and cell_len(seg) >= width:
            # the row is full: mark its last cell instead of one past the edge
            col = len(seg) - 1
        if session.structured:
            if row.line not in spans_by_line:
                spans_by_line[row.line] = tokenize(session.lines[row.line])
            spans = slice_spans(spans_by_line[row.line], row.start, row.start + len(seg))
            if col is None:
                body = colorize(seg, spans)
            else:
                body = colorize_with_cursor(seg, col, spans)
        elif col is None:
            body = Text(seg)
        else:
            body = _plain_with_cursor(seg, col)
        text.append_text(body)
        out.append(text)
    return out


def _plain_with_cursor(seg: str, col: int) -> Text:
    text = Text(seg)
    if col >= len(seg):
        text.append(" ", style="reverse")
    else:
        text.stylize("reverse", col, col + 1)
    return text


def _footer(state: AppState) -> Text:
    if state.mode is Mode.PATTERN_DELETE_PROMPT:
        text = Text(f"Pattern: {state.pattern_input}", style="bold magenta")
        text.append(" ", style="reverse")
        return text
    if state.filter.editing:
        text = Text(f"/{state.filter.term}", style="bold magenta")
        text.append(" ", style="reverse")
        return text
    status = state.status
    return Text(status.text, style=SEVERITY_STYLE.get(status.severity, ""))


def _group_lines(state: AppState) -> list[str]:
    lines = ["Groups"]
    if state.groups_loading:
        lines.append("Loading...")
        return lines
    if state.groups_error:
        lines.append(f"Error: {state.groups_error}")
        return lines
    if not state.groups:
        lines.append("(no keys)")
        return lines
    limit = max(1, state.height // 2)
    shown = state.groups[:limit]
    label_width = max(len(g.label) for g in shown)
    for group in shown:
        lines.append(f"{group.label.ljust(label_width)}  {group.count:>8}")
    rest = len(state.groups) - len(shown)
    if rest > 0:
        lines.append(f"… {rest} more")
    lines.append("")
    lines.append("g / Esc to close")
    return lines


def _overlay(frame: list[Text], lines: list[str] | tuple[str, ...], width: int) -> None:
    """Draw *lines* as a box centered over *frame*, in place."""
    wrapped = [part for line in lines for part in wrap_text(line, max(1, width - 4))]
    box_width = min(width, max(cell_len(line) for line in wrapped) + 4)
    box_height = min(len(frame), len(wrapped) + 2)
    top = max(0, (len(frame) - box_height) // 2)
    left = max(0, (width - box_width) // 2)
    body = [""] + wrapped + [""]
    for i in range(box_height):
        cell = _fit(Text("  " + body[i], style=OVERLAY_STYLE), box_width)
        row = Text(" " * left)
        row.append_text(cell)
        frame[top + i] = _fit(row, width)


def render_frame(state: AppState) -> Text:
    """Build the whole screen for *state* at ``state.width x state.height``."""
    lay = state.layout
    if lay.too_small:
        return Text("(too small)")
    width, height = lay.width, lay.height

    frame: list[Text] = [_fit(_header(state), width)]
    left = _list_rows(state)
    if state.edit is not None:
        right = _editor_rows(state, state.edit)
    else:
        right = _value_rows(state)
    sep = Text("│", style="dim")
    for i in range(lay.body_height):
        row = _fit(left[i] if i < len(left) else Text(), lay.left_width)
        row.append_text(sep)
        row.append_text(_fit(right[i] if i < len(right) else Text(), lay.right_width))
        frame.append(_fit(row, width))
    frame.append(_fit(_footer(state), width))
    frame = frame[:height]

    if state.show_groups:
        _overlay(frame, _group_lines(state), width)
    if state.show_about:
        _overlay(frame, ABOUT_LINES, width)
    return Text("\n").join(frame)
