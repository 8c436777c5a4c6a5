"""Tests for the value edit buffer."""

from dataclasses import replace

from kvbrowse import editor
from kvbrowse.codec import ValueFormat
from kvbrowse.editor import EditSession

PANE = 40
HEIGHT = 10


def _session(content, fmt=ValueFormat.STRUCTURED, row=0, col=0):
    return replace(EditSession.open("k", fmt, content), cursor_row=row, cursor_col=col)


def _keys(session, *keys):
    for key in keys:
        char = key if len(key) == 1 else None
        session = editor.handle_key(session, key, char, PANE, HEIGHT)
    return session


class TestEditSession:
    def test_open_splits_lines(self):
        session = EditSession.open("k", ValueFormat.TEXT, "a\nb")
        assert session.lines == ("a", "b")
        assert session.buffer == "a\nb"
        assert not session.dirty

    def test_open_empty(self):
        assert EditSession.open("k", ValueFormat.TEXT, "").lines == ("",)

    def test_gutter_grows_with_line_count(self):
        assert editor.gutter_width(EditSession.open("k", ValueFormat.TEXT, "x")) == 4
        big = EditSession.open("k", ValueFormat.TEXT, "\n" * 12345)
        assert editor.gutter_width(big) == 6


class TestTyping:
    def test_insert_characters(self):
        session = _keys(_session(""), "a", "b")
        assert session.lines == ("ab",)
        assert session.cursor_col == 2
        assert session.dirty

    def test_tab_inserts_spaces(self):
        assert _keys(_session(""), "tab").lines == ("  ",)

    def test_backspace_joins_lines(self):
        session = _keys(_session("ab\ncd", row=1, col=0), "backspace")
        assert session.lines == ("abcd",)
        assert (session.cursor_row, session.cursor_col) == (0, 2)

    def test_delete_joins_next_line(self):
        session = _keys(_session("ab\ncd", row=0, col=2), "delete")
        assert session.lines == ("abcd",)

    def test_backspace_at_start_is_noop(self):
        session = _keys(_session("ab"), "backspace")
        assert session.lines == ("ab",)
        assert not session.dirty


class TestAutoIndent:
    def test_enter_between_brackets(self):
        session = _keys(_session("{}", col=1), "enter")
        assert session.lines == ("{", "  ", "}")
        assert (session.cursor_row, session.cursor_col) == (1, 2)

    def test_enter_after_open_bracket(self):
        session = _keys(_session('  "a": [', col=8), "enter")
        assert session.lines == ('  "a": [', "    ")
        assert session.cursor_col == 4

    def test_enter_keeps_indent(self):
        session = _keys(_session('  "a": 1,', col=9), "enter")
        assert session.lines == ('  "a": 1,', "  ")

    def test_closing_bracket_dedents(self):
        session = _keys(_session("{\n    ", row=1, col=4), "}")
        assert session.lines == ("{", "  }")
        assert session.cursor_col == 3

    def test_plain_text_enter_has_no_indent(self):
        session = _keys(_session("  ab", ValueFormat.TEXT, col=3), "enter")
        assert session.lines == ("  a", "b")
        assert (session.cursor_row, session.cursor_col) == (1, 0)


class TestMovement:
    def test_left_wraps_to_previous_line(self):
        session = _keys(_session("ab\ncd", row=1, col=0), "left")
        assert (session.cursor_row, session.cursor_col) == (0, 2)

    def test_right_wraps_to_next_line(self):
        session = _keys(_session("ab\ncd", col=2), "right")
        assert (session.cursor_row, session.cursor_col) == (1, 0)

    def test_down_moves_by_visual_row(self):
        # pane 9 minus a 4-cell gutter leaves 5 cells of text
        session = _session("hello world", ValueFormat.TEXT, col=1)
        session = editor.handle_key(session, "down", None, 9, HEIGHT)
        assert (session.cursor_row, session.cursor_col) == (0, 7)

    def test_up_on_first_row_goes_home(self):
        session = _keys(_session("abc", col=2), "up")
        assert session.cursor_col == 0

    def test_home_end(self):
        session = _keys(_session("abc", col=1), "end")
        assert session.cursor_col == 3
        session = _keys(session, "home")
        assert session.cursor_col == 0

    def test_ctrl_end(self):
        session = _keys(_session("a\nbc"), "ctrl+end")
        assert (session.cursor_row, session.cursor_col) == (1, 2)

    def test_scroll_follows_cursor(self):
        session = _session("\n".join(str(i) for i in range(30)))
        for _ in range(15):
            session = editor.handle_key(session, "down", None, PANE, 5)
        assert session.cursor_row == 15
        assert session.scroll_top == 11
