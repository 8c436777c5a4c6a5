"""Tests for frame rendering and the Textual shell helpers."""

from dataclasses import replace

import pytest

from kvbrowse import app, editor, model
from kvbrowse._fuzzy import GroupCount
from kvbrowse.browser import FilterSession
from kvbrowse.config import Settings
from kvbrowse.editor import EditSession
from kvbrowse.codec import ValueFormat, decode_for_view
from kvbrowse.errors import IOFailure
from kvbrowse.model import Mode, initial_state
from kvbrowse.store import KeyPage, MemoryStore
from kvbrowse.view import render_frame


def _loaded(keys, **kwargs):
    state = initial_state(Settings(db_path="data/db"), **kwargs)
    state, _ = model.update(state, model.Started())
    state, _ = model.update(
        state, model.PageLoaded("", KeyPage(tuple(keys), keys[-1], False))
    )
    return state


class TestRenderFrame:
    def test_frame_size(self):
        state = _loaded(["a", "b"], width=60, height=12)
        lines = render_frame(state).plain.split("\n")
        assert len(lines) == 12
        assert all(len(line) == 60 for line in lines)

    def test_header_and_keys(self):
        text = render_frame(_loaded(["user:1", "user:2"])).plain
        assert "Keys: 2" in text
        assert "data/db" in text
        assert "│ user:1" in text
        assert "  user:2" in text

    def test_more_keys_marker(self):
        state = initial_state(Settings())
        state, _ = model.update(state, model.Started())
        assert "Keys: 0…" in render_frame(state).plain

    def test_too_small(self):
        state = initial_state(Settings(), width=10, height=3)
        assert render_frame(state).plain == "(too small)"

    def test_status_footer(self):
        state = _loaded(["a"])
        state = replace(state, status=model.Status("Error: boom", "error"))
        assert render_frame(state).plain.split("\n")[-1].startswith("Error: boom")

    def test_pattern_prompt_footer(self):
        state = replace(_loaded(["a"]), mode=Mode.PATTERN_DELETE_PROMPT, pattern_input="a*")
        assert render_frame(state).plain.split("\n")[-1].startswith("Pattern: a*")

    def test_value_pane(self):
        state = _loaded(["k"])
        raw = b'{"name": "x"}'
        decoded = decode_for_view(raw, ValueFormat.STRUCTURED)
        state = replace(state, value=model.LoadedValue("k", raw, decoded))
        text = render_frame(state).plain
        assert '"name": "x"' in text

    def test_editor_cursor_is_styled_not_inserted(self):
        state = _loaded(["k"])
        session = EditSession.open("k", ValueFormat.STRUCTURED, '{"a": 1}')
        state = replace(state, mode=Mode.EDITING, edit=session)
        text = render_frame(state)
        assert '  1 {"a": 1}' in text.plain
        assert "\x00" not in text.plain
        assert any(str(span.style) == "reverse" for span in text.spans)

    @pytest.mark.parametrize("fmt", [ValueFormat.TEXT, ValueFormat.STRUCTURED])
    def test_cursor_on_overhanging_space_stays_visible(self, fmt):
        state = _loaded(["k"])
        session = EditSession.open("k", fmt, "")
        width = editor.text_width(session, state.layout.right_width)
        session = replace(
            EditSession.open("k", fmt, "a" * width + " b"), cursor_col=width
        )
        state = replace(state, mode=Mode.EDITING, edit=session)
        text = render_frame(state)
        cursor = [s for s in text.spans if str(s.style) == "reverse" and s.end > s.start]
        assert len(cursor) == 1
        assert text.plain[cursor[0].start] == "a"

    def test_editor_gutter_numbers_logical_lines(self):
        state = _loaded(["k"])
        session = EditSession.open("k", ValueFormat.TEXT, "x" * 60 + "\ny")
        width = editor.text_width(session, state.layout.right_width)
        state = replace(state, mode=Mode.EDITING, edit=session)
        left = state.layout.left_width + 1
        body = [line[left:] for line in render_frame(state).plain.split("\n")[1:-1]]
        assert body[1] == "  1 " + "x" * width
        assert body[2].startswith("    " + "x" * (60 - width))
        assert body[3].startswith("  2 y")

    def test_filter_scan_marker(self):
        state = _loaded(["k1", "k2"])
        flt = FilterSession(term="k", editing=True, full_scan_in_progress=True)
        assert "scanning…" in render_frame(replace(state, filter=flt)).plain
        flt = replace(flt, full_scan_in_progress=False)
        assert "scanning…" not in render_frame(replace(state, filter=flt)).plain

    def test_group_overlay_is_capped(self):
        state = _loaded(["a"], width=60, height=10)
        groups = tuple(GroupCount(f"g{i}", 10 - i) for i in range(7))
        state = replace(state, show_groups=True, groups=groups)
        text = render_frame(state).plain
        assert "g4" in text
        assert "g5" not in text
        assert "… 2 more" in text

    def test_about_overlay(self):
        state = replace(_loaded(["a"]), show_about=True)
        assert "F1 / Esc to close" in render_frame(state).plain

    def test_about_overlay_wraps_on_narrow_screens(self):
        state = replace(_loaded(["a"], width=40, height=40), show_about=True)
        lines = render_frame(state).plain.split("\n")
        assert all(len(line) == 40 for line in lines)
        assert any("after an error" in line for line in lines)
        assert any("F1 / Esc to close" in line for line in lines)

    def test_read_only_marker(self):
        state = initial_state(Settings(read_only=True))
        assert "[readonly]" in render_frame(state).plain


class TestAppHelpers:
    def test_failure_event_matches_task(self):
        event = app._failure_event(model.SaveValue("k", b""), RuntimeError("x"))
        assert isinstance(event, model.ValueSaved)
        assert isinstance(event.error, IOFailure)
        assert str(event.error) == "x"

    def test_failure_event_for_page(self):
        event = app._failure_event(model.LoadPage("a", 5), None)
        assert event.after == "a"
        assert str(event.error) == "task cancelled"

    def test_open_memory_store(self):
        assert isinstance(app.open_store(Settings(memory=True)), MemoryStore)
