"""Application state machine.

The whole UI state is one frozen :class:`AppState`.  :func:`update` takes
the current state and one event (a key press, a resize or the result of
a store task) and returns the next state plus the tasks to launch.  It
never performs I/O itself, so results of tasks always come back as new
events and are checked against the current state before being applied.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum, auto

from kvbrowse import editor
from kvbrowse._fuzzy import GroupCount
from kvbrowse._glob import compile_glob
from kvbrowse._wrap import layout_rows, scroll_to_cursor
from kvbrowse.browser import (
    BrowserState,
    FilterSession,
    KeyList,
    apply_page,
    extend_filter,
    fail_fetch,
    needs_prefetch,
    new_items,
    refilter,
    retry_fetch,
    start_fetch,
)
from kvbrowse.codec import Decoded, ValueFormat, decode_for_edit, decode_for_view, encode
from kvbrowse.config import Settings
from kvbrowse.editor import EditSession
from kvbrowse.errors import InvalidEncoding, InvalidPattern, KvBrowseError, PartialDeleteError
from kvbrowse.layout import Layout, compute_layout
from kvbrowse.store import KeyPage

log = logging.getLogger(__name__)

HELP_STATUS = (
    "↑/↓ list · Enter value · t/h/b/j format · / filter · e edit"
    " · d delete · p pattern delete · g groups · r reload · F1 about · q quit"
)
EDIT_STATUS = "Editing. (Ctrl+S save · Esc cancel)"

FORMAT_KEYS = {
    "t": ValueFormat.TEXT,
    "h": ValueFormat.HEX,
    "b": ValueFormat.BASE64,
    "j": ValueFormat.STRUCTURED,
}


class Mode(Enum):
    BROWSING = auto()
    VALUE_FOCUSED = auto()
    EDITING = auto()
    PATTERN_DELETE_PROMPT = auto()
    CONFIRM_SINGLE_DELETE = auto()
    CONFIRM_PATTERN_DELETE = auto()


@dataclass(frozen=True)
class Status:
    text: str = HELP_STATUS
    severity: str = "information"  # information / warning / error


def _info(text: str) -> Status:
    return Status(text, "information")


def _warn(text: str) -> Status:
    return Status(text, "warning")


def _error(text: str) -> Status:
    return Status(text, "error")


@dataclass(frozen=True)
class LoadedValue:
    key: str
    raw: bytes | None = None
    decoded: Decoded | None = None
    error: str = ""


# -- Events ----------------------------------------------------------------


@dataclass(frozen=True)
class Started:
    pass


@dataclass(frozen=True)
class KeyPressed:
    key: str
    character: str | None = None


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class PageLoaded:
    after: str
    page: KeyPage | None = None
    error: KvBrowseError | None = None


@dataclass(frozen=True)
class ValueLoaded:
    key: str
    request_id: int
    for_edit: bool = False
    value: bytes | None = None
    error: KvBrowseError | None = None


@dataclass(frozen=True)
class MatchesCounted:
    term: str
    count: int = 0
    error: KvBrowseError | None = None


@dataclass(frozen=True)
class GroupsLoaded:
    groups: tuple[GroupCount, ...] = ()
    error: KvBrowseError | None = None


@dataclass(frozen=True)
class ValueSaved:
    key: str
    error: KvBrowseError | None = None


@dataclass(frozen=True)
class KeyDeleted:
    key: str
    error: KvBrowseError | None = None


@dataclass(frozen=True)
class PatternDeleted:
    pattern: str
    deleted: tuple[str, ...] = ()
    error: KvBrowseError | None = None


# -- Tasks -----------------------------------------------------------------


@dataclass(frozen=True)
class LoadPage:
    after: str
    limit: int


@dataclass(frozen=True)
class LoadValue:
    key: str
    request_id: int
    for_edit: bool = False


@dataclass(frozen=True)
class CountMatches:
    term: str


@dataclass(frozen=True)
class LoadGroups:
    pass


@dataclass(frozen=True)
class SaveValue:
    key: str
    value: bytes


@dataclass(frozen=True)
class DeleteKey:
    key: str


@dataclass(frozen=True)
class DeletePattern:
    pattern: str
    page_size: int


Event = (
    Started | KeyPressed | Resized | PageLoaded | ValueLoaded | MatchesCounted
    | GroupsLoaded | ValueSaved | KeyDeleted | PatternDeleted
)
Task = (
    LoadPage | LoadValue | CountMatches | LoadGroups | SaveValue | DeleteKey
    | DeletePattern
)


# -- State -----------------------------------------------------------------


@dataclass(frozen=True)
class AppState:
    settings: Settings = field(default_factory=Settings)
    width: int = 80
    height: int = 24
    mode: Mode = Mode.BROWSING
    show_groups: bool = False
    show_about: bool = False
    browser: BrowserState = field(default_factory=BrowserState)
    filter: FilterSession = field(default_factory=FilterSession)
    cursor: int = 0  # index into the visible key list
    list_top: int = 0
    format: ValueFormat = ValueFormat.STRUCTURED
    selected: str = ""
    value: LoadedValue | None = None
    value_scroll: int = 0
    value_request: int = 0
    edit_request: int = 0  # value request that should open the editor
    edit: EditSession | None = None
    pending_delete: str = ""
    pattern_input: str = ""
    pending_pattern: str = ""
    prompt_origin: Mode = Mode.BROWSING
    deleting: bool = False
    groups: tuple[GroupCount, ...] = ()
    groups_loading: bool = False
    groups_error: str = ""
    status: Status = field(default_factory=Status)
    quit: bool = False

    @property
    def layout(self) -> Layout:
        return compute_layout(self.width, self.height)

    @property
    def visible_keys(self) -> KeyList:
        if self.filter.visible is not None and self.filter.term.strip():
            return self.filter.visible
        return self.browser.keys

    @property
    def highlighted(self) -> str:
        keys = self.visible_keys
        if 0 <= self.cursor < len(keys):
            return keys[self.cursor]
        return ""


def initial_state(settings: Settings, width: int = 80, height: int = 24) -> AppState:
    return AppState(
        settings=settings, width=width, height=height, format=settings.default_format
    )


Result = tuple[AppState, list[Task]]


# -- Helpers ---------------------------------------------------------------


def value_lines(value: LoadedValue | None) -> list[str]:
    """Logical lines shown in the read-only value pane."""
    if value is None:
        return [""]
    if value.error:
        return [f"Error: {value.error}"]
    if value.decoded is None:
        return ["Loading..."]
    lines: list[str] = []
    if value.decoded.warning:
        lines.extend([value.decoded.warning, ""])
    lines.extend(value.decoded.text.split("\n"))
    return lines


def _value_max_scroll(state: AppState) -> int:
    lay = state.layout
    rows = layout_rows(value_lines(state.value), lay.right_width)
    return max(0, len(rows) - lay.content_height)


def _scroll_list(state: AppState) -> AppState:
    keys = state.visible_keys
    cursor = max(0, min(state.cursor, len(keys) - 1)) if len(keys) else 0
    top = scroll_to_cursor(state.list_top, cursor, state.layout.list_height, len(keys))
    if (cursor, top) == (state.cursor, state.list_top):
        return state
    return replace(state, cursor=cursor, list_top=top)


def _maybe_load_more(state: AppState) -> Result:
    """Issue the next page fetch if scrolling or a full sweep needs it."""
    sweep = state.filter.active or state.show_groups
    if not sweep and not needs_prefetch(
        state.cursor, len(state.visible_keys), state.settings.prefetch_threshold
    ):
        return state, []
    browser = start_fetch(state.browser)
    if browser is None:
        return state, []
    state = replace(state, browser=browser)
    if state.filter.active:
        state = replace(state, filter=replace(state.filter, full_scan_in_progress=True))
    return state, [LoadPage(browser.last_cursor, state.settings.page_size)]


def _refresh_list(state: AppState) -> Result:
    return _maybe_load_more(_scroll_list(state))


def _load_value(state: AppState, key: str, for_edit: bool = False) -> Result:
    request_id = state.value_request + 1
    value = state.value
    if value is None or value.key != key:
        value = LoadedValue(key)
    state = replace(state, value_request=request_id, value=value)
    return state, [LoadValue(key, request_id, for_edit)]


def _preview_highlighted(state: AppState) -> Result:
    key = state.highlighted
    if not key or key == state.selected:
        return state, []
    state = replace(state, selected=key, value_scroll=0)
    return _load_value(state, key)


def _set_format(state: AppState, fmt: ValueFormat) -> Result:
    state = replace(state, format=fmt, value_scroll=0)
    value = state.value
    if value is not None and value.raw is not None:
        decoded = decode_for_view(value.raw, fmt)
        return replace(state, value=replace(value, decoded=decoded)), []
    key = state.selected or state.highlighted
    if not key:
        return state, []
    return _load_value(replace(state, selected=key), key)


def _readonly(state: AppState) -> AppState:
    return replace(state, status=_warn("[readonly]"))


def _start_edit(state: AppState, key: str) -> Result:
    if state.settings.read_only:
        return _readonly(state), []
    if not key:
        return state, []
    state = replace(state, selected=key, mode=Mode.VALUE_FOCUSED, status=_info("Loading..."))
    state, tasks = _load_value(state, key, for_edit=True)
    return replace(state, edit_request=state.value_request), tasks


def _delete_blocked(state: AppState) -> AppState | None:
    """Status to show instead of starting a delete, or None if allowed."""
    if state.settings.read_only:
        return _readonly(state)
    if state.deleting:
        return replace(state, status=_warn("A delete is still running."))
    return None


def _retry_keys(state: AppState) -> Result:
    browser = retry_fetch(state.browser)
    if browser is None:
        return state, []
    state = replace(state, browser=browser, status=Status())
    if state.filter.active:
        state = replace(state, filter=replace(state.filter, full_scan_in_progress=True))
    return state, [LoadPage(browser.last_cursor, state.settings.page_size)]


def _open_pattern_prompt(state: AppState) -> AppState:
    blocked = _delete_blocked(state)
    if blocked is not None:
        return blocked
    return replace(
        state,
        mode=Mode.PATTERN_DELETE_PROMPT,
        prompt_origin=state.mode,
        pattern_input="",
        status=_info("Pattern delete mode. (Enter confirm · Esc cancel)"),
    )


def _toggle_groups(state: AppState) -> Result:
    if state.show_groups:
        return replace(state, show_groups=False), []
    state = replace(state, show_groups=True)
    tasks: list[Task] = []
    if not state.groups_loading:
        state = replace(state, groups_loading=True, groups_error="")
        tasks.append(LoadGroups())
    state, more = _maybe_load_more(state)
    return state, tasks + more


def _remove_keys(state: AppState, removed: set[str]) -> AppState:
    if not removed:
        return state
    browser = replace(state.browser, keys=state.browser.keys.without(removed))
    flt = state.filter
    if flt.visible is not None:
        flt = replace(flt, visible=flt.visible.without(removed))
    state = replace(state, browser=browser, filter=flt)
    if state.selected in removed:
        state = replace(state, selected="", value=None, value_scroll=0)
        if state.mode is Mode.VALUE_FOCUSED:
            state = replace(state, mode=Mode.BROWSING)
    return state


def _clear_filter(state: AppState) -> AppState:
    return replace(state, filter=FilterSession(), cursor=0, list_top=0)


# -- Key handling ----------------------------------------------------------


def _on_confirm_single(state: AppState, ev: KeyPressed) -> Result:
    if ev.key in ("y", "Y", "enter") or ev.character in ("y", "Y"):
        key = state.pending_delete
        state = replace(
            state,
            mode=Mode.BROWSING,
            pending_delete="",
            deleting=True,
            status=_info("Deleting..."),
        )
        return state, [DeleteKey(key)]
    if ev.key in ("n", "N", "escape") or ev.character in ("n", "N"):
        return replace(
            state,
            mode=Mode.BROWSING,
            pending_delete="",
            status=_info("Delete canceled."),
        ), []
    return state, []


def _on_confirm_pattern(state: AppState, ev: KeyPressed) -> Result:
    origin = state.prompt_origin
    if ev.key in ("y", "Y", "enter") or ev.character in ("y", "Y"):
        pattern = state.pending_pattern
        state = replace(
            state,
            mode=origin,
            pending_pattern="",
            deleting=True,
            status=_info("Deleting by pattern..."),
        )
        return state, [DeletePattern(pattern, state.settings.sweep_page_size)]
    if ev.key in ("n", "N", "escape") or ev.character in ("n", "N"):
        return replace(
            state,
            mode=origin,
            pending_pattern="",
            status=_info("Pattern delete canceled."),
        ), []
    return state, []


def _on_pattern_prompt(state: AppState, ev: KeyPressed) -> Result:
    origin = state.prompt_origin
    if ev.key == "escape":
        return replace(
            state, mode=origin, pattern_input="", status=_info("Pattern delete canceled.")
        ), []
    if ev.key == "enter":
        pattern = state.pattern_input.strip()
        if not pattern:
            return replace(
                state, mode=origin, status=_info("Pattern delete canceled.")
            ), []
        try:
            compile_glob(pattern)
        except InvalidPattern as exc:
            return replace(state, status=_error(f"Error: invalid pattern: {exc}")), []
        return replace(
            state,
            mode=Mode.CONFIRM_PATTERN_DELETE,
            pending_pattern=pattern,
            pattern_input="",
            status=_warn(f"Delete pattern '{pattern}'? (y/n)"),
        ), []
    if ev.key == "backspace":
        return replace(state, pattern_input=state.pattern_input[:-1]), []
    if ev.character and ev.character.isprintable():
        return replace(state, pattern_input=state.pattern_input + ev.character), []
    return state, []


def _on_editing(state: AppState, ev: KeyPressed) -> Result:
    session = state.edit
    if session is None:
        return replace(state, mode=Mode.VALUE_FOCUSED), []
    if ev.key == "escape":
        return replace(
            state,
            mode=Mode.VALUE_FOCUSED,
            edit=None,
            status=_info("Edit canceled."),
        ), []
    if ev.key == "ctrl+s":
        if session.saving:
            return state, []
        try:
            data = encode(session.buffer, session.format)
        except InvalidEncoding as exc:
            return replace(state, status=_error(f"Error: save failed: {exc}")), []
        return replace(
            state, edit=replace(session, saving=True), status=_info("Saving...")
        ), [SaveValue(session.key, data)]
    lay = state.layout
    session = editor.handle_key(
        session, ev.key, ev.character, lay.right_width, lay.content_height
    )
    return replace(state, edit=session), []


def _on_filter_typing(state: AppState, ev: KeyPressed) -> Result:
    flt = state.filter
    if ev.key == "escape":
        return _refresh_list(_clear_filter(state))
    if ev.key == "enter":
        term = flt.term.strip()
        if not term:
            return _refresh_list(_clear_filter(state))
        flt = replace(flt, editing=False, applied=True)
        tasks: list[Task] = []
        if term != flt.counted_term or (flt.match_count is None and not flt.count_loading):
            flt = replace(
                flt,
                counted_term=term,
                count_loading=True,
                count_error="",
                match_count=None,
            )
            tasks.append(CountMatches(term))
        state, more = _refresh_list(replace(state, filter=flt))
        return state, tasks + more
    if ev.key == "backspace":
        term = flt.term[:-1]
    elif ev.character and ev.character.isprintable():
        term = flt.term + ev.character
    else:
        return state, []
    flt = refilter(replace(flt, term=term), state.browser.keys)
    return _refresh_list(replace(state, filter=flt, cursor=0, list_top=0))


def _move_list(state: AppState, ev: KeyPressed) -> Result | None:
    page = max(1, state.layout.list_height)
    last = len(state.visible_keys) - 1
    moves = {
        "up": state.cursor - 1,
        "down": state.cursor + 1,
        "pageup": state.cursor - page,
        "pagedown": state.cursor + page,
        "home": 0,
        "end": last,
    }
    if ev.key not in moves:
        return None
    cursor = max(0, min(moves[ev.key], last))
    state, tasks = _refresh_list(replace(state, cursor=cursor))
    state, preview = _preview_highlighted(state)
    return state, tasks + preview


def _scroll_value(state: AppState, ev: KeyPressed) -> Result | None:
    page = max(1, state.layout.content_height)
    limit = _value_max_scroll(state)
    moves = {
        "up": state.value_scroll - 1,
        "down": state.value_scroll + 1,
        "pageup": state.value_scroll - page,
        "pagedown": state.value_scroll + page,
        "home": 0,
        "end": limit,
    }
    if ev.key not in moves:
        return None
    return replace(state, value_scroll=max(0, min(moves[ev.key], limit))), []


def _on_value_focused(state: AppState, ev: KeyPressed) -> Result:
    char = ev.character or ""
    if ev.key in ("escape", "shift+left"):
        return replace(
            state, mode=Mode.BROWSING, edit_request=0, status=_info("List focused.")
        ), []
    if char in FORMAT_KEYS:
        return _set_format(state, FORMAT_KEYS[char])
    if char == "p":
        return _open_pattern_prompt(state), []
    if char == "e":
        return _start_edit(state, state.selected)
    if char in ("g", "G") or ev.key == "ctrl+g":
        return _toggle_groups(state)
    return _scroll_value(state, ev) or (state, [])


def _on_browsing(state: AppState, ev: KeyPressed) -> Result:
    char = ev.character or ""
    if ev.key == "ctrl+c" or char == "q":
        return replace(state, quit=True), []
    if ev.key == "escape":
        if state.filter.applied:
            return _refresh_list(_clear_filter(state))
        return state, []
    if char in FORMAT_KEYS:
        return _set_format(state, FORMAT_KEYS[char])
    if char == "/":
        flt = FilterSession(editing=True)
        return replace(state, filter=flt, cursor=0, list_top=0), []
    if ev.key == "enter":
        key = state.highlighted
        if not key:
            return state, []
        state = replace(state, selected=key, mode=Mode.VALUE_FOCUSED, value_scroll=0)
        return _load_value(state, key)
    if ev.key == "delete" or char == "d":
        blocked = _delete_blocked(state)
        if blocked is not None:
            return blocked, []
        key = state.highlighted
        if not key:
            return state, []
        return replace(
            state,
            mode=Mode.CONFIRM_SINGLE_DELETE,
            pending_delete=key,
            status=_warn(f"Delete '{key}'? (y/n)"),
        ), []
    if char == "p":
        return _open_pattern_prompt(state), []
    if char == "e":
        return _start_edit(state, state.highlighted)
    if char in ("g", "G") or ev.key == "ctrl+g":
        return _toggle_groups(state)
    if char == "r":
        return _retry_keys(state)
    return _move_list(state, ev) or (state, [])


def _on_key(state: AppState, ev: KeyPressed) -> Result:
    if ev.key == "f1":
        return replace(state, show_about=not state.show_about), []
    if state.show_about:
        if ev.key == "escape":
            return replace(state, show_about=False), []
        return state, []
    if state.show_groups:
        if ev.key in ("escape", "ctrl+g") or ev.character in ("g", "G"):
            return replace(state, show_groups=False), []
        return state, []

    mode = state.mode
    if mode is Mode.CONFIRM_SINGLE_DELETE:
        return _on_confirm_single(state, ev)
    if mode is Mode.CONFIRM_PATTERN_DELETE:
        return _on_confirm_pattern(state, ev)
    if mode is Mode.EDITING:
        return _on_editing(state, ev)
    if mode is Mode.PATTERN_DELETE_PROMPT:
        return _on_pattern_prompt(state, ev)
    if state.filter.editing:
        return _on_filter_typing(state, ev)
    if mode is Mode.VALUE_FOCUSED:
        return _on_value_focused(state, ev)
    return _on_browsing(state, ev)


# -- Other events ----------------------------------------------------------


def _on_started(state: AppState, ev: Started) -> Result:
    return _maybe_load_more(state)


def _on_resized(state: AppState, ev: Resized) -> Result:
    state = replace(state, width=ev.width, height=ev.height)
    if state.edit is not None:
        lay = state.layout
        state = replace(
            state, edit=editor.follow_cursor(state.edit, lay.right_width, lay.content_height)
        )
    state = replace(state, value_scroll=min(state.value_scroll, _value_max_scroll(state)))
    return _refresh_list(state)


def _on_page(state: AppState, ev: PageLoaded) -> Result:
    browser = state.browser
    if not browser.loading or ev.after != browser.last_cursor:
        log.debug("dropping stale page after %r", ev.after)
        return state, []
    if ev.error is not None or ev.page is None:
        flt = replace(state.filter, full_scan_in_progress=False)
        return replace(
            state,
            browser=fail_fetch(browser, str(ev.error or "no page")),
            filter=flt,
            status=_error(f"Error: failed to load keys: {ev.error} (r to retry)"),
        ), []
    added = new_items(browser, ev.page)
    browser = apply_page(browser, ev.page)
    flt = extend_filter(state.filter, added)
    if not browser.has_more:
        flt = replace(flt, full_scan_in_progress=False)
    return _refresh_list(replace(state, browser=browser, filter=flt))


def _on_value(state: AppState, ev: ValueLoaded) -> Result:
    if ev.request_id != state.value_request:
        log.debug("dropping stale value for %r (request %d)", ev.key, ev.request_id)
        return state, []
    if ev.error is not None or ev.value is None:
        state = replace(
            state,
            value=LoadedValue(ev.key, error=str(ev.error)),
            status=_error(f"Error: {ev.error}"),
        )
        return state, []
    value = LoadedValue(ev.key, ev.value, decode_for_view(ev.value, state.format))
    state = replace(state, value=value)
    if not ev.for_edit:
        return state, []
    if (
        ev.request_id != state.edit_request
        or state.mode is not Mode.VALUE_FOCUSED
        or state.selected != ev.key
        or state.edit is not None
    ):
        log.debug("not opening editor for %r: no longer requested", ev.key)
        return state, []
    state = replace(state, edit_request=0)
    try:
        decoded = decode_for_edit(ev.value, state.format)
    except InvalidEncoding as exc:
        return replace(
            state, mode=Mode.VALUE_FOCUSED, status=_error(f"Error: cannot edit: {exc}")
        ), []
    lay = state.layout
    session = EditSession.open(ev.key, state.format, decoded.text)
    session = editor.follow_cursor(session, lay.right_width, lay.content_height)
    status = _warn(decoded.warning) if decoded.warning else _info(EDIT_STATUS)
    return replace(
        state, mode=Mode.EDITING, selected=ev.key, edit=session, status=status
    ), []


def _on_count(state: AppState, ev: MatchesCounted) -> Result:
    flt = state.filter
    if ev.term != flt.term.strip() or ev.term != flt.counted_term:
        log.debug("dropping stale count for %r", ev.term)
        return state, []
    if ev.error is not None:
        flt = replace(flt, count_loading=False, count_error=str(ev.error), match_count=None)
    else:
        flt = replace(flt, count_loading=False, count_error="", match_count=ev.count)
    return replace(state, filter=flt), []


def _on_groups(state: AppState, ev: GroupsLoaded) -> Result:
    if ev.error is not None:
        return replace(state, groups_loading=False, groups_error=str(ev.error)), []
    return replace(
        state, groups_loading=False, groups_error="", groups=tuple(ev.groups)
    ), []


def _on_saved(state: AppState, ev: ValueSaved) -> Result:
    session = state.edit
    if ev.error is not None:
        if session is not None and session.key == ev.key:
            state = replace(state, edit=replace(session, saving=False))
        return replace(state, status=_error(f"Error: save failed: {ev.error}")), []
    status = Status(f"'{ev.key}' updated.", "information")
    if session is not None and session.key == ev.key:
        state = replace(state, mode=Mode.VALUE_FOCUSED, edit=None, status=status)
        return _load_value(replace(state, selected=ev.key, value_scroll=0), ev.key)
    state = replace(state, status=status)
    if state.selected == ev.key:
        return _load_value(state, ev.key)
    return state, []


def _on_deleted(state: AppState, ev: KeyDeleted) -> Result:
    state = replace(state, deleting=False)
    if ev.error is not None:
        return replace(state, status=_error(f"Error: delete failed: {ev.error}")), []
    state = _remove_keys(state, {ev.key})
    state = replace(state, status=_info(f"'{ev.key}' deleted."))
    return _refresh_list(state)


def _on_pattern_deleted(state: AppState, ev: PatternDeleted) -> Result:
    state = _remove_keys(replace(state, deleting=False), set(ev.deleted))
    if ev.error is not None:
        if isinstance(ev.error, PartialDeleteError):
            msg = f"Error: pattern delete failed: {ev.error}"
        else:
            msg = (
                f"Error: pattern delete failed after deleting "
                f"{len(ev.deleted)} records: {ev.error}"
            )
        state = replace(state, status=_error(msg))
    elif not ev.deleted:
        state = replace(state, status=_warn(f"Warning: no matches for pattern: {ev.pattern}"))
    else:
        state = replace(
            state,
            status=_info(f"Deleted {len(ev.deleted)} records (pattern: {ev.pattern})."),
        )
    return _refresh_list(state)


_HANDLERS: dict[type, Callable[[AppState, object], Result]] = {
    Started: _on_started,
    KeyPressed: _on_key,
    Resized: _on_resized,
    PageLoaded: _on_page,
    ValueLoaded: _on_value,
    MatchesCounted: _on_count,
    GroupsLoaded: _on_groups,
    ValueSaved: _on_saved,
    KeyDeleted: _on_deleted,
    PatternDeleted: _on_pattern_deleted,
}


def update(state: AppState, event: Event) -> Result:
    """Return the state after *event* and the tasks it requests."""
    handler = _HANDLERS[type(event)]
    return handler(state, event)
