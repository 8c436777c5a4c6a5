"""Cursor-based key pagination and the filtered key view."""

from __future__ import annotations

import bisect
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace

from kvbrowse._fuzzy import fuzzy_match
from kvbrowse.store import KeyPage


class KeyList:
    """Immutable, append-friendly sequence of keys.

    Pages are stored as separate chunks so appending a page never copies
    the keys that were already loaded.
    """

    __slots__ = ("_chunks", "_offsets", "_len")

    def __init__(self, chunks: Iterable[tuple[str, ...]] = ()) -> None:
        self._chunks: tuple[tuple[str, ...], ...] = tuple(c for c in chunks if c)
        offsets: list[int] = []
        total = 0
        for chunk in self._chunks:
            offsets.append(total)
            total += len(chunk)
        self._offsets = tuple(offsets)
        self._len = total

    @classmethod
    def of(cls, keys: Iterable[str]) -> KeyList:
        return cls((tuple(keys),))

    def __len__(self) -> int:
        return self._len

    def __iter__(self) -> Iterator[str]:
        for chunk in self._chunks:
            yield from chunk

    def __getitem__(self, index: int) -> str:
        if index < 0:
            index += self._len
        if not 0 <= index < self._len:
            raise IndexError(index)
        ci = bisect.bisect_right(self._offsets, index) - 1
        return self._chunks[ci][index - self._offsets[ci]]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, KeyList):
            return list(self) == list(other)
        if isinstance(other, (list, tuple)):
            return list(self) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"KeyList({list(self)!r})"

    def appended(self, keys: Iterable[str]) -> KeyList:
        return KeyList(self._chunks + (tuple(keys),))

    def without(self, keys: set[str]) -> KeyList:
        if not keys:
            return self
        return KeyList.of(k for k in self if k not in keys)


@dataclass(frozen=True)
class BrowserState:
    keys: KeyList = field(default_factory=KeyList)
    last_cursor: str = ""
    has_more: bool = True
    loading: bool = False
    error: str = ""  # why the last fetch failed


@dataclass(frozen=True)
class FilterSession:
    term: str = ""
    editing: bool = False  # the filter box has focus
    applied: bool = False
    match_count: int | None = None
    count_loading: bool = False
    count_error: str = ""
    counted_term: str = ""  # term the last count request was issued for
    full_scan_in_progress: bool = False
    visible: KeyList | None = None  # loaded keys matching ``term``

    @property
    def active(self) -> bool:
        return bool(self.term.strip()) and (self.editing or self.applied)


def start_fetch(browser: BrowserState) -> BrowserState | None:
    """Return the fetching state, or None if no fetch may be issued now."""
    if not browser.has_more or browser.loading:
        return None
    return replace(browser, loading=True)


def new_items(browser: BrowserState, page: KeyPage) -> tuple[str, ...]:
    """Keys of *page* not yet loaded (drops a repeated boundary key)."""
    items = page.items
    if items and browser.keys and items[0] == browser.last_cursor:
        items = items[1:]
    return items


def apply_page(browser: BrowserState, page: KeyPage) -> BrowserState:
    items = new_items(browser, page)
    if not items:
        return replace(browser, loading=False, has_more=page.has_more)
    return BrowserState(
        keys=browser.keys.appended(items),
        last_cursor=items[-1],
        has_more=page.has_more,
        loading=False,
    )


def fail_fetch(browser: BrowserState, message: str = "") -> BrowserState:
    return replace(browser, loading=False, has_more=False, error=message or "failed")


def retry_fetch(browser: BrowserState) -> BrowserState | None:
    """Fetching state that repeats a failed fetch, or None if none failed."""
    if not browser.error or browser.loading:
        return None
    return replace(browser, loading=True, has_more=True, error="")


def needs_prefetch(index: int, loaded: int, threshold: int) -> bool:
    """True when the selection is within *threshold* rows of the end."""
    return index >= loaded - 1 - threshold


def filter_keys(keys: Iterable[str], term: str) -> KeyList:
    pattern = term.strip()
    return KeyList.of(k for k in keys if fuzzy_match(pattern, k))


def refilter(session: FilterSession, keys: KeyList) -> FilterSession:
    """Recompute the visible keys for the current term."""
    if not session.term.strip():
        return replace(session, visible=None)
    return replace(session, visible=filter_keys(keys, session.term))


def extend_filter(session: FilterSession, new_keys: Iterable[str]) -> FilterSession:
    """Add newly loaded keys to the visible set without rescanning."""
    if session.visible is None or not session.term.strip():
        return session
    extra = [k for k in new_keys if fuzzy_match(session.term.strip(), k)]
    if not extra:
        return session
    return replace(session, visible=session.visible.appended(extra))
