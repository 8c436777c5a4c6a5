"""Tests for the store adapters and key pagination."""

import pytest

from kvbrowse.browser import (
    BrowserState,
    FilterSession,
    KeyList,
    apply_page,
    extend_filter,
    fail_fetch,
    needs_prefetch,
    refilter,
    retry_fetch,
    start_fetch,
)
from kvbrowse.errors import NotFound
from kvbrowse.store import KeyPage, LmdbStore, MemoryStore


def _records(n):
    return {f"key:{i:03d}": str(i).encode() for i in range(n)}


def _drain(store, limit):
    keys, after, calls = [], "", []
    while True:
        page = store.list_page(after, limit)
        calls.append(page.has_more)
        keys.extend(page.items)
        if not page.has_more:
            return keys, calls
        after = page.cursor_after


@pytest.fixture(params=["memory", "lmdb"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStore(_records(23))
        return
    lmdb_store = LmdbStore(tmp_path / "db", map_size=1 << 24)
    for key, value in _records(23).items():
        lmdb_store.set(key, value)
    yield lmdb_store
    lmdb_store.close()


class TestStoreContract:
    def test_pagination_is_complete(self, store):
        keys, calls = _drain(store, 5)
        assert keys == sorted(_records(23))
        assert calls == [True, True, True, True, False]

    def test_exact_multiple_of_page_size(self, tmp_path):
        store = MemoryStore(_records(10))
        keys, calls = _drain(store, 5)
        assert len(keys) == 10
        assert calls == [True, False]

    def test_page_after_missing_key(self, store):
        page = store.list_page("key:0105", 3)
        assert page.items == ("key:011", "key:012", "key:013")
        assert page.cursor_after == "key:013"

    def test_page_past_end(self, store):
        page = store.list_page("zzz", 5)
        assert page == KeyPage((), "zzz", False)

    def test_zero_limit(self, store):
        assert store.list_page("", 0) == KeyPage((), "", False)

    @pytest.mark.parametrize(
        "value",
        [b"", b"\x00", b"\xff\xfe\x00\x01", "h\u00e9llo".encode(), bytes(range(256)) * 4],
    )
    def test_values_round_trip_bytes(self, store, value):
        store.set("bin", value)
        assert store.get("bin") == value

    def test_pagination_while_store_grows(self, store):
        original = sorted(_records(23))
        page = store.list_page("", 5)
        seen = list(page.items)
        store.set("a-before", b"")
        store.set("key:0025", b"")
        store.set("zz-after", b"")
        after = page.cursor_after
        while page.has_more:
            page = store.list_page(after, 5)
            seen.extend(page.items)
            after = page.cursor_after
        assert seen == sorted(seen)
        assert len(seen) == len(set(seen))
        assert [k for k in seen if k in original] == original
        assert "a-before" not in seen
        assert "zz-after" in seen

    def test_get_set_delete(self, store):
        store.set("new", b"\x00\x01")
        assert store.get("new") == b"\x00\x01"
        store.set("new", b"v2")
        assert store.get("new") == b"v2"
        store.delete("new")
        with pytest.raises(NotFound):
            store.get("new")

    def test_delete_missing_is_ok(self, store):
        store.delete("missing")

    def test_get_missing(self, store):
        with pytest.raises(NotFound) as info:
            store.get("nope")
        assert info.value.key == "nope"

    def test_scans(self, store):
        store.set("other", b"")
        assert store.count_matching("k9") == 2
        assert store.count_matching("") == 0
        assert store.group_counts() == {"key": 23, "(no prefix)": 1}


class TestLmdbStore:
    def test_reopen_read_only(self, tmp_path):
        path = tmp_path / "db"
        store = LmdbStore(path, map_size=1 << 20)
        store.set("a", b"1")
        store.close()

        ro = LmdbStore(path, map_size=1 << 20, read_only=True)
        try:
            assert ro.get("a") == b"1"
        finally:
            ro.close()

    def test_non_utf8_keys_survive(self, tmp_path):
        store = LmdbStore(tmp_path / "db", map_size=1 << 20)
        try:
            with store.env.begin(write=True) as txn:
                txn.put(b"bad\xff", b"v")
            (key,) = store.list_page("", 10).items
            assert store.get(key) == b"v"
        finally:
            store.close()


class TestKeyList:
    def test_chunks(self):
        keys = KeyList.of(["a", "b"]).appended(["c"]).appended([]).appended(["d"])
        assert len(keys) == 4
        assert list(keys) == ["a", "b", "c", "d"]
        assert keys[2] == "c"
        assert keys[-1] == "d"
        assert keys == ["a", "b", "c", "d"]

    def test_index_error(self):
        with pytest.raises(IndexError):
            KeyList.of(["a"])[1]

    def test_without(self):
        keys = KeyList.of(["a", "b"]).appended(["c"])
        assert keys.without({"b"}) == ["a", "c"]
        assert keys.without(set()) is keys


class TestBrowserState:
    def test_single_fetch_outstanding(self):
        browser = start_fetch(BrowserState())
        assert browser.loading
        assert start_fetch(browser) is None

    def test_no_fetch_when_exhausted(self):
        assert start_fetch(BrowserState(has_more=False)) is None

    def test_apply_page_skips_boundary_key(self):
        browser = BrowserState(KeyList.of(["a", "b"]), "b", True, True)
        browser = apply_page(browser, KeyPage(("b", "c"), "c", False))
        assert browser.keys == ["a", "b", "c"]
        assert browser.last_cursor == "c"
        assert not browser.has_more
        assert not browser.loading

    def test_fail_fetch_stops_paging(self):
        browser = fail_fetch(BrowserState(loading=True))
        assert not browser.loading
        assert not browser.has_more
        assert browser.error == "failed"

    def test_retry_after_failure(self):
        failed = fail_fetch(BrowserState(last_cursor="k", loading=True), "disk gone")
        assert failed.error == "disk gone"
        browser = retry_fetch(failed)
        assert browser == BrowserState(last_cursor="k", has_more=True, loading=True)
        assert retry_fetch(browser) is None
        assert retry_fetch(BrowserState()) is None

    def test_prefetch_threshold(self):
        assert needs_prefetch(0, 0, 5)
        assert needs_prefetch(94, 100, 5)
        assert not needs_prefetch(93, 100, 5)

    def test_filter_extends_incrementally(self):
        session = refilter(FilterSession(term="r1"), KeyList.of(["rec:1", "rec:2"]))
        assert session.visible == ["rec:1"]
        session = extend_filter(session, ["other:1", "x"])
        assert session.visible == ["rec:1", "other:1"]

    def test_empty_term_clears_visible(self):
        assert refilter(FilterSession(term="  "), KeyList.of(["a"])).visible is None
