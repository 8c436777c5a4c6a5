"""Key-value store adapters.

The browser core only talks to a store through the :class:`Store`
protocol: ordered page listing, point get/set/delete and two full-scan
aggregations.  :class:`LmdbStore` backs it with an LMDB environment,
:class:`MemoryStore` keeps everything in a sorted in-memory index.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import lmdb

from kvbrowse._fuzzy import GROUP_DELIMITER, count_matching, group_counts
from kvbrowse.errors import IOFailure, NotFound

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyPage:
    items: tuple[str, ...]
    cursor_after: str
    has_more: bool


class Store(Protocol):
    def list_page(self, after: str, limit: int) -> KeyPage: ...

    def count_matching(self, term: str) -> int: ...

    def group_counts(self) -> dict[str, int]: ...

    def get(self, key: str) -> bytes: ...

    def set(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...


def _encode_key(key: str) -> bytes:
    return key.encode("utf-8", "surrogateescape")


def _decode_key(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


class ScanMixin:
    """Full-scan aggregations built on top of ``_iter_keys``."""

    group_delimiter: str = GROUP_DELIMITER

    def _iter_keys(self) -> Iterator[str]:
        raise NotImplementedError

    def count_matching(self, term: str) -> int:
        if not term.strip():
            return 0
        count = count_matching(self._iter_keys(), term)
        log.debug("count_matching(%r) -> %d", term, count)
        return count

    def group_counts(self) -> dict[str, int]:
        counts = group_counts(self._iter_keys(), self.group_delimiter)
        log.debug("group_counts -> %d groups", len(counts))
        return counts


class LmdbStore(ScanMixin):
    """Store adapter over a single unnamed LMDB database."""

    def __init__(
        self,
        path: str | Path,
        *,
        map_size: int = 1 << 30,
        read_only: bool = False,
        group_delimiter: str = GROUP_DELIMITER,
    ) -> None:
        self.path = Path(path)
        self.group_delimiter = group_delimiter
        try:
            self.env = lmdb.open(
                str(self.path),
                map_size=map_size,
                subdir=not self.path.is_file(),
                readonly=read_only,
                create=not read_only,
            )
        except lmdb.Error as exc:
            raise IOFailure(f"cannot open {self.path}: {exc}") from exc

    def close(self) -> None:
        self.env.close()

    def _iter_keys(self) -> Iterator[str]:
        try:
            with self.env.begin() as txn:
                cursor = txn.cursor()
                for raw in cursor.iternext(keys=True, values=False):
                    yield _decode_key(raw)
        except lmdb.Error as exc:
            raise IOFailure(f"scan failed: {exc}") from exc

    def list_page(self, after: str, limit: int) -> KeyPage:
        if limit <= 0:
            return KeyPage((), after, False)
        keys: list[str] = []
        has_more = False
        try:
            with self.env.begin() as txn:
                cursor = txn.cursor()
                if after:
                    seek = _encode_key(after)
                    found = cursor.set_range(seek)
                    if found and cursor.key() == seek:
                        found = cursor.next()
                else:
                    found = cursor.first()
                while found:
                    keys.append(_decode_key(cursor.key()))
                    if len(keys) >= limit:
                        has_more = cursor.next()
                        break
                    found = cursor.next()
        except lmdb.Error as exc:
            raise IOFailure(f"list failed: {exc}") from exc
        log.debug("list_page(after=%r, limit=%d) -> %d keys", after, limit, len(keys))
        return KeyPage(tuple(keys), keys[-1] if keys else after, has_more)

    def get(self, key: str) -> bytes:
        try:
            with self.env.begin() as txn:
                value = txn.get(_encode_key(key))
        except lmdb.Error as exc:
            raise IOFailure(f"get failed: {exc}") from exc
        if value is None:
            raise NotFound(key)
        return bytes(value)

    def set(self, key: str, value: bytes) -> None:
        try:
            with self.env.begin(write=True) as txn:
                txn.put(_encode_key(key), value)
        except lmdb.Error as exc:
            raise IOFailure(f"set failed: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with self.env.begin(write=True) as txn:
                txn.delete(_encode_key(key))
        except lmdb.Error as exc:
            raise IOFailure(f"delete failed: {exc}") from exc


class MemoryStore(ScanMixin):
    """Sorted in-memory store with the same contract as :class:`LmdbStore`."""

    def __init__(
        self,
        records: Mapping[str, bytes] | None = None,
        *,
        group_delimiter: str = GROUP_DELIMITER,
    ) -> None:
        self.group_delimiter = group_delimiter
        self._data: dict[str, bytes] = dict(records or {})
        self._keys: list[str] = sorted(self._data)

    def __len__(self) -> int:
        return len(self._keys)

    def keys(self) -> list[str]:
        return list(self._keys)

    def _iter_keys(self) -> Iterator[str]:
        yield from list(self._keys)

    def list_page(self, after: str, limit: int) -> KeyPage:
        if limit <= 0:
            return KeyPage((), after, False)
        start = bisect.bisect_right(self._keys, after) if after else 0
        items = tuple(self._keys[start : start + limit])
        has_more = start + limit < len(self._keys)
        return KeyPage(items, items[-1] if items else after, has_more)

    def get(self, key: str) -> bytes:
        try:
            return self._data[key]
        except KeyError:
            raise NotFound(key) from None

    def set(self, key: str, value: bytes) -> None:
        if key not in self._data:
            bisect.insort(self._keys, key)
        self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        if self._data.pop(key, None) is None:
            return
        idx = bisect.bisect_left(self._keys, key)
        del self._keys[idx]
