"""Error types raised by the store adapters, codec and pattern matcher."""

from __future__ import annotations


class KvBrowseError(Exception):
    """Base class for every recoverable kvbrowse failure."""


class NotFound(KvBrowseError):
    def __init__(self, key: str) -> None:
        super().__init__(f"key not found: {key}")
        self.key = key


class IOFailure(KvBrowseError):
    pass


class PartialDeleteError(IOFailure):
    """A pattern delete that stopped after removing *deleted* keys."""

    def __init__(self, deleted: list[str], cause: Exception) -> None:
        super().__init__(
            f"stopped after deleting {len(deleted)} records: {cause}"
        )
        self.deleted = list(deleted)
        self.cause = cause


class InvalidEncoding(KvBrowseError):
    def __init__(
        self, message: str, *, line: int | None = None, column: int | None = None
    ) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


class InvalidPattern(KvBrowseError):
    pass
