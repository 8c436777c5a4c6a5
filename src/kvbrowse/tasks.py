"""Blocking store work requested by the state machine.

Each task runs on a worker thread and turns into exactly one result
event.  Store errors are returned inside the event, never raised.
"""

from __future__ import annotations

import logging

from kvbrowse import model
from kvbrowse._fuzzy import sort_group_counts
from kvbrowse._glob import compile_glob
from kvbrowse.errors import KvBrowseError, PartialDeleteError
from kvbrowse.store import Store

log = logging.getLogger(__name__)


def delete_matching(store: Store, pattern: str, page_size: int) -> list[str]:
    """Delete every key matching the glob *pattern*.

    The keyspace is swept page by page and each match is deleted as soon
    as it is seen, so the operation is not atomic.  On failure a
    :class:`PartialDeleteError` carries the keys already removed.
    """
    regex = compile_glob(pattern)
    deleted: list[str] = []
    after = ""
    try:
        while True:
            page = store.list_page(after, page_size)
            for key in page.items:
                if regex.fullmatch(key):
                    store.delete(key)
                    deleted.append(key)
            if not page.has_more or not page.items:
                break
            after = page.cursor_after
    except KvBrowseError as exc:
        log.warning("pattern delete %r stopped after %d keys: %s", pattern, len(deleted), exc)
        raise PartialDeleteError(deleted, exc) from exc
    log.info("pattern delete %r removed %d keys", pattern, len(deleted))
    return deleted


def run_task(store: Store, task: model.Task) -> model.Event:
    """Execute *task* against *store* and return its result event."""
    log.debug("running %r", task)
    if isinstance(task, model.LoadPage):
        try:
            page = store.list_page(task.after, task.limit)
        except KvBrowseError as exc:
            return model.PageLoaded(task.after, error=exc)
        return model.PageLoaded(task.after, page)

    if isinstance(task, model.LoadValue):
        try:
            value = store.get(task.key)
        except KvBrowseError as exc:
            return model.ValueLoaded(task.key, task.request_id, task.for_edit, error=exc)
        return model.ValueLoaded(task.key, task.request_id, task.for_edit, value)

    if isinstance(task, model.CountMatches):
        try:
            count = store.count_matching(task.term)
        except KvBrowseError as exc:
            return model.MatchesCounted(task.term, error=exc)
        return model.MatchesCounted(task.term, count)

    if isinstance(task, model.LoadGroups):
        try:
            counts = store.group_counts()
        except KvBrowseError as exc:
            return model.GroupsLoaded(error=exc)
        return model.GroupsLoaded(tuple(sort_group_counts(counts)))

    if isinstance(task, model.SaveValue):
        try:
            store.set(task.key, task.value)
        except KvBrowseError as exc:
            log.error("save %r failed: %s", task.key, exc)
            return model.ValueSaved(task.key, exc)
        log.info("saved %r (%d bytes)", task.key, len(task.value))
        return model.ValueSaved(task.key)

    if isinstance(task, model.DeleteKey):
        try:
            store.delete(task.key)
        except KvBrowseError as exc:
            log.error("delete %r failed: %s", task.key, exc)
            return model.KeyDeleted(task.key, exc)
        log.info("deleted %r", task.key)
        return model.KeyDeleted(task.key)

    if isinstance(task, model.DeletePattern):
        try:
            deleted = delete_matching(store, task.pattern, task.page_size)
        except PartialDeleteError as exc:
            return model.PatternDeleted(task.pattern, tuple(exc.deleted), exc)
        except KvBrowseError as exc:
            return model.PatternDeleted(task.pattern, (), exc)
        return model.PatternDeleted(task.pattern, tuple(deleted))

    raise TypeError(f"unknown task: {task!r}")
