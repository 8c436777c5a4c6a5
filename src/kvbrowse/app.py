"""Textual application shell around the kvbrowse state machine."""

from __future__ import annotations

import logging
import sys
from functools import partial

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widget import Widget
from textual.worker import Worker, WorkerState

from kvbrowse import model
from kvbrowse.config import Settings, parse_settings
from kvbrowse.errors import IOFailure, KvBrowseError
from kvbrowse.store import LmdbStore, MemoryStore, Store
from kvbrowse.tasks import run_task
from kvbrowse.view import render_frame

log = logging.getLogger(__name__)


class KvBrowser(Widget, can_focus=True):
    """Full-screen widget that owns the application state.

    Every key press, resize and finished worker is fed to
    :func:`kvbrowse.model.update`; the tasks it returns are started as
    thread workers whose results come back as new events.
    """

    DEFAULT_CSS = """
    KvBrowser {
        height: 1fr;
        width: 1fr;
    }
    """

    def __init__(self, store: Store, settings: Settings, **kwargs) -> None:
        super().__init__(**kwargs)
        self.store = store
        self.state = model.initial_state(settings)
        self._tasks: dict[Worker, model.Task] = {}

    def on_mount(self) -> None:
        size = self.size
        if size.width and size.height:
            self.dispatch(model.Resized(size.width, size.height))
        self.dispatch(model.Started())

    def dispatch(self, event: model.Event) -> None:
        self.state, tasks = model.update(self.state, event)
        for task in tasks:
            self._start(task)
        if self.state.quit:
            self.app.exit()
            return
        self.refresh()

    def _start(self, task: model.Task) -> None:
        worker = self.run_worker(
            partial(run_task, self.store, task),
            name=type(task).__name__,
            thread=True,
            exit_on_error=False,
        )
        self._tasks[worker] = task

    # -- Textual events ----------------------------------------------------

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()
        self.dispatch(model.KeyPressed(event.key, event.character))

    def on_resize(self, event: events.Resize) -> None:
        self.dispatch(model.Resized(event.size.width, event.size.height))

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        worker = event.worker
        if event.state == WorkerState.SUCCESS:
            self._tasks.pop(worker, None)
            self.dispatch(worker.result)
        elif event.state in (WorkerState.ERROR, WorkerState.CANCELLED):
            task = self._tasks.pop(worker, None)
            if task is None:
                return
            error = worker.error
            if error is not None:
                log.exception("worker %s failed", worker.name, exc_info=error)
            self.dispatch(_failure_event(task, error))

    def render(self) -> Text:
        return render_frame(self.state)


def _failure_event(task: model.Task, error: BaseException | None) -> model.Event:
    """Result event for a task whose worker died outside the store contract."""
    exc: KvBrowseError = IOFailure(str(error) if error else "task cancelled")
    if isinstance(task, model.LoadPage):
        return model.PageLoaded(task.after, error=exc)
    if isinstance(task, model.LoadValue):
        return model.ValueLoaded(task.key, task.request_id, task.for_edit, error=exc)
    if isinstance(task, model.CountMatches):
        return model.MatchesCounted(task.term, error=exc)
    if isinstance(task, model.LoadGroups):
        return model.GroupsLoaded(error=exc)
    if isinstance(task, model.SaveValue):
        return model.ValueSaved(task.key, exc)
    if isinstance(task, model.DeleteKey):
        return model.KeyDeleted(task.key, exc)
    return model.PatternDeleted(task.pattern, (), exc)


class KvBrowseApp(App):
    """TUI app that wraps the KvBrowser widget."""

    TITLE = "kvbrowse"
    ENABLE_COMMAND_PALETTE = False
    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(self, store: Store, settings: Settings, **kwargs) -> None:
        super().__init__(**kwargs)
        self.store = store
        self.settings = settings

    def compose(self) -> ComposeResult:
        yield KvBrowser(self.store, self.settings, id="browser")

    def on_mount(self) -> None:
        self.query_one("#browser").focus()


def setup_logging(log_file: str | None) -> None:
    if log_file:
        logging.basicConfig(
            filename=log_file,
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    else:
        logging.getLogger("kvbrowse").addHandler(logging.NullHandler())


def open_store(settings: Settings) -> Store:
    if settings.memory:
        return MemoryStore(group_delimiter=settings.group_delimiter)
    return LmdbStore(
        settings.db_path,
        map_size=settings.map_size,
        read_only=settings.read_only,
        group_delimiter=settings.group_delimiter,
    )


def main() -> None:
    settings = parse_settings()
    setup_logging(settings.log_file)
    try:
        store = open_store(settings)
    except KvBrowseError as exc:
        print(f"kvbrowse: {exc}", file=sys.stderr)
        sys.exit(1)
    log.info("opened %s", settings.db_path if not settings.memory else "(memory)")

    app = KvBrowseApp(store, settings)
    try:
        app.run()
    finally:
        if isinstance(store, LmdbStore):
            store.close()


if __name__ == "__main__":
    main()
