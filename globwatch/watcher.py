"""
Watcher module for GlobWatch.

Turns recursive watchdog notifications into an ordered stream of
ChangeEvent objects, one at a time:

- Every arming starts one fresh Observer covering the whole tree.
- The first qualifying notification is kept, the Observer is torn down and
  only then is the event handed to the consumer.
- The watcher arms again when the consumer asks for the next event, i.e.
  after it has finished with the previous one.

Notifications that arrive while no Observer is running, or after the first
one on a given Observer, are not queued. Bursts of edits therefore collapse
into a single event, and a change landing between teardown and the next
arming is not seen at all.
"""

import os
import threading
from enum import Enum
from queue import Empty, Full, Queue
from typing import Iterator, Optional

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from globwatch.config import WatchConfig
from globwatch.errors import WatchSetupError
from globwatch.events import ChangeEvent, ChangeKind, to_canonical
from globwatch.logger import get_logger

DEFAULT_POLL_INTERVAL = 0.1
OBSERVER_JOIN_TIMEOUT = 5.0


class WatcherState(Enum):
    IDLE = "idle"
    ARMED = "armed"
    DELIVERING = "delivering"
    TERMINATED = "terminated"


def relative_to_root(path, root: str) -> Optional[str]:
    """
    Express an absolute path relative to the watch root.

    Returns:
        str or None: The '/' separated relative path, or None if the path is
        the root itself or lies outside of it.
    """
    path = os.fsdecode(path)
    if not path:
        return None
    rel = os.path.relpath(os.path.abspath(path), root)
    if rel.startswith(os.pardir):
        # Some backends report resolved paths (e.g. /private/var on macOS).
        rel = os.path.relpath(os.path.realpath(path), os.path.realpath(root))
    if rel == os.curdir or rel == os.pardir or rel.startswith(os.pardir + os.sep):
        return None
    return to_canonical(rel)


def normalize_event(raw, root: str) -> Optional[ChangeEvent]:
    """
    Convert a watchdog event to a ChangeEvent.

    Directory modifications and open/close notifications are dropped; they
    accompany changes of the entries inside the directory and would
    otherwise shadow them. Moves across the root boundary become a deletion
    (moved out) or a creation (moved in).

    Returns:
        ChangeEvent or None: The normalized event, or None if it does not qualify.
    """
    event_type = raw.event_type

    if event_type == EVENT_TYPE_MOVED:
        before = relative_to_root(raw.src_path, root)
        after = relative_to_root(raw.dest_path, root)
        if before and after:
            return ChangeEvent(ChangeKind.RENAMED, after, before)
        if after:
            return ChangeEvent(ChangeKind.CREATED, after)
        if before:
            return ChangeEvent(ChangeKind.DELETED, before)
        return None

    if event_type == EVENT_TYPE_MODIFIED and raw.is_directory:
        return None

    kind = {
        EVENT_TYPE_CREATED: ChangeKind.CREATED,
        EVENT_TYPE_MODIFIED: ChangeKind.MODIFIED,
        EVENT_TYPE_DELETED: ChangeKind.DELETED,
    }.get(event_type)
    if kind is None:
        return None

    path = relative_to_root(raw.src_path, root)
    if not path:
        return None
    return ChangeEvent(kind, path)


class OneShotHandler(FileSystemEventHandler):
    """
    Keeps the first qualifying notification of one arming in a single slot.
    """

    def __init__(self, root, kinds, slot=None):
        super().__init__()
        self.root = root
        self.kinds = frozenset(kinds)
        self.slot = slot if slot is not None else Queue(maxsize=1)
        self.dropped = 0
        self.logger = get_logger("watcher")

    def on_any_event(self, event):
        change = normalize_event(event, self.root)
        if change is None or change.kind not in self.kinds:
            return
        try:
            self.slot.put_nowait(change)
        except Full:
            self.dropped += 1
            self.logger.debug(f"Coalesced notification: {change}")


class ChangeWatcher:
    """
    Produces ChangeEvent objects for one directory tree, one at a time.

    Attributes:
        root: Absolute path of the watched directory.
        kinds: Event kinds that are delivered; others are filtered here.
        state: Current WatcherState.
        generation: Number of times the watcher has been armed.
    """

    def __init__(self, config: WatchConfig, poll_interval: float = DEFAULT_POLL_INTERVAL,
                 observer_factory=Observer):
        self.root = config.root
        self.kinds = config.kinds
        self.poll_interval = poll_interval
        self.observer_factory = observer_factory
        self.state = WatcherState.IDLE
        self.generation = 0
        self.logger = get_logger("watcher")
        self._check_root()

    def _check_root(self):
        if not os.path.exists(self.root):
            raise WatchSetupError(f"Directory to watch does not exist: {self.root}")
        if not os.path.isdir(self.root):
            raise WatchSetupError(f"Path to watch is not a directory: {self.root}")
        if not os.access(self.root, os.R_OK | os.X_OK):
            raise WatchSetupError(f"Directory to watch is not accessible: {self.root}")

    def _arm(self, slot):
        """Start a fresh recursive observer feeding the given slot."""
        self._check_root()
        handler = OneShotHandler(self.root, self.kinds, slot)
        observer = self.observer_factory()
        try:
            observer.schedule(handler, self.root, recursive=True)
            observer.start()
        except OSError as e:
            observer.stop()
            raise WatchSetupError(f"Cannot watch {self.root}: {e}")
        self.generation += 1
        self.state = WatcherState.ARMED
        self.logger.debug(f"Armed watch #{self.generation} on {self.root}")
        return observer

    def _disarm(self, observer):
        observer.stop()
        if observer.is_alive():
            observer.join(OBSERVER_JOIN_TIMEOUT)
        self.logger.debug(f"Released watch #{self.generation}")

    def _wait(self, slot, stop_event) -> Optional[ChangeEvent]:
        while not stop_event.is_set():
            try:
                return slot.get(timeout=self.poll_interval)
            except Empty:
                continue
        return None

    def watch(self, stop_event: threading.Event) -> Iterator[ChangeEvent]:
        """
        Yield change events until stop_event is set.

        The next watch is armed only when the consumer asks for the next
        event, so a consumer never holds two events at once.

        Raises:
            WatchSetupError: If the root directory cannot be watched.
        """
        try:
            while not stop_event.is_set():
                slot = Queue(maxsize=1)
                observer = self._arm(slot)
                try:
                    event = self._wait(slot, stop_event)
                finally:
                    self._disarm(observer)
                if event is None or stop_event.is_set():
                    break
                self.state = WatcherState.DELIVERING
                self.logger.debug(f"Delivering {event}")
                yield event
        finally:
            self.state = WatcherState.TERMINATED
