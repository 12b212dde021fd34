"""Watching of file-backed records and reloading them in place.

Each directory holding a watched file gets one ``WatchEntry``: a watchdog
observer scheduled on the directory (not the file, so the watch survives the
file being deleted and recreated). Every watched field subscribes to its
directory's entry and runs its own ``FieldWatch`` thread, which filters events
by file name and hands them to a ``FileReloader``.
"""

import logging
import os
import queue
import threading
from pathlib import Path
from typing import Any

from watchdog.events import EVENT_TYPE_CLOSED
from watchdog.events import EVENT_TYPE_CREATED
from watchdog.events import EVENT_TYPE_DELETED
from watchdog.events import EVENT_TYPE_MODIFIED
from watchdog.events import EVENT_TYPE_MOVED
from watchdog.events import FileSystemEvent
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from .defaults import apply_defaults
from .exceptions import CloseError
from .exceptions import ConfigError
from .exceptions import ReloadError
from .exceptions import WatchedFileRemovedError
from .exceptions import WatchError
from .loader import read_file
from .models import EnviOptions
from .models import copy_fields
from .models import new_record
from .unmarshal import Unmarshaler
from .utils import content_hash

logger = logging.getLogger(__name__)

_STOP = object()
_RELOAD = "reload"
_REMOVED = "removed"

WatchKey = tuple[Path, int]


def _new_observer(options: EnviOptions) -> BaseObserver:
    if options.use_polling:
        return PollingObserver(timeout=options.poll_interval)
    return Observer()


class _DirectoryEventHandler(FileSystemEventHandler):
    def __init__(self, entry: "WatchEntry"):
        self._entry = entry

    def on_any_event(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._entry.publish(event)


class WatchEntry:
    """One directory watch shared by every watched file in that directory.

    Args:
        directory: Directory to watch
        options: Observer settings

    Raises:
        OSError: If the directory cannot be watched
    """

    def __init__(self, directory: Path, options: EnviOptions):
        self.directory = directory
        self.cancelled = threading.Event()
        self._join_timeout = options.join_timeout
        self._lock = threading.Lock()
        self._subscribers: list[queue.SimpleQueue] = []
        self._handler = _DirectoryEventHandler(self)
        self._inode = directory.stat().st_ino
        self._observer = _new_observer(options)
        self._watch = self._observer.schedule(self._handler, str(directory), recursive=False)
        self._observer.daemon = True
        self._observer.start()

    def subscribe(self) -> queue.SimpleQueue:
        """Register a new event queue receiving every event of the directory."""
        events: queue.SimpleQueue = queue.SimpleQueue()
        with self._lock:
            self._subscribers.append(events)
        return events

    def publish(self, event: Any) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for events in subscribers:
            events.put(event)

    def ensure_watching(self) -> None:
        """Re-register the directory watch if the directory was replaced.

        Raises:
            WatchError: If the directory is gone or cannot be watched again
        """
        try:
            inode = self.directory.stat().st_ino
        except OSError as e:
            raise WatchError(f"Watched directory is gone: {self.directory}") from e

        if inode == self._inode:
            return

        with self._lock:
            try:
                self._observer.unschedule(self._watch)
            except KeyError:
                pass  # emitter already gone with the old directory
            try:
                self._watch = self._observer.schedule(self._handler, str(self.directory), recursive=False)
            except OSError as e:
                raise WatchError(f"Failed to re-watch directory {self.directory}: {e}") from e
            self._inode = inode
        logger.info(f"Re-registered watch on replaced directory {self.directory}")

    def close(self) -> None:
        """Cancel every subscriber and stop the observer.

        Raises:
            WatchError: If the observer thread does not stop in time
        """
        self.cancelled.set()
        with self._lock:
            subscribers = list(self._subscribers)
            self._subscribers.clear()
        for events in subscribers:
            events.put(_STOP)

        self._observer.stop()
        self._observer.join(timeout=self._join_timeout)
        if self._observer.is_alive():
            raise WatchError(f"Observer for {self.directory} did not stop within {self._join_timeout}s")


class FileReloader:
    """Reload pipeline for one watched record.

    Reads the file and compares its hash with the last successfully loaded
    content. Unchanged content is a no-op. Changed content is decoded into a
    fresh record with defaults applied, whose fields are then copied onto the
    live record while holding its lock; ``on_change`` is called afterwards.
    Failures are passed to ``on_error`` and offered to the error queue.

    Args:
        field: Name of the watched field, for logging
        record: Live record to update; must provide on_change and on_error
        path: Absolute path of the backing file
        unmarshal: Decode routine for the file's format
        hashes: Shared hash cache, keyed per watched record
        lock: Lock guarding the live record
        errors: Queue receiving reported errors; full queues drop the error
    """

    def __init__(
        self,
        field: str,
        record: Any,
        path: Path,
        unmarshal: Unmarshaler,
        hashes: dict[WatchKey, str],
        lock: threading.Lock,
        errors: queue.Queue,
    ):
        self.field = field
        self.record = record
        self.path = path
        self.lock = lock
        self._unmarshal = unmarshal
        self._hashes = hashes
        self._errors = errors

    @property
    def key(self) -> WatchKey:
        return (self.path, id(self.record))

    def reload(self) -> bool:
        """Reload the file into the live record.

        Returns:
            True if the content changed and the record was updated
        """
        try:
            content = read_file(self.path)
        except ConfigError as e:
            self.report(ReloadError(self.path, e))
            return False

        digest = content_hash(content)
        if self._hashes.get(self.key) == digest:
            logger.debug(f"Content of {self.path} unchanged, skipping reload of '{self.field}'")
            return False

        try:
            staged = new_record(type(self.record))
            apply_defaults(staged)
            self._unmarshal(content, staged)
        except ConfigError as e:
            self.report(ReloadError(self.path, e))
            return False

        with self.lock:
            copy_fields(staged, self.record)
        self._hashes[self.key] = digest
        logger.info(f"Reloaded field '{self.field}' from {self.path}")

        try:
            self.record.on_change()
        except Exception:
            logger.exception(f"on_change callback of field '{self.field}' failed")
        return True

    def report(self, err: ConfigError) -> None:
        """Pass an error to the record's on_error and the error queue."""
        logger.warning(f"Watch of field '{self.field}' reported: {err}")

        try:
            self.record.on_error(err)
        except Exception:
            logger.exception(f"on_error callback of field '{self.field}' failed")

        try:
            self._errors.put_nowait(err)
        except queue.Full:
            logger.debug(f"Error queue full, dropped error for field '{self.field}'")


class FieldWatch(threading.Thread):
    """Background loop feeding one field's file events to its reloader.

    A burst of events is coalesced: after the first relevant event the loop
    keeps receiving until ``settle_interval`` passes without a new one, then
    acts on the last relevant event.
    """

    def __init__(self, entry: WatchEntry, reloader: FileReloader, settle_interval: float):
        super().__init__(name=f"envi-watch-{reloader.field}", daemon=True)
        self._entry = entry
        self._reloader = reloader
        self._settle_interval = settle_interval
        self._events = entry.subscribe()

    def run(self) -> None:
        while True:
            event = self._events.get()
            if event is _STOP:
                return

            action = self._classify(event)
            if action is None:
                continue

            action = self._settle(action)
            if action is None or self._entry.cancelled.is_set():
                return

            if action == _REMOVED:
                self._handle_removed()
            else:
                self._reloader.reload()

    def _settle(self, action: str) -> str | None:
        while True:
            try:
                event = self._events.get(timeout=self._settle_interval)
            except queue.Empty:
                return action
            if event is _STOP:
                return None
            action = self._classify(event) or action

    def _classify(self, event: FileSystemEvent) -> str | None:
        name = self._reloader.path.name
        src_name = os.path.basename(os.fsdecode(event.src_path))

        if event.event_type == EVENT_TYPE_MOVED:
            if os.path.basename(os.fsdecode(event.dest_path)) == name:
                return _RELOAD
            if src_name == name:
                return _REMOVED
            return None

        if src_name != name:
            return None
        if event.event_type in (EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_CLOSED):
            return _RELOAD
        if event.event_type == EVENT_TYPE_DELETED:
            return _REMOVED
        return None

    def _handle_removed(self) -> None:
        self._reloader.report(WatchedFileRemovedError(self._reloader.path))
        try:
            self._entry.ensure_watching()
        except WatchError as e:
            self._reloader.report(e)


class WatchCoordinator:
    """Owns the directory watches and reload loops of one Envi instance.

    Args:
        options: Watch settings
        errors: Queue receiving reload-time errors
    """

    def __init__(self, options: EnviOptions, errors: queue.Queue):
        self._options = options
        self._errors = errors
        self._lock = threading.Lock()
        self._entries: dict[Path, WatchEntry] = {}
        self._hashes: dict[WatchKey, str] = {}
        self._record_locks: dict[int, threading.Lock] = {}
        self._watched: set[WatchKey] = set()

    def watch_file(self, field: str, record: Any, path: Path, unmarshal: Unmarshaler, content: bytes) -> None:
        """Start watching a loaded file and reloading it into its record.

        Watching the same record and path twice is a no-op.

        Args:
            field: Name of the watched field
            record: Live record the file was loaded into
            path: Absolute path of the file
            unmarshal: Decode routine for the file's format
            content: Content the record was loaded from

        Raises:
            WatchError: If the file's directory cannot be watched
        """
        key = (path, id(record))
        directory = path.parent

        with self._lock:
            if key in self._watched:
                self._hashes[key] = content_hash(content)
                logger.debug(f"Field '{field}' is already watching {path}")
                return

            entry = self._entries.get(directory)
            if entry is None:
                try:
                    entry = WatchEntry(directory, self._options)
                except OSError as e:
                    raise WatchError(f"Failed to watch directory {directory}: {e}") from e
                self._entries[directory] = entry
                logger.info(f"Watching directory {directory}")

            lock = self._record_locks.setdefault(id(record), threading.Lock())
            self._hashes[key] = content_hash(content)
            reloader = FileReloader(field, record, path, unmarshal, self._hashes, lock, self._errors)
            watch = FieldWatch(entry, reloader, self._options.settle_interval)
            self._watched.add(key)

        watch.start()
        logger.debug(f"Field '{field}' watching {path}")

    def lock_for(self, record: Any) -> threading.Lock:
        """Get the lock guarding a watched record.

        Raises:
            ConfigError: If the record is not watched
        """
        with self._lock:
            lock = self._record_locks.get(id(record))
        if lock is None:
            raise ConfigError(f"{type(record).__name__} instance is not watched")
        return lock

    def close(self) -> None:
        """Stop every watch, attempting all of them even if some fail.

        Raises:
            CloseError: Aggregating every failure
        """
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
            self._hashes.clear()
            self._record_locks.clear()
            self._watched.clear()

        errors: list[Exception] = []
        for entry in entries:
            try:
                entry.close()
            except Exception as e:
                errors.append(e)

        if entries:
            logger.info(f"Closed {len(entries) - len(errors)} of {len(entries)} directory watches")
        if errors:
            raise CloseError(errors)
