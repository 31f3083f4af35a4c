"""
Filesystem notifications for the event-driven mode
"""
import os
import threading
from pathlib import Path, PurePosixPath
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..utils.logging import vlog


class ChangeWatcher(FileSystemEventHandler):
    """
    Collects repository-relative paths touched since the last drain().

    The observer thread only records paths and wakes the sync loop; all
    remote work stays on the loop's thread, one batch at a time. Paths are
    kept exactly as reported (a delete of ``foo.txt`` never matches
    ``foo.txt.bak``).
    """

    def __init__(self, root: Path):
        self.root = Path(root).resolve()
        self._dirty: set[str] = set()
        self._guard = threading.Lock()
        self._wake = threading.Event()
        self._observer: Optional[Observer] = None

    def _relative(self, path) -> Optional[str]:
        try:
            rel = Path(os.fsdecode(path)).resolve().relative_to(self.root)
        except ValueError:
            return None
        rel_posix = rel.as_posix()
        if rel_posix in ("", ".") or ".git" in PurePosixPath(rel_posix).parts:
            return None
        return rel_posix

    def _record(self, *paths):
        found = [r for r in (self._relative(p) for p in paths if p) if r]
        if not found:
            return
        with self._guard:
            self._dirty.update(found)
        self._wake.set()

    def on_any_event(self, event: FileSystemEvent):
        if event.event_type in ("opened", "closed_no_write"):
            return
        self._record(event.src_path, getattr(event, "dest_path", None))

    def start(self):
        self._observer = Observer()
        self._observer.daemon = True
        self._observer.schedule(self, str(self.root), recursive=True)
        self._observer.start()
        vlog(f"[local] watching {self.root} for changes")

    def stop(self):
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    def wait(self, timeout: float) -> bool:
        """Block until something changes or *timeout* passes."""
        woke = self._wake.wait(timeout)
        self._wake.clear()
        return woke

    def drain(self) -> set[str]:
        """Return and forget every path recorded so far."""
        with self._guard:
            dirty, self._dirty = self._dirty, set()
        return dirty
