"""
Main sync loop - polling, change detection and dispatch
"""
import time
from enum import Enum
from typing import Optional

from .. import config as _cfg
from ..operations.head import sync_head
from ..operations.transfer import apply_event
from ..state.tracker import FileEvent, FileStateTracker
from ..utils.logging import llog, log, vlog
from ..vcs.repository import RepositoryObserver, RepositoryRef
from .endpoint import RemoteEndpoint


class LoopState(Enum):
    INITIALIZING = "initializing"
    STEADY = "steady"


class SyncLoop:
    """
    Keeps one remote endpoint mirroring the local working tree.

    INITIALIZING syncs HEAD once and copies every file git reports as
    changed. STEADY then repeats step() forever: follow branch/commit moves
    with a head sync, then copy or delete whatever changed on disk.
    """

    def __init__(self, endpoint: RemoteEndpoint, observer: RepositoryObserver,
                 tracker: Optional[FileStateTracker] = None,
                 interval: Optional[float] = None, watcher=None):
        self.endpoint = endpoint
        self.observer = observer
        self.tracker = tracker if tracker is not None else FileStateTracker(observer.root)
        self.interval = _cfg.POLL_INTERVAL if interval is None else interval
        self.watcher = watcher
        self.state = LoopState.INITIALIZING
        self.last_ref: Optional[RepositoryRef] = None

    # ── head ───────────────────────────────────────────────────────────────

    def _sync_head(self, ref: RepositoryRef):
        sync_head(self.endpoint, ref)
        self.last_ref = ref

    def check_ref(self) -> bool:
        """Head-sync if the branch or commit moved. True if a sync ran."""
        ref = self.observer.current_ref()
        if ref == self.last_ref:
            return False
        if self.last_ref is not None:
            llog(f"HEAD moved: {self.last_ref} → {ref}")
        self._sync_head(ref)
        return True

    # ── files ──────────────────────────────────────────────────────────────

    def candidates(self) -> set[str]:
        """Paths git reports as changed plus every path already tracked."""
        return self.observer.changed_paths() | self.tracker.known_paths()

    def sync_files(self) -> list[tuple[str, FileEvent]]:
        events = self.tracker.observe(self.candidates())
        for rel, event in events:
            vlog(f"[local] {event.value}: {rel}")
            apply_event(self.endpoint, self.observer.root, rel, event)
        return events

    # ── loop ───────────────────────────────────────────────────────────────

    def initialize(self):
        llog(f"mirroring {self.observer.root} → {self.endpoint.name} "
             f"({self.endpoint.user}@{self.endpoint.host}:{self.endpoint.port}:{self.endpoint.base_path})")
        self._sync_head(self.observer.current_ref())
        events = self.sync_files()
        llog(f"initial sync done, {len(events)} file(s) copied, tracking {len(self.tracker)}")
        self.state = LoopState.STEADY

    def step(self) -> list[tuple[str, FileEvent]]:
        """One STEADY cycle: ref check, then file changes."""
        self.check_ref()
        return self.sync_files()

    def wait(self):
        if self.watcher is None:
            time.sleep(self.interval)
            return
        self.watcher.wait(self.interval)
        touched = self.watcher.drain()
        if touched:
            vlog(f"[local] {len(touched)} path(s) touched")

    def run(self):
        """Run until the process is interrupted."""
        if self.state is LoopState.INITIALIZING:
            self.initialize()
        if self.watcher is not None:
            self.watcher.start()
        log(f"[{self.endpoint.name}] watching for changes "
            f"({'events' if self.watcher is not None else f'every {self.interval:g}s'}, Ctrl+C to stop)")
        while True:
            self.step()
            self.wait()
