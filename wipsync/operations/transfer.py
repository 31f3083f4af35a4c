"""
File transfer operations (NEW / MODIFIED files)
"""
from pathlib import Path
from typing import Optional

from ..core.endpoint import RemoteEndpoint
from ..errors import RemoteCommandFailure
from ..state.tracker import FileEvent
from ..utils.logging import llog, rlog
from ..utils.timing import Stopwatch
from .delete import delete_file


def copy_file(endpoint: RemoteEndpoint, root: Path, rel: str,
              sw: Optional[Stopwatch] = None) -> Stopwatch:
    """
    Copy one file's current contents to the remote.

    A failed copy leaves the remote behind the local tree, so it raises
    RemoteCommandFailure instead of carrying on. A file that vanished locally
    before the upload is skipped; the next cycle reports it DELETED.
    """
    sw = sw or Stopwatch.start()
    local = root / rel
    with endpoint.operation():
        if not endpoint.copy_file(local, rel):
            if not local.is_file():
                llog(f"{rel} vanished before upload, skipped")
                return sw
            raise RemoteCommandFailure(endpoint.name, f"copy of {rel}")
    rlog(endpoint.name, f"  [COPY ✓] {rel} ({sw.format()})")
    return sw


def apply_event(endpoint: RemoteEndpoint, root: Path, rel: str,
                event: FileEvent) -> bool:
    """Dispatch a tracker event: NEW/MODIFIED copy, DELETED removes."""
    sw = Stopwatch.start()
    if event is FileEvent.DELETED:
        return delete_file(endpoint, rel, sw)
    copy_file(endpoint, root, rel, sw)
    return True
