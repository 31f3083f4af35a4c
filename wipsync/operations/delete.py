"""
Delete operations (remote side)
"""
from typing import Optional

from ..core.endpoint import RemoteEndpoint
from ..utils.logging import rlog, rwarn
from ..utils.timing import Stopwatch


def delete_file(endpoint: RemoteEndpoint, rel: str,
                sw: Optional[Stopwatch] = None) -> bool:
    """
    Remove the remote copy of *rel*.

    A failure is only logged: a stray file on the remote is less harmful than
    stopping the mirror.
    """
    sw = sw or Stopwatch.start()
    with endpoint.operation():
        ok = endpoint.remove_file(rel)
    if ok:
        rlog(endpoint.name, f"  [DEL ✓] {rel} ({sw.format()})")
    else:
        rwarn(endpoint.name, f"  could not delete remote {rel} ({sw.format()})")
    return ok
