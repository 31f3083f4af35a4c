"""
Bring the remote checkout to the local branch and commit
"""
from ..core.endpoint import RemoteEndpoint
from ..errors import RemoteCommandFailure
from ..utils.logging import rlog
from ..utils.timing import Stopwatch
from ..vcs.repository import RepositoryRef


def _step(endpoint: RemoteEndpoint, action: str, args: list[str]):
    out, ok = endpoint.run_command(args)
    if not ok:
        raise RemoteCommandFailure(endpoint.name, action, out)


def sync_head(endpoint: RemoteEndpoint, ref: RepositoryRef) -> Stopwatch:
    """
    Make the remote repository check out *ref*.

      1. allow pushes into the remote's checked-out branch (this repo only)
      2. push the branch, falling back to a lease-guarded force push
      3. ``git reset`` to unstage what the push left behind in the index
      4. ``git checkout <branch>`` without --force

    Any failing step raises RemoteCommandFailure. Running it twice for the
    same ref leaves the remote unchanged the second time.
    """
    sw = Stopwatch.start()
    with endpoint.operation():
        rlog(endpoint.name, f"syncing HEAD → {ref}")
        _step(endpoint, "git config receive.denyCurrentBranch",
              ["git", "config", "receive.denyCurrentBranch", "false"])
        if not endpoint.push_ref(ref.branch):
            raise RemoteCommandFailure(endpoint.name, f"push of {ref.branch}")
        _step(endpoint, "git reset", ["git", "reset", "--quiet"])
        _step(endpoint, f"git checkout {ref.branch}",
              ["git", "checkout", "--quiet", ref.branch])
    rlog(endpoint.name, f"HEAD is {ref} ✓ ({sw.format()})")
    return sw
