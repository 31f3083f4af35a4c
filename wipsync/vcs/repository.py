"""
Read-only view of the local git repository
"""
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .. import config as _cfg
from ..errors import NotARepositoryError, TransientRefInstability
from ..utils.logging import warn, vlog


@dataclass(frozen=True)
class RepositoryRef:
    branch: str
    commit: str

    def __str__(self) -> str:
        return f"{self.branch}@{self.commit[:10]}"


def run_git(args: list, cwd: Union[str, Path, None] = None) -> subprocess.CompletedProcess:
    """Run a local git command and capture its output (never raises on exit status)."""
    return subprocess.run(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
    )


def parse_porcelain(output: str) -> set[str]:
    """
    Parse ``git status --porcelain -z`` output into a set of paths.

    Entries are ``XY path``; rename and copy entries are followed by the
    original path as a separate NUL-terminated field, and both paths count
    as changed.
    """
    paths: set[str] = set()
    fields = output.split("\0")
    i = 0
    while i < len(fields):
        entry = fields[i]
        i += 1
        if len(entry) < 4:
            continue
        status, path = entry[:2], entry[3:]
        paths.add(path)
        if "R" in status or "C" in status:
            if i < len(fields) and fields[i]:
                paths.add(fields[i])
            i += 1
    return paths


class RepositoryObserver:
    """
    Queries git for the current ref and the set of changed paths.

    Every method is idempotent and leaves the repository untouched.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    @classmethod
    def discover(cls, start: Union[str, Path, None] = None) -> "RepositoryObserver":
        """Locate the working tree containing *start* (default: cwd)."""
        cwd = Path(start) if start is not None else Path.cwd()
        try:
            proc = run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
        except FileNotFoundError as exc:
            raise NotARepositoryError("git executable not found on PATH") from exc
        top = proc.stdout.strip()
        if proc.returncode != 0 or not top:
            raise NotARepositoryError(f"{cwd} is not inside a git working tree")
        return cls(Path(top))

    def git(self, *args: str) -> subprocess.CompletedProcess:
        return run_git(list(args), cwd=self.root)

    # ── ref ─────────────────────────────────────────────────────────────────

    def read_ref(self) -> RepositoryRef:
        branch = self.git("rev-parse", "--abbrev-ref", "HEAD")
        commit = self.git("rev-parse", "--verify", "-q", "HEAD")
        name = branch.stdout.strip()
        sha = commit.stdout.strip()
        if branch.returncode != 0 or commit.returncode != 0 or not sha:
            raise TransientRefInstability("HEAD does not resolve to a commit")
        if not name or name == "HEAD":
            raise TransientRefInstability("HEAD is detached")
        return RepositoryRef(branch=name, commit=sha)

    def current_ref(self) -> RepositoryRef:
        """
        Return the checked-out branch and commit.

        While HEAD is detached or unresolvable (rebase, checkout or an empty
        repository) keep polling until it settles.
        """
        started = time.monotonic()
        warned = False
        while True:
            try:
                return self.read_ref()
            except TransientRefInstability as exc:
                vlog(f"[local] waiting for HEAD to settle: {exc}")
                if not warned and time.monotonic() - started > _cfg.REF_UNSTABLE_WARN_AFTER:
                    warn(f"[local] HEAD has not named a branch for "
                         f"{_cfg.REF_UNSTABLE_WARN_AFTER:.0f}s ({exc}); still waiting")
                    warned = True
                time.sleep(_cfg.REF_RETRY_DELAY)

    # ── working tree ────────────────────────────────────────────────────────

    def changed_paths(self) -> set[str]:
        """Paths git reports as added, modified, deleted or untracked."""
        # list files inside untracked directories so ignore rules apply per file
        proc = self.git("status", "--porcelain", "-z", "--untracked-files=all")
        if proc.returncode != 0:
            warn(f"[local] git status failed: {proc.stderr.strip()}")
            return set()
        return parse_porcelain(proc.stdout)

    def remote_url(self, name: str) -> Optional[str]:
        """URL of the git remote *name*, or None if there is no such remote."""
        proc = self.git("remote", "get-url", name)
        url = proc.stdout.strip()
        if proc.returncode != 0 or not url:
            return None
        return url
