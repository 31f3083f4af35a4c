"""
One remote mirror target: host, base directory and the operations on it
"""
import getpass
import shlex
import threading
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import Optional, Sequence

import paramiko

from .. import config as _cfg
from ..errors import ConfigurationError
from ..utils.logging import rlog, rwarn, relay, vlog
from ..vcs.remote_url import RemoteSpec, parse_remote_url
from ..vcs.repository import run_git
from .ssh_manager import SSHManager


def normalize_base_path(path: str) -> str:
    """
    Strip a leading ``~`` segment so the path is relative to the remote home.

    Both a fresh SSH shell and an SFTP session start in the home directory,
    so ``~/src/app`` and ``src/app`` name the same place.
    """
    path = (path or "").strip()
    if path == "~":
        return "."
    if path.startswith("~/"):
        path = path[2:].lstrip("/")
        return path or "."
    if path != "/":
        path = path.rstrip("/")
    return path


def quote_command(args: Sequence[str]) -> str:
    """Quote an argument list for a POSIX remote shell."""
    return " ".join(shlex.quote(str(a)) for a in args)


class RemoteEndpoint:
    """
    A remote host holding a checked-out clone of the local repository.

    ``name`` labels every log line about this remote. The remaining identity
    fields are fixed at construction.
    """

    def __init__(self, name: str, host: str, base_path: str,
                 user: Optional[str] = None, port: Optional[int] = None,
                 git_remote: Optional[str] = None,
                 transport: Optional[SSHManager] = None,
                 repo_root: Optional[Path] = None):
        self.name = name
        self._host = (host or "").strip()
        self._base_path = normalize_base_path(base_path)
        self._user = user or getpass.getuser()
        self._port = int(port or _cfg.SSH_PORT)
        # Named git remote to push to; None pushes to an ssh:// URL instead
        self.git_remote = git_remote
        self.repo_root = repo_root
        self._transport = transport
        self._lock = threading.Lock()

    @classmethod
    def from_spec(cls, name: str, spec: RemoteSpec, **kw) -> "RemoteEndpoint":
        return cls(name=name, host=spec.host, base_path=spec.path,
                   user=spec.user or _cfg.SSH_USER, port=spec.port or _cfg.SSH_PORT, **kw)

    # ── identity ───────────────────────────────────────────────────────────

    @property
    def host(self) -> str:
        return self._host

    @property
    def base_path(self) -> str:
        return self._base_path

    @property
    def user(self) -> str:
        return self._user

    @property
    def port(self) -> int:
        return self._port

    @property
    def url(self) -> str:
        """ssh:// URL git can push to."""
        path = self._base_path
        if not path.startswith("/"):
            path = "/~" if path == "." else f"/~/{path}"
        return f"ssh://{self._user}@{self._host}:{self._port}{path}"

    @property
    def push_target(self) -> str:
        return self.git_remote or self.url

    def __repr__(self) -> str:
        return (f"RemoteEndpoint(name={self.name!r}, user={self._user!r}, "
                f"host={self._host!r}, port={self._port}, base_path={self._base_path!r})")

    def validate(self):
        """Raise ConfigurationError unless host and base path are both set."""
        if not self._host:
            raise ConfigurationError(f"remote {self.name!r} has no host")
        if not self._base_path:
            raise ConfigurationError(f"remote {self.name!r} has no base path")

    @property
    def transport(self) -> SSHManager:
        if self._transport is None:
            self.validate()
            self._transport = SSHManager(self._host, self._port, self._user, label=self.name)
        return self._transport

    def remote_path(self, rel: str) -> str:
        return (PurePosixPath(self._base_path) / rel).as_posix()

    # ── serialization ──────────────────────────────────────────────────────

    @contextmanager
    def operation(self):
        """Hold this endpoint exclusively for one head or file sync."""
        with self._lock:
            yield self

    # ── primitives ─────────────────────────────────────────────────────────

    def run_command(self, args: Sequence[str], chdir: bool = True,
                    check: bool = True) -> tuple[str, bool]:
        """
        Run *args* on the remote host, inside the base directory if *chdir*.

        Returns (combined output, success). Output is relayed under this
        remote's prefix. With *check* false a non-zero exit is not warned about.
        """
        self.validate()
        cmd = quote_command(args)
        if chdir:
            cmd = f"cd {shlex.quote(self._base_path)} && {cmd}"
        vlog(f"[{self.name}] $ {cmd}")
        try:
            rc, out = self.transport.exec(cmd)
        except (paramiko.SSHException, OSError, EOFError) as exc:
            rwarn(self.name, f"{cmd!r}: {exc}")
            return str(exc), False
        out = out.strip()
        relay(self.name, out)
        if rc != 0 and check:
            rwarn(self.name, f"{cmd!r} exited {rc}")
        return out, rc == 0

    def copy_file(self, local_path: Path, rel_path: str) -> bool:
        """Upload *local_path* to ``base_path/rel_path``, creating parents first."""
        self.validate()
        parent = PurePosixPath(rel_path).parent.as_posix()
        if parent not in (".", ""):
            _, ok = self.run_command(["mkdir", "-p", parent])
            if not ok:
                return False
        try:
            self.transport.sftp_put(str(local_path), self.remote_path(rel_path))
        except (paramiko.SSHException, OSError, EOFError) as exc:
            rwarn(self.name, f"copy of {rel_path} failed: {exc}")
            return False
        return True

    def remove_file(self, rel_path: str) -> bool:
        _, ok = self.run_command(["rm", "-f", "--", rel_path])
        return ok

    def remote_tip(self, branch: str) -> Optional[str]:
        """Commit the remote branch points at, '' if it does not exist, None on error."""
        out, ok = self.run_command(["git", "rev-parse", "--verify", "-q", f"refs/heads/{branch}"],
                                   check=False)
        if ok:
            return out.strip()
        # rev-parse --verify -q prints nothing and exits 1 for a missing ref
        return "" if not out.strip() else None

    def push_ref(self, branch: str) -> bool:
        """
        Push *branch* to the same branch on this remote.

        A rejected push (rewritten history) is retried once as a force push
        leased on the remote tip read just beforehand, so a remote that moved
        in between is never clobbered.
        """
        self.validate()
        refspec = f"refs/heads/{branch}:refs/heads/{branch}"
        proc = run_git(["push", "--quiet", self.push_target, refspec], cwd=self.repo_root)
        relay(self.name, proc.stdout + proc.stderr)
        if proc.returncode == 0:
            return True

        rwarn(self.name, f"push of {branch} rejected; retrying with --force-with-lease")
        tip = self.remote_tip(branch)
        if tip is None:
            rwarn(self.name, f"could not read remote tip of {branch}")
            return False
        lease = f"--force-with-lease=refs/heads/{branch}:{tip}"
        proc = run_git(["push", "--quiet", lease, self.push_target, refspec], cwd=self.repo_root)
        relay(self.name, proc.stdout + proc.stderr)
        if proc.returncode != 0:
            rwarn(self.name, f"forced push of {branch} failed")
            return False
        rlog(self.name, f"force-pushed {branch}")
        return True


def resolve_endpoint(observer, remote: Optional[str] = None,
                     path: Optional[str] = None) -> RemoteEndpoint:
    """
    Build the endpoint from startup arguments.

    *remote* names a git remote (default: the configured one, ``origin``).
    When no remote by that name has a URL, *remote* is taken as a host and
    *path* as the base directory on it.
    """
    name = remote or _cfg.DEFAULT_REMOTE
    url = observer.remote_url(name)
    if url is not None:
        endpoint = RemoteEndpoint.from_spec(name, parse_remote_url(url),
                                            git_remote=name, repo_root=observer.root)
    else:
        if remote is None:
            raise ConfigurationError(
                f"no git remote named {name!r}; pass a remote name or HOST PATH"
            )
        user, _, host = remote.rpartition("@")
        endpoint = RemoteEndpoint(name="", host=host, base_path=path or "",
                                  user=user or _cfg.SSH_USER, port=_cfg.SSH_PORT,
                                  repo_root=observer.root)
        endpoint.name = endpoint.host
    endpoint.validate()
    return endpoint
