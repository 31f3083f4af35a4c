"""
SSH session manager with auto-reconnect and keep-alive
"""
import os
import stat
from typing import Optional

import paramiko

from .. import config as _cfg
from ..utils.logging import rlog
from ..utils.retry import retried


class SSHManager:
    """
    Wraps paramiko SSHClient + SFTPClient for one remote host.

    One session is shared by every command and upload. A dead session is
    reopened on the next call.
    """

    def __init__(self, host: str, port: int = 22, user: Optional[str] = None,
                 label: Optional[str] = None):
        self.host = host
        self.port = port
        self.user = user
        self.label = label or host
        self._ssh: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    # ── connection ─────────────────────────────────────────────────────────

    def connect(self):
        if self._ssh:
            try:
                self._ssh.get_transport().send_ignore()  # test if alive
                return
            except (paramiko.SSHException, OSError, AttributeError):
                self.reset()

        rlog(self.label, f"connecting to {self.user}@{self.host}:{self.port} …")
        client = paramiko.SSHClient()
        client.load_system_host_keys()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        kw: dict = dict(hostname=self.host, port=self.port, username=self.user,
                        timeout=_cfg.SSH_CONNECT_TIMEOUT, banner_timeout=30, auth_timeout=30)
        if _cfg.SSH_KEY_PATH:
            kw["key_filename"] = _cfg.SSH_KEY_PATH
        if _cfg.SSH_PASSWORD:
            kw["password"] = _cfg.SSH_PASSWORD

        client.connect(**kw)

        transport = client.get_transport()
        transport.set_keepalive(_cfg.SSH_KEEPALIVE)

        self._ssh = client
        self._sftp = None
        rlog(self.label, "connected ✓")

    def reset(self):
        """Drop the current session without complaint; the next call reconnects."""
        for closeable in (self._sftp, self._ssh):
            if closeable is None:
                continue
            try:
                closeable.close()
            except (paramiko.SSHException, OSError, EOFError):
                pass
        self._ssh = None
        self._sftp = None

    def ensure_connected(self):
        """Call before any remote operation."""
        transport = self._ssh.get_transport() if self._ssh else None
        if transport is not None and transport.is_active():
            return
        self.connect()

    def _sftp_client(self) -> paramiko.SFTPClient:
        self.ensure_connected()
        if self._sftp is None:
            self._sftp = self._ssh.open_sftp()
        return self._sftp

    # ── raw exec ────────────────────────────────────────────────────────────

    @retried
    def exec(self, cmd: str, timeout: Optional[float] = None) -> tuple[int, str]:
        """Run a shell command; return (exit status, combined stdout+stderr)."""
        self.ensure_connected()
        chan = self._ssh.get_transport().open_session()
        try:
            chan.set_combine_stderr(True)
            if timeout is not None:
                chan.settimeout(timeout)
            chan.exec_command(cmd)
            with chan.makefile("rb") as stdout:
                out = stdout.read().decode("utf-8", errors="replace")
            rc = chan.recv_exit_status()
        finally:
            chan.close()
        return rc, out

    # ── sftp ops ────────────────────────────────────────────────────────────

    @retried
    def sftp_put(self, local: str, remote: str):
        """Upload *local* to *remote*, carrying over its permission bits."""
        sftp = self._sftp_client()
        sftp.put(local, remote)
        sftp.chmod(remote, stat.S_IMODE(os.stat(local).st_mode))
