"""
Exception types for wipsync
"""
from typing import Optional


class WipsyncError(Exception):
    """Base class for every error wipsync raises on purpose."""


class ConfigurationError(WipsyncError):
    """The endpoint or environment is unusable; fatal at startup."""


class NotARepositoryError(ConfigurationError):
    """wipsync was started outside a git working tree."""


class RemoteCommandFailure(WipsyncError):
    """
    A remote shell, copy or push operation exited unsuccessfully.

    Fatal for head synchronization and file copies, log-only for deletes.
    """

    def __init__(self, remote: str, action: str, output: Optional[str] = None):
        self.remote = remote
        self.action = action
        self.output = (output or "").strip()
        msg = f"[{remote}] {action} failed"
        if self.output:
            msg += f": {self.output}"
        super().__init__(msg)


class TransientRefInstability(WipsyncError):
    """HEAD does not currently name a branch (rebase, checkout in progress)."""
