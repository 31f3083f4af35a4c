"""
Retry decorator for SSH transport operations
"""
import functools
import socket
import time

import paramiko

from .logging import log, warn
from .. import config as _cfg

# Only connection-level trouble is worth another attempt. A remote command
# that ran and exited non-zero is reported, never repeated.
RETRYABLE = (paramiko.SSHException, ConnectionError, socket.timeout, EOFError)


def retried(fn):
    """Decorator: retry fn up to RETRY_MAX times with exponential back-off."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        delay = _cfg.RETRY_BASE_DELAY
        for attempt in range(1, _cfg.RETRY_MAX + 1):
            try:
                return fn(*args, **kwargs)
            except RETRYABLE as exc:
                if attempt == _cfg.RETRY_MAX:
                    raise
                warn(f"{fn.__name__} failed (attempt {attempt}/{_cfg.RETRY_MAX}): {exc}")
                log(f"  retrying in {delay:.0f}s …")
                time.sleep(delay)
                delay = min(delay * 2, 30)
                # Drop the dead session so the next attempt reconnects
                # (works for bound methods of SSHManager)
                if args and hasattr(args[0], "reset"):
                    args[0].reset()

    return wrapper
