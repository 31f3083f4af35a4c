"""
Logging utilities for wipsync
"""
from datetime import datetime

LOCAL_PREFIX = "local"

_verbose = False


def set_verbose(verbose: bool):
    """Set the verbose flag"""
    global _verbose
    _verbose = verbose


def log(msg: str):
    """Log a message with timestamp"""
    ts = datetime.now().strftime("%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)


def vlog(msg: str):
    """Log a verbose message (only if verbose mode is enabled)"""
    if _verbose:
        log(msg)


def warn(msg: str):
    """Log a warning message"""
    log(f"⚠  {msg}")


def llog(msg: str):
    """Log a message about the local repository"""
    log(f"[{LOCAL_PREFIX}] {msg}")


def rlog(name: str, msg: str):
    """Log a message about the remote called *name*"""
    log(f"[{name}] {msg}")


def rwarn(name: str, msg: str):
    warn(f"[{name}] {msg}")


def relay(name: str, output: str):
    """Echo remote command output line by line under the remote's prefix."""
    text = (output or "").strip()
    if not text:
        return
    for line in text.splitlines():
        rlog(name, f"  {line.rstrip()}")
