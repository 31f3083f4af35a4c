"""Utilities (logging, retry, timing)"""
from .logging import log, vlog, warn, llog, rlog, rwarn, relay, set_verbose
from .retry import retried
from .timing import Stopwatch

__all__ = [
    "log", "vlog", "warn", "llog", "rlog", "rwarn", "relay", "set_verbose",
    "retried",
    "Stopwatch",
]
