"""
Stopwatch for timing individual sync operations
"""
import time
from dataclasses import dataclass, field


@dataclass
class Stopwatch:
    """Elapsed-time measurement handed to and returned from timed operations."""

    started: float = field(default_factory=time.monotonic)

    @classmethod
    def start(cls) -> "Stopwatch":
        return cls()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started

    def format(self) -> str:
        secs = self.elapsed
        if secs < 1:
            return f"{secs * 1000:.0f}ms"
        return f"{secs:.2f}s"
