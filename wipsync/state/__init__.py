"""In-memory file state tracking"""
from .tracker import FileEvent, FileFingerprint, FileStateTracker

__all__ = ["FileEvent", "FileFingerprint", "FileStateTracker"]
