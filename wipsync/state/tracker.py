"""
Per-path fingerprints and NEW / MODIFIED / DELETED detection
"""
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional, Union


class FileEvent(Enum):
    NEW = "new"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class FileFingerprint:
    """Size + mtime, a cheap stand-in for file content."""
    size: int
    mtime: float

    @classmethod
    def of(cls, path: Path) -> Optional["FileFingerprint"]:
        """Fingerprint of *path*, or None if it is not an existing regular file."""
        try:
            st = path.stat()
        except (FileNotFoundError, NotADirectoryError):
            return None
        if not path.is_file():
            return None
        return cls(size=st.st_size, mtime=st.st_mtime)


def _is_git_path(rel: str) -> bool:
    """True for .git itself and anything inside a .git directory."""
    return ".git" in PurePosixPath(rel).parts


def _normalize(rel: str) -> str:
    rel = rel.replace("\\", "/").strip("/")
    return PurePosixPath(rel).as_posix() if rel else ""


class FileStateTracker:
    """
    Remembers the fingerprint of every path it has seen exist.

    A path with no entry is, as far as the tracker knows, absent. Directories
    are never fingerprinted: candidates naming a directory are expanded into
    the files currently inside it on every call.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self._state: dict[str, FileFingerprint] = {}

    def __len__(self) -> int:
        return len(self._state)

    def __contains__(self, rel: str) -> bool:
        return rel in self._state

    def known_paths(self) -> set[str]:
        return set(self._state)

    def fingerprint(self, rel: str) -> Optional[FileFingerprint]:
        return self._state.get(rel)

    def _expand(self, candidates: Iterable[str]) -> list[str]:
        expanded: set[str] = set()
        for raw in candidates:
            rel = _normalize(raw)
            if not rel or _is_git_path(rel):
                continue
            full = self.root / rel
            if full.is_dir() and not full.is_symlink():
                # a tracked file replaced by a directory must still report DELETED
                if rel in self._state:
                    expanded.add(rel)
                for dirpath, dirnames, filenames in os.walk(full):
                    dirnames[:] = [d for d in dirnames if d != ".git"]
                    for name in filenames:
                        child = Path(dirpath, name).relative_to(self.root).as_posix()
                        if not _is_git_path(child):
                            expanded.add(child)
            else:
                expanded.add(rel)
        return sorted(expanded)

    def observe(self, candidates: Iterable[str]) -> list[tuple[str, FileEvent]]:
        """
        Compare each candidate against its stored fingerprint.

        Returns ``(path, event)`` pairs in path order and updates the stored
        state: new and modified paths record their current fingerprint,
        deleted paths are forgotten.
        """
        events: list[tuple[str, FileEvent]] = []
        for rel in self._expand(candidates):
            current = FileFingerprint.of(self.root / rel)
            previous = self._state.get(rel)
            if previous is None:
                if current is not None:
                    self._state[rel] = current
                    events.append((rel, FileEvent.NEW))
            elif current is None:
                del self._state[rel]
                events.append((rel, FileEvent.DELETED))
            elif current != previous:
                self._state[rel] = current
                events.append((rel, FileEvent.MODIFIED))
        return events
