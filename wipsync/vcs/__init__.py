"""Local git access and remote definition parsing"""
from .repository import RepositoryObserver, RepositoryRef, run_git, parse_porcelain
from .remote_url import RemoteSpec, parse_remote_url

__all__ = [
    "RepositoryObserver", "RepositoryRef", "run_git", "parse_porcelain",
    "RemoteSpec", "parse_remote_url",
]
