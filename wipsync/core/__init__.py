"""Core functionality"""
from .ssh_manager import SSHManager
from .endpoint import RemoteEndpoint, resolve_endpoint

__all__ = ["SSHManager", "RemoteEndpoint", "resolve_endpoint"]
