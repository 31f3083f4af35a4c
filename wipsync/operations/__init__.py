"""Operations (head sync, transfer, delete)"""
from .head import sync_head
from .transfer import copy_file, apply_event
from .delete import delete_file

__all__ = [
    "sync_head",
    "copy_file", "apply_event",
    "delete_file",
]
