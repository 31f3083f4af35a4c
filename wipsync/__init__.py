"""wipsync: mirror a git working tree, uncommitted work included, over SSH"""

__version__ = "0.1.0"
