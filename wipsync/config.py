"""
Configuration constants for wipsync
"""
import os
from pathlib import Path
from typing import Optional

import yaml

# ══════════════════════════════════════════════════════════════════════════════
#  DEFAULTS  ── overridden by YAML config or apply_profile()
# ══════════════════════════════════════════════════════════════════════════════

SSH_PORT = 22
# None means "the local OS user"
SSH_USER: Optional[str] = None
# Path to your private key, or None to use ssh-agent / ~/.ssh/id_*
SSH_KEY_PATH: Optional[str] = None
SSH_PASSWORD: Optional[str] = None  # only if you use password auth
SSH_KEEPALIVE = 30  # seconds between keep-alive packets on the idle session
SSH_CONNECT_TIMEOUT = 20

DEFAULT_REMOTE = "origin"

# Seconds between polling cycles
POLL_INTERVAL = 1.0
# React to filesystem notifications (watchdog) instead of pure polling
USE_EVENTS = False

# HEAD stability polling while a rebase / checkout is in progress
REF_RETRY_DELAY = 0.1
REF_UNSTABLE_WARN_AFTER = 10.0

# Retry settings (connection-level errors only)
RETRY_MAX = 3
RETRY_BASE_DELAY = 1.0  # seconds; doubles each attempt

PROJECT_FILE = ".wipsync"


# ══════════════════════════════════════════════════════════════════════════════
#  GLOBAL CONFIG FILE  ── $XDG_CONFIG_HOME/wipsync/config.yaml
# ══════════════════════════════════════════════════════════════════════════════

def get_global_config_dir() -> Path:
    """Return the global config directory for wipsync."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return Path(xdg) / "wipsync"
    if os.name == "nt":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "wipsync"
    return Path.home() / ".config" / "wipsync"


def load_global_config() -> dict:
    """Load global config from the wipsync config directory."""
    cfg_path = get_global_config_dir() / "config.yaml"
    if not cfg_path.is_file():
        return {}
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


# ══════════════════════════════════════════════════════════════════════════════
#  PROJECT CONFIG FILE  ── .wipsync (searched upward)
# ══════════════════════════════════════════════════════════════════════════════

def find_project_file(start: Optional[Path] = None) -> Optional[Path]:
    """
    Search upward from *start* (default: cwd) for a .wipsync YAML file.
    Returns the Path if found, or None if no .wipsync exists in any parent.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / PROJECT_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_project_file(path: Path) -> dict:
    """Parse a .wipsync YAML file and return its contents as a dict."""
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_profile(data: dict, profile_name: str = "default") -> dict:
    """
    Extract a named profile from a .wipsync or config.yaml data dict.
    Falls back to the first profile if the named one is not found.
    Returns a flat profile dict merged with top-level defaults.
    """
    defaults = data.get("defaults") or {}
    profiles = data.get("profiles") or []
    if not profiles:
        return dict(defaults)
    profile = next((p for p in profiles if p.get("name") == profile_name), None)
    if profile is None:
        profile = profiles[0]
    merged = dict(defaults)
    merged.update(profile)
    return merged


def load_settings(profile_name: str = "default", start: Optional[Path] = None) -> dict:
    """
    Merge global defaults with the nearest project profile.
    Project values win over global ones.
    """
    merged = dict(load_global_config().get("defaults") or {})
    project = find_project_file(start)
    if project is not None:
        merged.update(get_profile(load_project_file(project), profile_name))
    return merged


# ══════════════════════════════════════════════════════════════════════════════
#  APPLY PROFILE  ── mutates module-level variables
# ══════════════════════════════════════════════════════════════════════════════

def apply_profile(profile: dict):
    """
    Apply a profile dict to the module-level config variables.
    Supports keys: remote, port, user, ssh_key, ssh_password, keepalive,
                   interval, events.
    """
    global SSH_PORT, SSH_USER, SSH_KEY_PATH, SSH_PASSWORD, SSH_KEEPALIVE
    global DEFAULT_REMOTE, POLL_INTERVAL, USE_EVENTS

    if "remote" in profile:
        DEFAULT_REMOTE = str(profile["remote"])
    if "port" in profile:
        SSH_PORT = int(profile["port"])
    if "user" in profile:
        SSH_USER = str(profile["user"]) if profile["user"] else None
    elif "username" in profile:
        SSH_USER = str(profile["username"]) if profile["username"] else None
    if "ssh_key" in profile:
        SSH_KEY_PATH = str(Path(profile["ssh_key"]).expanduser()) if profile["ssh_key"] else None
    if "ssh_password" in profile:
        SSH_PASSWORD = str(profile["ssh_password"]) if profile["ssh_password"] else None
    if "keepalive" in profile:
        SSH_KEEPALIVE = int(profile["keepalive"])
    if "interval" in profile:
        POLL_INTERVAL = float(profile["interval"])
    if "events" in profile:
        USE_EVENTS = bool(profile["events"])
