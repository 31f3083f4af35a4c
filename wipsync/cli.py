#!/usr/bin/env python3
"""
wipsync: mirror a git working tree, uncommitted work included, over SSH
=======================================================================

Subcommands:
  watch     Push HEAD to the remote, then keep copying changed files to it.
  status    Show the resolved remote, the current ref and the changed paths.
  init      Create a .wipsync config file in the current directory.

Run 'wipsync <subcommand> --help' for more details.
"""
import sys
import argparse
from pathlib import Path


def _error(msg: str, code: int = 1):
    print(f"error: {msg}", file=sys.stderr)
    sys.exit(code)


def _load_config(args):
    """Apply global config, the nearest .wipsync profile, then CLI flags."""
    from wipsync import config as _cfg

    _cfg.apply_profile(_cfg.load_settings(args.profile or "default"))
    overrides = {}
    if getattr(args, "interval", None) is not None:
        overrides["interval"] = args.interval
    if getattr(args, "events", False):
        overrides["events"] = True
    if getattr(args, "port", None) is not None:
        overrides["port"] = args.port
    if getattr(args, "user", None):
        overrides["user"] = args.user
    if getattr(args, "ssh_key", None):
        overrides["ssh_key"] = args.ssh_key
    _cfg.apply_profile(overrides)


def _resolve(args):
    from wipsync.core.endpoint import resolve_endpoint
    from wipsync.vcs.repository import RepositoryObserver

    observer = RepositoryObserver.discover()
    endpoint = resolve_endpoint(observer, args.remote, args.path)
    return observer, endpoint


# ── watch ────────────────────────────────────────────────────────────────────

def cmd_watch(args):
    """Run the mirror until interrupted."""
    from wipsync import config as _cfg
    from wipsync.core.sync_engine import SyncLoop

    _load_config(args)
    observer, endpoint = _resolve(args)

    watcher = None
    if _cfg.USE_EVENTS:
        from wipsync.core.watcher import ChangeWatcher
        watcher = ChangeWatcher(observer.root)

    SyncLoop(endpoint, observer, interval=_cfg.POLL_INTERVAL, watcher=watcher).run()


# ── status ───────────────────────────────────────────────────────────────────

def cmd_status(args):
    """Print what watch would mirror, without touching the remote."""
    from wipsync.errors import TransientRefInstability

    _load_config(args)
    observer, endpoint = _resolve(args)

    try:
        ref = observer.read_ref()
        head = f"{ref.branch} {ref.commit}"
    except TransientRefInstability as exc:
        head = f"(not on a branch: {exc})"
    changed = sorted(observer.changed_paths())

    print(f"\nRepository : {observer.root}")
    print(f"Remote     : {endpoint.name}  "
          f"({endpoint.user}@{endpoint.host}:{endpoint.port}:{endpoint.base_path})")
    print(f"Push to    : {endpoint.push_target}")
    print(f"HEAD       : {head}")
    print(f"Changed    : {len(changed)} path(s)")
    for rel in changed:
        print(f"    {rel}")


# ── init ─────────────────────────────────────────────────────────────────────

def cmd_init(args):
    """Create a .wipsync profile file in the current directory."""
    from wipsync import config as _cfg

    target = Path.cwd() / _cfg.PROJECT_FILE

    if target.exists() and not args.force:
        print(f"error: {_cfg.PROJECT_FILE} already exists in {Path.cwd()}", file=sys.stderr)
        print("Use --force to overwrite.", file=sys.stderr)
        sys.exit(1)

    g_defaults = _cfg.load_global_config().get("defaults") or {}

    def _yq(value: str) -> str:
        """Wrap a string in YAML single quotes, escaping embedded single quotes."""
        return "'" + value.replace("'", "''") + "'"

    remote = args.remote or g_defaults.get("remote", _cfg.DEFAULT_REMOTE)
    port = args.port or int(g_defaults.get("port", _cfg.SSH_PORT))
    interval = args.interval if args.interval is not None else float(
        g_defaults.get("interval", _cfg.POLL_INTERVAL))

    lines = [
        "# .wipsync: wipsync project configuration",
        "#",
        "# profiles: list of mirror profiles for this repository.",
        "# remote names a git remote (ssh URL), port/user/ssh_key override its",
        "# connection details, interval is the polling period in seconds.",
        "profiles:",
        f"  - name: {args.profile or 'default'}",
        f"    remote: {_yq(remote)}",
        f"    port: {port}",
        f"    interval: {interval:g}",
        f"    events: {'true' if args.events else 'false'}",
    ]
    user = args.user or g_defaults.get("user")
    if user:
        lines.append(f"    user: {_yq(str(user))}")
    if args.ssh_key:
        lines.append(f"    ssh_key: {_yq(args.ssh_key)}")

    content = "\n".join(lines) + "\n"

    if args.dry_run:
        print(f"[dry-run] Would write {target}:")
        print(content)
        return

    target.write_text(content, encoding="utf-8")
    print(f"Created {target}")
    if args.verbose:
        print(content)


# ── main ──────────────────────────────────────────────────────────────────────

def _add_endpoint_args(p):
    p.add_argument("remote", nargs="?", metavar="REMOTE",
                   help="git remote name (default: origin), or HOST when PATH is given")
    p.add_argument("path", nargs="?", metavar="PATH",
                   help="base directory on HOST (when REMOTE is not a git remote)")
    p.add_argument("--profile", metavar="NAME", default="default",
                   help="Profile from .wipsync to use (default: default)")
    p.add_argument("-p", "--port", type=int, metavar="N",
                   help="SSH port when the remote URL names none (default: 22)")
    p.add_argument("-u", "--user", metavar="NAME",
                   help="SSH user when the remote URL names none (default: local user)")
    p.add_argument("--ssh-key", metavar="PATH",
                   help="Private key file (default: ssh-agent / ~/.ssh/id_*)")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Show every remote command and detected change")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wipsync",
        description="Mirror a git working tree, uncommitted work included, over SSH",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # ── watch ─────────────────────────────────────────────────────────────────
    watch_p = subparsers.add_parser(
        "watch",
        help="Mirror the working tree to the remote until interrupted",
        description="Sync HEAD to the remote, then copy changed files as they change.",
    )
    _add_endpoint_args(watch_p)
    watch_p.add_argument("-i", "--interval", type=float, metavar="SECONDS",
                         help="Seconds between polls (default: 1)")
    watch_p.add_argument("--events", action="store_true",
                         help="Wake on filesystem notifications instead of pure polling")

    # ── status ────────────────────────────────────────────────────────────────
    status_p = subparsers.add_parser(
        "status",
        help="Show the remote, current ref and changed paths",
        description="Show what 'wipsync watch' would mirror. Never contacts the remote.",
    )
    _add_endpoint_args(status_p)

    # ── init ──────────────────────────────────────────────────────────────────
    init_p = subparsers.add_parser(
        "init",
        help="Create a .wipsync config file in the current directory",
        description="Create a .wipsync YAML config file for this repository.",
    )
    init_p.add_argument("--remote", metavar="NAME",
                        help="git remote to mirror to (default: origin)")
    init_p.add_argument("--user", metavar="NAME", help="SSH username")
    init_p.add_argument("--port", type=int, metavar="N", help="SSH port (default: 22)")
    init_p.add_argument("--ssh-key", metavar="PATH", help="Private key file")
    init_p.add_argument("-i", "--interval", type=float, metavar="SECONDS",
                        help="Polling interval (default: 1)")
    init_p.add_argument("--events", action="store_true",
                        help="Enable filesystem notifications")
    init_p.add_argument("--profile", metavar="NAME", default="default",
                        help="Profile name to create (default: default)")
    init_p.add_argument("--force", action="store_true",
                        help="Overwrite existing .wipsync")
    init_p.add_argument("-n", "--dry-run", action="store_true",
                        help="Preview without writing files")
    init_p.add_argument("-v", "--verbose", action="store_true",
                        help="Show extra output")
    return parser


def main(argv=None):
    """CLI entry point for wipsync"""
    from wipsync.errors import ConfigurationError, RemoteCommandFailure
    from wipsync.utils.logging import set_verbose

    parser = build_parser()
    args = parser.parse_args(argv)
    set_verbose(getattr(args, "verbose", False))

    commands = {"watch": cmd_watch, "status": cmd_status, "init": cmd_init}
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    try:
        command(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except ConfigurationError as exc:
        _error(str(exc))
    except RemoteCommandFailure as exc:
        _error(f"{exc}\nFix the problem on the remote and restart wipsync.")


if __name__ == "__main__":
    main()
