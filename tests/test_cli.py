"""
Integration tests for wipsync CLI behavior and configuration loading.

Tests:
  - .wipsync discovery: searching parent directories upward
  - config loading: apply_profile correctly mutates module variables
  - wipsync init: creates a valid .wipsync YAML, refuses overwrite without --force
  - wipsync status: resolves explicit HOST PATH, fails outside a repository
"""
import os
import shutil
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

import yaml


# ── Helpers ───────────────────────────────────────────────────────────────────

REPO_ROOT = Path(__file__).parent.parent
HAVE_GIT = shutil.which("git") is not None


def run_wipsync(*args, cwd=None, env_extra=None):
    """Run the wipsync CLI and return (returncode, stdout, stderr)."""
    result = subprocess.run(
        [sys.executable, "-m", "wipsync", *args],
        cwd=str(cwd or REPO_ROOT),
        capture_output=True,
        text=True,
        env={**os.environ, "PYTHONPATH": str(REPO_ROOT), **(env_extra or {})},
    )
    return result.returncode, result.stdout, result.stderr


def git(cwd, *args):
    subprocess.run(["git", *args], cwd=str(cwd), check=True, capture_output=True)


def make_repo(root: Path):
    git(root, "init", "-q", "-b", "main")
    git(root, "config", "user.email", "dev@example.com")
    git(root, "config", "user.name", "Dev")
    (root / "README").write_text("hello\n", encoding="utf-8")
    git(root, "add", "README")
    git(root, "-c", "commit.gpgsign=false", "commit", "-q", "-m", "initial")


def reset_config():
    import wipsync.config as cfg
    cfg.SSH_PORT = 22
    cfg.SSH_USER = None
    cfg.SSH_KEY_PATH = None
    cfg.SSH_PASSWORD = None
    cfg.DEFAULT_REMOTE = "origin"
    cfg.POLL_INTERVAL = 1.0
    cfg.USE_EVENTS = False


# ── Tests: .wipsync discovery ─────────────────────────────────────────────────

class TestFindProjectFile(unittest.TestCase):
    """Tests for find_project_file(): upward search through parent directories."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_find_in_same_directory(self):
        from wipsync.config import find_project_file
        (self.root / ".wipsync").write_text("profiles: []\n", encoding="utf-8")
        self.assertEqual(find_project_file(self.root), self.root.resolve() / ".wipsync")

    def test_find_in_parent_directory(self):
        """find_project_file searches upward and finds .wipsync in a parent."""
        from wipsync.config import find_project_file
        (self.root / ".wipsync").write_text("profiles: []\n", encoding="utf-8")
        subdir = self.root / "a" / "b" / "c"
        subdir.mkdir(parents=True)
        self.assertEqual(find_project_file(subdir), self.root.resolve() / ".wipsync")

    def test_finds_nearest(self):
        from wipsync.config import find_project_file
        (self.root / ".wipsync").write_text("profiles: []\n", encoding="utf-8")
        sub_a = self.root / "a"
        sub_a.mkdir()
        (sub_a / ".wipsync").write_text("profiles: []\n", encoding="utf-8")
        deep = sub_a / "b"
        deep.mkdir()
        self.assertEqual(find_project_file(deep), sub_a.resolve() / ".wipsync")


# ── Tests: config loading ─────────────────────────────────────────────────────

class TestLoadProfile(unittest.TestCase):
    """Tests for load_project_file, get_profile and apply_profile."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)
        reset_config()

    def tearDown(self):
        reset_config()
        self.tmpdir.cleanup()

    def _write(self, content):
        p = self.root / ".wipsync"
        p.write_text(content, encoding="utf-8")
        return p

    def test_apply_profile_basic(self):
        import wipsync.config as cfg
        p = self._write(
            "profiles:\n"
            "  - name: default\n"
            "    remote: mirror\n"
            "    port: 2222\n"
            "    user: dev\n"
            "    interval: 0.25\n"
            "    events: true\n"
        )
        cfg.apply_profile(cfg.get_profile(cfg.load_project_file(p), "default"))
        self.assertEqual(cfg.DEFAULT_REMOTE, "mirror")
        self.assertEqual(cfg.SSH_PORT, 2222)
        self.assertEqual(cfg.SSH_USER, "dev")
        self.assertEqual(cfg.POLL_INTERVAL, 0.25)
        self.assertTrue(cfg.USE_EVENTS)

    def test_get_profile_by_name_merges_defaults(self):
        import wipsync.config as cfg
        p = self._write(
            "defaults:\n"
            "  port: 2200\n"
            "profiles:\n"
            "  - name: dev\n"
            "    remote: dev\n"
            "  - name: lab\n"
            "    remote: lab\n"
            "    port: 2222\n"
        )
        data = cfg.load_project_file(p)
        self.assertEqual(cfg.get_profile(data, "dev"), {"port": 2200, "name": "dev", "remote": "dev"})
        self.assertEqual(cfg.get_profile(data, "lab")["port"], 2222)

    def test_get_profile_falls_back_to_first(self):
        import wipsync.config as cfg
        data = {"profiles": [{"name": "only", "remote": "only"}]}
        self.assertEqual(cfg.get_profile(data, "nonexistent")["remote"], "only")

    def test_load_settings_project_overrides_global(self):
        import wipsync.config as cfg
        global_dir = self.root / "xdg" / "wipsync"
        global_dir.mkdir(parents=True)
        (global_dir / "config.yaml").write_text(
            "defaults:\n  port: 2000\n  user: globaluser\n", encoding="utf-8")
        self._write("profiles:\n  - name: default\n    port: 3000\n")
        old = os.environ.get("XDG_CONFIG_HOME")
        os.environ["XDG_CONFIG_HOME"] = str(self.root / "xdg")
        try:
            settings = cfg.load_settings("default", start=self.root)
        finally:
            if old is None:
                del os.environ["XDG_CONFIG_HOME"]
            else:
                os.environ["XDG_CONFIG_HOME"] = old
        self.assertEqual(settings["port"], 3000)
        self.assertEqual(settings["user"], "globaluser")


# ── Tests: wipsync init CLI ───────────────────────────────────────────────────

class TestInitCommand(unittest.TestCase):
    """Tests for the 'wipsync init' subcommand."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.cwd = Path(self.tmpdir.name)
        self.env = {"XDG_CONFIG_HOME": str(self.cwd / "xdg")}

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_init_creates_valid_yaml(self):
        rc, out, err = run_wipsync("init", "--remote", "mirror", "--port", "2222",
                                   "--interval", "0.5", cwd=self.cwd, env_extra=self.env)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        data = yaml.safe_load((self.cwd / ".wipsync").read_text(encoding="utf-8"))
        profile = data["profiles"][0]
        self.assertEqual(profile["name"], "default")
        self.assertEqual(profile["remote"], "mirror")
        self.assertEqual(profile["port"], 2222)
        self.assertEqual(profile["interval"], 0.5)
        self.assertFalse(profile["events"])

    def test_init_refuses_overwrite(self):
        (self.cwd / ".wipsync").write_text("profiles: []\n", encoding="utf-8")
        rc, out, err = run_wipsync("init", cwd=self.cwd, env_extra=self.env)
        self.assertNotEqual(rc, 0)
        self.assertIn("already exists", err)

    def test_init_force_overwrites(self):
        (self.cwd / ".wipsync").write_text("profiles: []\n", encoding="utf-8")
        rc, out, err = run_wipsync("init", "--remote", "backup", "--force",
                                   cwd=self.cwd, env_extra=self.env)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        self.assertIn("backup", (self.cwd / ".wipsync").read_text(encoding="utf-8"))

    def test_init_dry_run_does_not_write(self):
        rc, out, err = run_wipsync("init", "--dry-run", cwd=self.cwd, env_extra=self.env)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        self.assertFalse((self.cwd / ".wipsync").exists())
        self.assertIn("dry-run", out)


# ── Tests: wipsync status CLI ─────────────────────────────────────────────────

class TestStatusCommand(unittest.TestCase):
    """Tests for the 'wipsync status' subcommand (never contacts a remote)."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.cwd = Path(self.tmpdir.name)
        self.env = {"XDG_CONFIG_HOME": str(self.cwd / "xdg")}

    def tearDown(self):
        self.tmpdir.cleanup()

    @unittest.skipUnless(HAVE_GIT, "git not installed")
    def test_status_outside_repository_fails(self):
        rc, out, err = run_wipsync("status", "host.example.com", "src/app",
                                   cwd=self.cwd, env_extra=self.env)
        self.assertNotEqual(rc, 0)
        self.assertIn("not inside a git working tree", err)

    @unittest.skipUnless(HAVE_GIT, "git not installed")
    def test_status_with_explicit_host_and_path(self):
        make_repo(self.cwd)
        (self.cwd / "new.txt").write_text("x", encoding="utf-8")
        rc, out, err = run_wipsync("status", "dev@host.example.com", "~/src/app",
                                   cwd=self.cwd, env_extra=self.env)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        self.assertIn("host.example.com", out)
        self.assertIn("dev@host.example.com:22:src/app", out)
        self.assertIn("main", out)
        self.assertIn("new.txt", out)

    @unittest.skipUnless(HAVE_GIT, "git not installed")
    def test_status_uses_named_remote(self):
        make_repo(self.cwd)
        git(self.cwd, "remote", "add", "mirror", "ssh://ann@box.example.com:2201/~/work/app")
        rc, out, err = run_wipsync("status", "mirror", cwd=self.cwd, env_extra=self.env)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        self.assertIn("ann@box.example.com:2201:work/app", out)
        self.assertIn("Push to    : mirror", out)

    @unittest.skipUnless(HAVE_GIT, "git not installed")
    def test_status_rejects_https_remote(self):
        make_repo(self.cwd)
        git(self.cwd, "remote", "add", "origin", "https://github.com/example/app.git")
        rc, out, err = run_wipsync("status", cwd=self.cwd, env_extra=self.env)
        self.assertNotEqual(rc, 0)
        self.assertIn("https", err)

    @unittest.skipUnless(HAVE_GIT, "git not installed")
    def test_status_host_without_path_fails(self):
        make_repo(self.cwd)
        rc, out, err = run_wipsync("status", "host.example.com",
                                   cwd=self.cwd, env_extra=self.env)
        self.assertNotEqual(rc, 0)
        self.assertIn("no base path", err)


if __name__ == "__main__":
    unittest.main()
