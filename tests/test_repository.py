"""
Tests for RepositoryObserver against real git repositories in temp directories.
"""
import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from wipsync.errors import NotARepositoryError, TransientRefInstability
from wipsync.vcs.repository import RepositoryObserver, RepositoryRef, parse_porcelain

HAS_GIT = shutil.which("git") is not None


def git(cwd, *args):
    return subprocess.run(["git", *args], cwd=cwd, check=True,
                          capture_output=True, text=True).stdout.strip()


def commit_all(cwd, message="commit"):
    git(cwd, "add", "-A")
    git(cwd, "-c", "user.name=Test", "-c", "user.email=test@example.com",
        "-c", "commit.gpgsign=false", "commit", "-q", "-m", message)


class TestParsePorcelain(unittest.TestCase):

    def test_plain_entries(self):
        out = " M src/app.py\0?? notes/\0 D old.txt\0"
        self.assertEqual(parse_porcelain(out), {"src/app.py", "notes/", "old.txt"})

    def test_rename_reports_both_paths(self):
        out = "R  new name.py\0old name.py\0 M other.py\0"
        self.assertEqual(parse_porcelain(out), {"new name.py", "old name.py", "other.py"})

    def test_empty(self):
        self.assertEqual(parse_porcelain(""), set())


@unittest.skipUnless(HAS_GIT, "git not installed")
class TestRepositoryObserver(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name).resolve()
        git(self.root, "init", "-q", "-b", "main")
        (self.root / "tracked.txt").write_text("v1\n")
        commit_all(self.root, "initial")
        self.observer = RepositoryObserver(self.root)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_discover_from_subdirectory(self):
        sub = self.root / "a" / "b"
        sub.mkdir(parents=True)
        self.assertEqual(RepositoryObserver.discover(sub).root.resolve(), self.root)

    def test_discover_outside_repository(self):
        with tempfile.TemporaryDirectory() as outside:
            with self.assertRaises(NotARepositoryError):
                RepositoryObserver.discover(outside)

    def test_current_ref(self):
        sha = git(self.root, "rev-parse", "HEAD")
        self.assertEqual(self.observer.current_ref(), RepositoryRef(branch="main", commit=sha))
        git(self.root, "checkout", "-q", "-b", "feature")
        self.assertEqual(self.observer.current_ref().branch, "feature")

    def test_detached_head_is_transient(self):
        git(self.root, "checkout", "-q", "--detach")
        with self.assertRaises(TransientRefInstability):
            self.observer.read_ref()

    def test_current_ref_waits_for_branch(self):
        git(self.root, "checkout", "-q", "--detach")
        attempts = []

        def settle(delay):
            attempts.append(delay)
            git(self.root, "checkout", "-q", "main")

        with mock.patch("wipsync.vcs.repository.time.sleep", side_effect=settle):
            ref = self.observer.current_ref()
        self.assertEqual(ref.branch, "main")
        self.assertEqual(len(attempts), 1)

    def test_clean_tree_has_no_changes(self):
        self.assertEqual(self.observer.changed_paths(), set())

    def test_changed_paths(self):
        (self.root / "tracked.txt").write_text("v2\n")
        (self.root / "fresh.txt").write_text("new\n")
        (self.root / "newdir").mkdir()
        (self.root / "newdir" / "inner.txt").write_text("x\n")
        self.assertEqual(self.observer.changed_paths(), {"tracked.txt", "fresh.txt", "newdir/inner.txt"})

    def test_ignored_files_are_not_reported(self):
        (self.root / ".gitignore").write_text("*.log\n")
        commit_all(self.root, "ignore logs")
        (self.root / "debug.log").write_text("noise\n")
        self.assertEqual(self.observer.changed_paths(), set())

    def test_ignored_files_in_new_directory_are_not_reported(self):
        (self.root / ".gitignore").write_text("*.o\n")
        commit_all(self.root, "ignore objects")
        (self.root / "newdir").mkdir()
        (self.root / "newdir" / "src.c").write_text("int x;\n")
        (self.root / "newdir" / "big.o").write_bytes(b"\0" * 16)
        self.assertEqual(self.observer.changed_paths(), {"newdir/src.c"})

    def test_staged_rename(self):
        git(self.root, "mv", "tracked.txt", "moved.txt")
        self.assertEqual(self.observer.changed_paths(), {"tracked.txt", "moved.txt"})

    def test_remote_url(self):
        git(self.root, "remote", "add", "devbox", "ssh://dev@box/~/app")
        self.assertEqual(self.observer.remote_url("devbox"), "ssh://dev@box/~/app")
        self.assertIsNone(self.observer.remote_url("missing"))


if __name__ == "__main__":
    unittest.main()
