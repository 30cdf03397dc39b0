#!/usr/bin/env python3
"""Unit tests for the run-wide lock."""

import os
import shutil
import subprocess
import sys
import tempfile
import time
import unittest
from pathlib import Path

from syncreeper.file_lock import LOCK_FILE_NAME, RunLock, acquire_lock, is_locked


def _dead_pid() -> int:
    """PID of a process that has already exited."""
    proc = subprocess.Popen([sys.executable, "-c", "pass"])
    proc.wait()
    return proc.pid


class TestRunLock(unittest.TestCase):
    """Acquire, contention, release and stale lock recovery."""

    def setUp(self):
        print(f"\nSetting up test: {self._testMethodName}")
        self.lock_dir = Path(tempfile.mkdtemp())
        self.lock_file = self.lock_dir / LOCK_FILE_NAME

    def tearDown(self):
        shutil.rmtree(self.lock_dir)

    def test_acquire_and_release(self):
        lock = acquire_lock(self.lock_dir)

        self.assertTrue(lock.acquired)
        self.assertIsNone(lock.error)
        self.assertTrue(self.lock_file.exists())
        self.assertIn(f"locked_by_pid_{os.getpid()}", self.lock_file.read_text())
        self.assertTrue(is_locked(self.lock_dir))

        lock.release()
        self.assertFalse(self.lock_file.exists())
        self.assertFalse(is_locked(self.lock_dir))
        print("  ✓ Lock acquired and released")

    def test_second_acquire_fails_while_held(self):
        first = acquire_lock(self.lock_dir)
        second = acquire_lock(self.lock_dir)

        self.assertTrue(first.acquired)
        self.assertFalse(second.acquired)
        self.assertEqual(second.error, "Another sync operation is in progress")

        # Releasing the failed result must not remove the holder's lock
        second.release()
        self.assertTrue(self.lock_file.exists())

        first.release()
        third = acquire_lock(self.lock_dir)
        self.assertTrue(third.acquired)
        third.release()
        print("  ✓ Concurrent acquisition refused")

    def test_release_is_idempotent(self):
        lock = acquire_lock(self.lock_dir)
        lock.release()
        lock.release()
        self.assertFalse(self.lock_file.exists())

    def test_lock_dir_is_created(self):
        nested = self.lock_dir / "srv" / "repos"
        lock = acquire_lock(nested)
        self.assertTrue(lock.acquired)
        self.assertTrue((nested / LOCK_FILE_NAME).exists())
        lock.release()

    def test_old_lock_is_reclaimed(self):
        """A lock nobody has refreshed for stale_timeout is reclaimed, even with a live PID."""
        self.lock_file.write_text(f"locked_by_pid_{os.getpid()}")
        old = time.time() - 3600
        os.utime(self.lock_file, (old, old))

        lock = acquire_lock(self.lock_dir, stale_timeout=600)

        self.assertTrue(lock.acquired)
        lock.release()
        print("  ✓ Stale lock reclaimed")

    def test_lock_from_dead_process_is_reclaimed(self):
        self.lock_file.write_text(f"locked_by_pid_{_dead_pid()}")

        self.assertFalse(is_locked(self.lock_dir))
        lock = acquire_lock(self.lock_dir)

        self.assertTrue(lock.acquired)
        lock.release()

    def test_unparseable_lock_is_reclaimed(self):
        self.lock_file.write_text("garbage")

        lock = acquire_lock(self.lock_dir)

        self.assertTrue(lock.acquired)
        lock.release()

    def test_long_held_lock_is_not_reclaimed(self):
        """A holder running past stale_timeout keeps its lock fresh."""
        first = acquire_lock(self.lock_dir, stale_timeout=1.0)
        self.assertTrue(first.acquired)

        time.sleep(2.5)

        lock_age = time.time() - self.lock_file.stat().st_mtime
        self.assertLess(lock_age, 1.0)
        second = acquire_lock(self.lock_dir, stale_timeout=1.0)
        self.assertFalse(second.acquired)
        self.assertTrue(is_locked(self.lock_dir, stale_timeout=1.0))

        first.release()
        self.assertFalse(self.lock_file.exists())
        print("  ✓ Heartbeat kept a long-held lock from being reclaimed")

    def test_refresh_renews_aged_lock(self):
        lock = RunLock(self.lock_dir, stale_timeout=600)
        self.assertTrue(lock.acquire())
        old = time.time() - 660
        os.utime(self.lock_file, (old, old))

        self.assertTrue(lock.refresh())

        self.assertFalse(acquire_lock(self.lock_dir, stale_timeout=600).acquired)
        self.assertTrue(self.lock_file.exists())
        lock.release()

    def test_release_keeps_lock_taken_over_by_another_run(self):
        lock = RunLock(self.lock_dir)
        self.assertTrue(lock.acquire())
        other_owner = f"locked_by_pid_{_dead_pid()}"
        self.lock_file.write_text(other_owner)

        self.assertFalse(lock.refresh())
        with self.assertLogs("syncreeper.file_lock", level="WARNING"):
            lock.release()

        self.assertEqual(self.lock_file.read_text(), other_owner)
        self.assertFalse(lock.is_held())
        print("  ✓ Release left another run's lock in place")

    def test_release_after_lock_file_removed(self):
        lock = acquire_lock(self.lock_dir)
        self.lock_file.unlink()

        lock.release()

        self.assertFalse(self.lock_file.exists())

    def test_live_lock_is_respected(self):
        self.lock_file.write_text(f"locked_by_pid_{os.getpid()}")

        lock = RunLock(self.lock_dir)

        self.assertFalse(lock.acquire())
        self.assertFalse(lock.is_held())
        self.assertTrue(self.lock_file.exists())


if __name__ == "__main__":
    unittest.main(verbosity=2)
