"""
Run-wide lock for SyncReeper.

Prevents two sync cycles (for example a timer run and a manual run) from
working on the same repos directory at the same time.
"""

import os
import time
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

LOCK_FILE_NAME = ".syncreeper.lock"
DEFAULT_STALE_TIMEOUT = 600.0


class RunLock:
    """
    Non-blocking lock file created with O_CREAT | O_EXCL.

    The lock file records the owning PID. While the lock is held a heartbeat
    thread touches the file every stale_timeout / 2, so a live holder never
    goes stale however long the cycle runs. An existing lock is treated as
    stale and reclaimed if it has not been touched for stale_timeout (the
    holder stopped refreshing it), if its PID is no longer running, or if its
    content cannot be parsed.
    """

    def __init__(self, lock_dir: Path, stale_timeout: float = DEFAULT_STALE_TIMEOUT):
        """
        Initialize run lock.

        Args:
            lock_dir: Directory to create the lock file in
            stale_timeout: Age in seconds after which a held lock is reclaimed
        """
        self.lock_file_path = Path(lock_dir) / LOCK_FILE_NAME
        self.stale_timeout = stale_timeout
        self.logger = logging.getLogger('syncreeper.file_lock')
        self._lock_acquired = False
        self._owner_token = f"locked_by_pid_{os.getpid()}"
        self._stop_heartbeat = threading.Event()
        self._heartbeat_thread: Optional[threading.Thread] = None

    def acquire(self) -> bool:
        """
        Try once to acquire the lock.

        Returns:
            True if the lock was acquired, False if another run holds it
        """
        self.lock_file_path.parent.mkdir(parents=True, exist_ok=True)

        if self._try_create():
            return True

        # A stale lock is removed and the creation attempted once more
        if self._check_and_cleanup_stale_lock():
            return self._try_create()

        return False

    def _try_create(self) -> bool:
        try:
            fd = os.open(
                self.lock_file_path,
                os.O_CREAT | os.O_EXCL | os.O_WRONLY,
                0o644
            )
        except FileExistsError:
            return False

        with os.fdopen(fd, 'w') as f:
            f.write(self._owner_token)

        self._lock_acquired = True
        self._start_heartbeat()
        self.logger.debug(f"Acquired lock: {self.lock_file_path}")
        return True

    def _start_heartbeat(self) -> None:
        self._stop_heartbeat.clear()
        self._heartbeat_thread = threading.Thread(
            target=self._heartbeat,
            name="syncreeper-lock-heartbeat",
            daemon=True
        )
        self._heartbeat_thread.start()

    def _heartbeat(self) -> None:
        interval = self.stale_timeout / 2
        while not self._stop_heartbeat.wait(interval):
            if not self.refresh():
                return

    def refresh(self) -> bool:
        """
        Touch the lock file so it does not go stale.

        Returns:
            True if the file was refreshed, False if this instance no longer owns it
        """
        if not self._lock_acquired:
            return False

        if not self._owns_lock_file():
            self.logger.error(f"Lock file {self.lock_file_path} is no longer owned by this process")
            return False

        try:
            os.utime(self.lock_file_path, None)
        except OSError as e:
            self.logger.warning(f"Could not refresh lock {self.lock_file_path}: {e}")
            return False
        return True

    def _owns_lock_file(self) -> bool:
        try:
            return self.lock_file_path.read_text().strip() == self._owner_token
        except OSError:
            return False

    def _check_and_cleanup_stale_lock(self) -> bool:
        """
        Check if an existing lock is stale and clean it up if necessary.

        Returns:
            True if the lock file no longer exists, False if it is held
        """
        try:
            lock_age = time.time() - self.lock_file_path.stat().st_mtime
        except FileNotFoundError:
            return True

        if lock_age > self.stale_timeout:
            self.logger.warning(f"Cleaning up stale lock file ({lock_age:.0f}s old): {self.lock_file_path}")
            return self._remove_lock_file()

        try:
            lock_content = self.lock_file_path.read_text()
            pid = int(lock_content.split("locked_by_pid_")[1].split("_")[0])
        except FileNotFoundError:
            return True
        except (ValueError, IndexError, OSError):
            self.logger.warning(f"Cleaning up unparseable lock file: {self.lock_file_path}")
            return self._remove_lock_file()

        if not _is_process_running(pid):
            self.logger.warning(f"Cleaning up lock from dead process {pid}: {self.lock_file_path}")
            return self._remove_lock_file()

        return False

    def _remove_lock_file(self) -> bool:
        try:
            self.lock_file_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove stale lock {self.lock_file_path}: {e}")
            return False
        return True

    def release(self) -> None:
        """Release the lock. Safe to call repeatedly, or when never acquired."""
        if not self._lock_acquired:
            return

        self._lock_acquired = False
        self._stop_heartbeat.set()
        if self._heartbeat_thread is not None:
            self._heartbeat_thread.join(timeout=5.0)
            self._heartbeat_thread = None

        try:
            lock_content = self.lock_file_path.read_text().strip()
        except FileNotFoundError:
            return
        except OSError as e:
            self.logger.error(f"Error releasing lock {self.lock_file_path}: {e}")
            return

        # Another run may have reclaimed the file; its lock is not ours to delete
        if lock_content != self._owner_token:
            self.logger.warning(f"Not removing {self.lock_file_path}: now held as '{lock_content}'")
            return

        try:
            self.lock_file_path.unlink()
            self.logger.debug(f"Released lock: {self.lock_file_path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.error(f"Error releasing lock {self.lock_file_path}: {e}")

    def is_held(self) -> bool:
        """Check if the lock is currently held by this instance."""
        return self._lock_acquired


def _is_process_running(pid: int) -> bool:
    """Check whether a process with the given PID exists."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, but owned by another user
        return True
    except OSError:
        return False
    return True


def _noop_release() -> None:
    pass


@dataclass
class LockResult:
    """Outcome of acquire_lock."""
    acquired: bool
    release: Callable[[], None] = field(default=_noop_release)
    error: Optional[str] = None


def acquire_lock(lock_dir: Path, stale_timeout: float = DEFAULT_STALE_TIMEOUT) -> LockResult:
    """
    Acquire the run-wide lock without waiting.

    Returns:
        LockResult whose release() is idempotent and safe to call even when
        acquired is False
    """
    logger = logging.getLogger('syncreeper.file_lock')
    lock = RunLock(lock_dir, stale_timeout)

    try:
        acquired = lock.acquire()
    except OSError as e:
        logger.debug(f"Lock acquisition error: {e}")
        return LockResult(acquired=False, error=f"Failed to acquire lock: {e}")

    if not acquired:
        return LockResult(acquired=False, error="Another sync operation is in progress")

    return LockResult(acquired=True, release=lock.release)


def is_locked(lock_dir: Path, stale_timeout: float = DEFAULT_STALE_TIMEOUT) -> bool:
    """Check whether a live, non-stale lock is held on lock_dir."""
    lock_file_path = Path(lock_dir) / LOCK_FILE_NAME
    try:
        lock_age = time.time() - lock_file_path.stat().st_mtime
        lock_content = lock_file_path.read_text()
        pid = int(lock_content.split("locked_by_pid_")[1].split("_")[0])
    except (OSError, ValueError, IndexError):
        return False

    return lock_age <= stale_timeout and _is_process_running(pid)
