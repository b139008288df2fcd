"""Single-flight guards, file locking, and disk space checks."""

from __future__ import annotations

import shutil
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from loguru import logger

from .errors import MigrateError

if TYPE_CHECKING:
    from .progress import ProgressLog

log = logger.bind(stage="concurrency")


class LockError(MigrateError):
    """Raised when lock cannot be acquired."""


class SingleFlight:
    """Admit at most one active run of an operation kind within the process.

    try_acquire() never blocks: a caller arriving while a run is active is
    rejected and the rejection is written to the active run's progress log.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._busy = False

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy

    def try_acquire(self, progress: ProgressLog | None = None) -> bool:
        with self._lock:
            if self._busy:
                log.warning(f"Rejected {self.name} run: already running")
                if progress is not None:
                    progress.error("[!] Already busy running a task.")
                return False
            self._busy = True
            return True

    def release(self) -> None:
        with self._lock:
            self._busy = False

    @contextmanager
    def hold(self, progress: ProgressLog | None = None) -> Iterator[bool]:
        """Yield whether the guard was acquired; release it on every exit path."""
        acquired = self.try_acquire(progress)
        try:
            yield acquired
        finally:
            if acquired:
                self.release()
                log.debug(f"Released {self.name} guard")


def acquire_global_lock(lock_dir: Path, name: str, skip: bool = False) -> object | None:
    """Acquire a file lock so only one process runs a given operation kind.

    Returns the lock file handle (keep reference to maintain lock),
    or None if locking was skipped.
    Raises LockError if another instance holds the lock.
    """
    log.debug(f"acquire_global_lock(lock_dir={lock_dir}, name={name}, skip={skip})")

    if skip:
        log.debug("Skipping lock acquisition")
        return None

    lock_dir.mkdir(parents=True, exist_ok=True)
    lock_file = lock_dir / f"{name}.lock"

    if sys.platform == "win32":
        import msvcrt
        fh = open(lock_file, "w")
        try:
            msvcrt.locking(fh.fileno(), msvcrt.LK_NBLCK, 1)
        except OSError:
            fh.close()
            log.warning(f"Failed to acquire lock at {lock_file}")
            raise LockError(f"Another {name} run is in progress")
        log.info(f"Lock acquired at {lock_file}")
        return fh
    else:
        import fcntl
        fh = open(lock_file, "w")
        try:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            fh.close()
            log.warning(f"Failed to acquire lock at {lock_file}")
            raise LockError(f"Another {name} run is in progress")
        log.info(f"Lock acquired at {lock_file}")
        return fh


def check_disk_space(source_path: Path, work_dir: Path, multiplier: int = 2) -> bool:
    """Check that work_dir has enough free space.

    Requires at least multiplier * source_size available.
    Returns True if sufficient, False otherwise.
    """
    log.debug(f"check_disk_space(source_path={source_path}, work_dir={work_dir}, multiplier={multiplier})")

    source_size = source_path.stat().st_size
    required = source_size * multiplier
    usage = shutil.disk_usage(work_dir)
    result = usage.free >= required

    log.debug(f"Disk space check: required={required:,} bytes, free={usage.free:,} bytes, sufficient={result}")

    return result
