"""
Repository lock for gt.

Mutating commands hold an exclusive flock on <git-dir>/gt.lock so that two
gt invocations never mutate the same repository at once. Plain git
processes do not take this lock.
"""

import fcntl
import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path

from gt.lib.constants import LOCK_FILENAME
from gt.lib.errors import RepositoryLocked

logger = logging.getLogger(__name__)


@contextmanager
def _acquire_lock(lock_file: Path, timeout: float, lock_name: str, poll_interval: float = 0.2):
    """
    Internal helper to acquire a file lock.

    Args:
        lock_file: Path to the lock file
        timeout: Seconds to wait for lock
        lock_name: Human-readable name for error messages
        poll_interval: Seconds between acquisition attempts
    """
    lock_file.parent.mkdir(parents=True, exist_ok=True)

    # Lock files are never deleted: removing one lets two processes hold
    # "exclusive" locks on different inodes with the same path
    fd = open(lock_file, 'a+')
    start = time.monotonic()

    try:
        while True:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() - start >= timeout:
                    raise RepositoryLocked(f"Could not acquire {lock_name} within {timeout}s") from None
                time.sleep(poll_interval)

        fd.seek(0)
        fd.truncate()
        fd.write(f"{os.getpid()}\n")
        fd.flush()
        logger.debug(f"Acquired {lock_name}")
        yield
    finally:
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            fd.close()


@contextmanager
def repo_lock(git_dir: Path, timeout: float = 10):
    """
    Acquire the repository lock, yield, release on exit.

    Raises:
        RepositoryLocked: if another gt process holds it past the timeout
    """
    with _acquire_lock(git_dir / LOCK_FILENAME, timeout, "repository lock"):
        yield
