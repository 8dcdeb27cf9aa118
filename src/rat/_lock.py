"""Single-writer nest lock.

Commits, checkouts and branch creation hold an exclusive lock on
``<nest>/rat.lock`` for their whole read-modify-write sequence.  A
per-process ``threading.Lock`` (keyed by the nest's inode) serializes
threads, and ``flock``/``msvcrt.locking`` serializes processes.
"""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager

from .exceptions import NestNotFoundError, StorageIOError

LOCK_FILENAME = "rat.lock"

_thread_locks: dict[tuple[int, int] | str, threading.Lock] = {}
_thread_locks_guard = threading.Lock()


def _lock_key(nest_path: str) -> tuple[int, int] | str:
    real = os.path.realpath(nest_path)
    try:
        st = os.stat(real)
    except FileNotFoundError:
        raise NestNotFoundError(f"Not a rat nest: {nest_path}")
    except OSError as exc:
        raise StorageIOError(f"Cannot access nest {nest_path}: {exc}") from exc
    if not os.path.isdir(real):
        raise NestNotFoundError(f"Not a rat nest: {nest_path}")
    if st.st_ino == 0:
        return os.path.normcase(real)
    return (st.st_dev, st.st_ino)


def _thread_lock(nest_path: str) -> threading.Lock:
    key = _lock_key(nest_path)
    with _thread_locks_guard:
        return _thread_locks.setdefault(key, threading.Lock())


try:
    import fcntl

    def _acquire(fd: int) -> None:
        fcntl.flock(fd, fcntl.LOCK_EX)

    def _release(fd: int) -> None:
        fcntl.flock(fd, fcntl.LOCK_UN)

except ImportError:
    import msvcrt

    def _acquire(fd: int) -> None:
        msvcrt.locking(fd, msvcrt.LK_LOCK, 1)

    def _release(fd: int) -> None:
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)


@contextmanager
def nest_lock(nest_path: str | os.PathLike[str]):
    """Hold the nest's write lock for the duration of the block.

    Raises:
        NestNotFoundError: If *nest_path* is not an existing directory.
        StorageIOError: If the lock file cannot be opened.
    """
    nest_path = os.fspath(nest_path)
    tlock = _thread_lock(nest_path)
    with tlock:
        lock_file = os.path.join(nest_path, LOCK_FILENAME)
        try:
            fd = os.open(lock_file, os.O_CREAT | os.O_RDWR | getattr(os, "O_CLOEXEC", 0))
        except OSError as exc:
            raise StorageIOError(f"Cannot lock nest {nest_path}: {exc}") from exc
        try:
            os.set_inheritable(fd, False)
            _acquire(fd)
            try:
                yield
            finally:
                _release(fd)
        finally:
            os.close(fd)
