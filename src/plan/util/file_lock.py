from __future__ import annotations

import os
from pathlib import Path
from typing import IO, Optional


def lock_path_for(path: Path) -> Path:
    """Sidecar lock file for a plan file (`2026-02-19.plan` -> `2026-02-19.lock`)."""
    return path.with_suffix(".lock")


def _ensure_lock_region(f: IO[bytes]) -> None:
    """Ensure the lock file has at least 1 byte so region locks work on Windows."""
    f.seek(0, os.SEEK_END)
    if f.tell() <= 0:
        f.write(b"\0")
        f.flush()
    f.seek(0)


def _lock_posix(fd: int, *, exclusive: bool) -> None:
    import fcntl  # POSIX only

    fcntl.flock(fd, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)


def _unlock_posix(fd: int) -> None:
    import fcntl  # POSIX only

    fcntl.flock(fd, fcntl.LOCK_UN)


def _lock_windows(fd: int, *, exclusive: bool) -> None:
    import msvcrt  # Windows only

    # msvcrt has no shared mode; readers serialize like writers there.
    msvcrt.locking(fd, msvcrt.LK_LOCK, 1)


def _unlock_windows(fd: int) -> None:
    import msvcrt  # Windows only

    msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)


class LockHandle:
    """An advisory lock on a plan file's sidecar `.lock` file.

    Use as a context manager; the lock is dropped when the block exits,
    whether normally or through an exception. The lock file itself is
    never deleted.
    """

    def __init__(self, path: Path, lock_path: Path, f: IO[bytes], *, exclusive: bool):
        self.path = path
        self.lock_path = lock_path
        self.exclusive = exclusive
        self._f: Optional[IO[bytes]] = f

    @property
    def held(self) -> bool:
        return self._f is not None

    def release(self) -> None:
        f, self._f = self._f, None
        if f is None:
            return
        try:
            if os.name == "nt":
                _unlock_windows(f.fileno())
            else:
                _unlock_posix(f.fileno())
        except OSError:
            # Closing the descriptor drops the lock anyway.
            pass
        finally:
            f.close()

    def __enter__(self) -> "LockHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __del__(self) -> None:
        try:
            self.release()
        except Exception:
            pass

    def __repr__(self) -> str:
        mode = "exclusive" if self.exclusive else "shared"
        state = "held" if self.held else "released"
        return f"<LockHandle {mode} {state} {self.lock_path}>"


def _acquire(path: Path, *, exclusive: bool) -> LockHandle:
    lock_path = lock_path_for(path)
    # Never truncate: other processes may hold a lock on this very inode.
    fd = os.open(str(lock_path), os.O_RDWR | os.O_CREAT, 0o644)
    f = os.fdopen(fd, "r+b")
    try:
        if os.name == "nt":
            _ensure_lock_region(f)
            _lock_windows(f.fileno(), exclusive=exclusive)
        else:
            _lock_posix(f.fileno(), exclusive=exclusive)
    except BaseException:
        f.close()
        raise
    return LockHandle(path, lock_path, f, exclusive=exclusive)


def acquire_exclusive(path: Path) -> LockHandle:
    """Block until no other process holds any lock on `path`, then lock it.

    The parent directory must exist; failures to open or create the lock
    file propagate as OSError.
    """
    return _acquire(Path(path), exclusive=True)


def acquire_shared(path: Path) -> LockHandle:
    """Block until no process holds an exclusive lock on `path`, then share it."""
    return _acquire(Path(path), exclusive=False)
