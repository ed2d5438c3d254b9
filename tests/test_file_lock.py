import os
import tempfile
import threading
import time
import unittest
from pathlib import Path


@unittest.skipIf(os.name == "nt", "shared locks rely on flock")
class TestFileLock(unittest.TestCase):
    def setUp(self) -> None:
        td = tempfile.TemporaryDirectory()
        self.addCleanup(td.cleanup)
        self.dir = Path(td.name)
        self.path = self.dir / "2026-02-19.plan"

    def _acquire_in_thread(self, fn):
        """Start `fn(path)` in a thread; return (acquired_event, release_event, thread)."""
        acquired = threading.Event()
        release = threading.Event()

        def worker() -> None:
            with fn(self.path):
                acquired.set()
                release.wait(5)

        t = threading.Thread(target=worker, daemon=True)
        t.start()
        return acquired, release, t

    def test_lock_file_is_sidecar_and_kept(self) -> None:
        from plan.util.file_lock import acquire_exclusive, lock_path_for

        self.assertEqual(lock_path_for(self.path), self.dir / "2026-02-19.lock")
        with acquire_exclusive(self.path) as lock:
            self.assertTrue(lock.held)
            self.assertTrue(lock.exclusive)
            self.assertEqual(lock.lock_path, self.dir / "2026-02-19.lock")
            self.assertTrue(lock.lock_path.exists())
        self.assertFalse(lock.held)
        self.assertTrue((self.dir / "2026-02-19.lock").exists())
        self.assertFalse(self.path.exists())

    def test_release_is_idempotent(self) -> None:
        from plan.util.file_lock import acquire_shared

        lock = acquire_shared(self.path)
        lock.release()
        lock.release()
        self.assertFalse(lock.held)

    def test_released_on_exception(self) -> None:
        from plan.util.file_lock import acquire_exclusive

        with self.assertRaises(RuntimeError):
            with acquire_exclusive(self.path) as lock:
                raise RuntimeError("boom")
        self.assertFalse(lock.held)
        # Re-acquiring would block forever if the lock leaked.
        acquired, release, t = self._acquire_in_thread(acquire_exclusive)
        self.assertTrue(acquired.wait(5))
        release.set()
        t.join(5)

    def test_exclusive_blocks_shared_until_released(self) -> None:
        from plan.util.file_lock import acquire_exclusive, acquire_shared

        holder = acquire_exclusive(self.path)
        acquired, release, t = self._acquire_in_thread(acquire_shared)
        try:
            self.assertFalse(acquired.wait(0.3))
        finally:
            holder.release()
        self.assertTrue(acquired.wait(5))
        release.set()
        t.join(5)

    def test_shared_blocks_exclusive_until_released(self) -> None:
        from plan.util.file_lock import acquire_exclusive, acquire_shared

        holder = acquire_shared(self.path)
        acquired, release, t = self._acquire_in_thread(acquire_exclusive)
        try:
            self.assertFalse(acquired.wait(0.3))
        finally:
            holder.release()
        self.assertTrue(acquired.wait(5))
        release.set()
        t.join(5)

    def test_shared_locks_coexist(self) -> None:
        from plan.util.file_lock import acquire_shared

        with acquire_shared(self.path):
            acquired, release, t = self._acquire_in_thread(acquire_shared)
            self.assertTrue(acquired.wait(5))
            release.set()
            t.join(5)

    def test_locks_are_per_path(self) -> None:
        from plan.util.file_lock import acquire_exclusive

        other = self.dir / "2026-02-20.plan"
        with acquire_exclusive(self.path):
            start = time.monotonic()
            with acquire_exclusive(other) as lock:
                self.assertTrue(lock.held)
            self.assertLess(time.monotonic() - start, 1.0)

    def test_missing_parent_directory_is_an_io_error(self) -> None:
        from plan.util.file_lock import acquire_exclusive

        with self.assertRaises(OSError):
            acquire_exclusive(self.dir / "missing" / "2026-02-19.plan")
        self.assertFalse((self.dir / "missing").exists())


if __name__ == "__main__":
    unittest.main()
