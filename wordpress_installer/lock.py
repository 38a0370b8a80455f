from __future__ import annotations

import fcntl
import logging
import os
from pathlib import Path
from typing import IO, Optional

from .errors import LockContention

logger = logging.getLogger(__name__)


class RunLock:
    """Exclusive advisory lock held for the duration of one installer run.

    The lock file is left in place on release; the flock itself is what
    matters, and the kernel drops it if the process dies.
    """

    def __init__(self, path: str) -> None:
        self.path = Path(path)
        self._fh: Optional[IO[str]] = None

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fh = self.path.open("a+", encoding="utf-8")
        try:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            fh.seek(0)
            holder = fh.read().strip() or "unknown"
            fh.close()
            raise LockContention(
                f"Another installer run holds {self.path} (pid {holder}). "
                "Wait for it to finish; if that process is gone, the lock is stale and the file can be removed."
            ) from None

        fh.seek(0)
        fh.truncate()
        fh.write(f"{os.getpid()}\n")
        fh.flush()
        self._fh = fh
        logger.info("Acquired run lock %s", self.path)

    def release(self) -> None:
        if self._fh is None:
            return
        try:
            fcntl.flock(self._fh.fileno(), fcntl.LOCK_UN)
        finally:
            self._fh.close()
            self._fh = None
        logger.info("Released run lock %s", self.path)

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, *exc) -> None:
        self.release()
