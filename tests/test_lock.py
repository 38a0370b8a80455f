from __future__ import annotations

import os

import pytest

from wordpress_installer.errors import EXIT_LOCK_HELD, LockContention
from wordpress_installer.lock import RunLock


def test_second_holder_is_refused_until_release(tmp_path):
    path = str(tmp_path / "state.json.lock")
    first = RunLock(path)
    first.acquire()
    try:
        with pytest.raises(LockContention) as exc:
            RunLock(path).acquire()
        assert str(os.getpid()) in str(exc.value)
        assert exc.value.exit_code == EXIT_LOCK_HELD
    finally:
        first.release()

    with RunLock(path):
        pass


def test_lock_released_when_body_raises(tmp_path):
    path = str(tmp_path / "state.json.lock")
    with pytest.raises(RuntimeError):
        with RunLock(path):
            raise RuntimeError("step failed")
    with RunLock(path):
        pass
