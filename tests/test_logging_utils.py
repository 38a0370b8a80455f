from __future__ import annotations

import logging

import pytest

from wordpress_installer import logging_utils
from wordpress_installer.logging_utils import CONSOLE_ONLY, LOG_NAME, configure_logging


@pytest.fixture
def fresh_root(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "_wp_installer_configured", False, raising=False)
    monkeypatch.setattr(root, "_wp_installer_log_path", None, raising=False)
    yield root
    for h in root.handlers:
        h.close()


def _blocked(tmp_path):
    # A regular file where a directory is expected fails even for root.
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    return str(blocker / "install.log")


def test_requested_path_is_used_and_setup_is_idempotent(fresh_root, tmp_path):
    path = str(tmp_path / "logs" / "install.log")
    assert configure_logging(log_path=path) == path
    assert configure_logging(log_path=str(tmp_path / "other.log")) == path
    files = [h for h in fresh_root.handlers if isinstance(h, logging.FileHandler)]
    assert len(files) == 1

    logging.getLogger("wordpress_installer.test").info("CMD apt-get update")
    files[0].flush()
    assert "CMD apt-get update" in (tmp_path / "logs" / "install.log").read_text(encoding="utf-8")


def test_unwritable_path_falls_back_to_working_directory(fresh_root, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert configure_logging(log_path=_blocked(tmp_path)) == str(tmp_path / LOG_NAME)


def test_no_writable_location_logs_to_stderr(fresh_root, tmp_path, monkeypatch):
    blocked = _blocked(tmp_path)
    monkeypatch.setattr(logging_utils, "_candidates", lambda log_path: [blocked])

    assert configure_logging(log_path=blocked) == CONSOLE_ONLY
    assert not any(isinstance(h, logging.FileHandler) for h in fresh_root.handlers)
    assert any(type(h) is logging.StreamHandler for h in fresh_root.handlers)
