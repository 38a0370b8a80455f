from __future__ import annotations

import base64
import json
import re

import pytest

from conftest import FakeStep
from wordpress_installer import main as installer
from wordpress_installer.errors import (
    EXIT_ERROR,
    EXIT_LOCK_HELD,
    EXIT_NOT_PRIVILEGED,
    EXIT_OK,
    EXIT_PRECONDITION_ERROR,
    EXIT_STEP_FAILED,
)
from wordpress_installer.lock import RunLock
from wordpress_installer.secret_gen import DB_PASSWORD, DB_ROOT_PASSWORD

STEP_IDS = [
    "packages_updated",
    "packages_installed",
    "database_secured",
    "app_database_created",
    "app_files_deployed",
    "app_configured",
    "permissions_set",
    "webserver_configured",
    "webserver_restarted",
]


@pytest.fixture
def env(tmp_path, monkeypatch):
    world = set()
    steps = []
    prev = ()
    for sid in STEP_IDS:
        secrets = {"database_secured": (DB_ROOT_PASSWORD,), "app_database_created": (DB_PASSWORD,)}.get(sid, ())
        steps.append(FakeStep(sid, world, depends_on=prev, secrets=secrets))
        prev = (sid,)

    monkeypatch.setattr(installer, "build_steps", lambda: steps)
    monkeypatch.setattr(installer, "primary_ip", lambda: "10.0.3.15")
    monkeypatch.setattr(installer.os, "geteuid", lambda: 0)

    state = tmp_path / "state.json"
    argv = ["--state", str(state), "--log", str(tmp_path / "install.log")]
    return {"steps": steps, "world": world, "state": state, "argv": argv}


def _passwords(out: str):
    db = re.search(r"Database Password: (\S+)", out).group(1)
    root = re.search(r"Root Password:\s+(\S+)", out).group(1)
    return db, root


def test_fresh_install_runs_every_step_and_prints_new_credentials(env, capsys):
    assert installer.main(env["argv"]) == EXIT_OK

    saved = json.loads(env["state"].read_text(encoding="utf-8"))
    assert saved["steps"] == {sid: "done" for sid in STEP_IDS}
    assert all(s.applied == 1 for s in env["steps"])

    out = capsys.readouterr().out
    assert "http://10.0.3.15/" in out
    db, root = _passwords(out)
    assert len(db) == 16 and len(base64.b64decode(db)) == 12
    assert len(root) == 20 and len(base64.b64decode(root)) == 15
    assert saved["secrets"] == {DB_PASSWORD: db, DB_ROOT_PASSWORD: root}
    assert saved["log_path"].endswith(".log")
    assert "Store the MariaDB root password securely" in out


def test_rerun_applies_nothing_and_does_not_reprint_secrets(env, capsys):
    assert installer.main(env["argv"]) == EXIT_OK
    first_state = env["state"].read_text(encoding="utf-8")
    db, root = _passwords(capsys.readouterr().out)

    assert installer.main(env["argv"]) == EXIT_OK
    out = capsys.readouterr().out
    assert all(s.applied == 1 for s in env["steps"])
    assert env["state"].read_text(encoding="utf-8") == first_state
    assert db not in out and root not in out
    assert "unchanged; stored in" in out

    assert installer.main(env["argv"] + ["--show-secrets"]) == EXIT_OK
    assert _passwords(capsys.readouterr().out) == (db, root)


def test_failed_step_exit_code_and_resume(env, capsys):
    by_id = {s.step_id: s for s in env["steps"]}
    by_id["app_configured"].fail = True

    assert installer.main(env["argv"]) == EXIT_STEP_FAILED
    err = capsys.readouterr().err
    assert "app_configured" in err and "disk full" in err
    saved = json.loads(env["state"].read_text(encoding="utf-8"))
    assert saved["steps"]["app_configured"] == "failed"
    root = saved["secrets"][DB_ROOT_PASSWORD]

    by_id["app_configured"].fail = False
    assert installer.main(env["argv"]) == EXIT_OK
    assert by_id["app_files_deployed"].applied == 1
    assert by_id["app_configured"].applied == 2
    saved = json.loads(env["state"].read_text(encoding="utf-8"))
    assert saved["secrets"][DB_ROOT_PASSWORD] == root


def test_precondition_error_exit_code(env):
    env["steps"][2].check_error = RuntimeError("cannot reach mysqld")
    assert installer.main(env["argv"]) == EXIT_PRECONDITION_ERROR


@pytest.mark.parametrize("command", [[], ["reset"]])
def test_not_root_is_refused_before_logging_is_set_up(env, monkeypatch, capsys, command):
    def unwritable(log_path, **kw):
        raise PermissionError(13, "Permission denied", "./wordpress-installer.log")

    monkeypatch.setattr(installer.os, "geteuid", lambda: 1000)
    monkeypatch.setattr(installer, "configure_logging", unwritable)

    assert installer.main(command + env["argv"]) == EXIT_NOT_PRIVILEGED
    err = capsys.readouterr().err
    assert "must be run as root" in err
    assert "Permission denied" not in err
    assert not env["state"].exists()


def test_concurrent_run_is_refused(env):
    with RunLock(str(env["state"]) + ".lock"):
        assert installer.main(env["argv"]) == EXIT_LOCK_HELD
    assert all(s.applied == 0 for s in env["steps"])


def test_plan_lists_steps_in_order(env, capsys):
    assert installer.main(["plan"] + env["argv"]) == EXIT_OK
    out = capsys.readouterr().out
    positions = [out.index(sid) for sid in STEP_IDS]
    assert positions == sorted(positions)
    assert "pending" in out


def test_reset_keeps_secrets_on_request(env):
    assert installer.main(env["argv"]) == EXIT_OK
    secrets = json.loads(env["state"].read_text(encoding="utf-8"))["secrets"]

    assert installer.main(["reset", "--keep-secrets"] + env["argv"]) == EXIT_OK
    saved = json.loads(env["state"].read_text(encoding="utf-8"))
    assert saved["steps"] == {}
    assert saved["secrets"] == secrets


def test_corrupt_state_file_is_a_plain_error(env, tmp_path, capsys):
    state = tmp_path / "state.yaml"
    state.write_text("steps: {packages_updated: done\n", encoding="utf-8")
    argv = ["--state", str(state), "--log", str(tmp_path / "install.log")]

    assert installer.main(argv) == EXIT_ERROR
    assert installer.main(["plan"] + argv) == EXIT_ERROR
    assert "not valid YAML" in capsys.readouterr().err
    assert all(s.applied == 0 for s in env["steps"])
