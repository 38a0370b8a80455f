from __future__ import annotations

import base64
import subprocess

import pytest

from wordpress_installer import secret_gen
from wordpress_installer.config import InstallerConfig
from wordpress_installer.errors import SecretGenerationFailed
from wordpress_installer.lib.command import CmdResult, CommandError
from wordpress_installer.lib.wpconfig import SALT_KEYS, parse_salts

API_SALTS = "\n".join(f"define('{k}',{' ' * 4}'{k.lower()}-remote-value');" for k in SALT_KEYS) + "\n"


def test_password_lengths_match_defaults():
    cfg = InstallerConfig()
    db_pw = secret_gen.generate(secret_gen.DB_PASSWORD, cfg)
    root_pw = secret_gen.generate(secret_gen.DB_ROOT_PASSWORD, cfg)
    assert len(db_pw) == 16 and len(base64.b64decode(db_pw)) == 12
    assert len(root_pw) == 20 and len(base64.b64decode(root_pw)) == 15
    assert db_pw != secret_gen.generate(secret_gen.DB_PASSWORD, cfg)


def test_password_length_is_configurable():
    cfg = InstallerConfig(raw={"db_password_bytes": 24})
    assert len(base64.b64decode(secret_gen.generate(secret_gen.DB_PASSWORD, cfg))) == 24


def test_remote_salts_are_used_when_valid(monkeypatch):
    monkeypatch.setattr(
        secret_gen, "run_cmd", lambda argv, **kw: CmdResult(argv=list(argv), returncode=0, stdout=API_SALTS, stderr="")
    )
    salts = parse_salts(secret_gen.generate(secret_gen.WP_SALTS, InstallerConfig()))
    assert salts["NONCE_SALT"] == "nonce_salt-remote-value"


@pytest.mark.parametrize(
    "fake",
    [
        lambda argv, **kw: (_ for _ in ()).throw(
            CommandError(CmdResult(argv=list(argv), returncode=4, stdout="", stderr="network unreachable"))
        ),
        lambda argv, **kw: CmdResult(argv=list(argv), returncode=0, stdout="<html>maintenance</html>", stderr=""),
        lambda argv, **kw: (_ for _ in ()).throw(subprocess.TimeoutExpired(list(argv), kw.get("timeout"))),
    ],
)
def test_salts_fall_back_to_local_generation(monkeypatch, fake):
    monkeypatch.setattr(secret_gen, "run_cmd", fake)
    salts = parse_salts(secret_gen.generate(secret_gen.WP_SALTS, InstallerConfig()))
    assert set(salts) == set(SALT_KEYS)
    assert all(len(v) == 64 and "'" not in v and "\\" not in v for v in salts.values())


def test_unknown_kind_fails():
    with pytest.raises(SecretGenerationFailed):
        secret_gen.generate("api_token", InstallerConfig())


def test_salt_fetch_tries_once_within_its_timeout(monkeypatch):
    calls = []

    def fake(argv, **kw):
        calls.append((list(argv), kw))
        return CmdResult(argv=list(argv), returncode=0, stdout=API_SALTS, stderr="")

    monkeypatch.setattr(secret_gen, "run_cmd", fake)
    secret_gen.generate(secret_gen.WP_SALTS, InstallerConfig(raw={"http_timeout": 10}))

    (argv, kw), = calls
    assert "--tries=1" in argv and "--timeout=10" in argv
    assert kw["timeout"] > 10
    assert kw["log_output"] is False
