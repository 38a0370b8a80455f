from __future__ import annotations

import base64
import logging
import secrets
import string
import subprocess

from .config import InstallerConfig
from .errors import SecretGenerationFailed
from .lib.archive import WGET_ARGS
from .lib.command import CommandError, run_cmd
from .lib.wpconfig import SALT_KEYS, format_salts, parse_salts

logger = logging.getLogger(__name__)

DB_PASSWORD = "db_password"
DB_ROOT_PASSWORD = "db_root_password"
WP_SALTS = "wp_salts"

SECRET_KINDS = (DB_PASSWORD, DB_ROOT_PASSWORD, WP_SALTS)

# Same alphabet the WordPress API draws from, minus quote and backslash.
_SALT_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*()-_[]{}<>~`+=,.;:/?|"
_SALT_LENGTH = 64


def random_password(nbytes: int) -> str:
    if nbytes <= 0:
        raise SecretGenerationFailed(f"Password length must be positive, got {nbytes}")
    return base64.b64encode(secrets.token_bytes(nbytes)).decode("ascii")


def local_salts() -> str:
    salts = {k: "".join(secrets.choice(_SALT_ALPHABET) for _ in range(_SALT_LENGTH)) for k in SALT_KEYS}
    return format_salts(salts)


def fetch_salts(url: str, *, timeout: float = 30) -> str:
    """Fetch the keyed salt template; raises on network or format errors."""

    timeout_s = max(1, int(timeout))
    r = run_cmd(
        ["wget", "-qO-", *WGET_ARGS, f"--timeout={timeout_s}", url],
        timeout=timeout + 5,
        log_output=False,
    )
    block = r.stdout
    parse_salts(block)
    return block.strip() + "\n"


def generate_salts(url: str, *, timeout: float = 30) -> str:
    try:
        return fetch_salts(url, timeout=timeout)
    except (CommandError, subprocess.SubprocessError, ValueError, OSError) as e:
        logger.warning("Salt endpoint unavailable (%s); generating salts locally", e)

    try:
        return local_salts()
    except (OSError, NotImplementedError) as e:
        # os.urandom unavailable
        raise SecretGenerationFailed(f"No salt source succeeded: {e}") from e


def generate(kind: str, cfg: InstallerConfig) -> str:
    if kind == DB_PASSWORD:
        return random_password(cfg.db_password_bytes)
    if kind == DB_ROOT_PASSWORD:
        return random_password(cfg.root_password_bytes)
    if kind == WP_SALTS:
        return generate_salts(cfg.salt_url, timeout=cfg.http_timeout)
    raise SecretGenerationFailed(f"Unknown secret kind: {kind}")
