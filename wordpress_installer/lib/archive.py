from __future__ import annotations

import hashlib
import json
import logging
import re
import tarfile
from pathlib import Path
from typing import Any, Dict, Optional

from .command import run_cmd

logger = logging.getLogger(__name__)

MARKER_NAME = ".wordpress-installer"

_VERSION_RE = re.compile(r"""\$wp_version\s*=\s*['"]([^'"]+)['"]""")


class ChecksumMismatch(ValueError):
    pass


def _wget_timeout(timeout: float) -> str:
    return f"--timeout={max(1, int(timeout))}"


WGET_ARGS = ("--tries=1",)


def download(url: str, dest: Path, *, timeout: float = 30) -> Path:
    dest.parent.mkdir(parents=True, exist_ok=True)
    run_cmd(["wget", "-q", *WGET_ARGS, _wget_timeout(timeout), "-O", str(dest), url])
    return dest


def fetch_text(url: str, *, timeout: float = 30) -> str:
    return run_cmd(["wget", "-qO-", *WGET_ARGS, _wget_timeout(timeout), url]).stdout


def parse_checksum(text: str) -> str:
    """First hex token of a checksum file (`<hex>` or `<hex>  <name>`)."""

    token = (text.split() or [""])[0].lower()
    if not re.fullmatch(r"[0-9a-f]{32,128}", token):
        raise ChecksumMismatch(f"Not a checksum: {text.strip()[:80]!r}")
    return token


def file_digest(path: Path, algorithm: str) -> str:
    h = hashlib.new(algorithm)
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def verify_checksum(path: Path, expected: str, algorithm: str) -> str:
    actual = file_digest(path, algorithm)
    if actual != expected.lower():
        raise ChecksumMismatch(f"{path.name}: {algorithm} {actual} != expected {expected}")
    logger.info("Verified %s (%s %s)", path.name, algorithm, actual)
    return actual


def extract_tarball(archive: Path, dest: Path) -> None:
    dest.mkdir(parents=True, exist_ok=True)
    with tarfile.open(archive, "r:*") as tf:
        tf.extractall(dest, filter="data")


def read_wp_version(tree: Path) -> Optional[str]:
    p = tree / "wp-includes" / "version.php"
    if not p.exists():
        return None
    m = _VERSION_RE.search(p.read_text(encoding="utf-8", errors="ignore"))
    return m.group(1) if m else None


def write_marker(tree: Path, info: Dict[str, Any]) -> None:
    (tree / MARKER_NAME).write_text(json.dumps(info, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def read_marker(tree: Path) -> Optional[Dict[str, Any]]:
    p = tree / MARKER_NAME
    if not p.is_file():
        return None
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except ValueError:
        logger.warning("Ignoring unreadable deploy marker %s", p)
        return None
    return data if isinstance(data, dict) else None
