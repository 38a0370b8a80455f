from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import List, Optional, Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def apt_update() -> None:
    run_cmd(["apt-get", "update"], env=APT_ENV)


def apt_upgrade() -> None:
    run_cmd(["apt-get", "upgrade", "-y"], env=APT_ENV)


def apt_install(packages: Sequence[str]) -> None:
    if not packages:
        return
    run_cmd(["apt-get", "install", "-y", *packages], env=APT_ENV)


def is_installed(package: str) -> bool:
    r = run_cmd(["dpkg-query", "-W", "-f=${Status}", package], check=False)
    return r.returncode == 0 and r.stdout.strip() == "install ok installed"


def missing_packages(packages: Sequence[str]) -> List[str]:
    return [p for p in packages if not is_installed(p)]


def index_age_hours(marker: str) -> Optional[float]:
    """Age of the apt index freshness marker, or None if it does not exist."""

    p = Path(marker)
    if not p.exists():
        return None
    return max(0.0, (time.time() - p.stat().st_mtime) / 3600.0)


def touch_marker(marker: str) -> None:
    p = Path(marker)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.touch()
