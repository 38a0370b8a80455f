from __future__ import annotations

import logging

from .command import run_cmd

logger = logging.getLogger(__name__)


def primary_ip(default: str = "localhost") -> str:
    """Best-effort primary address (first entry of `hostname -I`)."""

    r = run_cmd(["hostname", "-I"], check=False)
    addrs = r.stdout.split() if r.returncode == 0 else []
    if not addrs:
        logger.info("No address from hostname -I; using %s", default)
        return default
    return addrs[0]
