from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from ..context import InstallCtx
from ..lib.pkg import apt_install, missing_packages

logger = logging.getLogger(__name__)


class PackagesInstalledStep:
    step_id = "packages_installed"
    description = "Installing Apache, MariaDB, PHP and required extensions"
    depends_on: Tuple[str, ...] = ("packages_updated",)

    def is_satisfied(self, ctx: InstallCtx, state: Dict[str, Any]) -> bool:
        return not missing_packages(ctx.cfg.packages)

    def apply(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        missing = missing_packages(ctx.cfg.packages)
        logger.info("Installing missing packages: %s", " ".join(missing) or "(none)")
        apt_install(missing)
        return state
