from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from ..context import InstallCtx
from ..lib.pkg import apt_update, apt_upgrade, index_age_hours, touch_marker

logger = logging.getLogger(__name__)


class PackagesUpdatedStep:
    step_id = "packages_updated"
    description = "Updating system packages"
    depends_on: Tuple[str, ...] = ()

    def is_satisfied(self, ctx: InstallCtx, state: Dict[str, Any]) -> bool:
        age = index_age_hours(ctx.cfg.apt_freshness_marker)
        if age is None:
            return False
        logger.info("Package index age %.1fh (limit %.1fh)", age, ctx.cfg.apt_max_age_hours)
        return age < ctx.cfg.apt_max_age_hours

    def apply(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        apt_update()
        apt_upgrade()
        touch_marker(ctx.cfg.apt_freshness_marker)
        return state
