from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from ..context import InstallCtx
from ..lib.command import run_cmd
from ..state_store import DONE, step_status

logger = logging.getLogger(__name__)

# Steps whose effects need a web server restart to take hold.
RESTART_TRIGGERS: Tuple[str, ...] = (
    "database_secured",
    "app_database_created",
    "app_files_deployed",
    "app_configured",
    "permissions_set",
    "webserver_configured",
)


class WebserverRestartedStep:
    step_id = "webserver_restarted"
    description = "Restarting Apache"
    depends_on: Tuple[str, ...] = RESTART_TRIGGERS

    def is_satisfied(self, ctx: InstallCtx, state: Dict[str, Any]) -> bool:
        changed = [s for s in ctx.applied if s in RESTART_TRIGGERS]
        if changed:
            logger.info("Restart needed after: %s", ", ".join(changed))
            return False
        return step_status(state, self.step_id) == DONE

    def apply(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        run_cmd(["systemctl", "restart", ctx.cfg.web_service])
        return state
