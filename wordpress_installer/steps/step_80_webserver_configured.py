from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from ..context import InstallCtx
from ..lib.apache import allows_override_all, ensure_allow_override_all, module_enabled, pick_config
from ..lib.command import run_cmd
from ..lib.fsops import atomic_write_text

logger = logging.getLogger(__name__)


class WebserverConfiguredStep:
    step_id = "webserver_configured"
    description = "Configuring Apache"
    depends_on: Tuple[str, ...] = ("packages_installed", "permissions_set")

    def is_satisfied(self, ctx: InstallCtx, state: Dict[str, Any]) -> bool:
        cfg = ctx.cfg
        if not module_enabled(cfg.apache_mods_enabled, cfg.apache_module):
            return False
        conf = pick_config(cfg.apache_conf_candidates)
        if conf is None:
            return False
        return allows_override_all(conf.read_text(encoding="utf-8"), cfg.wp_path)

    def apply(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.cfg
        if not module_enabled(cfg.apache_mods_enabled, cfg.apache_module):
            run_cmd(["a2enmod", cfg.apache_module])

        conf = pick_config(cfg.apache_conf_candidates)
        if conf is None:
            raise RuntimeError(f"No Apache config found among: {', '.join(cfg.apache_conf_candidates)}")

        text = conf.read_text(encoding="utf-8")
        updated = ensure_allow_override_all(text, cfg.wp_path)
        if updated != text:
            atomic_write_text(str(conf), updated)
            logger.info("Enabled AllowOverride All for %s in %s", cfg.wp_path, conf)
        else:
            logger.info("AllowOverride All already configured for %s in %s", cfg.wp_path, conf)
        return state
