from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Tuple

from ..context import InstallCtx
from ..lib.fsops import atomic_write_text
from ..lib.wpconfig import has_placeholders, is_configured_for, parse_salts, render_config
from ..secret_gen import DB_PASSWORD, WP_SALTS
from ..state_store import get_secret

logger = logging.getLogger(__name__)

CONFIG_NAME = "wp-config.php"
SAMPLE_NAME = "wp-config-sample.php"


class AppConfiguredStep:
    step_id = "app_configured"
    description = "Configuring wp-config.php"
    depends_on: Tuple[str, ...] = ("app_database_created", "app_files_deployed")

    def is_satisfied(self, ctx: InstallCtx, state: Dict[str, Any]) -> bool:
        p = Path(ctx.cfg.wp_path) / CONFIG_NAME
        if not p.is_file():
            return False
        return is_configured_for(p.read_text(encoding="utf-8"), db_name=ctx.cfg.db_name, db_user=ctx.cfg.db_user)

    def apply(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.cfg
        root = Path(cfg.wp_path)
        config_path = root / CONFIG_NAME

        if config_path.is_file():
            template = config_path.read_text(encoding="utf-8")
            if not has_placeholders(template):
                raise RuntimeError(
                    f"{config_path} is already customised for a different database; refusing to overwrite it"
                )
        else:
            sample = root / SAMPLE_NAME
            if not sample.is_file():
                raise RuntimeError(f"Neither {config_path} nor {sample} exists")
            template = sample.read_text(encoding="utf-8")

        db_pw = get_secret(state, DB_PASSWORD)
        if not db_pw:
            raise RuntimeError(f"Secret {DB_PASSWORD} is not recorded; the database step has not completed")

        values = {
            "DB_NAME": cfg.db_name,
            "DB_USER": cfg.db_user,
            "DB_PASSWORD": db_pw,
            "DB_HOST": cfg.db_host,
        }
        values.update(parse_salts(ctx.ensure_secret(state, WP_SALTS)))

        atomic_write_text(str(config_path), render_config(template, values), mode=cfg.file_mode)
        logger.info("Rendered %s", config_path)
        return state
