from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from ..context import InstallCtx
from ..lib.mysql import database_exists, run_root_sql, sql_account, sql_ident, sql_quote, user_exists
from ..secret_gen import DB_PASSWORD, DB_ROOT_PASSWORD
from ..state_store import get_secret

logger = logging.getLogger(__name__)


class AppDatabaseCreatedStep:
    step_id = "app_database_created"
    description = "Creating WordPress database and user"
    depends_on: Tuple[str, ...] = ("database_secured",)

    def is_satisfied(self, ctx: InstallCtx, state: Dict[str, Any]) -> bool:
        # Without the recorded password the config could not be rendered to match the user.
        if not get_secret(state, DB_PASSWORD):
            return False
        root_pw = get_secret(state, DB_ROOT_PASSWORD)
        cfg = ctx.cfg
        return database_exists(cfg.db_name, password=root_pw) and user_exists(
            cfg.db_user, cfg.db_host, password=root_pw
        )

    def apply(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.cfg
        root_pw = get_secret(state, DB_ROOT_PASSWORD)
        db_pw = ctx.ensure_secret(state, DB_PASSWORD)

        db = sql_ident(cfg.db_name)
        account = sql_account(cfg.db_user, cfg.db_host)
        sql = "\n".join(
            [
                f"CREATE DATABASE IF NOT EXISTS {db} CHARACTER SET utf8mb4 COLLATE utf8mb4_general_ci;",
                f"CREATE USER IF NOT EXISTS {account} IDENTIFIED BY {sql_quote(db_pw)};",
                # Re-sync in case the account pre-dates the recorded secret.
                f"ALTER USER {account} IDENTIFIED BY {sql_quote(db_pw)};",
                f"GRANT ALL PRIVILEGES ON {db}.* TO {account};",
                "FLUSH PRIVILEGES;",
            ]
        )
        run_root_sql(sql + "\n", password=root_pw)
        logger.info("Database %s and user %s ready", cfg.db_name, cfg.db_user)
        return state
