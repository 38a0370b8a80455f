from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from ..context import InstallCtx
from ..lib.command import run_cmd
from ..lib.mysql import can_login, run_root_sql, sql_account, sql_quote
from ..secret_gen import DB_ROOT_PASSWORD
from ..state_store import DONE, get_secret, step_status

logger = logging.getLogger(__name__)


def _secure_sql(root_password: str, anonymous_hosts: List[str]) -> str:
    statements = [f"ALTER USER 'root'@'localhost' IDENTIFIED BY {sql_quote(root_password)};"]
    statements += [f"DROP USER IF EXISTS {sql_account('', host)};" for host in anonymous_hosts]
    statements += [
        "DROP DATABASE IF EXISTS test;",
        "DELETE FROM mysql.db WHERE Db='test' OR Db='test\\\\_%';",
        "FLUSH PRIVILEGES;",
    ]
    return "\n".join(statements) + "\n"


class DatabaseSecuredStep:
    step_id = "database_secured"
    description = "Securing MariaDB and setting root password"
    depends_on: Tuple[str, ...] = ("packages_installed",)

    def is_satisfied(self, ctx: InstallCtx, state: Dict[str, Any]) -> bool:
        root_pw = get_secret(state, DB_ROOT_PASSWORD)
        if not root_pw or step_status(state, self.step_id) != DONE:
            return False
        return can_login("root", root_pw)

    def apply(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.cfg
        run_cmd(["systemctl", "start", cfg.db_service])
        run_cmd(["systemctl", "enable", cfg.db_service])

        root_pw = ctx.ensure_secret(state, DB_ROOT_PASSWORD)

        # mysql.user is a view on current MariaDB; drop anonymous accounts by name.
        r = run_root_sql("SELECT Host FROM mysql.user WHERE User='';", password=root_pw)
        anonymous = [ln.strip() for ln in r.stdout.splitlines() if ln.strip()]
        if anonymous:
            logger.info("Removing anonymous accounts on hosts: %s", ", ".join(anonymous))

        run_root_sql(_secure_sql(root_pw, anonymous), password=root_pw)
        return state
