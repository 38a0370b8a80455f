from __future__ import annotations

import logging
from typing import List, Optional

from .command import CmdResult, CommandError, run_cmd

logger = logging.getLogger(__name__)


def sql_quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def sql_ident(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def sql_account(user: str, host: str) -> str:
    return f"{sql_quote(user)}@{sql_quote(host)}"


def run_sql(
    sql: str,
    *,
    user: str = "root",
    password: Optional[str] = None,
    host: Optional[str] = None,
    check: bool = True,
) -> CmdResult:
    """Run SQL through the mysql client.

    SQL goes over stdin and the password through MYSQL_PWD so neither shows up in argv.
    """

    argv = ["mysql", f"--user={user}", "--batch", "--skip-column-names"]
    if host:
        argv += ["--protocol=TCP", f"--host={host}"]
    env = {"MYSQL_PWD": password} if password else None
    return run_cmd(argv, input_text=sql, env=env, check=check)


def run_root_sql(sql: str, *, password: Optional[str]) -> CmdResult:
    """Run SQL as root, first over the unix socket without a password.

    A fresh MariaDB authenticates root by unix_socket; once a root password has
    been set the second attempt with MYSQL_PWD is the one that succeeds.
    """

    try:
        return run_sql(sql)
    except CommandError:
        if not password:
            raise
        logger.info("Passwordless root login refused; retrying with recorded root password")
    return run_sql(sql, password=password)


def query_column(sql: str, *, password: Optional[str]) -> List[str]:
    r = run_root_sql(sql, password=password)
    return [line.split("\t", 1)[0] for line in r.stdout.splitlines() if line.strip()]


def can_login(user: str, password: str, *, host: str = "127.0.0.1") -> bool:
    # Over TCP so unix_socket auth cannot stand in for the password.
    r = run_sql("SELECT 1;", user=user, password=password, host=host, check=False)
    return r.returncode == 0


def database_exists(name: str, *, password: Optional[str]) -> bool:
    rows = query_column(
        f"SELECT SCHEMA_NAME FROM information_schema.SCHEMATA WHERE SCHEMA_NAME = {sql_quote(name)};",
        password=password,
    )
    return name in rows


def user_exists(user: str, host: str, *, password: Optional[str]) -> bool:
    rows = query_column(
        f"SELECT User FROM mysql.user WHERE User = {sql_quote(user)} AND Host = {sql_quote(host)};",
        password=password,
    )
    return user in rows
