from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import IO, Optional

logger = logging.getLogger(__name__)

_BLUE = "34"
_GREEN = "32"
_YELLOW = "33"
_RED = "31"
_BOLD = "1"
_BOLD_RED = "31;1"


@dataclass(frozen=True)
class Summary:
    access_url: str
    db_name: str
    db_user: str
    # None means "not generated in this run"; the value is not reprinted.
    db_password: Optional[str]
    root_password: Optional[str]
    state_path: str


class Reporter:
    """Leveled console output for operators; every message is logged as well."""

    def __init__(self, out: Optional[IO[str]] = None, err: Optional[IO[str]] = None, color: Optional[bool] = None) -> None:
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self.color = self.out.isatty() if color is None else color

    def _c(self, code: str, text: str) -> str:
        return f"\033[{code}m{text}\033[0m" if self.color else text

    def _emit(self, stream: IO[str], text: str) -> None:
        stream.write(text + "\n")
        stream.flush()

    def info(self, msg: str) -> None:
        logger.info(msg)
        self._emit(self.out, f"{self._c(_BLUE, '[INFO]')} {msg}")

    def success(self, msg: str) -> None:
        logger.info(msg)
        self._emit(self.out, f"{self._c(_GREEN, '[SUCCESS]')} {msg}")

    def warning(self, msg: str) -> None:
        logger.warning(msg)
        self._emit(self.out, f"{self._c(_YELLOW, '[WARNING]')} {msg}")

    def error(self, msg: str) -> None:
        logger.error(msg)
        self._emit(self.err, f"{self._c(_RED, '[ERROR]')} {msg}")

    def summary(self, s: Summary) -> None:
        unchanged = f"(unchanged; stored in {s.state_path})"
        db_pw = self._c(_YELLOW, s.db_password) if s.db_password else unchanged
        root_pw = self._c(_BOLD_RED, s.root_password) if s.root_password else unchanged

        lines = [
            "",
            f"{self._c(_GREEN, '[SUCCESS]')} WordPress Installation Completed!",
            "-" * 50,
            "Access WordPress via your browser:",
            self._c(_BOLD, s.access_url),
            "",
            "Follow the on-screen instructions to set up your site title, admin user, etc.",
            "",
            "Database Details (saved in wp-config.php):",
            f"  Database Name:     {s.db_name}",
            f"  Database User:     {s.db_user}",
            f"  Database Password: {db_pw}",
            "",
            "MariaDB Root Password (use for database administration):",
            "  Root User:         root",
            f"  Root Password:     {root_pw}",
            "",
        ]
        for ln in lines:
            self._emit(self.out, ln)
        if s.root_password:
            self.warning("IMPORTANT: Store the MariaDB root password securely!")
        self._emit(self.out, "-" * 50)
        logger.info("Summary printed (url=%s db=%s user=%s)", s.access_url, s.db_name, s.db_user)
