from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


class CommandError(RuntimeError):
    def __init__(self, result: CmdResult) -> None:
        super().__init__(f"Command failed ({result.returncode}): {_fmt_argv(result.argv)}")
        self.result = result

    @property
    def output(self) -> str:
        return "\n".join(s.strip() for s in (self.result.stdout, self.result.stderr) if s.strip())


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    input_text: str | None = None,
    timeout: float | None = None,
    log_output: bool = True,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command (argv only; pass secrets via env or stdin).
    - Output is logged at DEBUG unless log_output is False (output holding secrets).
    - Captures stdout/stderr so failures can be attributed to a step.
    - A missing executable is reported like a failed command (returncode 127),
      and so is a timeout (returncode 124).
    """

    argv_list = list(argv)
    logger.info("CMD %s", _fmt_argv(argv_list))

    try:
        p = subprocess.run(
            argv_list,
            input=input_text,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=dict(os.environ, **(env or {})),
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        # Same code coreutils timeout(1) uses.
        result = CmdResult(argv=argv_list, returncode=124, stdout="", stderr=f"timed out after {e.timeout}s")
        if check:
            raise CommandError(result) from e
        return result
    except FileNotFoundError as e:
        result = CmdResult(argv=argv_list, returncode=127, stdout="", stderr=str(e))
        if check:
            raise CommandError(result) from e
        return result

    if log_output and p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if log_output and p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    result = CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)
    if check and p.returncode != 0:
        raise CommandError(result)

    return result
