from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import InstallerConfig, load_config
from .context import InstallCtx
from .errors import EXIT_ERROR, EXIT_OK, InstallerError, PrivilegeError
from .lib.net import primary_ip
from .lock import RunLock
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import ExecutionReport, Step, order_steps, run_pipeline
from .reporter import Reporter, Summary
from .secret_gen import DB_PASSWORD, DB_ROOT_PASSWORD
from .state_store import ensure_defaults, get_secret, load_state, reset_state, save_state, step_status
from .steps import (
    AppConfiguredStep,
    AppDatabaseCreatedStep,
    AppFilesDeployedStep,
    DatabaseSecuredStep,
    PackagesInstalledStep,
    PackagesUpdatedStep,
    PermissionsSetStep,
    WebserverConfiguredStep,
    WebserverRestartedStep,
)

logger = logging.getLogger(__name__)


DEFAULT_STATE_PATH = "/var/lib/wordpress-installer/state.json"

COMMANDS = ("install", "plan", "reset")


def build_steps() -> List[Step]:
    return [
        PackagesUpdatedStep(),
        PackagesInstalledStep(),
        DatabaseSecuredStep(),
        AppDatabaseCreatedStep(),
        AppFilesDeployedStep(),
        AppConfiguredStep(),
        PermissionsSetStep(),
        WebserverConfiguredStep(),
        WebserverRestartedStep(),
    ]


def require_root() -> None:
    if os.geteuid() != 0:
        raise PrivilegeError("This installer must be run as root. Use: sudo wordpress-installer")


def _lock_path(state_path: str) -> str:
    return state_path + ".lock"


def _summary(ctx: InstallCtx, state: Dict[str, Any], state_path: str, *, show_secrets: bool) -> Summary:
    def _shown(name: str) -> Optional[str]:
        if show_secrets or name in ctx.fresh_secrets:
            return get_secret(state, name)
        return None

    return Summary(
        access_url=f"http://{primary_ip()}/",
        db_name=ctx.cfg.db_name,
        db_user=ctx.cfg.db_user,
        db_password=_shown(DB_PASSWORD),
        root_password=_shown(DB_ROOT_PASSWORD),
        state_path=state_path,
    )


def run(
    *,
    cfg: InstallerConfig,
    state_path: str = DEFAULT_STATE_PATH,
    log_path: str = DEFAULT_LOG_PATH,
    stop_after: Optional[str] = None,
    show_secrets: bool = False,
    reporter: Optional[Reporter] = None,
) -> Tuple[Dict[str, Any], ExecutionReport]:
    """Run the installer pipeline, persisting state for resume."""

    require_root()
    log_used = configure_logging(log_path=log_path)
    reporter = reporter or Reporter()

    with RunLock(_lock_path(state_path)):
        state = ensure_defaults(load_state(state_path))
        state["log_path"] = log_used
        ctx = InstallCtx(cfg=cfg, state_path=state_path)

        reporter.info("Starting WordPress installation...")
        try:
            report = run_pipeline(
                ctx=ctx,
                state=state,
                steps=build_steps(),
                stop_after=stop_after,
                reporter=reporter,
            )
        except Exception:
            logger.exception("Installer failed")
            raise
        finally:
            save_state(state_path, state)

        logger.info("Ran steps: %s; skipped: %s", report.ran_steps, report.skipped_steps)
        if report.completed:
            reporter.summary(_summary(ctx, state, state_path, show_secrets=show_secrets))
        else:
            reporter.info(f"Stopped after {stop_after}; re-run to continue")
        return state, report


def plan(*, state_path: str, reporter: Reporter) -> None:
    state = ensure_defaults(load_state(state_path))
    for step in order_steps(build_steps()):
        reporter.info(f"{step.step_id:<22} {step_status(state, step.step_id):<8} {step.description}")


def reset(*, state_path: str, log_path: str = DEFAULT_LOG_PATH, keep_secrets: bool, reporter: Reporter) -> None:
    require_root()
    configure_logging(log_path=log_path)
    with RunLock(_lock_path(state_path)):
        state = load_state(state_path)
        reset_state(state, keep_secrets=keep_secrets)
        save_state(state_path, state)
    if keep_secrets:
        reporter.success(f"Step progress cleared in {state_path}; secrets kept")
    else:
        reporter.warning(f"State cleared in {state_path}; secrets will be regenerated on the next run")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--state", default=DEFAULT_STATE_PATH, help="Path to installer state (json|yaml)")
    common.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")

    p = argparse.ArgumentParser(prog="wordpress-installer")
    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("install", parents=[common], help="Provision the stack (default)")
    sp.add_argument("--config", default=None, help="YAML config file")
    sp.add_argument("--wp-path", default=None, help="WordPress installation directory")
    sp.add_argument("--db-name", default=None, help="Database name")
    sp.add_argument("--db-user", default=None, help="Database user")
    sp.add_argument("--stop-after", default=None, help="Stop after step_id")
    sp.add_argument("--show-secrets", action="store_true", help="Print recorded passwords even if not new")

    sub.add_parser("plan", parents=[common], help="Show step order and recorded status")

    sp = sub.add_parser("reset", parents=[common], help="Clear recorded state")
    sp.add_argument("--keep-secrets", action="store_true", help="Keep generated credentials")

    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args_list = list(sys.argv[1:] if argv is None else argv)
    if not args_list or (args_list[0] not in COMMANDS and args_list[0] not in {"-h", "--help"}):
        args_list.insert(0, "install")

    args = build_parser().parse_args(args_list)
    reporter = Reporter()

    try:
        if args.command == "plan":
            plan(state_path=args.state, reporter=reporter)
        elif args.command == "reset":
            reset(state_path=args.state, log_path=args.log, keep_secrets=bool(args.keep_secrets), reporter=reporter)
        else:
            cfg = load_config(args.config).with_overrides(
                wp_path=args.wp_path,
                db_name=args.db_name,
                db_user=args.db_user,
            )
            run(
                cfg=cfg,
                state_path=args.state,
                log_path=args.log,
                stop_after=args.stop_after,
                show_secrets=bool(args.show_secrets),
                reporter=reporter,
            )
    except InstallerError as e:
        reporter.error(str(e))
        return e.exit_code
    except (OSError, ValueError) as e:
        reporter.error(str(e))
        return EXIT_ERROR
    except KeyboardInterrupt:
        reporter.error("Interrupted; re-run to resume")
        return 130
    return EXIT_OK
