from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from .context import InstallCtx
from .errors import PreconditionCheckError, StepApplyError
from .lib.command import CommandError
from .state_store import DONE, FAILED, PENDING, RUNNING, record_error, set_step_status, step_status

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single idempotent step: a precondition plus an apply action."""

    step_id: str
    description: str
    depends_on: Tuple[str, ...]

    def is_satisfied(self, ctx: InstallCtx, state: Dict[str, Any]) -> bool:
        ...

    def apply(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


class ProgressReporter(Protocol):
    def info(self, msg: str) -> None: ...

    def success(self, msg: str) -> None: ...

    def error(self, msg: str) -> None: ...


@dataclass(frozen=True)
class StepOutcome:
    step_id: str
    status: str
    applied: bool
    error: Optional[str] = None


@dataclass
class ExecutionReport:
    outcomes: List[StepOutcome] = field(default_factory=list)
    fresh_secrets: List[str] = field(default_factory=list)
    completed: bool = False

    @property
    def ran_steps(self) -> List[str]:
        return [o.step_id for o in self.outcomes if o.applied and o.status == DONE]

    @property
    def skipped_steps(self) -> List[str]:
        return [o.step_id for o in self.outcomes if not o.applied and o.status == DONE]


def order_steps(steps: Sequence[Step]) -> List[Step]:
    """Topological order of steps; ties keep registry order."""

    by_id: Dict[str, Step] = {}
    for s in steps:
        if s.step_id in by_id:
            raise ValueError(f"Duplicate step id: {s.step_id}")
        by_id[s.step_id] = s

    for s in steps:
        for dep in s.depends_on:
            if dep not in by_id:
                raise ValueError(f"Step {s.step_id} depends on unknown step {dep}")

    ordered: List[Step] = []
    placed: set = set()
    remaining = list(steps)
    while remaining:
        ready = next((s for s in remaining if all(d in placed for d in s.depends_on)), None)
        if ready is None:
            raise ValueError(f"Dependency cycle among: {', '.join(s.step_id for s in remaining)}")
        ordered.append(ready)
        placed.add(ready.step_id)
        remaining.remove(ready)
    return ordered


def _describe_failure(e: BaseException) -> Tuple[str, Optional[str]]:
    if isinstance(e, CommandError):
        return str(e), e.output
    return f"{type(e).__name__}: {e}", None


def _mark_failed(ctx: InstallCtx, state: Dict[str, Any], report: ExecutionReport, sid: str, message: str) -> None:
    logger.error("Step %s failed: %s", sid, message)
    set_step_status(state, sid, FAILED)
    record_error(state, sid, message)
    ctx.checkpoint(state)
    report.outcomes.append(StepOutcome(sid, FAILED, applied=True, error=message))


def run_pipeline(
    *,
    ctx: InstallCtx,
    state: Dict[str, Any],
    steps: Sequence[Step],
    stop_after: Optional[str] = None,
    reporter: Optional[ProgressReporter] = None,
) -> ExecutionReport:
    """Run steps in dependency order with skip/resume semantics.

    Raises PreconditionCheckError or StepApplyError on the first failure; the
    state is saved before raising so a later run resumes at that step.
    """

    ordered = order_steps(steps)
    if stop_after is not None and stop_after not in {s.step_id for s in ordered}:
        raise ValueError(f"Unknown step for stop_after: {stop_after}")

    report = ExecutionReport(fresh_secrets=ctx.fresh_secrets)

    for step in ordered:
        sid = step.step_id
        if step_status(state, sid) == RUNNING:
            logger.warning("Step %s was interrupted in a previous run", sid)

        try:
            satisfied = bool(step.is_satisfied(ctx, state))
        except Exception as e:
            message, _ = _describe_failure(e)
            set_step_status(state, sid, PENDING)
            record_error(state, sid, f"precondition: {message}")
            ctx.checkpoint(state)
            report.outcomes.append(StepOutcome(sid, PENDING, applied=False, error=message))
            raise PreconditionCheckError(sid, message) from e

        if satisfied:
            logger.info("Skipping step %s (already satisfied)", sid)
            set_step_status(state, sid, DONE)
            ctx.checkpoint(state)
            report.outcomes.append(StepOutcome(sid, DONE, applied=False))
            if reporter is not None:
                reporter.info(f"{step.description}: already done")
        else:
            logger.info("Running step %s", sid)
            if reporter is not None:
                reporter.info(f"{step.description}...")
            set_step_status(state, sid, RUNNING)
            ctx.checkpoint(state)
            try:
                state = step.apply(ctx, state)
            except StepApplyError as e:
                _mark_failed(ctx, state, report, sid, str(e))
                raise
            except Exception as e:
                message, output = _describe_failure(e)
                _mark_failed(ctx, state, report, sid, message)
                raise StepApplyError(sid, message, output=output) from e
            set_step_status(state, sid, DONE)
            ctx.applied.append(sid)
            ctx.checkpoint(state)
            report.outcomes.append(StepOutcome(sid, DONE, applied=True))
            if reporter is not None:
                reporter.success(f"{step.description}: done")

        if stop_after is not None and sid == stop_after:
            logger.info("Stopping after %s", stop_after)
            return report

    report.completed = True
    return report
