"""
Pipeline driver — run an ordered list of named stages.

A compile is a fixed sequence of stages.  Each stage is a function
``BuildState -> BuildState``; the driver runs them in order, narrates
each one, records a receipt per stage and stops at the first
``BuildError``; any other exception a stage raises is wrapped in
``UnexpectedFailure`` so the report always names the failed stage.
Nothing is retried and nothing is rolled back: the stage that failed
and its error are in the report.

Flow:
    stages → run in order → receipt per stage → stop at first failure
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from slugbuild.core.errors import BuildError, UnexpectedFailure
from slugbuild.core.models.action import Receipt
from slugbuild.core.models.state import BuildState
from slugbuild.core.observability.logging_config import TOPIC

logger = logging.getLogger(__name__)

StageFn = Callable[[BuildState], BuildState]


@dataclass(frozen=True)
class Stage:
    """One named step of the compile."""

    name: str
    title: str
    run: StageFn


@dataclass
class PipelineReport:
    """Result of running a stage list."""

    build_id: str = ""
    receipts: list[Receipt] = field(default_factory=list)
    state: BuildState | None = None
    error: BuildError | None = None

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed_stage(self) -> str | None:
        for receipt in self.receipts:
            if receipt.failed:
                return receipt.action_id
        return None

    @property
    def all_ok(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        return 0 if self.error is None else self.error.exit_code

    @property
    def status(self) -> str:
        return "ok" if self.all_ok else "failed"

    def to_dict(self) -> dict:
        return {
            "build_id": self.build_id,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed_stage": self.failed_stage,
            "error": str(self.error) if self.error else None,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


def run_pipeline(
    stages: Sequence[Stage],
    state: BuildState,
    build_id: str | None = None,
) -> PipelineReport:
    """Run ``stages`` in order, stopping at the first failure.

    Args:
        stages: Ordered stage list.
        state: Initial build state.
        build_id: Identifier for the report (generated if omitted).

    Returns:
        PipelineReport with one receipt per stage that ran.
    """
    report = PipelineReport(build_id=build_id or generate_build_id())
    logger.debug("Build %s: %d stages", report.build_id, len(stages))

    for stage in stages:
        logger.info(stage.title, extra=TOPIC)
        start = time.monotonic()
        try:
            state = stage.run(state)
        except Exception as e:
            if isinstance(e, BuildError):
                error = e
            else:
                logger.debug("Stage '%s' raised", stage.name, exc_info=True)
                error = UnexpectedFailure(stage.name, e)
            elapsed_ms = int((time.monotonic() - start) * 1000)
            report.receipts.append(
                Receipt.failure(
                    adapter="pipeline",
                    action_id=stage.name,
                    error=str(error),
                    return_code=error.exit_code,
                    duration_ms=elapsed_ms,
                )
            )
            report.error = error
            logger.error("Stage '%s' failed: %s", stage.name, error)
            break

        elapsed_ms = int((time.monotonic() - start) * 1000)
        report.receipts.append(
            Receipt.success(adapter="pipeline", action_id=stage.name, duration_ms=elapsed_ms)
        )
        logger.debug("✓ %s (%d ms)", stage.name, elapsed_ms)

    report.state = state
    return report


def generate_build_id() -> str:
    """Generate a unique build ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"build-{now}-{short}"
