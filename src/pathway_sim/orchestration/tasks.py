"""Self-contained task payloads and the per-task worker function.

A task bundles everything one (pathway, sample size) model needs. Workers
never read process-wide state, so the same task gives the same outcome in
the parent process or in a pool worker.
"""

from dataclasses import dataclass
from typing import Literal, Optional

import polars as pl
import structlog

from pathway_sim.errors import PathwayNotApplicable
from pathway_sim.modeling.evaluator import evaluate_model
from pathway_sim.modeling.models import ResultRow
from pathway_sim.modeling.trainer import train_pathway_model
from pathway_sim.simulation.partition import Split

logger = structlog.get_logger(__name__)

TaskStatus = Literal["ok", "not_applicable", "failed"]


@dataclass(frozen=True)
class PathwayTask:
    """Immutable input bundle for one (pathway, sample size) pair."""
    pathway_id: str
    genes: tuple[str, ...]
    sample_size: int
    train: pl.DataFrame
    test: pl.DataFrame
    lambda_grid: tuple[float, ...]
    k_folds: int
    repeats: int
    seed: int

    @property
    def key(self) -> tuple[str, int]:
        return (self.pathway_id, self.sample_size)


@dataclass(frozen=True)
class TaskFailure:
    """Diagnostic record for a task that crashed."""
    pathway_id: str
    sample_size: int
    error_type: str
    message: str


@dataclass(frozen=True)
class TaskOutcome:
    """What a task produced: a result row, a not-applicable marker, or a failure."""
    pathway_id: str
    sample_size: int
    status: TaskStatus
    result: Optional[ResultRow] = None
    failure: Optional[TaskFailure] = None


def run_task(task: PathwayTask) -> TaskOutcome:
    """
    Train and evaluate one pathway model. Never raises.

    PathwayNotApplicable becomes a "not_applicable" outcome; any other
    exception becomes a "failed" outcome with a TaskFailure diagnostic.
    """
    split = Split(
        sample_size=task.sample_size,
        train=task.train,
        test=task.test,
    )

    try:
        model = train_pathway_model(
            task.pathway_id,
            task.genes,
            split,
            task.lambda_grid,
            k_folds=task.k_folds,
            repeats=task.repeats,
            seed=task.seed,
        )
        row = evaluate_model(model, task.test)
    except PathwayNotApplicable as e:
        logger.info(
            "pathway_not_applicable",
            pathway_id=task.pathway_id,
            sample_size=task.sample_size,
            reason=e.message,
        )
        return TaskOutcome(task.pathway_id, task.sample_size, "not_applicable")
    except Exception as e:
        logger.error(
            "pathway_task_failed",
            pathway_id=task.pathway_id,
            sample_size=task.sample_size,
            error=f"{type(e).__name__}: {e}",
            exc_info=True,
        )
        failure = TaskFailure(
            pathway_id=task.pathway_id,
            sample_size=task.sample_size,
            error_type=type(e).__name__,
            message=str(e),
        )
        return TaskOutcome(task.pathway_id, task.sample_size, "failed", failure=failure)

    return TaskOutcome(task.pathway_id, task.sample_size, "ok", result=row)
