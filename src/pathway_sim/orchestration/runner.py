"""Fan pathway tasks out over a process pool and merge their results.

Each task gets its own seed, spawned from the run's SeedSequence in a fixed
(sample size, pathway) order. Seeds belong to tasks rather than workers, so
the fold assignment of a given pair does not depend on which worker runs it
or on completion order.

Reproducibility across worker counts: the same config produces the same
ResultTable for any worker count on the same machine and library versions.
Bit-for-bit identity is not guaranteed across machines, BLAS builds, or
thread settings, since solver results can differ in the last bits of
floating-point precision. Compare tables with a tolerance, not equality.
"""

import os
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field

import polars as pl
import structlog
from numpy.random import SeedSequence

from pathway_sim.catalog.models import PathwayCatalog
from pathway_sim.config.schema import ModelConfig
from pathway_sim.modeling.models import RESULT_SCHEMA
from pathway_sim.orchestration.tasks import (
    PathwayTask,
    TaskFailure,
    TaskOutcome,
    run_task,
)
from pathway_sim.simulation.partition import Split

logger = structlog.get_logger(__name__)

KEY_COLUMNS = ["pathway_id", "sample_size"]


@dataclass
class TaskResults:
    """Merged outcome of a batch of tasks.

    Attributes:
        results: ResultTable, one row per successful (pathway, sample size)
        not_applicable: Keys of pathways with no genes in the cohort
        failures: Diagnostics for crashed tasks
    """
    results: pl.DataFrame
    not_applicable: list[tuple[str, int]] = field(default_factory=list)
    failures: list[TaskFailure] = field(default_factory=list)


def resolve_worker_count(worker_count: int | None) -> int:
    """0 or None means one worker per available core."""
    if worker_count is None or worker_count == 0:
        return os.cpu_count() or 1
    if worker_count < 0:
        raise ValueError(f"worker_count must be >= 0, got {worker_count}")
    return worker_count


def build_tasks(
    catalog: PathwayCatalog,
    splits: Mapping[int, Split],
    model_config: ModelConfig,
    seed: int | SeedSequence,
) -> list[PathwayTask]:
    """
    Build one task per (pathway, sample size) pair.

    Args:
        catalog: Pathway catalog
        splits: Sample size -> Split
        model_config: CV protocol and lambda grid
        seed: Integer seed or SeedSequence for task seeds

    Returns:
        len(catalog) * len(splits) tasks, ordered by sample size then term
    """
    ss = seed if isinstance(seed, SeedSequence) else SeedSequence(seed)
    terms = sorted(catalog)
    sample_sizes = sorted(splits)
    children = ss.spawn(len(terms) * len(sample_sizes))
    lambda_grid = tuple(float(lam) for lam in model_config.lambda_grid)

    tasks = []
    child_iter = iter(children)
    for n in sample_sizes:
        split = splits[n]
        for term in terms:
            child = next(child_iter)
            tasks.append(PathwayTask(
                pathway_id=term,
                genes=tuple(sorted(catalog[term])),
                sample_size=n,
                train=split.train,
                test=split.test,
                lambda_grid=lambda_grid,
                k_folds=model_config.k_folds,
                repeats=model_config.repeats,
                seed=int(child.generate_state(1)[0]),
            ))

    return tasks


def merge_outcomes(outcomes: Iterable[TaskOutcome]) -> TaskResults:
    """
    Merge task outcomes into a ResultTable.

    The table is sorted by (pathway_id, sample_size), so its contents do not
    depend on completion order.

    Raises:
        ValueError: If two outcomes share a (pathway_id, sample_size) key
    """
    rows = []
    not_applicable = []
    failures = []

    for outcome in outcomes:
        if outcome.status == "ok":
            rows.append(outcome.result.model_dump())
        elif outcome.status == "not_applicable":
            not_applicable.append((outcome.pathway_id, outcome.sample_size))
        else:
            failures.append(outcome.failure)

    results = pl.DataFrame(rows, schema=RESULT_SCHEMA)
    if results.select(KEY_COLUMNS).is_duplicated().any():
        dupes = (
            results.filter(results.select(KEY_COLUMNS).is_duplicated())
            .select(KEY_COLUMNS)
            .unique()
            .rows()
        )
        raise ValueError(f"Duplicate result keys: {dupes[:10]}")

    return TaskResults(
        results=results.sort(KEY_COLUMNS),
        not_applicable=sorted(not_applicable),
        failures=sorted(failures, key=lambda f: (f.pathway_id, f.sample_size)),
    )


def _failed(task: PathwayTask, e: BaseException) -> TaskOutcome:
    failure = TaskFailure(
        pathway_id=task.pathway_id,
        sample_size=task.sample_size,
        error_type=type(e).__name__,
        message=str(e),
    )
    return TaskOutcome(task.pathway_id, task.sample_size, "failed", failure=failure)


def run_pathway_tasks(
    tasks: Sequence[PathwayTask],
    worker_count: int | None = 0,
) -> TaskResults:
    """
    Execute tasks and collect their results.

    With one worker (or a single task) tasks run sequentially in this
    process; otherwise they run on a ProcessPoolExecutor. A crashing task
    becomes a failure record and does not affect other tasks.

    Args:
        tasks: Tasks from build_tasks
        worker_count: Worker processes; 0 or None = one per core

    Returns:
        TaskResults with the merged ResultTable
    """
    n_workers = min(resolve_worker_count(worker_count), max(len(tasks), 1))
    logger.info("run_pathway_tasks_start", tasks=len(tasks), workers=n_workers)

    outcomes: list[TaskOutcome] = []

    if n_workers == 1:
        for task in tasks:
            outcomes.append(run_task(task))
    else:
        with ProcessPoolExecutor(max_workers=n_workers) as ex:
            future_map = {ex.submit(run_task, task): task for task in tasks}
            for fut in as_completed(future_map):
                task = future_map[fut]
                try:
                    outcomes.append(fut.result())
                except Exception as e:
                    # Worker process died or the task could not be pickled
                    logger.error(
                        "pathway_task_crashed",
                        pathway_id=task.pathway_id,
                        sample_size=task.sample_size,
                        error=f"{type(e).__name__}: {e}",
                    )
                    outcomes.append(_failed(task, e))

    merged = merge_outcomes(outcomes)
    logger.info(
        "run_pathway_tasks_done",
        results=merged.results.height,
        not_applicable=len(merged.not_applicable),
        failed=len(merged.failures),
    )
    return merged
