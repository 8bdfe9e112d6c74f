"""Task construction, parallel execution and end-to-end simulation runs."""

from pathway_sim.orchestration.pipeline import SimulationRun, run_simulation
from pathway_sim.orchestration.runner import (
    TaskResults,
    build_tasks,
    merge_outcomes,
    resolve_worker_count,
    run_pathway_tasks,
)
from pathway_sim.orchestration.tasks import (
    PathwayTask,
    TaskFailure,
    TaskOutcome,
    run_task,
)

__all__ = [
    "SimulationRun",
    "run_simulation",
    "TaskResults",
    "build_tasks",
    "merge_outcomes",
    "resolve_worker_count",
    "run_pathway_tasks",
    "PathwayTask",
    "TaskFailure",
    "TaskOutcome",
    "run_task",
]
