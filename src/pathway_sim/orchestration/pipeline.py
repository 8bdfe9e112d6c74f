"""End-to-end simulation run: cohorts -> splits -> pathway models -> overlaps."""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import polars as pl
import structlog
from numpy.random import SeedSequence

from pathway_sim.analysis.overlap import compute_overlaps
from pathway_sim.catalog.models import PathwayCatalog
from pathway_sim.catalog.universe import build_gene_universe
from pathway_sim.config.schema import SimulationConfig
from pathway_sim.orchestration.runner import build_tasks, run_pathway_tasks
from pathway_sim.orchestration.tasks import TaskFailure
from pathway_sim.persistence.provenance import ProvenanceTracker
from pathway_sim.simulation.cohort import simulate_cohorts
from pathway_sim.simulation.partition import Split, stratified_split

logger = structlog.get_logger(__name__)


@dataclass
class SimulationRun:
    """Everything a run produced.

    Attributes:
        results: ResultTable (pathway_id, sample_size, train_auc, test_auc, n_train)
        overlaps: OverlapTable (pathway_id, sample_size, overlap_count)
        covariance: Truth-gene covariance shared by all cohorts
        splits: Sample size -> Split
        not_applicable: (pathway_id, sample_size) pairs excluded from results
        failures: Diagnostics for crashed tasks
    """
    results: pl.DataFrame
    overlaps: pl.DataFrame
    covariance: np.ndarray
    splits: dict[int, Split]
    not_applicable: list[tuple[str, int]] = field(default_factory=list)
    failures: list[TaskFailure] = field(default_factory=list)


def run_simulation(
    catalog: PathwayCatalog,
    config: SimulationConfig,
    worker_count: Optional[int] = None,
    provenance: Optional[ProvenanceTracker] = None,
) -> SimulationRun:
    """
    Run the full detectability simulation for one configuration.

    All configuration and per-cohort data problems (InvalidConfiguration,
    InsufficientData) are raised before any pathway task is dispatched.

    Args:
        catalog: Pathway catalog; must contain config.truth_pathway_id
        config: Simulation configuration
        worker_count: Overrides config.worker_count when given
        provenance: Optional tracker to record processing steps on

    Returns:
        SimulationRun with result and overlap tables

    Raises:
        InvalidConfiguration: Unknown truth pathway, empty truth set, or bad
                              sample sizes
        InsufficientData: A cohort cannot be split with both classes on
                          each side
    """
    if worker_count is None:
        worker_count = config.worker_count

    truth_genes = catalog.truth_genes(config.truth_pathway_id)
    universe = build_gene_universe(catalog)

    root = SeedSequence(config.seed)
    cohort_ss, split_ss, task_ss = root.spawn(3)

    cohort_set = simulate_cohorts(
        config.sample_sizes,
        truth_genes,
        universe,
        cohort_ss,
        signal_mean=config.signal_mean,
    )
    if provenance is not None:
        provenance.record_step("simulate_cohorts", {
            "sample_sizes": list(config.sample_sizes),
            "truth_pathway_id": config.truth_pathway_id,
            "truth_gene_count": len(truth_genes),
            "gene_universe_size": len(universe),
        })

    split_seeds = split_ss.generate_state(len(config.sample_sizes))
    splits: dict[int, Split] = {}
    for n, split_seed in zip(config.sample_sizes, split_seeds):
        splits[n] = stratified_split(
            cohort_set.cohorts[n],
            split_fraction=config.split_fraction,
            seed=int(split_seed),
            sample_size=n,
        )
    if provenance is not None:
        provenance.record_step("split_cohorts", {
            "split_fraction": config.split_fraction,
            "n_train": {str(n): s.train.height for n, s in splits.items()},
        })

    tasks = build_tasks(catalog, splits, config.model, task_ss)
    task_results = run_pathway_tasks(tasks, worker_count)
    if provenance is not None:
        provenance.record_step("train_pathways", {
            "tasks": len(tasks),
            "results": task_results.results.height,
            "not_applicable": len(task_results.not_applicable),
            "failed": len(task_results.failures),
            "lambda_grid": list(config.model.lambda_grid),
            "k_folds": config.model.k_folds,
            "repeats": config.model.repeats,
        })

    overlaps = compute_overlaps(
        task_results.results,
        catalog,
        truth_genes,
        threshold=config.overlap_threshold,
    )
    if provenance is not None:
        provenance.record_step("compute_overlaps", {
            "threshold": config.overlap_threshold,
            "selected": overlaps.height,
        })

    logger.info(
        "run_simulation_done",
        pathways=len(catalog),
        sample_sizes=list(config.sample_sizes),
        results=task_results.results.height,
        overlaps=overlaps.height,
    )

    return SimulationRun(
        results=task_results.results,
        overlaps=overlaps,
        covariance=cohort_set.covariance,
        splits=splits,
        not_applicable=task_results.not_applicable,
        failures=task_results.failures,
    )
