"""Tests for task construction, parallel execution and end-to-end runs."""

import numpy as np
import pytest
from polars.testing import assert_frame_equal

from pathway_sim.catalog import CLASS_COLUMN, PathwayCatalog, build_gene_universe
from pathway_sim.config import ModelConfig, SimulationConfig
from pathway_sim.errors import InsufficientData, InvalidConfiguration
from pathway_sim.modeling import RESULT_SCHEMA, ResultRow
from pathway_sim.orchestration import (
    PathwayTask,
    TaskOutcome,
    build_tasks,
    merge_outcomes,
    resolve_worker_count,
    run_pathway_tasks,
    run_simulation,
    run_task,
)
from pathway_sim.persistence import ProvenanceTracker
from pathway_sim.simulation import simulate_cohorts, stratified_split

FAST_MODEL = ModelConfig(k_folds=3, repeats=1, lambda_grid=[0.0, 0.1])


@pytest.fixture
def catalog():
    return PathwayCatalog.from_mapping({
        "TRUTH": ["G1", "G2", "G3"],
        "DECOY": ["G4", "G5"],
        "MIXED": ["G1", "G2", "G9"],
    })


@pytest.fixture
def splits(catalog):
    universe = build_gene_universe(catalog)
    cohort_set = simulate_cohorts([15, 25], catalog["TRUTH"], universe, seed=1)
    return {
        n: stratified_split(cohort, 0.8, seed=n, sample_size=n)
        for n, cohort in cohort_set.cohorts.items()
    }


def make_config(tmp_path, **kwargs):
    defaults = dict(
        sample_sizes=[20],
        truth_pathway_id="TRUTH",
        seed=3,
        model=FAST_MODEL,
        worker_count=1,
        output_dir=tmp_path / "out",
        duckdb_path=tmp_path / "out" / "sim.duckdb",
    )
    defaults.update(kwargs)
    return SimulationConfig(**defaults)


def ok_outcome(pathway_id, sample_size, auc=0.7):
    row = ResultRow(
        pathway_id=pathway_id,
        sample_size=sample_size,
        train_auc=auc,
        test_auc=auc,
        n_train=10,
    )
    return TaskOutcome(pathway_id, sample_size, "ok", result=row)


# ============================================================================
# Task construction
# ============================================================================

def test_build_tasks_one_per_pair(catalog, splits):
    tasks = build_tasks(catalog, splits, FAST_MODEL, seed=0)

    assert len(tasks) == len(catalog) * len(splits)
    keys = [t.key for t in tasks]
    assert len(set(keys)) == len(keys)
    assert set(keys) == {(p, n) for p in catalog for n in splits}


def test_build_tasks_payload(catalog, splits):
    tasks = build_tasks(catalog, splits, FAST_MODEL, seed=0)
    task = next(t for t in tasks if t.key == ("DECOY", 25))

    assert task.genes == ("G4", "G5")
    assert task.lambda_grid == (0.0, 0.1)
    assert task.k_folds == 3
    assert task.repeats == 1
    assert task.train is splits[25].train
    assert task.test is splits[25].test


def test_build_tasks_independent_seeds(catalog, splits):
    tasks = build_tasks(catalog, splits, FAST_MODEL, seed=0)
    seeds = [t.seed for t in tasks]

    assert len(set(seeds)) == len(seeds)
    assert seeds == [t.seed for t in build_tasks(catalog, splits, FAST_MODEL, seed=0)]
    assert seeds != [t.seed for t in build_tasks(catalog, splits, FAST_MODEL, seed=1)]


def test_tasks_are_immutable(catalog, splits):
    task = build_tasks(catalog, splits, FAST_MODEL, seed=0)[0]

    with pytest.raises(AttributeError):
        task.genes = ("X",)


def test_resolve_worker_count():
    assert resolve_worker_count(0) >= 1
    assert resolve_worker_count(None) >= 1
    assert resolve_worker_count(3) == 3
    with pytest.raises(ValueError):
        resolve_worker_count(-1)


# ============================================================================
# Task execution
# ============================================================================

def test_run_task_ok(catalog, splits):
    task = next(t for t in build_tasks(catalog, splits, FAST_MODEL, seed=0)
                if t.key == ("TRUTH", 25))
    outcome = run_task(task)

    assert outcome.status == "ok"
    assert outcome.result.pathway_id == "TRUTH"
    assert outcome.result.sample_size == 25
    assert outcome.result.n_train == 40


def test_run_task_not_applicable(splits):
    task = PathwayTask(
        pathway_id="ABSENT",
        genes=("X1", "X2"),
        sample_size=15,
        train=splits[15].train,
        test=splits[15].test,
        lambda_grid=(0.0,),
        k_folds=3,
        repeats=1,
        seed=0,
    )
    outcome = run_task(task)

    assert outcome.status == "not_applicable"
    assert outcome.result is None
    assert outcome.failure is None


def test_run_task_failure_is_captured(splits):
    """A crashing task becomes a failure record instead of raising."""
    task = PathwayTask(
        pathway_id="BROKEN",
        genes=("G1",),
        sample_size=15,
        train=splits[15].train,
        test=splits[15].test.drop(CLASS_COLUMN),
        lambda_grid=(0.0,),
        k_folds=3,
        repeats=1,
        seed=0,
    )
    outcome = run_task(task)

    assert outcome.status == "failed"
    assert outcome.failure.pathway_id == "BROKEN"
    assert outcome.failure.sample_size == 15
    assert outcome.failure.error_type


def test_run_task_does_not_mutate_inputs(catalog, splits):
    before = splits[15].train.clone()
    task = next(t for t in build_tasks(catalog, splits, FAST_MODEL, seed=0)
                if t.key == ("TRUTH", 15))
    run_task(task)

    assert_frame_equal(splits[15].train, before)


# ============================================================================
# Result merging
# ============================================================================

def test_merge_order_independent():
    outcomes = [
        ok_outcome("B", 20, 0.6),
        ok_outcome("A", 50, 0.8),
        ok_outcome("A", 20, 0.7),
        TaskOutcome("C", 20, "not_applicable"),
    ]

    forward = merge_outcomes(outcomes)
    backward = merge_outcomes(list(reversed(outcomes)))

    assert_frame_equal(forward.results, backward.results)
    assert forward.results.height == 3
    assert dict(forward.results.schema) == RESULT_SCHEMA
    assert forward.not_applicable == [("C", 20)]
    assert forward.results.select(["pathway_id", "sample_size"]).rows() == [
        ("A", 20), ("A", 50), ("B", 20),
    ]


def test_merge_rejects_duplicate_keys():
    with pytest.raises(ValueError, match="Duplicate"):
        merge_outcomes([ok_outcome("A", 20), ok_outcome("A", 20)])


def test_merge_empty():
    merged = merge_outcomes([])

    assert merged.results.height == 0
    assert merged.results.columns == list(RESULT_SCHEMA)


def test_failure_does_not_abort_siblings(catalog, splits):
    tasks = build_tasks(catalog, splits, FAST_MODEL, seed=0)
    broken = PathwayTask(
        pathway_id="BROKEN",
        genes=("G1",),
        sample_size=15,
        train=splits[15].train,
        test=splits[15].test.drop(CLASS_COLUMN),
        lambda_grid=(0.0,),
        k_folds=3,
        repeats=1,
        seed=0,
    )

    merged = run_pathway_tasks(tasks + [broken], worker_count=1)

    assert merged.results.height == len(tasks)
    assert [(f.pathway_id, f.sample_size) for f in merged.failures] == [("BROKEN", 15)]


def test_parallel_matches_sequential(catalog, splits):
    """Seeds are bound to tasks, so worker count does not change the table."""
    tasks = build_tasks(catalog, splits, FAST_MODEL, seed=0)

    sequential = run_pathway_tasks(tasks, worker_count=1)
    parallel = run_pathway_tasks(tasks, worker_count=2)

    assert_frame_equal(sequential.results, parallel.results, check_exact=False, atol=1e-8)


# ============================================================================
# End-to-end
# ============================================================================

def test_end_to_end_scenario(tmp_path):
    """Truth {G1,G2,G3} + decoy {G4,G5}, 20 per group, 80/20 split."""
    catalog = PathwayCatalog.from_mapping({
        "TRUTH": ["G1", "G2", "G3"],
        "DECOY": ["G4", "G5"],
    })
    config = make_config(tmp_path, sample_sizes=[20], split_fraction=0.8)

    run = run_simulation(catalog, config)

    split = run.splits[20]
    assert split.train.height + split.test.height == 40
    assert abs(split.train.height - 32) <= 1

    assert run.results.height == 2
    assert set(run.results["pathway_id"].to_list()) == {"TRUTH", "DECOY"}
    assert run.results["sample_size"].to_list() == [20, 20]
    assert run.results["n_train"].to_list() == [split.train.height] * 2
    for auc in run.results["test_auc"].to_list():
        assert 0.0 <= auc <= 1.0

    assert run.covariance.shape == (3, 3)
    assert run.failures == []
    assert set(run.overlaps.columns) == {"pathway_id", "sample_size", "overlap_count"}


def test_run_simulation_reproducible(tmp_path, catalog):
    config = make_config(tmp_path, sample_sizes=[15, 25])

    a = run_simulation(catalog, config)
    b = run_simulation(catalog, config)

    assert_frame_equal(a.results, b.results)
    np.testing.assert_array_equal(a.covariance, b.covariance)
    for n in (15, 25):
        np.testing.assert_array_equal(a.splits[n].train_index, b.splits[n].train_index)


def test_not_applicable_excluded_from_results(splits):
    """A pathway with no genes in the cohort is excluded, not scored 0."""
    absent = PathwayTask(
        pathway_id="ABSENT",
        genes=("X1",),
        sample_size=15,
        train=splits[15].train,
        test=splits[15].test,
        lambda_grid=(0.0,),
        k_folds=3,
        repeats=1,
        seed=0,
    )
    present = PathwayTask(
        pathway_id="TRUTH",
        genes=("G1", "G2", "G3"),
        sample_size=15,
        train=splits[15].train,
        test=splits[15].test,
        lambda_grid=(0.0,),
        k_folds=3,
        repeats=1,
        seed=1,
    )

    merged = run_pathway_tasks([absent, present], worker_count=1)

    assert merged.results["pathway_id"].to_list() == ["TRUTH"]
    assert merged.not_applicable == [("ABSENT", 15)]
    assert merged.failures == []


def test_run_simulation_unknown_truth_pathway(tmp_path, catalog):
    config = make_config(tmp_path, truth_pathway_id="MISSING")

    with pytest.raises(InvalidConfiguration):
        run_simulation(catalog, config)


def test_insufficient_data_before_dispatch(tmp_path, catalog, monkeypatch):
    """A cohort too small to split fails before any task runs."""
    def fail_if_called(*args, **kwargs):
        raise AssertionError("tasks dispatched")

    monkeypatch.setattr(
        "pathway_sim.orchestration.pipeline.run_pathway_tasks", fail_if_called
    )
    config = make_config(tmp_path, sample_sizes=[20, 1])

    with pytest.raises(InsufficientData) as exc_info:
        run_simulation(catalog, config)

    assert exc_info.value.sample_size == 1


def test_run_simulation_records_provenance(tmp_path, catalog):
    config = make_config(tmp_path)
    provenance = ProvenanceTracker.from_config(config, version="test")

    run_simulation(catalog, config, provenance=provenance)

    steps = [s["step_name"] for s in provenance.get_steps()]
    assert steps == [
        "simulate_cohorts",
        "split_cohorts",
        "train_pathways",
        "compute_overlaps",
    ]
