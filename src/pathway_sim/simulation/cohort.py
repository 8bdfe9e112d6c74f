"""Synthetic cohort generation with an embedded correlated truth signal.

Every cohort has 2 * sample_size rows: the first sample_size rows are
Group1, the rest Group2. All gene columns are standard normal noise except
the truth genes in Group1 rows, which are drawn from a multivariate normal
with a shifted mean and a covariance shared by every scenario of the run.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
import polars as pl
import structlog
from numpy.random import SeedSequence, default_rng

from pathway_sim.catalog.universe import CLASS_COLUMN
from pathway_sim.errors import InvalidConfiguration

logger = structlog.get_logger(__name__)

GROUP1 = "Group1"
GROUP2 = "Group2"
N_GROUPS = 2


@dataclass(frozen=True)
class CohortSet:
    """Cohorts for every scenario of a run plus the covariance they share.

    Attributes:
        covariance: n_truth x n_truth covariance of truth genes in Group1
        truth_order: Truth gene names in the row/column order of covariance
        cohorts: Sample size -> cohort DataFrame
    """
    covariance: np.ndarray
    truth_order: tuple[str, ...]
    cohorts: dict[int, pl.DataFrame]


def make_truth_covariance(n_truth: int, rng: np.random.Generator) -> np.ndarray:
    """
    Draw a random covariance matrix for the truth genes.

    A is n x n with entries uniform in [-1, 1); the covariance is A^T A,
    which is symmetric positive semi-definite for any draw.

    Args:
        n_truth: Number of truth genes
        rng: Random generator

    Returns:
        Symmetric PSD matrix of shape (n_truth, n_truth)

    Raises:
        InvalidConfiguration: If n_truth < 1
    """
    if n_truth < 1:
        raise InvalidConfiguration("Truth gene set is empty")

    a = rng.uniform(-1.0, 1.0, size=(n_truth, n_truth))
    sigma = a.T @ a
    # Remove floating-point asymmetry from the matmul
    return (sigma + sigma.T) / 2.0


def _column_order(truth_genes: Iterable[str], all_genes: Sequence[str]) -> tuple[list[str], list[str]]:
    truth = sorted(set(truth_genes))
    if not truth:
        raise InvalidConfiguration("Truth gene set is empty")

    universe = set(all_genes)
    missing = [g for g in truth if g not in universe]
    if missing:
        raise InvalidConfiguration(
            f"Truth genes missing from gene universe: {missing[:10]}"
        )

    truth_set = set(truth)
    background = [g for g in all_genes if g not in truth_set]
    return truth, background


def simulate_cohort(
    sample_size: int,
    truth_genes: Iterable[str],
    all_genes: Sequence[str],
    covariance: np.ndarray,
    rng: np.random.Generator,
    signal_mean: float = 0.5,
) -> pl.DataFrame:
    """
    Simulate one cohort of 2 * sample_size samples.

    Args:
        sample_size: Rows per group
        truth_genes: Genes carrying the signal
        all_genes: Gene universe (superset of truth_genes)
        covariance: Truth-gene covariance from make_truth_covariance, in
                    sorted truth-gene order
        rng: Random generator for this scenario
        signal_mean: Mean of truth genes in Group1 rows

    Returns:
        DataFrame with truth gene columns (sorted), then remaining genes in
        universe order, then the Class column

    Raises:
        InvalidConfiguration: On empty truth set, truth genes outside the
                              universe, non-positive sample size, or a
                              covariance of the wrong shape
    """
    if sample_size < 1:
        raise InvalidConfiguration(
            "Sample size must be positive", sample_size=sample_size
        )

    truth, background = _column_order(truth_genes, all_genes)
    n_truth = len(truth)
    if covariance.shape != (n_truth, n_truth):
        raise InvalidConfiguration(
            f"Covariance shape {covariance.shape} does not match "
            f"{n_truth} truth genes",
            sample_size=sample_size,
        )

    columns = truth + background
    n_rows = sample_size * N_GROUPS

    values = rng.standard_normal(size=(n_rows, len(columns)))
    values[:sample_size, :n_truth] = rng.multivariate_normal(
        mean=np.full(n_truth, signal_mean),
        cov=covariance,
        size=sample_size,
        check_valid="ignore",
    )

    labels = [GROUP1] * sample_size + [GROUP2] * sample_size

    cohort = pl.DataFrame(values, schema=columns, orient="row").with_columns(
        pl.Series(CLASS_COLUMN, labels, dtype=pl.Utf8)
    )
    return cohort


def simulate_cohorts(
    sample_sizes: Sequence[int],
    truth_genes: Iterable[str],
    all_genes: Sequence[str],
    seed: int | SeedSequence,
    signal_mean: float = 0.5,
) -> CohortSet:
    """
    Simulate one cohort per sample-size scenario.

    The covariance is drawn once and reused for every scenario, so scenarios
    differ only in their row count. Each scenario draws from its own child
    seed sequence.

    Args:
        sample_sizes: Rows per group for each scenario (unique, positive)
        truth_genes: Genes carrying the signal
        all_genes: Gene universe
        seed: Integer seed or SeedSequence for this run
        signal_mean: Mean of truth genes in Group1 rows

    Returns:
        CohortSet with the shared covariance and cohorts keyed by sample size

    Raises:
        InvalidConfiguration: On empty truth set, duplicate or non-positive
                              sample sizes
    """
    truth, _ = _column_order(truth_genes, all_genes)

    if not sample_sizes:
        raise InvalidConfiguration("No sample sizes configured")
    if len(set(sample_sizes)) != len(sample_sizes):
        raise InvalidConfiguration(f"Duplicate sample sizes: {list(sample_sizes)}")

    ss = seed if isinstance(seed, SeedSequence) else SeedSequence(seed)
    cov_ss, *scenario_ss = ss.spawn(1 + len(sample_sizes))

    covariance = make_truth_covariance(len(truth), default_rng(cov_ss))

    cohorts: dict[int, pl.DataFrame] = {}
    for n, child in zip(sample_sizes, scenario_ss):
        cohorts[n] = simulate_cohort(
            n, truth, all_genes, covariance, default_rng(child), signal_mean
        )
        logger.info(
            "simulate_cohort_done",
            sample_size=n,
            rows=cohorts[n].height,
            genes=cohorts[n].width - 1,
        )

    return CohortSet(
        covariance=covariance,
        truth_order=tuple(truth),
        cohorts=cohorts,
    )
