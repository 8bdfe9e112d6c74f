"""Stratified train/test partitioning of cohorts."""

from dataclasses import dataclass

import numpy as np
import polars as pl
import structlog
from sklearn.model_selection import train_test_split

from pathway_sim.catalog.universe import CLASS_COLUMN
from pathway_sim.errors import InsufficientData, InvalidConfiguration

logger = structlog.get_logger(__name__)

MIN_CLASS_MEMBERS = 2


@dataclass(frozen=True)
class Split:
    """Disjoint, exhaustive row partition of one cohort.

    Attributes:
        sample_size: Scenario the cohort belongs to
        train: Training rows
        test: Held-out rows
        train_index: Cohort row positions of train (ascending), if known
        test_index: Cohort row positions of test (ascending), if known
    """
    sample_size: int
    train: pl.DataFrame
    test: pl.DataFrame
    train_index: np.ndarray | None = None
    test_index: np.ndarray | None = None


def stratified_split(
    cohort: pl.DataFrame,
    split_fraction: float = 0.8,
    seed: int = 0,
    sample_size: int | None = None,
) -> Split:
    """
    Partition a cohort into train and test sets, stratified by Class.

    Args:
        cohort: Cohort with a Class column
        split_fraction: Fraction of rows (per class) placed in train
        seed: Seed for the partition; same seed gives the same rows
        sample_size: Scenario label carried on the Split and used in errors.
                     Defaults to half the cohort row count.

    Returns:
        Split with train/test frames and their row positions

    Raises:
        InvalidConfiguration: If split_fraction is outside (0, 1)
        InsufficientData: If any class has fewer than 2 members, or the
                          split would leave a class out of train or test
    """
    if sample_size is None:
        sample_size = cohort.height // 2

    if not 0.0 < split_fraction < 1.0:
        raise InvalidConfiguration(
            f"split_fraction must be in (0, 1), got {split_fraction}",
            sample_size=sample_size,
        )

    labels = cohort[CLASS_COLUMN].to_numpy()
    classes, counts = np.unique(labels, return_counts=True)

    if len(classes) < 2:
        raise InsufficientData(
            f"Cohort has a single class {classes.tolist()}",
            sample_size=sample_size,
        )
    small = [str(c) for c, n in zip(classes, counts) if n < MIN_CLASS_MEMBERS]
    if small:
        raise InsufficientData(
            f"Classes with fewer than {MIN_CLASS_MEMBERS} members: {small}",
            sample_size=sample_size,
        )

    positions = np.arange(cohort.height)
    try:
        train_idx, test_idx = train_test_split(
            positions,
            train_size=split_fraction,
            stratify=labels,
            random_state=seed,
        )
    except ValueError as e:
        # Raised when a split side cannot hold every class
        raise InsufficientData(str(e), sample_size=sample_size) from e

    train_idx = np.sort(train_idx)
    test_idx = np.sort(test_idx)

    split = Split(
        sample_size=sample_size,
        train=cohort[train_idx],
        test=cohort[test_idx],
        train_index=train_idx,
        test_index=test_idx,
    )

    logger.info(
        "stratified_split_done",
        sample_size=sample_size,
        n_train=split.train.height,
        n_test=split.test.height,
    )
    return split
