"""Held-out evaluation of trained pathway models."""

import numpy as np
import polars as pl
import structlog
from scipy.stats import rankdata

from pathway_sim.catalog.universe import CLASS_COLUMN
from pathway_sim.errors import InsufficientData
from pathway_sim.modeling.models import ResultRow
from pathway_sim.modeling.trainer import TrainedModel, encode_labels

logger = structlog.get_logger(__name__)


def rank_auc(labels: np.ndarray, scores: np.ndarray) -> float:
    """
    Rank-based ROC-AUC (Mann-Whitney U / (n_pos * n_neg)).

    Positives are expected to score higher than negatives. Tied scores get
    average ranks, which counts each positive/negative tie as one half.

    Args:
        labels: 1 for positive (Group2), 0 for negative (Group1)
        scores: Predicted probability of the positive class

    Returns:
        AUC in [0, 1]

    Raises:
        ValueError: If labels do not contain both classes or lengths differ
    """
    labels = np.asarray(labels)
    scores = np.asarray(scores, dtype=np.float64)
    if labels.shape != scores.shape:
        raise ValueError(
            f"labels and scores differ in shape: {labels.shape} vs {scores.shape}"
        )

    pos = labels == 1
    n_pos = int(pos.sum())
    n_neg = labels.size - n_pos
    if n_pos == 0 or n_neg == 0:
        raise ValueError("AUC needs at least one positive and one negative label")

    ranks = rankdata(scores, method="average")
    u = ranks[pos].sum() - n_pos * (n_pos + 1) / 2.0
    return float(u / (n_pos * n_neg))


def evaluate_model(model: TrainedModel, test: pl.DataFrame) -> ResultRow:
    """
    Score a trained model on its held-out test set.

    Args:
        model: Model from train_pathway_model
        test: Test rows including the Class column

    Returns:
        ResultRow with the model's CV AUC as train_auc and the held-out AUC

    Raises:
        InsufficientData: If the test set lacks either class
    """
    y = encode_labels(test[CLASS_COLUMN])
    if y.sum() == 0 or y.sum() == y.size:
        raise InsufficientData(
            "Test set does not contain both classes",
            pathway_id=model.pathway_id,
            sample_size=model.sample_size,
        )

    prob = model.predict_probability(test)
    test_auc = rank_auc(y, prob)

    logger.debug(
        "evaluate_model_done",
        pathway_id=model.pathway_id,
        sample_size=model.sample_size,
        train_auc=model.cv_auc,
        test_auc=test_auc,
    )

    return ResultRow(
        pathway_id=model.pathway_id,
        sample_size=model.sample_size,
        train_auc=model.cv_auc,
        test_auc=test_auc,
        n_train=model.n_train,
    )
