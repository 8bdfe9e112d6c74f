"""Pathway classifiers: training with model selection and held-out evaluation."""

from pathway_sim.modeling.evaluator import evaluate_model, rank_auc
from pathway_sim.modeling.models import (
    OVERLAP_SCHEMA,
    RESULT_SCHEMA,
    OverlapRow,
    ResultRow,
)
from pathway_sim.modeling.trainer import (
    TrainedModel,
    encode_labels,
    make_estimator,
    select_lambda,
    train_pathway_model,
)

__all__ = [
    "evaluate_model",
    "rank_auc",
    "OVERLAP_SCHEMA",
    "RESULT_SCHEMA",
    "OverlapRow",
    "ResultRow",
    "TrainedModel",
    "encode_labels",
    "make_estimator",
    "select_lambda",
    "train_pathway_model",
]
