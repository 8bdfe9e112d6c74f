"""Record types for per-pathway results."""

import polars as pl
from pydantic import BaseModel, Field

RESULT_SCHEMA = {
    "pathway_id": pl.Utf8,
    "sample_size": pl.Int64,
    "train_auc": pl.Float64,
    "test_auc": pl.Float64,
    "n_train": pl.Int64,
}

OVERLAP_SCHEMA = {
    "pathway_id": pl.Utf8,
    "sample_size": pl.Int64,
    "overlap_count": pl.Int64,
}


class ResultRow(BaseModel):
    """Performance of one pathway model at one sample size.

    Attributes:
        pathway_id: Catalog term
        sample_size: Rows per group in the cohort
        train_auc: Mean cross-validated ROC-AUC of the selected lambda
        test_auc: ROC-AUC on the held-out test set
        n_train: Number of training rows
    """

    pathway_id: str
    sample_size: int
    train_auc: float = Field(ge=0.0, le=1.0)
    test_auc: float = Field(ge=0.0, le=1.0)
    n_train: int = Field(ge=1)


class OverlapRow(BaseModel):
    """Gene overlap between a high-performing pathway and the truth pathway."""

    pathway_id: str
    sample_size: int
    overlap_count: int = Field(ge=0)
