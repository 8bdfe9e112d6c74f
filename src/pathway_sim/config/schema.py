"""Pydantic models for simulation configuration."""

import hashlib
import json
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_LAMBDA_GRID = [0.0, 0.001, 0.01, 0.1, 1.0]


class ModelConfig(BaseModel):
    """Hyperparameter grid and cross-validation protocol for pathway models."""

    k_folds: int = Field(
        default=5,
        ge=2,
        description="Number of stratified folds per cross-validation repeat",
    )
    repeats: int = Field(
        default=5,
        ge=1,
        description="Number of times k-fold cross-validation is repeated",
    )
    alpha: float = Field(
        default=0.0,
        ge=0.0,
        le=0.0,
        description="Elastic-net mixing parameter (fixed at 0 = ridge)",
    )
    lambda_grid: list[float] = Field(
        default_factory=lambda: list(DEFAULT_LAMBDA_GRID),
        description="Ascending penalty strengths searched during model selection",
    )

    @field_validator("lambda_grid")
    @classmethod
    def check_lambda_grid(cls, v: list[float]) -> list[float]:
        """Require a non-empty, non-negative, strictly ascending grid."""
        if not v:
            raise ValueError("lambda_grid must contain at least one value")
        if any(lam < 0 for lam in v):
            raise ValueError(f"lambda_grid values must be >= 0, got {v}")
        if any(b <= a for a, b in zip(v, v[1:])):
            raise ValueError(f"lambda_grid must be strictly ascending, got {v}")
        return v


class SimulationConfig(BaseModel):
    """Main simulation configuration."""

    sample_sizes: list[int] = Field(
        ...,
        min_length=1,
        description="Samples per group for each cohort-size scenario",
    )
    truth_pathway_id: str = Field(
        ...,
        min_length=1,
        description="Catalog term whose genes carry the simulated signal",
    )
    seed: int = Field(
        default=42,
        ge=0,
        description="Root seed for all random streams in a run",
    )
    model: ModelConfig = Field(
        default_factory=ModelConfig,
        description="Classifier tuning protocol",
    )
    split_fraction: float = Field(
        default=0.8,
        gt=0.0,
        lt=1.0,
        description="Fraction of each class assigned to the training set",
    )
    overlap_threshold: float = Field(
        default=0.75,
        ge=0.0,
        le=1.0,
        description="Train AUC a pathway must exceed to enter overlap scoring",
    )
    worker_count: int = Field(
        default=0,
        ge=0,
        description="Worker processes (0 = one per available core)",
    )
    signal_mean: float = Field(
        default=0.5,
        description="Mean shift of truth-gene expression in Group1",
    )
    output_dir: Path = Field(
        default=Path("results"),
        description="Directory for result tables and provenance",
    )
    duckdb_path: Path = Field(
        default=Path("results/simulation.duckdb"),
        description="Path to DuckDB checkpoint database",
    )

    @field_validator("sample_sizes")
    @classmethod
    def check_sample_sizes(cls, v: list[int]) -> list[int]:
        """Sample sizes must be positive."""
        bad = [n for n in v if n <= 0]
        if bad:
            raise ValueError(f"sample_sizes must be positive integers, got {bad}")
        return v

    @field_validator("output_dir")
    @classmethod
    def create_directory(cls, v: Path) -> Path:
        """Create directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tagging checkpoints and provenance records.
        """
        config_dict = self.model_dump(mode="python")
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
