"""Persistence layer for result checkpoints and provenance tracking."""

from pathway_sim.persistence.duckdb_store import (
    FAILURES_TABLE,
    OVERLAPS_TABLE,
    RESULTS_TABLE,
    ResultStore,
)
from pathway_sim.persistence.provenance import ProvenanceTracker

__all__ = [
    "FAILURES_TABLE",
    "OVERLAPS_TABLE",
    "RESULTS_TABLE",
    "ResultStore",
    "ProvenanceTracker",
]
