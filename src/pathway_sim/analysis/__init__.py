"""Post-hoc analysis of simulation results."""

from pathway_sim.analysis.overlap import (
    DEFAULT_OVERLAP_THRESHOLD,
    catalog_to_long,
    compute_overlaps,
    summarize_overlaps,
)

__all__ = [
    "DEFAULT_OVERLAP_THRESHOLD",
    "catalog_to_long",
    "compute_overlaps",
    "summarize_overlaps",
]
