"""Pathway catalog boundary.

Provides the read-only catalog type, gene universe construction,
column projection by gene name, and a GMT file adapter.
"""

from pathway_sim.catalog.gmt import read_gmt
from pathway_sim.catalog.models import PathwayCatalog
from pathway_sim.catalog.universe import (
    CLASS_COLUMN,
    GeneUniverse,
    build_gene_universe,
    project_columns,
)

__all__ = [
    "CLASS_COLUMN",
    "GeneUniverse",
    "PathwayCatalog",
    "build_gene_universe",
    "project_columns",
    "read_gmt",
]
