"""Gene universe definition and schema-checked column projection."""

import logging
from collections.abc import Iterable
from typing import TypeAlias

import polars as pl

from pathway_sim.catalog.models import PathwayCatalog
from pathway_sim.errors import PathwayNotApplicable

# Type alias for gene universe lists
GeneUniverse: TypeAlias = list[str]

CLASS_COLUMN = "Class"

logger = logging.getLogger(__name__)


def build_gene_universe(catalog: PathwayCatalog) -> GeneUniverse:
    """Union of genes across all catalog entries, sorted for a stable column order.

    Args:
        catalog: Pathway catalog

    Returns:
        Sorted, deduplicated list of gene identifiers
    """
    genes: set[str] = set()
    for gene_set in catalog.values():
        genes.update(gene_set)

    universe = sorted(genes)
    logger.info(
        f"Gene universe: {len(universe)} genes across {len(catalog)} pathways"
    )
    return universe


def project_columns(
    table: pl.DataFrame,
    genes: Iterable[str],
    target: str = CLASS_COLUMN,
    pathway_id: str | None = None,
    sample_size: int | None = None,
) -> pl.DataFrame:
    """Restrict a wide cohort table to a pathway's genes plus the class column.

    Genes are matched by column name against the table schema; genes absent
    from the table are dropped. Column order follows the table, not the
    input gene collection.

    Args:
        table: Cohort (or train/test subset) with one column per gene
        genes: Pathway gene identifiers
        target: Name of the class label column (kept as last column)
        pathway_id: Optional context for error reporting
        sample_size: Optional context for error reporting

    Returns:
        DataFrame with the present pathway genes followed by the target column

    Raises:
        PathwayNotApplicable: If no pathway gene is a column of the table
        KeyError: If the target column is missing from the table
    """
    if target not in table.columns:
        raise KeyError(f"Target column '{target}' not in table schema")

    wanted = set(genes)
    present = [c for c in table.columns if c in wanted and c != target]

    if not present:
        raise PathwayNotApplicable(
            "No pathway genes present in cohort columns",
            pathway_id=pathway_id,
            sample_size=sample_size,
        )

    return table.select(present + [target])
