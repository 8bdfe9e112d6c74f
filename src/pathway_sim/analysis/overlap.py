"""Gene overlap between high-performing pathways and the truth pathway."""

from collections.abc import Iterable, Sequence

import polars as pl
import structlog

from pathway_sim.catalog.models import PathwayCatalog
from pathway_sim.modeling.models import OVERLAP_SCHEMA

logger = structlog.get_logger(__name__)

DEFAULT_OVERLAP_THRESHOLD = 0.75


def catalog_to_long(catalog: PathwayCatalog) -> pl.DataFrame:
    """One row per (pathway_id, gene_symbol) membership."""
    pathway_ids = []
    genes = []
    for term in sorted(catalog):
        for gene in sorted(catalog[term]):
            pathway_ids.append(term)
            genes.append(gene)
    return pl.DataFrame(
        {"pathway_id": pathway_ids, "gene_symbol": genes},
        schema={"pathway_id": pl.Utf8, "gene_symbol": pl.Utf8},
    )


def compute_overlaps(
    results: pl.DataFrame,
    catalog: PathwayCatalog,
    truth_genes: Iterable[str],
    threshold: float = DEFAULT_OVERLAP_THRESHOLD,
    sample_size: int | None = None,
) -> pl.DataFrame:
    """
    Score truth-gene overlap for pathways whose train AUC exceeds threshold.

    Args:
        results: ResultTable (pathway_id, sample_size, train_auc, ...)
        catalog: Pathway catalog used to produce results
        truth_genes: Genes of the truth pathway
        threshold: Strict lower bound on train_auc for selection
        sample_size: Restrict to one sample size (default: all)

    Returns:
        OverlapTable with columns pathway_id, sample_size, overlap_count,
        sorted by sample_size then pathway_id. Empty (with schema) when no
        pathway clears the threshold.

    Raises:
        ValueError: If results reference pathways missing from the catalog
    """
    selected = results.filter(pl.col("train_auc") > threshold)
    if sample_size is not None:
        selected = selected.filter(pl.col("sample_size") == sample_size)

    unknown = set(selected["pathway_id"].to_list()) - set(catalog)
    if unknown:
        raise ValueError(
            f"Results reference pathways missing from catalog: {sorted(unknown)[:10]}"
        )

    truth = sorted(set(truth_genes))
    overlap_counts = (
        catalog_to_long(catalog)
        .filter(pl.col("gene_symbol").is_in(truth))
        .group_by("pathway_id")
        .agg(pl.len().alias("overlap_count"))
    )

    overlaps = (
        selected.select(["pathway_id", "sample_size"])
        .join(overlap_counts, on="pathway_id", how="left")
        .with_columns(pl.col("overlap_count").fill_null(0))
        .cast(OVERLAP_SCHEMA)
        .sort(["sample_size", "pathway_id"])
    )

    logger.info(
        "compute_overlaps_done",
        threshold=threshold,
        sample_size=sample_size,
        selected=overlaps.height,
    )
    return overlaps


def summarize_overlaps(
    overlaps: pl.DataFrame,
    sample_sizes: Sequence[int],
) -> pl.DataFrame:
    """
    Per-sample-size summary of an OverlapTable.

    Sample sizes with no selected pathway appear with n_selected = 0 and
    null overlap statistics.

    Returns:
        DataFrame with columns sample_size, n_selected, mean_overlap,
        max_overlap
    """
    base = pl.DataFrame(
        {"sample_size": sorted(set(sample_sizes))},
        schema={"sample_size": pl.Int64},
    )
    stats = overlaps.group_by("sample_size").agg(
        pl.len().cast(pl.Int64).alias("n_selected"),
        pl.col("overlap_count").mean().alias("mean_overlap"),
        pl.col("overlap_count").max().cast(pl.Int64).alias("max_overlap"),
    )
    return (
        base.join(stats, on="sample_size", how="left")
        .with_columns(pl.col("n_selected").fill_null(0))
        .sort("sample_size")
    )
