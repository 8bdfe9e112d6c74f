"""Dual-format TSV+Parquet writer for result tables with a YAML sidecar."""

from datetime import datetime, timezone
from pathlib import Path

import polars as pl
import yaml


def _write_table(df: pl.DataFrame, output_dir: Path, filename_base: str) -> dict:
    tsv_path = output_dir / f"{filename_base}.tsv"
    parquet_path = output_dir / f"{filename_base}.parquet"

    df.write_csv(tsv_path, separator="\t", include_header=True)
    df.write_parquet(parquet_path, compression="snappy", use_pyarrow=True)

    return {"tsv": tsv_path, "parquet": parquet_path}


def write_result_tables(
    results: pl.DataFrame,
    overlaps: pl.DataFrame,
    output_dir: Path,
    config_hash: str | None = None,
) -> dict:
    """
    Write ResultTable and OverlapTable to TSV and Parquet with a provenance sidecar.

    Args:
        results: ResultTable (pathway_id, sample_size, train_auc, test_auc, n_train)
        overlaps: OverlapTable (pathway_id, sample_size, overlap_count)
        output_dir: Directory to write output files (created if doesn't exist)
        config_hash: Optional hash of the producing config, recorded in the sidecar

    Returns:
        Dictionary with output file paths:
        {
            "results_tsv", "results_parquet",
            "overlaps_tsv", "overlaps_parquet",
            "provenance": Path to YAML sidecar
        }

    Notes:
        - Rows are sorted by key so output files are deterministic
        - Sidecar records per-sample-size row counts and median test AUC
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    results = results.sort(["sample_size", "pathway_id"])
    overlaps = overlaps.sort(["sample_size", "pathway_id"])

    result_paths = _write_table(results, output_dir, "pathway_results")
    overlap_paths = _write_table(overlaps, output_dir, "pathway_overlaps")
    provenance_path = output_dir / "pathway_results.provenance.yaml"

    per_size = {}
    if results.height > 0:
        by_size = (
            results.group_by("sample_size")
            .agg(
                pl.len().alias("rows"),
                pl.col("test_auc").median().alias("median_test_auc"),
            )
            .sort("sample_size")
        )
        per_size = {
            int(row["sample_size"]): {
                "rows": int(row["rows"]),
                "median_test_auc": round(float(row["median_test_auc"]), 4),
            }
            for row in by_size.to_dicts()
        }

    provenance = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "config_hash": config_hash,
        "output_files": [
            result_paths["tsv"].name,
            result_paths["parquet"].name,
            overlap_paths["tsv"].name,
            overlap_paths["parquet"].name,
        ],
        "statistics": {
            "result_rows": results.height,
            "overlap_rows": overlaps.height,
            "pathways": results["pathway_id"].n_unique(),
            "by_sample_size": per_size,
        },
    }

    with open(provenance_path, "w") as f:
        yaml.dump(provenance, f, default_flow_style=False, sort_keys=False)

    return {
        "results_tsv": result_paths["tsv"],
        "results_parquet": result_paths["parquet"],
        "overlaps_tsv": overlap_paths["tsv"],
        "overlaps_parquet": overlap_paths["parquet"],
        "provenance": provenance_path,
    }
