"""Tests for the pathway-sim command-line interface."""

import polars as pl
import pytest
from click.testing import CliRunner

from pathway_sim.cli.main import cli
from pathway_sim.persistence import RESULTS_TABLE, ResultStore


@pytest.fixture
def workspace(tmp_path):
    """GMT catalog and a fast config inside tmp_path."""
    gmt = tmp_path / "pathways.gmt"
    gmt.write_text(
        "TRUTH\tsignal\tG1\tG2\tG3\n"
        "MIXED\tpartial\tG1\tG2\tG9\n"
        "DECOY\tnoise\tG4\tG5\n"
    )

    out = tmp_path / "out"
    config = tmp_path / "config.yaml"
    config.write_text(f"""
sample_sizes: [15, 25]
truth_pathway_id: TRUTH
seed: 1
model:
  k_folds: 3
  repeats: 1
  lambda_grid: [0.0, 0.1]
worker_count: 1
output_dir: {out}
duckdb_path: {out}/sim.duckdb
""")
    return {"gmt": gmt, "config": config, "out": out}


def test_info(workspace):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(workspace["config"]), "info"])

    assert result.exit_code == 0, result.output
    assert "pathway-sim v" in result.output
    assert "Config Hash:" in result.output
    assert "Truth Pathway:  TRUTH" in result.output
    assert "3-fold" in result.output


def test_run_writes_outputs(workspace):
    runner = CliRunner()
    result = runner.invoke(cli, [
        "--config", str(workspace["config"]),
        "run", "--catalog", str(workspace["gmt"]),
    ])

    assert result.exit_code == 0, result.output
    assert "Simulation complete!" in result.output

    out = workspace["out"]
    assert (out / "pathway_results.tsv").exists()
    assert (out / "pathway_overlaps.parquet").exists()
    assert (out / "pathway_results.provenance.json").exists()

    results = pl.read_parquet(out / "pathway_results.parquet")
    assert results.height == 3 * 2

    with ResultStore(out / "sim.duckdb") as store:
        assert store.has_checkpoint(RESULTS_TABLE)


def test_run_reuses_checkpoint(workspace):
    runner = CliRunner()
    args = [
        "--config", str(workspace["config"]),
        "run", "--catalog", str(workspace["gmt"]),
    ]

    first = runner.invoke(cli, args)
    assert first.exit_code == 0, first.output

    second = runner.invoke(cli, args)
    assert second.exit_code == 0, second.output
    assert "checkpointed" in second.output

    forced = runner.invoke(cli, args + ["--force"])
    assert forced.exit_code == 0, forced.output
    assert "Simulation complete!" in forced.output


def test_run_seed_override_invalidates_checkpoint(workspace):
    runner = CliRunner()
    args = [
        "--config", str(workspace["config"]),
        "run", "--catalog", str(workspace["gmt"]),
    ]
    runner.invoke(cli, args)

    result = runner.invoke(cli, args + ["--seed", "99"])

    assert result.exit_code == 0, result.output
    assert "checkpointed" not in result.output


def test_run_unknown_truth_pathway(workspace, tmp_path):
    gmt = tmp_path / "other.gmt"
    gmt.write_text("DECOY\tnoise\tG4\tG5\n")

    runner = CliRunner()
    result = runner.invoke(cli, [
        "--config", str(workspace["config"]),
        "run", "--catalog", str(gmt),
    ])

    assert result.exit_code == 1
    assert "Truth pathway not found" in result.output
