"""Run command: simulate cohorts, train pathway models, score overlaps.

Steps:
- Load configuration and pathway catalog
- Simulate cohorts and stratified splits for every sample size
- Train and evaluate one model per (pathway, sample size) in parallel
- Score truth-gene overlap of high-performing pathways
- Checkpoint to DuckDB and write TSV/Parquet outputs with provenance
"""

import logging
import sys
from pathlib import Path

import click

from pathway_sim.analysis.overlap import summarize_overlaps
from pathway_sim.catalog.gmt import read_gmt
from pathway_sim.config.loader import load_config_with_overrides
from pathway_sim.errors import SimulationError
from pathway_sim.orchestration.pipeline import run_simulation
from pathway_sim.output.writers import write_result_tables
from pathway_sim.persistence import RESULTS_TABLE, ProvenanceTracker, ResultStore

logger = logging.getLogger(__name__)


def _echo_summary(results, overlaps, sample_sizes) -> None:
    summary = summarize_overlaps(overlaps, sample_sizes)
    click.echo(click.style("=== Summary ===", bold=True))
    click.echo(f"{'Samples/group':>14} {'Pathways':>9} {'Selected':>9} {'Mean overlap':>13}")
    for row in summary.to_dicts():
        n = row["sample_size"]
        n_pathways = results.filter(results["sample_size"] == n).height
        mean_overlap = row["mean_overlap"]
        mean_str = f"{mean_overlap:.2f}" if mean_overlap is not None else "-"
        click.echo(f"{n:>14} {n_pathways:>9} {row['n_selected']:>9} {mean_str:>13}")
    click.echo()


@click.command('run')
@click.option(
    '--catalog',
    'catalog_path',
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help='Pathway catalog in GMT format'
)
@click.option(
    '--workers',
    type=click.IntRange(min=0),
    default=None,
    help='Worker processes (0 = one per core); overrides config'
)
@click.option(
    '--seed',
    type=click.IntRange(min=0),
    default=None,
    help='Root random seed; overrides config'
)
@click.option(
    '--force',
    is_flag=True,
    help='Re-run even if results for this config are checkpointed'
)
@click.pass_context
def run(ctx, catalog_path, workers, seed, force):
    """Run the pathway detectability simulation.

    Supports checkpoint-restart: if results for the same config hash are
    already stored in DuckDB, they are reused (use --force to re-run).

    Examples:

        pathway-sim run --catalog pathways.gmt

        pathway-sim --config my.yaml run --catalog pathways.gmt --workers 8 --force
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== Pathway Detectability Simulation ===", bold=True))
    click.echo()

    overrides = {}
    if workers is not None:
        overrides['worker_count'] = workers
    if seed is not None:
        overrides['seed'] = seed

    store = None
    try:
        click.echo("Loading configuration...")
        config = load_config_with_overrides(config_path, overrides)
        config_hash = config.config_hash()
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo()

        store = ResultStore.from_config(config)
        provenance = ProvenanceTracker.from_config(config)

        if store.has_checkpoint(RESULTS_TABLE, config_hash) and not force:
            click.echo(click.style(
                "Results for this config are checkpointed. Skipping simulation "
                "(use --force to re-run).",
                fg='yellow'
            ))
            click.echo()
            results, overlaps = store.load_run()
            _echo_summary(results, overlaps, config.sample_sizes)
            click.echo(f"DuckDB Path: {config.duckdb_path}")
            return

        click.echo("Loading pathway catalog...")
        catalog = read_gmt(catalog_path)
        click.echo(click.style(f"  {len(catalog)} pathways from {catalog_path}", fg='green'))
        click.echo()

        click.echo(click.style("Running simulation...", bold=True))
        try:
            sim = run_simulation(catalog, config, provenance=provenance)
        except SimulationError as e:
            click.echo(click.style(f"  Error: {e}", fg='red'), err=True)
            sys.exit(1)

        click.echo(click.style(
            f"  {sim.results.height} result rows, "
            f"{len(sim.not_applicable)} not applicable, "
            f"{len(sim.failures)} failed",
            fg='green'
        ))
        for failure in sim.failures:
            click.echo(click.style(
                f"    FAILED {failure.pathway_id} (n={failure.sample_size}): "
                f"{failure.error_type}: {failure.message}",
                fg='yellow'
            ))
        click.echo()

        click.echo("Saving results...")
        store.save_run(sim.results, sim.overlaps, sim.failures, config_hash)
        paths = write_result_tables(
            sim.results, sim.overlaps, config.output_dir, config_hash=config_hash
        )
        provenance.save_to_store(store)
        sidecar = provenance.save_sidecar(paths["results_tsv"])
        click.echo(click.style(f"  Results: {paths['results_tsv']}", fg='green'))
        click.echo(click.style(f"  Overlaps: {paths['overlaps_tsv']}", fg='green'))
        click.echo(click.style(f"  Provenance: {sidecar}", fg='green'))
        click.echo()

        _echo_summary(sim.results, sim.overlaps, config.sample_sizes)
        click.echo(click.style("Simulation complete!", fg='green', bold=True))

    except Exception as e:
        click.echo(click.style(f"Run command failed: {e}", fg='red'), err=True)
        logger.exception("Run command failed")
        sys.exit(1)
    finally:
        if store is not None:
            store.close()
