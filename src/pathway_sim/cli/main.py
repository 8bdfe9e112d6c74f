"""Main CLI entry point for pathway-sim.

Provides command group with global options and subcommands for simulation runs.
"""

import logging
from pathlib import Path

import click

from pathway_sim import __version__
from pathway_sim.config.loader import load_config
from pathway_sim.cli.run_cmd import run


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
@click.option(
    '--config',
    type=click.Path(exists=True, path_type=Path),
    default='config/default.yaml',
    help='Path to simulation configuration YAML file'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.pass_context
def cli(ctx, config, verbose):
    """pathway-sim: Is a known pathway's signal detectable among many candidates?

    Simulates cohorts with a signal embedded in one pathway's genes, trains a
    ridge classifier per candidate pathway and sample size, and scores how
    much the best pathways overlap the true signal genes.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Verbose logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Display package information and configuration summary."""
    config_path = ctx.obj['config_path']

    click.echo(f"pathway-sim v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)

        config_hash = config.config_hash()
        click.echo(f"Config Hash: {config_hash[:16]}...")
        click.echo()

        click.echo(click.style("Simulation:", bold=True))
        click.echo(f"  Truth Pathway:  {config.truth_pathway_id}")
        click.echo(f"  Sample Sizes:   {', '.join(str(n) for n in config.sample_sizes)}")
        click.echo(f"  Signal Mean:    {config.signal_mean}")
        click.echo(f"  Split Fraction: {config.split_fraction}")
        click.echo(f"  Seed:           {config.seed}")
        click.echo()

        click.echo(click.style("Model Selection:", bold=True))
        click.echo(f"  CV: {config.model.repeats} x {config.model.k_folds}-fold")
        click.echo(f"  Lambda Grid: {config.model.lambda_grid}")
        click.echo(f"  Overlap Threshold: {config.overlap_threshold}")
        click.echo(f"  Workers: {config.worker_count or 'auto'}")
        click.echo()

        click.echo(click.style("Paths:", bold=True))
        click.echo(f"  Output Directory: {config.output_dir}")
        click.echo(f"  DuckDB Path: {config.duckdb_path}")

    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)


cli.add_command(run)


if __name__ == '__main__':
    cli()
