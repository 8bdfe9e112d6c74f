"""Output generation for simulation result tables."""

from pathway_sim.output.writers import write_result_tables

__all__ = ["write_result_tables"]
