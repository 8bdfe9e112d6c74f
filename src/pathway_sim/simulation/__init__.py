"""Cohort simulation and stratified partitioning."""

from pathway_sim.simulation.cohort import (
    GROUP1,
    GROUP2,
    CohortSet,
    make_truth_covariance,
    simulate_cohort,
    simulate_cohorts,
)
from pathway_sim.simulation.partition import Split, stratified_split

__all__ = [
    "GROUP1",
    "GROUP2",
    "CohortSet",
    "make_truth_covariance",
    "simulate_cohort",
    "simulate_cohorts",
    "Split",
    "stratified_split",
]
