"""Error taxonomy for simulation runs.

All errors carry optional pathway_id / sample_size context so a failure can
be localised to a single (pathway, scenario) pair.
"""

from typing import Optional


class SimulationError(Exception):
    """Base class for simulation errors."""

    def __init__(
        self,
        message: str,
        pathway_id: Optional[str] = None,
        sample_size: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.pathway_id = pathway_id
        self.sample_size = sample_size

    def __str__(self) -> str:
        context = []
        if self.pathway_id is not None:
            context.append(f"pathway_id={self.pathway_id}")
        if self.sample_size is not None:
            context.append(f"sample_size={self.sample_size}")
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class InvalidConfiguration(SimulationError):
    """Run configuration is unusable. Raised before any task is dispatched."""


class InsufficientData(SimulationError):
    """A class is under-represented for a stratified split or evaluation."""


class PathwayNotApplicable(SimulationError):
    """Pathway has no usable genes in the cohort. Excluded from results."""
