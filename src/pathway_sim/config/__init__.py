from .loader import load_config, load_config_with_overrides
from .schema import DEFAULT_LAMBDA_GRID, ModelConfig, SimulationConfig

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "DEFAULT_LAMBDA_GRID",
    "ModelConfig",
    "SimulationConfig",
]
