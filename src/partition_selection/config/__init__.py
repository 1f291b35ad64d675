from .config import (
    Config,
    PrivacyConfig,
    SelectionConfig,
    SelectionStrategy,
    SimulationConfig,
)

__all__ = [
    "Config",
    "PrivacyConfig",
    "SelectionConfig",
    "SelectionStrategy",
    "SimulationConfig",
]
