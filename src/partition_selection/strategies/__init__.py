"""Partition-selection strategies for differentially private releases.

Includes:
- Preaggregation: keep with a closed-form probability of the true count.
- Laplace thresholding: keep if the Laplace-noised count clears a threshold.
"""

from .base import PartitionSelectionStrategy, PartitionSelectionStrategyBuilder
from .factory import create_partition_selection_strategy, strategy_from_config
from .laplace import LaplacePartitionSelection
from .preaggregation import PreaggPartitionSelection

__all__ = [
    "LaplacePartitionSelection",
    "PartitionSelectionStrategy",
    "PartitionSelectionStrategyBuilder",
    "PreaggPartitionSelection",
    "create_partition_selection_strategy",
    "strategy_from_config",
]
