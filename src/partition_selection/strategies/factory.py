"""Creation of partition-selection strategies by kind or from a configuration."""

from __future__ import annotations

import logging

from numpy.random import Generator, default_rng

from partition_selection.config import Config, SelectionStrategy
from partition_selection.strategies.base import (
    PartitionSelectionStrategy,
    PartitionSelectionStrategyBuilder,
)
from partition_selection.strategies.laplace import LaplacePartitionSelection
from partition_selection.strategies.preaggregation import PreaggPartitionSelection

logger = logging.getLogger(__name__)

_BUILDERS: dict[SelectionStrategy, type[PartitionSelectionStrategyBuilder]] = {
    SelectionStrategy.PREAGGREGATION: PreaggPartitionSelection.Builder,
    SelectionStrategy.LAPLACE_THRESHOLDING: LaplacePartitionSelection.Builder,
}


def create_partition_selection_strategy(
    strategy: SelectionStrategy | str,
    epsilon: float,
    delta: float,
    max_partitions_contributed: int,
    rng: Generator | None = None,
) -> PartitionSelectionStrategy:
    """Build a strategy of the given kind.

    Args
    ------
        strategy (SelectionStrategy | str): Kind of strategy, or its value.
        epsilon (float): Total epsilon of the selection.
        delta (float): Total delta of the selection.
        max_partitions_contributed (int): Max partitions per user.
        rng (Generator | None): Random generator owned by the strategy.

    Returns
    -------
        PartitionSelectionStrategy: The ready strategy.

    Raises
    ------
        InvalidArgumentError: If the parameters fail validation.
        ValueError: If ``strategy`` names no known kind.
    """
    kind = SelectionStrategy(strategy)
    builder = _BUILDERS[kind]()
    result = (
        builder.set_epsilon(epsilon)
        .set_delta(delta)
        .set_max_partitions_contributed(max_partitions_contributed)
        .set_random_generator(rng)
        .build()
    )
    return result.value_or_raise()


def strategy_from_config(config: Config) -> PartitionSelectionStrategy:
    """Build the strategy described by ``config``, seeding its generator if requested."""
    rng = default_rng(config.selection.seed)
    strategy = create_partition_selection_strategy(
        config.selection.kind,
        config.privacy.epsilon,
        config.privacy.delta,
        config.privacy.max_partitions_contributed,
        rng,
    )
    logger.info("Created %r", strategy)
    return strategy
