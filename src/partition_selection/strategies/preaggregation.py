"""Preaggregation partition selection: keep with a closed-form probability.

The keep probability depends only on the true distinct-user count and is the
largest curve allowed by the per-partition (epsilon, delta) constraints. It
grows exponentially up to the first crossover, approaches one geometrically up
to the second crossover, and is exactly one beyond it. No noise mechanism is
involved.
"""

from __future__ import annotations

import logging

from numpy.random import Generator

from partition_selection.differential_privacy import (
    adjusted_delta,
    adjusted_epsilon,
    preagg_first_crossover,
    preagg_keep_probability,
    preagg_second_crossover,
)
from partition_selection.strategies.base import (
    PartitionSelectionStrategy,
    PartitionSelectionStrategyBuilder,
)

logger = logging.getLogger(__name__)


class PreaggPartitionSelection(PartitionSelectionStrategy):
    """Partition selection from the true count via the optimal keep-probability curve."""

    def __init__(
        self,
        epsilon: float,
        delta: float,
        max_partitions_contributed: int,
        rng: Generator | None = None,
    ) -> None:
        """
        Validate the parameters and derive the two crossover counts.

        Args
        ------
            epsilon (float): Total epsilon of the selection.
            delta (float): Total delta of the selection.
            max_partitions_contributed (int): Max partitions per user.
            rng (Generator | None): Source of the uniform draws.

        Raises
        ------
            InvalidArgumentError: If the privacy parameters fail validation.
        """
        super().__init__(epsilon, delta, max_partitions_contributed, rng)
        self._adjusted_epsilon = adjusted_epsilon(self.epsilon, self.max_partitions_contributed)
        self._adjusted_delta = adjusted_delta(self.delta, self.max_partitions_contributed)
        self._first_crossover = preagg_first_crossover(self._adjusted_epsilon, self._adjusted_delta)
        self._second_crossover = preagg_second_crossover(
            self._adjusted_epsilon,
            self._adjusted_delta,
            self._first_crossover,
        )
        logger.debug(
            "Preaggregation selection: eps'=%g delta'=%g crossovers=(%g, %g)",
            self._adjusted_epsilon,
            self._adjusted_delta,
            self._first_crossover,
            self._second_crossover,
        )

    @property
    def adjusted_epsilon(self) -> float:
        return self._adjusted_epsilon

    @property
    def adjusted_delta(self) -> float:
        return self._adjusted_delta

    @property
    def first_crossover(self) -> float:
        return self._first_crossover

    @property
    def second_crossover(self) -> float:
        return self._second_crossover

    def get_first_crossover(self) -> float:
        return self._first_crossover

    def get_second_crossover(self) -> float:
        return self._second_crossover

    def probability_of_keep(self, num_users: float) -> float:
        """Probability with which a partition with ``num_users`` users is kept."""
        return preagg_keep_probability(
            num_users,
            self._adjusted_epsilon,
            self._adjusted_delta,
            self._first_crossover,
            self._second_crossover,
        )

    def should_keep(self, num_users: float) -> bool:
        probability = self.probability_of_keep(num_users)
        # Certain outcomes consume no randomness.
        if probability <= 0.0:
            return False
        if probability >= 1.0:
            return True
        return bool(self._rng.random() < probability)

    class Builder(PartitionSelectionStrategyBuilder):
        def _construct(self) -> PreaggPartitionSelection:
            return PreaggPartitionSelection(
                self.epsilon,
                self.delta,
                self.max_partitions_contributed,
                self.rng,
            )
