"""Common contract and fluent builder for partition-selection strategies."""

from __future__ import annotations

import abc
import logging

from numpy.random import Generator, default_rng

from partition_selection.errors import BuildResult, InvalidArgumentError
from partition_selection.validation import validate_privacy_parameters

logger = logging.getLogger(__name__)


class PartitionSelectionStrategy(abc.ABC):
    """Decides whether a partition with a given distinct-user count is released.

    A strategy is immutable once built apart from its random generator. It
    supports single-threaded reuse across many ``should_keep`` calls, or one
    instance per concurrent caller; the generator is not safe to share
    between threads.

    Raises
    ------
        InvalidArgumentError: If the privacy parameters fail validation.
    """

    def __init__(
        self,
        epsilon: float,
        delta: float,
        max_partitions_contributed: int,
        rng: Generator | None = None,
    ) -> None:
        validate_privacy_parameters(epsilon, delta, max_partitions_contributed)
        self._epsilon = float(epsilon)
        self._delta = float(delta)
        self._max_partitions_contributed = int(max_partitions_contributed)
        self._rng = rng if rng is not None else default_rng()

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @property
    def delta(self) -> float:
        return self._delta

    @property
    def max_partitions_contributed(self) -> int:
        return self._max_partitions_contributed

    def get_epsilon(self) -> float:
        return self._epsilon

    def get_delta(self) -> float:
        return self._delta

    def get_max_partitions_contributed(self) -> int:
        return self._max_partitions_contributed

    @abc.abstractmethod
    def should_keep(self, num_users: float) -> bool:
        """Randomized keep/drop decision for a partition with ``num_users`` users.

        Counts that are not positive and finite are always dropped.
        """

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(epsilon={self._epsilon}, delta={self._delta}, "
            f"max_partitions_contributed={self._max_partitions_contributed})"
        )


class PartitionSelectionStrategyBuilder(abc.ABC):
    """Fluent builder with deferred validation.

    Setters only record values; ``build()`` validates them in a fixed order and
    returns a :class:`BuildResult` instead of raising.
    """

    def __init__(self) -> None:
        self.epsilon: float | None = None
        self.delta: float | None = None
        self.max_partitions_contributed: int | None = None
        self.rng: Generator | None = None

    def set_epsilon(self, epsilon: float) -> PartitionSelectionStrategyBuilder:
        self.epsilon = epsilon
        return self

    def set_delta(self, delta: float) -> PartitionSelectionStrategyBuilder:
        self.delta = delta
        return self

    def set_max_partitions_contributed(self, max_partitions_contributed: int) -> PartitionSelectionStrategyBuilder:
        self.max_partitions_contributed = max_partitions_contributed
        return self

    def set_random_generator(self, rng: Generator | None) -> PartitionSelectionStrategyBuilder:
        self.rng = rng
        return self

    @abc.abstractmethod
    def _construct(self) -> PartitionSelectionStrategy:
        """Instantiate the strategy from the recorded values."""

    def build(self) -> BuildResult[PartitionSelectionStrategy]:
        """Validate the recorded parameters and build the strategy.

        Returns
        -------
            BuildResult holding either the strategy or the first validation error.
        """
        try:
            strategy = self._construct()
        except InvalidArgumentError as err:
            logger.debug("%s build failed: %s", type(self).__qualname__, err)
            return BuildResult(error=err)
        return BuildResult(value=strategy)
