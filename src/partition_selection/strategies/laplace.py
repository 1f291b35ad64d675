"""Laplace thresholding partition selection: keep if the noised count clears a threshold.

A user contributing to ``k`` partitions shifts each count by at most one, so
the noise is Laplace with diversity ``k / epsilon`` and the threshold is the
point where a single-user partition survives with the per-partition delta.
"""

from __future__ import annotations

import logging
import sys

from numpy.random import Generator

from partition_selection.differential_privacy import (
    LaplaceMechanism,
    NoiseMechanism,
    NoiseMechanismBuilder,
    adjusted_delta,
    composed_delta,
    is_empty_count,
    laplace_inverse_tail_probability,
    laplace_tail_probability,
)
from partition_selection.strategies.base import (
    PartitionSelectionStrategy,
    PartitionSelectionStrategyBuilder,
)

logger = logging.getLogger(__name__)


class LaplacePartitionSelection(PartitionSelectionStrategy):
    """Partition selection by comparing a noised count with a delta-calibrated threshold."""

    def __init__(
        self,
        epsilon: float,
        delta: float,
        max_partitions_contributed: int,
        mechanism_builder: NoiseMechanismBuilder | None = None,
        rng: Generator | None = None,
    ) -> None:
        """
        Validate the parameters, calibrate the noise mechanism and derive the threshold.

        Args
        ------
            epsilon (float): Total epsilon of the selection.
            delta (float): Total delta of the selection.
            max_partitions_contributed (int): Max partitions per user, used as
                the L0 sensitivity of the mechanism.
            mechanism_builder (NoiseMechanismBuilder | None): Builder of the
                additive noise. Defaults to ``LaplaceMechanism.Builder()``.
            rng (Generator | None): Generator handed to the mechanism.

        Raises
        ------
            InvalidArgumentError: If the privacy parameters or the mechanism
                calibration fail validation.
        """
        super().__init__(epsilon, delta, max_partitions_contributed, rng)
        if mechanism_builder is None:
            mechanism_builder = LaplaceMechanism.Builder()
        self._mechanism = (
            mechanism_builder.set_epsilon(self.epsilon)
            .set_delta(self.delta)
            .set_l0_sensitivity(self.max_partitions_contributed)
            .set_linf_sensitivity(1.0)
            .set_random_generator(self._rng)
            .build()
        )
        self._threshold = self.calculate_threshold(self.epsilon, self.delta, self.max_partitions_contributed)
        logger.debug(
            "Laplace selection: mechanism=%s threshold=%g",
            type(self._mechanism).__name__,
            self._threshold,
        )

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def mechanism(self) -> NoiseMechanism:
        return self._mechanism

    def get_threshold(self) -> float:
        return self._threshold

    def should_keep(self, num_users: float) -> bool:
        if is_empty_count(num_users):
            return False
        if num_users > sys.float_info.max:
            # Past any finite threshold; the noise cannot be added in float.
            return True
        return self._mechanism.add_noise(num_users) >= self._threshold

    @staticmethod
    def calculate_threshold(epsilon: float, delta: float, max_partitions_contributed: int) -> float:
        r"""Threshold at which a single-user partition is kept with the per-partition delta.

        Implements:
            t = 1 + F^{-1}(\delta'),   b = k / \epsilon

        where F is the Laplace(0, b) tail and \delta' = 1 - (1 - \delta)^{1/k}.
        """
        diversity = max_partitions_contributed / epsilon
        partition_delta = adjusted_delta(delta, max_partitions_contributed)
        return 1.0 + laplace_inverse_tail_probability(partition_delta, diversity)

    @staticmethod
    def calculate_delta(epsilon: float, threshold: float, max_partitions_contributed: int) -> float:
        r"""Total delta spent by thresholding at ``threshold``; inverse of :meth:`calculate_threshold`.

        Implements:
            \delta' = F(t - 1),   \delta = 1 - (1 - \delta')^{k}
        """
        diversity = max_partitions_contributed / epsilon
        partition_delta = laplace_tail_probability(threshold - 1.0, diversity)
        return composed_delta(partition_delta, max_partitions_contributed)

    class Builder(PartitionSelectionStrategyBuilder):
        """Builder accepting the noise-mechanism builder in any order relative to the other setters."""

        def __init__(self) -> None:
            super().__init__()
            self.mechanism_builder: NoiseMechanismBuilder | None = None

        def set_mechanism_builder(self, mechanism_builder: NoiseMechanismBuilder) -> LaplacePartitionSelection.Builder:
            self.mechanism_builder = mechanism_builder
            return self

        def _construct(self) -> LaplacePartitionSelection:
            return LaplacePartitionSelection(
                self.epsilon,
                self.delta,
                self.max_partitions_contributed,
                self.mechanism_builder,
                self.rng,
            )
