"""Additive noise mechanisms consumed by the noisy-threshold partition selection.

A mechanism adds calibrated noise to a value and exposes the closed-form tail
probability of the noised value (and its inverse). Mechanisms are created by
builders so that calibration happens from the final privacy parameters.
"""

from __future__ import annotations

import abc

from numpy.random import Generator, default_rng

from partition_selection.differential_privacy.differential_privacy import (
    laplace_inverse_tail_probability,
    laplace_tail_probability,
)
from partition_selection.errors import InvalidArgumentError
from partition_selection.validation import is_finite_number


class NoiseMechanism(abc.ABC):
    """Contract for an additive noise mechanism.

    Instances own their random generator, which is not safe for concurrent
    sampling. Use one mechanism per worker.
    """

    def __init__(self, epsilon: float, l1_sensitivity: float, rng: Generator | None = None) -> None:
        self._epsilon = epsilon
        self._l1_sensitivity = l1_sensitivity
        self._rng = rng if rng is not None else default_rng()

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @property
    def l1_sensitivity(self) -> float:
        return self._l1_sensitivity

    @abc.abstractmethod
    def add_noise(self, value: float) -> float:
        """Return ``value`` plus one fresh noise sample."""

    @abc.abstractmethod
    def noised_value_above_threshold(self, value: float, threshold: float) -> float:
        """Probability that ``add_noise(value)`` is at least ``threshold``."""

    @abc.abstractmethod
    def threshold_for_tail_probability(self, value: float, probability: float) -> float:
        """Threshold ``t`` with ``noised_value_above_threshold(value, t) == probability``."""


class NoiseMechanismBuilder(abc.ABC):
    """Fluent builder calibrating a :class:`NoiseMechanism`.

    L1 sensitivity is derived as ``l0_sensitivity * linf_sensitivity``.
    """

    def __init__(self) -> None:
        self.epsilon: float | None = None
        self.delta: float | None = None
        self.l0_sensitivity: int = 1
        self.linf_sensitivity: float = 1.0
        self.rng: Generator | None = None

    def set_epsilon(self, epsilon: float) -> NoiseMechanismBuilder:
        self.epsilon = epsilon
        return self

    def set_delta(self, delta: float) -> NoiseMechanismBuilder:
        self.delta = delta
        return self

    def set_l0_sensitivity(self, l0_sensitivity: int) -> NoiseMechanismBuilder:
        self.l0_sensitivity = l0_sensitivity
        return self

    def set_linf_sensitivity(self, linf_sensitivity: float) -> NoiseMechanismBuilder:
        self.linf_sensitivity = linf_sensitivity
        return self

    def set_random_generator(self, rng: Generator | None) -> NoiseMechanismBuilder:
        self.rng = rng
        return self

    @property
    def l1_sensitivity(self) -> float:
        return self.l0_sensitivity * self.linf_sensitivity

    def _validate(self) -> None:
        """Check the calibration inputs shared by every mechanism.

        Raises
        ------
            InvalidArgumentError: If epsilon or the sensitivities are unusable.
        """
        if self.epsilon is None:
            msg = "Epsilon has to be set for the noise mechanism."
            raise InvalidArgumentError(msg)
        if not is_finite_number(self.epsilon) or self.epsilon <= 0:
            msg = f"Epsilon has to be finite and positive, but is {self.epsilon}."
            raise InvalidArgumentError(msg)
        if not is_finite_number(self.l0_sensitivity) or self.l0_sensitivity <= 0:
            msg = f"L0 sensitivity has to be positive, but is {self.l0_sensitivity}."
            raise InvalidArgumentError(msg)
        if not is_finite_number(self.linf_sensitivity) or self.linf_sensitivity <= 0:
            msg = f"LInf sensitivity has to be finite and positive, but is {self.linf_sensitivity}."
            raise InvalidArgumentError(msg)

    @abc.abstractmethod
    def build(self) -> NoiseMechanism:
        """Validate the calibration inputs and return a ready mechanism.

        Raises
        ------
            InvalidArgumentError: If the calibration inputs are invalid.
        """


class LaplaceMechanism(NoiseMechanism):
    """Laplace mechanism with diversity ``l1_sensitivity / epsilon``."""

    def __init__(self, epsilon: float, l1_sensitivity: float = 1.0, rng: Generator | None = None) -> None:
        super().__init__(epsilon, l1_sensitivity, rng)
        self._diversity = l1_sensitivity / epsilon

    @property
    def diversity(self) -> float:
        return self._diversity

    def add_noise(self, value: float) -> float:
        return float(value + self._rng.laplace(0.0, self._diversity))

    def noised_value_above_threshold(self, value: float, threshold: float) -> float:
        return laplace_tail_probability(threshold - value, self._diversity)

    def threshold_for_tail_probability(self, value: float, probability: float) -> float:
        return value + laplace_inverse_tail_probability(probability, self._diversity)

    class Builder(NoiseMechanismBuilder):
        """Builds a :class:`LaplaceMechanism`; delta is accepted and ignored."""

        def build(self) -> LaplaceMechanism:
            self._validate()
            return LaplaceMechanism(self.epsilon, self.l1_sensitivity, self.rng)
