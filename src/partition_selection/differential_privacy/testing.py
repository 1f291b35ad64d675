"""Deterministic stand-in mechanism for exercising thresholds in tests."""

from __future__ import annotations

from partition_selection.differential_privacy.noise import LaplaceMechanism


class ZeroNoiseMechanism(LaplaceMechanism):
    """Laplace-calibrated mechanism whose ``add_noise`` returns the value unchanged.

    Tail probabilities still follow the calibrated Laplace distribution.
    """

    def add_noise(self, value: float) -> float:
        return float(value)

    class Builder(LaplaceMechanism.Builder):
        def build(self) -> ZeroNoiseMechanism:
            self._validate()
            return ZeroNoiseMechanism(self.epsilon, self.l1_sensitivity, self.rng)
