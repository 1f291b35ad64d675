"""Differential privacy building blocks for partition selection.

This module aggregates the calibration mathematics (budget splitting, Laplace
tails, preaggregation crossovers) and the additive noise mechanisms consumed
by the noisy-threshold strategy.
"""

from .differential_privacy import (
    adjusted_delta,
    adjusted_epsilon,
    composed_delta,
    exponential_growth_ratio,
    is_empty_count,
    laplace_inverse_tail_probability,
    laplace_tail_probability,
    preagg_first_crossover,
    preagg_keep_probability,
    preagg_second_crossover,
)
from .noise import (
    LaplaceMechanism,
    NoiseMechanism,
    NoiseMechanismBuilder,
)
from .testing import ZeroNoiseMechanism

__all__ = [
    # Calibration
    "adjusted_epsilon",
    "adjusted_delta",
    "composed_delta",
    "exponential_growth_ratio",
    "is_empty_count",
    "laplace_tail_probability",
    "laplace_inverse_tail_probability",
    "preagg_first_crossover",
    "preagg_second_crossover",
    "preagg_keep_probability",

    # Noise mechanisms
    "NoiseMechanism",
    "NoiseMechanismBuilder",
    "LaplaceMechanism",
    "ZeroNoiseMechanism",
]
