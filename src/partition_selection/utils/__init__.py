"""Utility functions for keep-rate simulation and evaluation.

This module provides support for:
- Estimating the empirical keep rate of a strategy by repeated decisions.
- Computing the closed-form keep rate of the built-in strategies.
- Tabulating both across counts and measuring their largest gap.
"""

from .utils import (
    calculate_max_abs_error,
    estimate_keep_rate,
    expected_keep_rate,
    keep_rate_table,
)

__all__ = [
    "calculate_max_abs_error",
    "estimate_keep_rate",
    "expected_keep_rate",
    "keep_rate_table",
]
