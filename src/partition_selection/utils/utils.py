"""Utility functions for simulating and evaluating keep rates of partition selection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from partition_selection.differential_privacy import is_empty_count
from partition_selection.strategies import (
    LaplacePartitionSelection,
    PreaggPartitionSelection,
)

# Only import heavy types for type checking
if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from partition_selection.strategies import PartitionSelectionStrategy


def estimate_keep_rate(
    strategy: PartitionSelectionStrategy,
    num_users: float,
    num_trials: int,
) -> float:
    """
    Fraction of ``num_trials`` independent ``should_keep`` calls that keep the partition.

    Args
    -----
        strategy (PartitionSelectionStrategy): Strategy under evaluation.
        num_users (float): Distinct-user count of the partition.
        num_trials (int): Number of decisions to draw.

    Returns
    -------
        Empirical keep rate in [0, 1].

    Raises
    ------
        ValueError: If num_trials is not positive.
    """
    if num_trials <= 0:
        msg = f"num_trials must be > 0, got {num_trials}"
        raise ValueError(msg)
    kept = sum(1 for _ in range(num_trials) if strategy.should_keep(num_users))
    return kept / num_trials


def expected_keep_rate(strategy: PartitionSelectionStrategy, num_users: float) -> float:
    """
    Closed-form keep probability of ``strategy`` for ``num_users`` users.

    Args
    -----
        strategy (PartitionSelectionStrategy): A preaggregation or Laplace strategy.
        num_users (float): Distinct-user count of the partition.

    Returns
    -------
        Probability in [0, 1].

    Raises
    ------
        TypeError: If the strategy kind has no closed form.
    """
    if isinstance(strategy, PreaggPartitionSelection):
        return strategy.probability_of_keep(num_users)
    if isinstance(strategy, LaplacePartitionSelection):
        if is_empty_count(num_users):
            return 0.0
        return strategy.mechanism.noised_value_above_threshold(num_users, strategy.threshold)
    msg = f"No closed-form keep rate for {type(strategy).__name__}"
    raise TypeError(msg)


def keep_rate_table(
    strategy: PartitionSelectionStrategy,
    counts: Sequence[float],
    num_trials: int,
) -> NDArray[np.float64]:
    """
    Empirical and expected keep rates for each count.

    Args
    -----
        strategy (PartitionSelectionStrategy): Strategy under evaluation.
        counts (Sequence[float]): Distinct-user counts to evaluate.
        num_trials (int): Decisions drawn per count.

    Returns
    -------
        NDArray[np.float64]: Array of shape ``(len(counts), 3)`` with columns
            count, empirical rate, expected rate.
    """
    rows = [
        (float(n), estimate_keep_rate(strategy, n, num_trials), expected_keep_rate(strategy, n))
        for n in counts
    ]
    return np.array(rows, dtype=float).reshape(len(rows), 3)


def calculate_max_abs_error(table: NDArray[np.float64]) -> float:
    """Largest gap between empirical and expected keep rates in a :func:`keep_rate_table`."""
    if table.size == 0:
        return 0.0
    return float(np.max(np.abs(table[:, 1] - table[:, 2])))
