"""Validation of the privacy parameters shared by every strategy."""

from __future__ import annotations

import math
import numbers

from partition_selection.errors import InvalidArgumentError

MAX_PARTITIONS_NAME = "Max number of partitions a user can contribute to"


def is_finite_number(value: object) -> bool:
    """Whether ``value`` is a real, non-boolean number within the float range."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def is_integer(value: object) -> bool:
    """Whether ``value`` is an integral number; booleans are not counts."""
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def validate_privacy_parameters(
    epsilon: float | None,
    delta: float | None,
    max_partitions_contributed: int | None,
) -> None:
    """Check epsilon, then delta, then max_partitions_contributed.

    Each parameter is checked for being set, then finite (or integral), then
    its sign or range. The first violation is raised. Values of the wrong type
    fail the finite or integral check.

    Raises
    ------
        InvalidArgumentError: With a message prefix naming the violated check.
    """
    if epsilon is None:
        msg = "Epsilon has to be set."
        raise InvalidArgumentError(msg)
    if not is_finite_number(epsilon):
        msg = f"Epsilon has to be finite, but is {epsilon}."
        raise InvalidArgumentError(msg)
    if epsilon <= 0:
        msg = f"Epsilon has to be positive, but is {epsilon}."
        raise InvalidArgumentError(msg)

    if delta is None:
        msg = "Delta has to be set."
        raise InvalidArgumentError(msg)
    if not is_finite_number(delta):
        msg = f"Delta has to be finite, but is {delta}."
        raise InvalidArgumentError(msg)
    if not 0.0 < delta < 1.0:
        msg = f"Delta has to be in the interval (0, 1), but is {delta}."
        raise InvalidArgumentError(msg)

    if max_partitions_contributed is None:
        msg = f"{MAX_PARTITIONS_NAME} has to be set."
        raise InvalidArgumentError(msg)
    if not is_integer(max_partitions_contributed):
        msg = f"{MAX_PARTITIONS_NAME} has to be an integer, but is {max_partitions_contributed}."
        raise InvalidArgumentError(msg)
    if max_partitions_contributed <= 0:
        msg = f"{MAX_PARTITIONS_NAME} has to be positive, but is {max_partitions_contributed}."
        raise InvalidArgumentError(msg)
