"""Calibration mathematics for differentially private partition selection.

Closed-form helpers shared by the partition-selection strategies and the noise
mechanisms: per-partition budget splitting, the Laplace tail probability and
its inverse, and the crossover points of the preaggregation keep-probability
curve.
"""

import math
import numbers

import numpy as np


def adjusted_epsilon(epsilon: float, max_partitions_contributed: int) -> float:
    r"""Split epsilon evenly over the partitions a single user may touch.

    Implements:
        \epsilon' = \epsilon / k

    Args
    ------
        epsilon (float): Total privacy budget of the selection.
        max_partitions_contributed (int): Max partitions ``k`` per user.

    Returns
    -------
        Per-partition \epsilon'.
    """
    return epsilon / max_partitions_contributed


def adjusted_delta(delta: float, max_partitions_contributed: int) -> float:
    r"""Per-partition delta such that ``k`` partitions compose back to ``delta``.

    Implements:
        \delta' = 1 - (1 - \delta)^{1/k}

    evaluated as ``-expm1(log1p(-delta) / k)`` so tiny deltas keep their
    precision.

    Args
    ------
        delta (float): Total delta of the selection, in (0, 1).
        max_partitions_contributed (int): Max partitions ``k`` per user.

    Returns
    -------
        Per-partition \delta'.
    """
    return -math.expm1(math.log1p(-delta) / max_partitions_contributed)


def composed_delta(partition_delta: float, max_partitions_contributed: int) -> float:
    r"""Inverse of :func:`adjusted_delta`.

    Implements:
        \delta = 1 - (1 - \delta')^{k}
    """
    if partition_delta >= 1.0:
        return 1.0
    return -math.expm1(max_partitions_contributed * math.log1p(-partition_delta))


def laplace_tail_probability(distance: float, diversity: float) -> float:
    r"""Probability that a Laplace(0, b) sample is at least ``distance``.

    Implements:
        P(X \ge d) = \tfrac12 e^{-d/b}        if d \ge 0
        P(X \ge d) = 1 - \tfrac12 e^{d/b}     otherwise

    Args
    ------
        distance (float): Offset ``d`` from the centre of the distribution.
        diversity (float): Laplace scale ``b``.

    Returns
    -------
        Tail mass in [0, 1].
    """
    if distance >= 0:
        return 0.5 * math.exp(-distance / diversity)
    return 1.0 - 0.5 * math.exp(distance / diversity)


def laplace_inverse_tail_probability(probability: float, diversity: float) -> float:
    r"""Offset ``d`` such that a Laplace(0, b) sample is at least ``d`` with ``probability``.

    Inverse of :func:`laplace_tail_probability`:
        d = -b \log(2p)           if p \le 1/2
        d = b \log(2(1 - p))      otherwise

    Returns ``inf`` for ``p <= 0`` and ``-inf`` for ``p >= 1``.
    """
    if probability <= 0.0:
        return math.inf
    if probability >= 1.0:
        return -math.inf
    if probability <= 0.5:
        return -diversity * math.log(2.0 * probability)
    return diversity * math.log(2.0 * (1.0 - probability))


def exponential_growth_ratio(n: float, epsilon: float) -> float:
    r"""Compute (e^{n\epsilon} - 1) / (e^{\epsilon} - 1) without overflow.

    Rewritten as e^{(n-1)\epsilon} \cdot \mathrm{expm1}(-n\epsilon) / \mathrm{expm1}(-\epsilon),
    which tends to ``n`` as \epsilon \to 0.
    """
    return math.exp((n - 1) * epsilon) * math.expm1(-n * epsilon) / math.expm1(-epsilon)


def preagg_first_crossover(epsilon: float, delta: float) -> float:
    r"""Last count at which the keep probability still grows exponentially.

    The exponential regime \pi(n) = e^{\epsilon}\pi(n-1) + \delta stays optimal
    while \pi(n-1) \le (1 - \delta) / (1 + e^{\epsilon}), which solves to:
        n_1 = 1 + \lfloor \log1p(\tanh(\epsilon/2)(1 - \delta)/\delta) / \epsilon \rfloor

    Args
    ------
        epsilon (float): Per-partition \epsilon'.
        delta (float): Per-partition \delta'.

    Returns
    -------
        First crossover n_1 as a float.
    """
    ratio = math.tanh(epsilon / 2.0) * (1.0 - delta) / delta
    return 1.0 + float(np.floor(math.log1p(ratio) / epsilon))


def preagg_second_crossover(
    epsilon: float,
    delta: float,
    first_crossover: float,
) -> float:
    r"""Last count whose keep probability is still below one.

    Past the first crossover, 1 - \pi(n) = e^{-\epsilon}(1 - \pi(n-1) - \delta),
    which stays positive for m = n - n_1 steps while:
        m < \log(1 + (e^{\epsilon} - 1)(1 - \pi(n_1))/\delta) / \epsilon

    The logarithm is evaluated with ``numpy.logaddexp`` so that large epsilons
    never overflow.

    Args
    ------
        epsilon (float): Per-partition \epsilon'.
        delta (float): Per-partition \delta'.
        first_crossover (float): n_1 from :func:`preagg_first_crossover`.

    Returns
    -------
        Second crossover n_2 >= n_1 as a float.
    """
    remaining = 1.0 - delta * exponential_growth_ratio(first_crossover, epsilon)
    if remaining <= 0.0:
        return first_crossover
    # (e^eps - 1) * remaining / delta == e^eps * scaled, kept in log space
    log_scaled = math.log(-math.expm1(-epsilon)) + math.log(remaining) - math.log(delta)
    steps = np.logaddexp(0.0, epsilon + log_scaled) / epsilon
    return first_crossover + float(np.floor(steps))


def preagg_keep_probability(
    n: float,
    epsilon: float,
    delta: float,
    first_crossover: float,
    second_crossover: float,
) -> float:
    r"""Probability with which a partition with ``n`` users is kept.

    Implements the piecewise curve:
        0                                                     n \le 0
        \delta (e^{n\epsilon} - 1)/(e^{\epsilon} - 1)           0 < n \le n_1
        (1 - e^{-m\epsilon})(1 + \delta/(e^{\epsilon} - 1)) + e^{-m\epsilon}\pi(n_1)
                                                              n_1 < n \le n_2, m = n - n_1
        1                                                     n > n_2

    Non-finite counts are treated as empty partitions.
    """
    if is_empty_count(n):
        return 0.0
    if n <= first_crossover:
        return min(1.0, delta * exponential_growth_ratio(n, epsilon))
    if n <= second_crossover:
        m = n - first_crossover
        at_crossover = delta * exponential_growth_ratio(first_crossover, epsilon)
        # delta (1 - e^{-m eps}) / (e^eps - 1) as a ratio of expm1 terms, finite for subnormal epsilons
        accumulated = delta * math.exp(-epsilon) * math.expm1(-m * epsilon) / math.expm1(-epsilon)
        probability = -math.expm1(-m * epsilon) + accumulated + math.exp(-m * epsilon) * at_crossover
        return min(1.0, probability)
    return 1.0


def is_empty_count(n: float) -> bool:
    """Whether ``n`` selects nothing: non-positive, NaN or infinite.

    Python integers are checked without a float conversion, so counts beyond
    the float range are not empty.
    """
    if isinstance(n, numbers.Integral):
        return n <= 0
    return not math.isfinite(n) or n <= 0
