"""Unit tests for the preaggregation partition-selection strategy."""

import math
import re

import pytest
from numpy.random import default_rng

from partition_selection.errors import StatusCode
from partition_selection.strategies import PreaggPartitionSelection
from partition_selection.utils import estimate_keep_rate

NUM_SAMPLES = 1_000_000
MEDIUM_NUM_SAMPLES = 200_000
LARGE_NUM_SAMPLES = 10_000_000


@pytest.fixture
def strategy() -> PreaggPartitionSelection:
    """Strategy with epsilon=0.5, delta=0.02 and one partition per user."""
    return (
        PreaggPartitionSelection.Builder()
        .set_epsilon(0.5)
        .set_delta(0.02)
        .set_max_partitions_contributed(1)
        .set_random_generator(default_rng(1234))
        .build()
        .value_or_raise()
    )


@pytest.mark.parametrize("epsilon,delta,max_partitions,pattern", [
    (None, 0.1, 2, r"^Epsilon has to be set.*"),
    (math.nan, 0.3, 4, r"^Epsilon has to be finite.*"),
    (math.inf, 0.3, 4, r"^Epsilon has to be finite.*"),
    (-5.0, 0.6, 7, r"^Epsilon has to be positive.*"),
    (0.0, 0.6, 7, r"^Epsilon has to be positive.*"),
    (8.0, None, 9, r"^Delta has to be set.*"),
    (1.2, math.nan, 3, r"^Delta has to be finite.*"),
    (4.5, 6.0, 7, r"^Delta has to be in the interval.*"),
    (4.5, 0.0, 7, r"^Delta has to be in the interval.*"),
    (4.5, 1.0, 7, r"^Delta has to be in the interval.*"),
    (0.8, 0.9, None, r"^Max number of partitions a user can contribute to has to be set.*"),
    (0.8, 0.9, 2.5, r"^Max number of partitions a user can contribute to has to be an integer.*"),
    (0.1, 0.2, -3, r"^Max number of partitions a user can contribute to has to be positive.*"),
    (0.1, 0.2, 0, r"^Max number of partitions a user can contribute to has to be positive.*"),
    ("x", 0.1, 1, r"^Epsilon has to be finite.*"),
    (True, 0.1, 1, r"^Epsilon has to be finite.*"),
    (10**400, 0.1, 1, r"^Epsilon has to be finite.*"),
    (0.5, "x", 1, r"^Delta has to be finite.*"),
    (0.5, 0.1, True, r"^Max number of partitions a user can contribute to has to be an integer.*"),
    (0.5, 0.1, "2", r"^Max number of partitions a user can contribute to has to be an integer.*"),
])
def test_build_rejects_invalid_parameters(epsilon, delta, max_partitions, pattern) -> None:
    """Each invalid parameter yields an invalid-argument result with a stable prefix."""
    builder = PreaggPartitionSelection.Builder()
    if epsilon is not None:
        builder.set_epsilon(epsilon)
    if delta is not None:
        builder.set_delta(delta)
    if max_partitions is not None:
        builder.set_max_partitions_contributed(max_partitions)
    result = builder.build()

    assert not result.ok
    assert result.value is None
    assert result.code == StatusCode.INVALID_ARGUMENT
    assert re.match(pattern, result.message)


def test_validation_order_epsilon_before_delta_before_max_partitions() -> None:
    """With everything invalid, the epsilon check is reported first, then delta."""
    result = PreaggPartitionSelection.Builder().set_delta(5.0).set_max_partitions_contributed(-1).build()
    assert result.message.startswith("Epsilon has to be set")

    result = PreaggPartitionSelection.Builder().set_epsilon(1.0).set_delta(5.0).set_max_partitions_contributed(-1).build()
    assert result.message.startswith("Delta has to be in the interval")


def test_build_exposes_parameters(strategy: PreaggPartitionSelection) -> None:
    """Accessors return the validated parameters."""
    assert strategy.get_epsilon() == 0.5
    assert strategy.get_delta() == 0.02
    assert strategy.get_max_partitions_contributed() == 1
    assert strategy.adjusted_epsilon == 0.5
    assert strategy.adjusted_delta == pytest.approx(0.02, abs=1e-15)


def test_crossovers(strategy: PreaggPartitionSelection) -> None:
    """Crossovers for epsilon=0.5, delta=0.02 are exactly 6 and 11."""
    assert strategy.get_first_crossover() == 6.0
    assert strategy.get_second_crossover() == 11.0


def test_one_user_kept_with_probability_delta(strategy: PreaggPartitionSelection) -> None:
    """A single-user partition is kept with probability delta."""
    assert strategy.probability_of_keep(1) == pytest.approx(0.02, abs=1e-12)
    rate = estimate_keep_rate(strategy, 1, NUM_SAMPLES)
    assert rate == pytest.approx(strategy.get_delta(), abs=0.001)


def test_no_users_never_kept(strategy: PreaggPartitionSelection) -> None:
    """Empty, negative and non-finite counts are always dropped."""
    for n in (0, -1, -100, math.nan, math.inf):
        for _ in range(1000):
            assert not strategy.should_keep(n)


def test_certain_decisions_consume_no_randomness() -> None:
    """Counts at or beyond the deterministic regimes leave the generator untouched."""
    rng = default_rng(7)
    strategy = PreaggPartitionSelection(0.5, 0.02, 1, rng)
    before = rng.bit_generator.state
    strategy.should_keep(0)
    strategy.should_keep(15)
    assert rng.bit_generator.state == before

    strategy.should_keep(6)
    assert rng.bit_generator.state != before


def test_keep_probability_at_first_crossover(strategy: PreaggPartitionSelection) -> None:
    """Keep probability at n=6 matches the closed form."""
    assert strategy.probability_of_keep(6) == pytest.approx(0.58840484458, abs=1e-6)
    rate = estimate_keep_rate(strategy, 6, MEDIUM_NUM_SAMPLES)
    assert rate == pytest.approx(0.58840484458, abs=0.005)


def test_keep_probability_between_crossovers(strategy: PreaggPartitionSelection) -> None:
    """Keep probability at n=8 matches the closed form."""
    assert strategy.probability_of_keep(8) == pytest.approx(0.86807080625, abs=1e-6)
    rate = estimate_keep_rate(strategy, 8, MEDIUM_NUM_SAMPLES)
    assert rate == pytest.approx(0.86807080625, abs=0.005)


def test_keep_probability_at_second_crossover_below_one(strategy: PreaggPartitionSelection) -> None:
    """The second crossover itself is still randomized; the next count is certain."""
    assert 0.99 < strategy.probability_of_keep(11) < 1.0
    assert strategy.probability_of_keep(12) == 1.0


def test_large_counts_always_kept(strategy: PreaggPartitionSelection) -> None:
    """Counts past the second crossover are always kept."""
    for n in (12, 15, 1000, 10**9):
        for _ in range(1000):
            assert strategy.should_keep(n)


def test_probability_is_monotone_and_continuous(strategy: PreaggPartitionSelection) -> None:
    """The curve never decreases and joins smoothly at the first crossover."""
    values = [strategy.probability_of_keep(n / 4) for n in range(0, 60)]
    assert all(b >= a for a, b in zip(values, values[1:]))

    below = strategy.probability_of_keep(6.0 - 1e-9)
    above = strategy.probability_of_keep(6.0 + 1e-9)
    assert above == pytest.approx(below, abs=1e-6)


@pytest.mark.parametrize("epsilon,delta,max_partitions", [
    (0.5, 0.02, 1),
    (1.0, 1e-5, 1),
    (2.0, 1e-3, 3),
    (0.1, 0.1, 1),
    (5.0, 1e-6, 1),
    (1.5, 0.05, 10),
])
def test_curve_satisfies_privacy_constraints(epsilon, delta, max_partitions) -> None:
    """Neighbouring counts respect the per-partition (epsilon, delta) constraints."""
    strategy = PreaggPartitionSelection(epsilon, delta, max_partitions)
    growth = math.exp(strategy.adjusted_epsilon)
    d = strategy.adjusted_delta
    tol = 1e-9
    for n in range(1, int(strategy.second_crossover) + 5):
        prev = strategy.probability_of_keep(n - 1)
        cur = strategy.probability_of_keep(n)
        assert cur <= growth * prev + d + tol
        assert 1.0 - prev <= growth * (1.0 - cur) + d + tol


def test_multiple_partitions_split_the_budget() -> None:
    """With k partitions the curve uses epsilon/k and the k-th root delta."""
    strategy = PreaggPartitionSelection(1.0, 0.02, 2)
    assert strategy.adjusted_epsilon == 0.5
    assert strategy.adjusted_delta == pytest.approx(1 - math.sqrt(0.98), rel=1e-12)
    assert strategy.probability_of_keep(1) == pytest.approx(strategy.adjusted_delta, rel=1e-12)


@pytest.mark.parametrize("delta,n,expected", [
    (0.02, 6, 0.12),
    (0.15, 3, 0.45),
    (0.02, 40, 0.8),
    (0.02, 1, 0.02),
    (0.02, 45, 0.9),
    (0.02, 60, 1.0),
])
def test_tiny_epsilon_degenerates_to_n_times_delta(delta, n, expected) -> None:
    """As epsilon goes to zero the keep probability tends to min(1, n * delta)."""
    strategy = PreaggPartitionSelection(1e-20, delta, 1)
    assert expected == pytest.approx(min(1.0, n * delta))
    assert strategy.probability_of_keep(n) == pytest.approx(expected, abs=0.001)


def test_tiny_epsilon_monte_carlo() -> None:
    """Monte Carlo keep rate at tiny epsilon matches n * delta."""
    strategy = PreaggPartitionSelection(1e-20, 0.02, 1, default_rng(99))
    rate = estimate_keep_rate(strategy, 6, MEDIUM_NUM_SAMPLES)
    assert rate == pytest.approx(0.12, abs=0.005)


@pytest.mark.parametrize("epsilon", [1e-300, 1e-310, 1e-320])
@pytest.mark.parametrize("n", [26, 40])
def test_subnormal_epsilon_keeps_n_times_delta(epsilon, n) -> None:
    """Epsilons down to the subnormal range stay on the min(1, n * delta) curve past the first crossover."""
    strategy = PreaggPartitionSelection(epsilon, 0.02, 1)
    assert strategy.probability_of_keep(n) == pytest.approx(min(1.0, n * 0.02), abs=0.001)
    assert strategy.probability_of_keep(n) < 1.0


@pytest.mark.slow
@pytest.mark.parametrize("n,expected", [
    (6, 0.58840484458),
    (8, 0.86807080625),
])
def test_keep_rate_over_ten_million_trials(n, expected) -> None:
    """Ten million seeded draws land within 0.001 of the closed form."""
    strategy = PreaggPartitionSelection(0.5, 0.02, 1, default_rng(2024))
    rate = estimate_keep_rate(strategy, n, LARGE_NUM_SAMPLES)
    assert rate == pytest.approx(expected, abs=0.001)


def test_counts_beyond_float_range_are_kept(strategy: PreaggPartitionSelection) -> None:
    """Python integers too large for a float are kept without conversion errors."""
    assert strategy.probability_of_keep(10**400) == 1.0
    assert strategy.should_keep(10**400)
    assert strategy.probability_of_keep(-10**400) == 0.0
    assert not strategy.should_keep(-10**400)


def test_large_epsilon_does_not_overflow() -> None:
    """Huge epsilons give finite crossovers and valid probabilities."""
    strategy = PreaggPartitionSelection(1000.0, 0.02, 1)
    assert math.isfinite(strategy.first_crossover)
    assert strategy.second_crossover >= strategy.first_crossover
    assert strategy.probability_of_keep(1) == pytest.approx(0.02)
    assert 0.0 <= strategy.probability_of_keep(2) <= 1.0
    assert strategy.should_keep(10)


def test_weighted_counts_are_accepted(strategy: PreaggPartitionSelection) -> None:
    """Fractional effective counts fall between their integer neighbours."""
    assert strategy.probability_of_keep(2) < strategy.probability_of_keep(2.5) < strategy.probability_of_keep(3)
