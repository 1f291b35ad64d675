"""Configuration module for partition selection."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from partition_selection.validation import validate_privacy_parameters


class SelectionStrategy(Enum):
    """Closed set of partition-selection strategies."""

    PREAGGREGATION = "preaggregation"
    LAPLACE_THRESHOLDING = "laplace"


@dataclass(frozen=True)
class PrivacyConfig:
    """Privacy-budget parameters of the selection.

    Attributes
    ----------
        epsilon: float
            Total epsilon spent on selecting partitions.
        delta: float
            Total delta spent on selecting partitions.
        max_partitions_contributed: int
            Max number of partitions a single user can contribute to.

    Raises
    ------
        InvalidArgumentError: If any parameter fails the builder validation.
    """

    epsilon: float = 1.0
    delta: float = 1e-5
    max_partitions_contributed: int = 1

    def __post_init__(self) -> None:
        """Validate values after initialization."""
        validate_privacy_parameters(self.epsilon, self.delta, self.max_partitions_contributed)


@dataclass(frozen=True)
class SelectionConfig:
    """Which strategy to run and how to seed it.

    Attributes
    ----------
        strategy: str
            Value of a :class:`SelectionStrategy`.
        seed: int | None
            Seed of the strategy's random generator, ``None`` for OS entropy.

    Raises
    ------
        ValueError: If strategy is unknown.
    """

    strategy: str = SelectionStrategy.LAPLACE_THRESHOLDING.value
    seed: int | None = None

    def __post_init__(self) -> None:
        """Validate values after initialization."""
        known = [s.value for s in SelectionStrategy]
        if self.strategy not in known:
            msg = f"strategy must be one of {known}, got {self.strategy!r}"
            raise ValueError(msg)

    @property
    def kind(self) -> SelectionStrategy:
        return SelectionStrategy(self.strategy)


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters of the keep-rate simulation.

    Attributes
    ----------
        counts: tuple[int, ...]
            Distinct-user counts to evaluate.
        num_trials: int
            Number of ``should_keep`` calls per count.

    Raises
    ------
        ValueError: If counts is empty or num_trials is not positive.
    """

    counts: tuple[int, ...] = (0, 1, 2, 5, 10, 20, 50)
    num_trials: int = 10_000

    def __post_init__(self) -> None:
        """Validate values after initialization."""
        if not self.counts:
            msg = "counts must not be empty"
            raise ValueError(msg)
        if self.num_trials <= 0:
            msg = f"num_trials must be > 0, got {self.num_trials}"
            raise ValueError(msg)


@dataclass(frozen=True)
class Config:
    """
    Top-level configuration for partition selection.

    Groups
    ----------
        privacy: PrivacyConfig
            Privacy budget of the selection.
        selection: SelectionConfig
            Strategy choice and seeding.
        simulation: SimulationConfig
            Keep-rate simulation parameters.
        verbose: bool
            Flag to enable debug logging.

    Raises
    ------
        ValueError: If any of the sub-configs contain invalid values.
    """

    privacy: PrivacyConfig = field(default_factory=PrivacyConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    verbose: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Recursively convert to plain dict (for logging, serialization)."""
        data = asdict(self)
        data["simulation"]["counts"] = list(self.simulation.counts)
        return data

    def to_yaml(self) -> str:
        """Dump entire config as a YAML string."""
        return yaml.safe_dump(self.to_dict(), sort_keys=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build Config by unpacking each sub-dict into its sub-config."""
        simulation = dict(data.get("simulation", {}))
        if "counts" in simulation:
            simulation["counts"] = tuple(simulation["counts"])
        return cls(
            privacy=PrivacyConfig(**data.get("privacy", {})),
            selection=SelectionConfig(**data.get("selection", {})),
            simulation=SimulationConfig(**simulation),
            verbose=data.get("verbose", False),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> Config:
        """Load a YAML file and return a Config."""
        path = Path(path)
        with path.open() as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})
