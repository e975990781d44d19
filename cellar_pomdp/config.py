"""
Configuration for a Cellar instance.

A Cellar problem is named by four numbers, cellar[n, m, c, s]: an n x n
grid holding m bottles, c crates and s shelves. The remaining fields tune
the sensor model, the belief-resolution thresholds and the rewards, and
default to the values the published experiments used.

Configurations are frozen. Anything that cannot describe a playable grid is
rejected when the config is built; values are never clamped.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class CellarError(Exception):
    """Base class for every error raised by the simulator."""


class ConfigurationError(CellarError, ValueError):
    """The requested configuration cannot be built."""


class InvariantViolation(CellarError, AssertionError):
    """A state broke one of the world invariants."""


class IllegalActionError(CellarError, ValueError):
    """The action code is unknown, or the state is already terminal."""


# ---------------------------------------------------------------------------
# Presets: (size, bottles, crates, shelves)
# ---------------------------------------------------------------------------

PRESETS: Dict[str, Tuple[int, int, int, int]] = {
    "5_1": (5, 1, 0, 4),
    "5_2": (5, 2, 6, 4),
    "7_8": (7, 8, 7, 8),
    "11_11": (11, 11, 15, 15),
}


@dataclass(frozen=True)
class RewardTable:
    """Rewards per event. The step penalty is added to every action."""
    step: float = -1.0
    failed_push: float = -10.0
    empty_sample: float = -10.0
    valuable_sample: float = 10.0
    worthless_sample: float = -10.0
    exit_per_bottle: float = 10.0
    exit_empty: float = 0.0


@dataclass(frozen=True)
class GuidanceWeights:
    """Weights of the terms in the PGS potential."""
    distance: float = 1.0   # per tile between agent and goal
    resolve: float = 2.0    # per resolved, uncollected bottle
    collect: float = 10.0   # per valuable bottle collected
    waste: float = 1.0      # per wasted action


@dataclass(frozen=True)
class CellarConfig:
    """Parameters of one Cellar problem."""
    size: int = 5
    bottles: int = 2
    crates: int = 6
    shelves: int = 4
    discount: float = 0.95
    entropy: float = 0.5                  # bits; below this a belief is resolved
    activation_threshold: float = 0.5
    half_efficiency_distance: float = 20.0
    uncertainty_count: int = 0            # measurements needed before resolving
    valuable_prior: float = 0.5
    randomize_layout: bool = False
    seed: Optional[int] = None
    rewards: RewardTable = field(default_factory=RewardTable)
    weights: GuidanceWeights = field(default_factory=GuidanceWeights)

    def __post_init__(self) -> None:
        if self.size < 1:
            raise ConfigurationError(f"grid size must be >= 1, got {self.size}")
        for name in ("bottles", "crates", "shelves", "uncertainty_count"):
            if getattr(self, name) < 0:
                raise ConfigurationError(
                    f"{name} must be non-negative, got {getattr(self, name)}")
        if not 0.0 < self.discount <= 1.0:
            raise ConfigurationError(
                f"discount must be in (0, 1], got {self.discount}")
        for name in ("entropy", "activation_threshold", "valuable_prior"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be in [0, 1], got {value}")
        if self.half_efficiency_distance <= 0:
            raise ConfigurationError(
                "half_efficiency_distance must be positive, "
                f"got {self.half_efficiency_distance}")

        # One tile is always reserved for the agent's start position
        capacity = self.size * self.size - 1
        if self.bottles + self.num_objects > capacity:
            raise ConfigurationError(
                f"cellar[{self.size},{self.bottles},{self.crates},{self.shelves}] "
                f"needs {self.bottles + self.num_objects} tiles, "
                f"only {capacity} are free")

    @property
    def num_objects(self) -> int:
        return self.crates + self.shelves

    @property
    def dimensions(self) -> Tuple[int, int, int, int]:
        return (self.size, self.bottles, self.crates, self.shelves)

    @property
    def preset_name(self) -> Optional[str]:
        """Name of the preset layout this config uses, if any."""
        if self.randomize_layout:
            return None
        for name, dims in PRESETS.items():
            if dims == self.dimensions:
                return name
        return None

    @classmethod
    def preset(cls, name: str, **overrides) -> CellarConfig:
        """Build a config for one of the named presets, e.g. ``"5_2"``."""
        if name not in PRESETS:
            raise ConfigurationError(
                f"unknown preset {name!r}, choose from {sorted(PRESETS)}")
        size, bottles, crates, shelves = PRESETS[name]
        return cls(size=size, bottles=bottles, crates=crates,
                   shelves=shelves, **overrides)

    def with_changes(self, **changes) -> CellarConfig:
        return replace(self, **changes)
