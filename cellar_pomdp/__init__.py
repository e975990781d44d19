"""
Cellar: a POMDP benchmark with irrelevant obstacles.

An agent navigates an n x n cellar, senses which bottles are worth taking
and which obstacles are crates (pushable) or shelves (not), and must leave
through the east edge with at least one valuable bottle. The package
provides the generative model a planner needs: start states, transitions,
legal and preferred actions, the PGS guidance heuristic and a local
repair move for particle beliefs.
"""

from cellar_pomdp.actions import ActionKind, ActionSpace, Observation
from cellar_pomdp.config import (
    CellarConfig, CellarError, ConfigurationError, GuidanceWeights,
    IllegalActionError, InvariantViolation, RewardTable, PRESETS,
)
from cellar_pomdp.coord import Compass, Coord
from cellar_pomdp.heuristic import PotentialGuide
from cellar_pomdp.history import History, HistoryEntry, SearchPhase, Status
from cellar_pomdp.rollout import (
    EpisodeLog, RolloutConfig, RolloutPolicy, RolloutResult, RolloutRunner,
)
from cellar_pomdp.simulator import Cellar, RewardMode, StepOutcome
from cellar_pomdp.state import CellarState, ObjectKind, StatePool

__version__ = "0.1.0"
__all__ = [
    "Cellar",
    "CellarConfig",
    "CellarState",
    "StepOutcome",
    "RewardMode",
    "RewardTable",
    "GuidanceWeights",
    "PRESETS",
    "PotentialGuide",
    "ActionSpace",
    "ActionKind",
    "Observation",
    "ObjectKind",
    "StatePool",
    "Compass",
    "Coord",
    "History",
    "HistoryEntry",
    "SearchPhase",
    "Status",
    "RolloutRunner",
    "RolloutConfig",
    "RolloutPolicy",
    "RolloutResult",
    "EpisodeLog",
    "CellarError",
    "ConfigurationError",
    "IllegalActionError",
    "InvariantViolation",
]
