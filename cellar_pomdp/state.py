"""
World state of a Cellar episode.

Each bottle and object record keeps two views side by side:

- the **ground truth** (is the bottle valuable, is the object a crate),
  which only the simulator may read, and
- the **belief** the agent has built from its CHECK actions so far
  (signed vote count, number of measurements, likelihoods and posterior).

Search drivers branch by copying whole states; no two live branches ever
share a record. The ``StatePool`` recycles state objects by slot index so
that branching does not allocate once the pool is warm.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List

from scipy.stats import entropy as scipy_entropy

from cellar_pomdp.coord import Coord


class ObjectKind(IntEnum):
    UNKNOWN = 0
    CRATE = 1
    SHELF = 2


# ---------------------------------------------------------------------------
# Belief view
# ---------------------------------------------------------------------------

@dataclass
class Belief:
    """
    Running estimate of one binary hidden attribute.

    ``probability`` is the posterior that the attribute is true (bottle is
    valuable, object is a crate) under a uniform prior.
    """
    count: int = 0
    measured: int = 0
    likelihood_true: float = 1.0
    likelihood_false: float = 1.0
    probability: float = 0.5

    def update(self, positive: bool, efficiency: float) -> None:
        """Fold in one noisy reading that is correct with ``efficiency``."""
        self.measured += 1
        if positive:
            self.count += 1
            self.likelihood_true *= efficiency
            self.likelihood_false *= 1.0 - efficiency
        else:
            self.count -= 1
            self.likelihood_true *= 1.0 - efficiency
            self.likelihood_false *= efficiency

        total = self.likelihood_true + self.likelihood_false
        if total <= 0.0:
            # Two contradicting certain readings; start the likelihoods over
            self.likelihood_true = self.likelihood_false = 1.0
            self.probability = 0.5
        else:
            self.probability = self.likelihood_true / total

    def entropy(self) -> float:
        """Binary entropy of the posterior, in bits."""
        return float(scipy_entropy([self.probability, 1.0 - self.probability],
                                   base=2))

    def resolved(self, entropy_limit: float, min_measurements: int) -> bool:
        return (self.measured > min_measurements
                and self.entropy() < entropy_limit)

    def copy(self) -> Belief:
        return Belief(self.count, self.measured, self.likelihood_true,
                      self.likelihood_false, self.probability)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass
class BottleTruth:
    valuable: bool


@dataclass
class ObjectTruth:
    kind: ObjectKind

    @property
    def is_crate(self) -> bool:
        return self.kind == ObjectKind.CRATE


@dataclass
class BottleRecord:
    truth: BottleTruth
    belief: Belief = field(default_factory=Belief)
    collected: bool = False

    def copy(self) -> BottleRecord:
        return BottleRecord(BottleTruth(self.truth.valuable),
                            self.belief.copy(), self.collected)


@dataclass
class ObjectRecord:
    position: Coord
    truth: ObjectTruth
    belief: Belief = field(default_factory=Belief)
    assumed: ObjectKind = ObjectKind.UNKNOWN
    active: bool = True

    def copy(self) -> ObjectRecord:
        return ObjectRecord(self.position, ObjectTruth(self.truth.kind),
                            self.belief.copy(), self.assumed, self.active)


@dataclass
class CellarState:
    """Everything that changes during an episode."""
    agent: Coord
    bottles: List[BottleRecord] = field(default_factory=list)
    objects: List[ObjectRecord] = field(default_factory=list)
    target: int = -1
    collected_bottles: int = 0
    wasted_actions: int = 0
    slot: int = -1

    def copy(self) -> CellarState:
        """Independent copy. The copy is not attached to any pool slot."""
        return CellarState(
            agent=self.agent,
            bottles=[b.copy() for b in self.bottles],
            objects=[o.copy() for o in self.objects],
            target=self.target,
            collected_bottles=self.collected_bottles,
            wasted_actions=self.wasted_actions,
        )

    def assign_from(self, other: CellarState) -> None:
        """Overwrite this state's contents with ``other``, keeping the slot."""
        self.agent = other.agent
        self.bottles = [b.copy() for b in other.bottles]
        self.objects = [o.copy() for o in other.objects]
        self.target = other.target
        self.collected_bottles = other.collected_bottles
        self.wasted_actions = other.wasted_actions


# ---------------------------------------------------------------------------
# Pooled allocation
# ---------------------------------------------------------------------------

class StatePool:
    """
    Arena of states addressed by slot index, with a free list.

    Not thread-safe: give each search thread its own simulator (and so its
    own pool).
    """

    def __init__(self):
        self._slots: List[CellarState] = []
        self._free: List[int] = []

    def adopt(self, state: CellarState) -> CellarState:
        """Give a freshly built state a slot."""
        if state.slot >= 0:
            raise ValueError(f"state already owns slot {state.slot}")
        if self._free:
            index = self._free.pop()
            self._slots[index] = state
        else:
            index = len(self._slots)
            self._slots.append(state)
        state.slot = index
        return state

    def allocate(self, source: CellarState) -> CellarState:
        """Return a pooled copy of ``source``, reusing a free slot if any."""
        if self._free:
            index = self._free.pop()
            state = self._slots[index]
            state.assign_from(source)
            return state
        return self.adopt(source.copy())

    def release(self, state: CellarState) -> None:
        index = state.slot
        if index < 0 or index >= len(self._slots) or self._slots[index] is not state:
            raise ValueError("state does not belong to this pool")
        if index in self._free:
            raise ValueError(f"slot {index} released twice")
        self._free.append(index)

    @property
    def capacity(self) -> int:
        return len(self._slots)

    @property
    def in_use(self) -> int:
        return len(self._slots) - len(self._free)
