"""
The Cellar simulator.

Cellar extends RockSample with obstacles. An agent on an n x n grid must
find the valuable bottles, collect at least one, and leave through the
east edge. Some tiles hold objects whose type is hidden: crates can be
pushed out of the way, shelves cannot. Every object adds a CHECK action and
makes four pushes plausible, so most of the action space is about things
that do not matter. Telling relevant obstacles from irrelevant ones without
exploring all of them is what the domain tests.

A search driver uses the simulator as a generative model:

    sim = Cellar(CellarConfig.preset("5_2"))
    state = sim.create_start_state()
    for action in plan:
        observation, reward, done = sim.step(state, action)

States are mutated in place. A driver that branches must ``copy`` first and
``free_state`` the branches it abandons.

Illegal actions
---------------
An action code outside the action space, or any step from a terminal state,
raises ``IllegalActionError``. In-range actions that are not currently legal
(walking into a shelf, sampling an empty tile, pushing thin air) execute as
penalised no-ops: the step penalty always applies, plus the failed-push or
empty-sample penalty for those two actions. Every entry point follows the
same rule.
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

from cellar_pomdp.actions import SAMPLE, ActionKind, ActionSpace, Observation
from cellar_pomdp.config import (
    CellarConfig, IllegalActionError, InvariantViolation,
)
from cellar_pomdp.coord import Compass, Coord
from cellar_pomdp.heuristic import PotentialGuide
from cellar_pomdp.history import History, SearchPhase, Status
from cellar_pomdp.layouts import build_layout, initial_state
from cellar_pomdp.state import CellarState, ObjectKind, StatePool

logger = logging.getLogger(__name__)


class RewardMode(Enum):
    PLAIN = "plain"
    SHAPED = "shaped"


class StepOutcome(NamedTuple):
    observation: Observation
    reward: float
    terminal: bool


class Cellar:
    """
    Generative model of the Cellar domain.

    Parameters
    ----------
    config : CellarConfig, optional
        Problem parameters. Defaults to cellar[5,2,6,4].
    """

    def __init__(self, config: Optional[CellarConfig] = None):
        self.config = config or CellarConfig()
        c = self.config
        self.size = c.size
        self.rewards = c.rewards
        self.actions = ActionSpace(c.bottles, c.num_objects)
        self.rng = random.Random(c.seed)
        self.layout = build_layout(c, np.random.RandomState(c.seed))
        self.start = self.layout.start
        self.bottle_positions = self.layout.bottle_positions
        self.guide = PotentialGuide(c, self.layout, self.actions)
        self.pool = StatePool()

    @property
    def num_actions(self) -> int:
        return self.actions.num_actions

    @property
    def discount(self) -> float:
        return self.config.discount

    def describe_action(self, action: int) -> str:
        return self.actions.describe(action)

    # ------------------------------------------------------------------
    # State lifecycle
    # ------------------------------------------------------------------

    def create_start_state(self) -> CellarState:
        state = initial_state(self.layout, self.config, self.rng)
        return self.pool.adopt(state)

    def copy(self, state: CellarState) -> CellarState:
        return self.pool.allocate(state)

    def free_state(self, state: CellarState) -> None:
        self.pool.release(state)

    # ------------------------------------------------------------------
    # Tile queries
    # ------------------------------------------------------------------

    def is_terminal(self, state: CellarState) -> bool:
        return state.agent.x >= self.size

    def object_number(self, state: CellarState, coord: Coord) -> int:
        """Index of the active object on ``coord``, or -1."""
        for j, obj in enumerate(state.objects):
            if obj.active and obj.position == coord:
                return j
        return -1

    def bottle_number(self, state: CellarState, coord: Coord) -> int:
        """Index of the uncollected bottle on ``coord``, or -1."""
        for i, pos in enumerate(self.bottle_positions):
            if pos == coord and not state.bottles[i].collected:
                return i
        return -1

    def crate_at(self, state: CellarState, coord: Coord) -> bool:
        j = self.object_number(state, coord)
        return j >= 0 and state.objects[j].truth.is_crate

    def shelf_at(self, state: CellarState, coord: Coord) -> bool:
        j = self.object_number(state, coord)
        return j >= 0 and not state.objects[j].truth.is_crate

    def free_tile(self, state: CellarState, coord: Coord) -> bool:
        """In-grid and not blocked by an object: the agent may stand here."""
        return coord.inside(self.size) and self.object_number(state, coord) < 0

    def empty_tile(self, state: CellarState, coord: Coord) -> bool:
        """Free, and holds neither an uncollected bottle nor the agent."""
        return (self.free_tile(state, coord)
                and self.bottle_number(state, coord) < 0
                and coord != state.agent)

    # ------------------------------------------------------------------
    # Sensor model
    # ------------------------------------------------------------------

    def efficiency(self, distance: float) -> float:
        """Probability that a CHECK from ``distance`` reads correctly."""
        return (1.0 + 2.0 ** (-distance / self.config.half_efficiency_distance)) * 0.5

    def observe_bottle(self, state: CellarState, bottle: int) -> Observation:
        distance = state.agent.euclidean(self.bottle_positions[bottle])
        correct = self.rng.random() < self.efficiency(distance)
        valuable = state.bottles[bottle].truth.valuable
        if correct == valuable:
            return Observation.GOOD
        return Observation.BAD

    def observe_object(self, state: CellarState, obj: int) -> Observation:
        distance = state.agent.euclidean(state.objects[obj].position)
        correct = self.rng.random() < self.efficiency(distance)
        crate = state.objects[obj].truth.is_crate
        if correct == crate:
            return Observation.CRATE
        return Observation.SHELF

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def step(self, state: CellarState, action: int) -> StepOutcome:
        """Apply ``action`` and return the plain reward."""
        observation, reward, _ = self._transition(state, action, RewardMode.PLAIN)
        return StepOutcome(observation, reward, self.is_terminal(state))

    def step_shaped(self, state: CellarState, action: int) -> StepOutcome:
        """Apply ``action`` and return the PGS-shaped reward."""
        observation, reward, _ = self._transition(state, action, RewardMode.SHAPED)
        return StepOutcome(observation, reward, self.is_terminal(state))

    def step_shaped_incremental(self, state: CellarState, action: int,
                                potential: float) -> Tuple[StepOutcome, float]:
        """
        Shaped step for rollouts that carry the potential forward.

        ``potential`` must be the PGS value of ``state``. The successor's
        value comes from ``fast_potential`` instead of a full recomputation
        and is returned alongside the outcome, ready for the next call.
        """
        observation, reward, after = self._transition(
            state, action, RewardMode.SHAPED, previous_potential=potential)
        return StepOutcome(observation, reward, self.is_terminal(state)), after

    def step_transition_only(self, state: CellarState, action: int) -> Observation:
        """Apply ``action`` without computing any reward."""
        observation, _, _ = self._transition(state, action, RewardMode.PLAIN,
                                             with_reward=False)
        return observation

    def _transition(self, state: CellarState, action: int, mode: RewardMode,
                    with_reward: bool = True,
                    previous_potential: Optional[float] = None):
        if self.is_terminal(state):
            raise IllegalActionError("cannot step from a terminal state")
        kind, arg = self.actions.decode(action)

        shaped = with_reward and mode is RewardMode.SHAPED
        before: Optional[CellarState] = None
        shaping_base = 0.0
        if shaped:
            if previous_potential is None:
                shaping_base = self.guide.potential(state)
            else:
                shaping_base = previous_potential
                before = state.copy()

        observation = Observation.NONE
        reward = self.rewards.step
        if kind is ActionKind.MOVE:
            reward += self._move(state, Compass(arg))
        elif kind is ActionKind.SAMPLE:
            reward += self._sample(state)
        elif kind is ActionKind.CHECK_BOTTLE:
            observation = self._check_bottle(state, arg)
        elif kind is ActionKind.CHECK_OBJECT:
            observation = self._check_object(state, arg)
        else:
            reward += self._push(state, Compass(arg))

        if not with_reward:
            return observation, 0.0, None
        if not shaped:
            return observation, reward, None
        if before is None:
            after = self.guide.potential(state)
        else:
            after = self.guide.fast_potential(before, state, action, shaping_base)
        reward += self.config.discount * after - shaping_base
        return observation, reward, after

    def _move(self, state: CellarState, direction: Compass) -> float:
        destination = state.agent.step(direction)
        if direction is Compass.EAST and destination.x == self.size:
            state.agent = destination
            if state.collected_bottles > 0:
                return self.rewards.exit_per_bottle * state.collected_bottles
            return self.rewards.exit_empty
        if not self.free_tile(state, destination):
            state.wasted_actions += 1
            return 0.0
        state.agent = destination
        return 0.0

    def _sample(self, state: CellarState) -> float:
        bottle = self.bottle_number(state, state.agent)
        if bottle < 0:
            state.wasted_actions += 1
            return self.rewards.empty_sample

        record = state.bottles[bottle]
        record.collected = True
        if state.target == bottle:
            state.target = -1
        if record.truth.valuable:
            state.collected_bottles += 1
            return self.rewards.valuable_sample
        return self.rewards.worthless_sample

    def _check_bottle(self, state: CellarState, bottle: int) -> Observation:
        record = state.bottles[bottle]
        if record.collected:
            state.wasted_actions += 1
            return Observation.NONE
        if self.guide.resolved(record.belief):
            state.wasted_actions += 1

        observation = self.observe_bottle(state, bottle)
        distance = state.agent.euclidean(self.bottle_positions[bottle])
        record.belief.update(observation == Observation.GOOD,
                             self.efficiency(distance))
        return observation

    def _check_object(self, state: CellarState, obj: int) -> Observation:
        record = state.objects[obj]
        if not record.active:
            state.wasted_actions += 1
            return Observation.NONE
        if self.guide.resolved(record.belief):
            state.wasted_actions += 1

        observation = self.observe_object(state, obj)
        distance = state.agent.euclidean(record.position)
        record.belief.update(observation == Observation.CRATE,
                             self.efficiency(distance))
        if self.guide.resolved(record.belief):
            record.assumed = (ObjectKind.CRATE if record.belief.probability > 0.5
                              else ObjectKind.SHELF)
        return observation

    def _push(self, state: CellarState, direction: Compass) -> float:
        faced = state.agent.step(direction)
        obj = self.object_number(state, faced)
        if obj < 0:
            return self._failed_push(state, "nothing to push at %s", faced)

        record = state.objects[obj]
        beyond = faced.step(direction)
        if not record.truth.is_crate:
            if self.empty_tile(state, beyond) or not beyond.inside(self.size):
                # Nothing else could have stopped it
                record.assumed = ObjectKind.SHELF
            return self._failed_push(state, "object %d is a shelf", obj)

        if not beyond.inside(self.size):
            record.position = beyond
            record.active = False
            record.assumed = ObjectKind.CRATE
            logger.debug("crate %d pushed off the grid", obj)
            return 0.0
        if not self.empty_tile(state, beyond):
            return self._failed_push(state, "crate %d is blocked", obj)

        record.position = beyond
        record.assumed = ObjectKind.CRATE
        return 0.0

    def _failed_push(self, state: CellarState, message: str, arg) -> float:
        logger.debug("push failed: " + message, arg)
        state.wasted_actions += 1
        return self.rewards.failed_push

    # ------------------------------------------------------------------
    # Guidance
    # ------------------------------------------------------------------

    def select_target(self, state: CellarState) -> int:
        return self.guide.select_target(state)

    def potential(self, state: CellarState) -> float:
        return self.guide.potential(state)

    def fast_potential(self, old_state: CellarState, state: CellarState,
                       action: int, old_potential: float) -> float:
        return self.guide.fast_potential(old_state, state, action, old_potential)

    # ------------------------------------------------------------------
    # Action generators
    # ------------------------------------------------------------------

    def generate_legal(self, state: CellarState, history: Optional[History] = None,
                       status: Optional[Status] = None) -> List[int]:
        """Actions that make sense in ``state``, in ascending code order."""
        if self.is_terminal(state):
            return []
        legal: List[int] = []
        agent = state.agent

        for direction in Compass.all():
            destination = agent.step(direction)
            exits = direction is Compass.EAST and destination.x == self.size
            if exits or self.free_tile(state, destination):
                legal.append(self.actions.move_action(direction))

        if self.bottle_number(state, agent) >= 0:
            legal.append(SAMPLE)

        for i, bottle in enumerate(state.bottles):
            if not bottle.collected and not self.guide.resolved(bottle.belief):
                legal.append(self.actions.check_bottle_action(i))

        for j, obj in enumerate(state.objects):
            if obj.active and not self.guide.resolved(obj.belief):
                legal.append(self.actions.check_object_action(j))

        for direction in Compass.all():
            if self.object_number(state, agent.step(direction)) >= 0:
                legal.append(self.actions.push_action(direction))
        return legal

    def _ranked(self, state: CellarState, history: Optional[History],
                status: Optional[Status]
                ) -> Tuple[List[int], List[Tuple[int, float]]]:
        """Legal actions, and the preferred ones paired with their scores."""
        legal = self.generate_legal(state, history, status)
        target = self.guide.select_target(state)
        ranked = [(a, self.guide.score(state, a, target)) for a in legal]
        ranked = [(a, s) for a, s in ranked if s >= 0]

        # Tree search keeps the way back open
        in_tree = status is not None and status.phase is SearchPhase.TREE
        last = history.back() if history else None
        if not in_tree and last is not None and 0 <= last.action < SAMPLE:
            undo = self.actions.move_action(Compass(last.action).opposite())
            if len(ranked) > 1:
                ranked = [(a, s) for a, s in ranked if a != undo]
        return legal, ranked

    def generate_preferred(self, state: CellarState,
                           history: Optional[History] = None,
                           status: Optional[Status] = None) -> List[int]:
        """
        Legal actions the guidance heuristic does not rank below zero.

        Outside tree search, also drops the move that would undo the previous
        move. Falls back to the full legal set when pruning would leave
        nothing.
        """
        legal, ranked = self._ranked(state, history, status)
        return [a for a, _ in ranked] or legal

    def generate_pgs(self, state: CellarState, history: Optional[History] = None,
                     status: Optional[Status] = None) -> List[int]:
        """Preferred actions that share the best guidance score."""
        legal, ranked = self._ranked(state, history, status)
        if not ranked:
            target = self.guide.select_target(state)
            ranked = [(a, self.guide.score(state, a, target)) for a in legal]
        if not ranked:
            return []
        best = max(s for _, s in ranked)
        return [a for a, s in ranked if s == best]

    # ------------------------------------------------------------------
    # Belief support
    # ------------------------------------------------------------------

    def local_move(self, state: CellarState, history: History,
                   step_observation: int,
                   status: Optional[Status] = None) -> bool:
        """
        Perturb hidden values so ``state`` agrees with the real observation.

        If the last real action checked a bottle or object that is still in
        play, that entity's hidden value is set to match
        ``step_observation``. Otherwise one random live entity is flipped.
        Belief statistics are left untouched.
        """
        last = history.back() if history else None
        if last is not None:
            kind, index = self.actions.decode(last.action)
            if kind is ActionKind.CHECK_BOTTLE and not state.bottles[index].collected:
                if step_observation not in (Observation.GOOD, Observation.BAD):
                    return False
                wanted = step_observation == Observation.GOOD
                truth = state.bottles[index].truth
                if truth.valuable != wanted:
                    truth.valuable = wanted
                    logger.debug("local move: bottle %d now %s", index,
                                 "valuable" if wanted else "worthless")
                    return True
                return self._flip_random(state, exclude=("bottle", index))
            if kind is ActionKind.CHECK_OBJECT and state.objects[index].active:
                if step_observation not in (Observation.CRATE, Observation.SHELF):
                    return False
                wanted = (ObjectKind.CRATE if step_observation == Observation.CRATE
                          else ObjectKind.SHELF)
                truth = state.objects[index].truth
                if truth.kind != wanted:
                    truth.kind = wanted
                    logger.debug("local move: object %d now %s", index,
                                 wanted.name.lower())
                    return True
                return self._flip_random(state, exclude=("object", index))
        return self._flip_random(state)

    def _flip_random(self, state: CellarState, exclude=None) -> bool:
        live = [("bottle", i) for i, b in enumerate(state.bottles)
                if not b.collected]
        live += [("object", j) for j, o in enumerate(state.objects) if o.active]
        if exclude in live:
            live.remove(exclude)
        if not live:
            return False

        group, index = self.rng.choice(live)
        if group == "bottle":
            truth = state.bottles[index].truth
            truth.valuable = not truth.valuable
        else:
            truth = state.objects[index].truth
            truth.kind = (ObjectKind.SHELF if truth.kind == ObjectKind.CRATE
                          else ObjectKind.CRATE)
        return True

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    def validate(self, state: CellarState) -> None:
        """Raise ``InvariantViolation`` if ``state`` is inconsistent."""
        agent = state.agent
        exited = agent.x == self.size and 0 <= agent.y < self.size
        if not (agent.inside(self.size) or exited):
            raise InvariantViolation(f"agent out of bounds at {agent}")
        if len(state.bottles) != len(self.bottle_positions):
            raise InvariantViolation(
                f"expected {len(self.bottle_positions)} bottles, "
                f"got {len(state.bottles)}")
        if len(state.objects) != self.config.num_objects:
            raise InvariantViolation(
                f"expected {self.config.num_objects} objects, "
                f"got {len(state.objects)}")

        occupancy = np.zeros((self.size, self.size), dtype=int)
        for j, obj in enumerate(state.objects):
            if obj.active != obj.position.inside(self.size):
                raise InvariantViolation(
                    f"object {j} active={obj.active} at {obj.position}")
            if not obj.active:
                continue
            occupancy[obj.position.x, obj.position.y] += 1
            if obj.position == agent:
                raise InvariantViolation(f"object {j} sits on the agent")
            if self.bottle_number(state, obj.position) >= 0:
                raise InvariantViolation(
                    f"object {j} covers an uncollected bottle at {obj.position}")
        if (occupancy > 1).any():
            x, y = np.argwhere(occupancy > 1)[0]
            raise InvariantViolation(f"objects overlap at ({x},{y})")

        collected = sum(1 for b in state.bottles
                        if b.collected and b.truth.valuable)
        if collected != state.collected_bottles:
            raise InvariantViolation(
                f"collected_bottles={state.collected_bottles}, "
                f"but {collected} valuable bottles are collected")
        if not -1 <= state.target < len(state.bottles):
            raise InvariantViolation(f"target {state.target} out of range")
        if state.target >= 0 and state.bottles[state.target].collected:
            raise InvariantViolation(
                f"target {state.target} was already collected")

        for record in list(state.bottles) + list(state.objects):
            if not 0.0 <= record.belief.probability <= 1.0:
                raise InvariantViolation(
                    f"probability {record.belief.probability} outside [0, 1]")
