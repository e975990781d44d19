"""
PGS: potential-based guidance for rollouts.

Cellar is a large search problem mostly because of the objects: every crate
and shelf adds a CHECK action and four potential pushes, and almost none of
them matter. The guidance heuristic scores states by task progress so that
a planner can (a) shape its rewards and (b) prune obviously irrelevant
actions during rollouts.

The potential of a non-terminal state is

    PGS(s) = - w_distance * manhattan(agent, goal)
             + w_resolve  * (# resolved, uncollected bottles)
             + w_collect  * (# valuable bottles collected)
             - w_waste    * (# wasted actions)

where the goal is the pursued target bottle, or the east exit when no
bottle is worth pursuing. Terminal states have potential 0, which keeps
reward shaping policy-invariant (Ng, Harada & Russell, 1999):

    r'(s, a, s') = r(s, a, s') + gamma * PGS(s') - PGS(s)
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from cellar_pomdp.actions import ActionKind, ActionSpace
from cellar_pomdp.config import CellarConfig
from cellar_pomdp.coord import Compass, Coord
from cellar_pomdp.layouts import Layout
from cellar_pomdp.state import Belief, CellarState, ObjectKind


class PotentialGuide:
    """Computes PGS potentials and ranks actions without simulating them."""

    def __init__(self, config: CellarConfig, layout: Layout,
                 actions: ActionSpace):
        self.config = config
        self.weights = config.weights
        self.layout = layout
        self.actions = actions
        self.size = config.size
        self._bottle_xy = np.array(
            [tuple(p) for p in layout.bottle_positions], dtype=int
        ).reshape(-1, 2)

    # ------------------------------------------------------------------
    # Targets and goals
    # ------------------------------------------------------------------

    def resolved(self, belief: Belief) -> bool:
        return belief.resolved(self.config.entropy,
                               self.config.uncertainty_count)

    def select_target(self, state: CellarState) -> int:
        """
        Index of the bottle to pursue, or -1.

        Candidates are uncollected bottles whose probability of being
        valuable exceeds the activation threshold. The nearest one wins;
        ``argmin`` returns the lowest index among equally near bottles.
        """
        if not state.bottles:
            return -1
        candidates = np.array([
            not b.collected
            and b.belief.probability > self.config.activation_threshold
            for b in state.bottles
        ])
        if not candidates.any():
            return -1
        distances = np.abs(self._bottle_xy - np.array(state.agent)).sum(axis=1)
        distances = np.where(candidates, distances, np.iinfo(int).max)
        return int(np.argmin(distances))

    def goal(self, state: CellarState, target: int) -> Coord:
        """The target bottle's tile, or the exit tile in the agent's row."""
        if target >= 0:
            return self.layout.bottle_positions[target]
        return Coord(self.size, state.agent.y)

    def is_terminal(self, state: CellarState) -> bool:
        return state.agent.x >= self.size

    # ------------------------------------------------------------------
    # Potential terms
    # ------------------------------------------------------------------

    def _distance_term(self, state: CellarState) -> float:
        target = self.select_target(state)
        state.target = target
        return -self.weights.distance * state.agent.manhattan(
            self.goal(state, target))

    def _resolved_term(self, state: CellarState, bottle: int) -> float:
        record = state.bottles[bottle]
        if record.collected or not self.resolved(record.belief):
            return 0.0
        return self.weights.resolve

    def potential(self, state: CellarState) -> float:
        """Full PGS value of ``state``. Updates ``state.target``."""
        if self.is_terminal(state):
            return 0.0
        value = self._distance_term(state)
        for i in range(len(state.bottles)):
            value += self._resolved_term(state, i)
        value += self.weights.collect * state.collected_bottles
        value -= self.weights.waste * state.wasted_actions
        return value

    def fast_potential(self, old_state: CellarState, state: CellarState,
                       action: int, old_potential: float) -> float:
        """
        PGS of ``state`` given the potential of its predecessor.

        Only the terms ``action`` can change are recomputed, which makes
        this cheap inside rollouts that branch many times from one state.
        """
        if self.is_terminal(state):
            return 0.0
        kind, arg = self.actions.decode(action)
        value = old_potential
        value -= self.weights.waste * (state.wasted_actions
                                       - old_state.wasted_actions)

        if kind in (ActionKind.MOVE, ActionKind.SAMPLE, ActionKind.CHECK_BOTTLE):
            old_target = self.select_target(old_state)
            value -= -self.weights.distance * old_state.agent.manhattan(
                self.goal(old_state, old_target))
            value += self._distance_term(state)
        else:
            state.target = old_state.target

        if kind is ActionKind.CHECK_BOTTLE:
            value += (self._resolved_term(state, arg)
                      - self._resolved_term(old_state, arg))
        elif kind is ActionKind.SAMPLE:
            bottle = self.bottle_at(state.agent)
            if bottle >= 0:
                value += (self._resolved_term(state, bottle)
                          - self._resolved_term(old_state, bottle))
            value += self.weights.collect * (state.collected_bottles
                                             - old_state.collected_bottles)
        return value

    # ------------------------------------------------------------------
    # Action ranking
    # ------------------------------------------------------------------

    def bottle_at(self, coord: Coord) -> int:
        for i, pos in enumerate(self.layout.bottle_positions):
            if pos == coord:
                return i
        return -1

    def _object_at(self, state: CellarState, coord: Coord) -> int:
        for j, obj in enumerate(state.objects):
            if obj.active and obj.position == coord:
                return j
        return -1

    def relevant(self, state: CellarState, obj: int,
                 target: Optional[int] = None) -> bool:
        """
        An object is relevant while it may stand between agent and goal.

        Inactive objects and objects already assumed to be shelves never are.
        Otherwise the object must lie in the rectangle spanned by the agent
        and its goal (the exit goal is clipped to the last column).
        """
        record = state.objects[obj]
        if not record.active or record.assumed == ObjectKind.SHELF:
            return False
        if target is None:
            target = self.select_target(state)
        goal = self.goal(state, target)
        gx = min(goal.x, self.size - 1)
        lo_x, hi_x = sorted((state.agent.x, gx))
        lo_y, hi_y = sorted((state.agent.y, goal.y))
        pos = record.position
        return lo_x <= pos.x <= hi_x and lo_y <= pos.y <= hi_y

    def _worth_staying(self, state: CellarState) -> bool:
        """True while some uncollected bottle has not been ruled out."""
        for b in state.bottles:
            if b.collected:
                continue
            if not (self.resolved(b.belief)
                    and b.belief.probability <= self.config.activation_threshold):
                return True
        return False

    def score(self, state: CellarState, action: int,
              target: Optional[int] = None) -> float:
        """
        Rank ``action`` by its expected contribution to the potential.

        Negative scores mark actions the rollout policy should skip. Callers
        ranking many actions from one state pass ``target`` once, as
        returned by ``select_target``.
        """
        kind, arg = self.actions.decode(action)
        w = self.weights
        if target is None:
            target = self.select_target(state)

        if kind is ActionKind.MOVE:
            direction = Compass(arg)
            if direction is Compass.EAST and state.agent.x == self.size - 1:
                if state.collected_bottles > 0:
                    return w.collect
                return 0.0 if not self._worth_staying(state) else -w.collect
            goal = self.goal(state, target)
            nxt = state.agent.step(direction)
            return w.distance * (state.agent.manhattan(goal) - nxt.manhattan(goal))

        if kind is ActionKind.SAMPLE:
            bottle = self.bottle_at(state.agent)
            if bottle < 0 or state.bottles[bottle].collected:
                return -w.collect
            p = state.bottles[bottle].belief.probability
            return w.collect * (p - self.config.activation_threshold)

        if kind is ActionKind.CHECK_BOTTLE:
            record = state.bottles[arg]
            if record.collected or self.resolved(record.belief):
                return -w.waste
            return w.resolve * record.belief.entropy()

        if kind is ActionKind.CHECK_OBJECT:
            record = state.objects[arg]
            if (record.assumed != ObjectKind.UNKNOWN
                    or self.resolved(record.belief)
                    or not self.relevant(state, arg, target)):
                return -w.waste
            return 0.0

        # Push
        direction = Compass(arg)
        faced = state.agent.step(direction)
        obj = self._object_at(state, faced)
        if obj < 0 or not self.relevant(state, obj, target):
            return -w.waste
        record = state.objects[obj]
        if (record.assumed != ObjectKind.CRATE
                and record.belief.probability < self.config.activation_threshold):
            return -w.waste
        beyond = faced.step(direction)
        if beyond.inside(self.size) and (
                self._object_at(state, beyond) >= 0
                or (self.bottle_at(beyond) >= 0
                    and not state.bottles[self.bottle_at(beyond)].collected)):
            return -w.waste
        return 0.0
