"""
Rollout policies: run whole episodes against the simulator.

A planner's default policy is what it falls back on below the search tree.
Three are provided, from least to most informed:

- ``LEGAL``: uniform over the legal actions
- ``PREFERRED``: uniform over the actions PGS does not rank below zero
- ``PGS``: uniform over the actions PGS ranks highest

Comparing them on the same problem shows how much of the action space the
guidance heuristic prunes, and what that costs or gains in return.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np

from cellar_pomdp.history import History, SearchPhase, Status
from cellar_pomdp.simulator import Cellar


class RolloutPolicy(Enum):
    LEGAL = "legal"
    PREFERRED = "preferred"
    PGS = "pgs"


@dataclass
class RolloutConfig:
    """Configuration for a batch of rollouts."""
    policy: RolloutPolicy = RolloutPolicy.PREFERRED
    episodes: int = 100
    max_steps: int = 100
    shaped: bool = False      # accumulate PGS-shaped rewards instead of plain
    seed: Optional[int] = None


@dataclass
class EpisodeLog:
    """Record of a single episode."""
    steps: int
    discounted_return: float
    undiscounted_return: float
    exited: bool
    bottles_collected: int
    wasted_actions: int
    actions: List[int] = field(default_factory=list)


@dataclass
class RolloutResult:
    """Aggregate of a batch of episodes."""
    policy: RolloutPolicy
    problem: str
    episode_logs: List[EpisodeLog]

    @property
    def mean_return(self) -> float:
        return float(np.mean([e.discounted_return for e in self.episode_logs]))

    @property
    def exit_rate(self) -> float:
        return float(np.mean([e.exited for e in self.episode_logs]))

    def summary(self) -> str:
        returns = [e.discounted_return for e in self.episode_logs]
        lines = [
            "═" * 55,
            f"  Rollouts: {self.problem} / {self.policy.value}",
            "═" * 55,
            f"  Episodes:          {len(self.episode_logs)}",
            f"  Mean return:       {np.mean(returns):.2f} "
            f"± {np.std(returns):.2f}",
            f"  Exit rate:         {self.exit_rate:.0%}",
            f"  Avg steps:         "
            f"{np.mean([e.steps for e in self.episode_logs]):.1f}",
            f"  Avg bottles:       "
            f"{np.mean([e.bottles_collected for e in self.episode_logs]):.2f}",
            f"  Avg wasted:        "
            f"{np.mean([e.wasted_actions for e in self.episode_logs]):.1f}",
            "═" * 55,
        ]
        return "\n".join(lines)


class RolloutRunner:
    """Runs episodes from fresh start states with a fixed default policy."""

    def __init__(self, simulator: Cellar,
                 config: Optional[RolloutConfig] = None):
        self.simulator = simulator
        self.config = config or RolloutConfig()
        self.rng = random.Random(self.config.seed)

    def _candidates(self, state, history: History, status: Status) -> List[int]:
        sim = self.simulator
        policy = self.config.policy
        if policy is RolloutPolicy.LEGAL:
            return sim.generate_legal(state, history, status)
        if policy is RolloutPolicy.PREFERRED:
            return sim.generate_preferred(state, history, status)
        return sim.generate_pgs(state, history, status)

    def run_episode(self) -> EpisodeLog:
        sim = self.simulator
        state = sim.create_start_state()
        history = History()
        status = Status(phase=SearchPhase.ROLLOUT)
        discounted, undiscounted, weight = 0.0, 0.0, 1.0
        actions: List[int] = []

        try:
            potential = sim.potential(state) if self.config.shaped else 0.0
            for _ in range(self.config.max_steps):
                action = self.rng.choice(self._candidates(state, history, status))
                if self.config.shaped:
                    (observation, reward, done), potential = (
                        sim.step_shaped_incremental(state, action, potential))
                else:
                    observation, reward, done = sim.step(state, action)
                history.add(action, observation)
                actions.append(action)
                discounted += weight * reward
                undiscounted += reward
                weight *= sim.discount
                if done:
                    break

            return EpisodeLog(
                steps=len(actions),
                discounted_return=discounted,
                undiscounted_return=undiscounted,
                exited=sim.is_terminal(state),
                bottles_collected=state.collected_bottles,
                wasted_actions=state.wasted_actions,
                actions=actions,
            )
        finally:
            sim.free_state(state)

    def run(self, verbose: bool = False) -> RolloutResult:
        logs = []
        for episode in range(self.config.episodes):
            log = self.run_episode()
            logs.append(log)
            if verbose and episode % 20 == 0:
                exit_str = "✓" if log.exited else "✗"
                print(
                    f"  [ep {episode:3d}] {exit_str} "
                    f"steps={log.steps:3d}  "
                    f"return={log.discounted_return:7.2f}  "
                    f"bottles={log.bottles_collected}  "
                    f"wasted={log.wasted_actions}"
                )
        return RolloutResult(self.config.policy, self.simulator.layout.name, logs)
