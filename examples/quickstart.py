"""
Quick start example for the Cellar simulator.

Demonstrates the core workflow:
1. Build the single-bottle 5x5 problem and draw a start state
2. Follow the PGS guidance greedily until the agent leaves the cellar
3. Compare random rollouts with and without the guidance
"""

import logging

from cellar_pomdp import (
    Cellar, CellarConfig, History, RolloutConfig, RolloutPolicy, RolloutRunner,
)


def main():
    # Set to logging.DEBUG to see failed pushes and particle repairs
    logging.basicConfig(level=logging.WARNING)

    sim = Cellar(CellarConfig.preset("5_1", seed=42))
    state = sim.create_start_state()

    print("Cellar: Quick Start")
    print("=" * 50)
    print(f"Problem: cellar{list(sim.config.dimensions)}, "
          f"{sim.num_actions} actions")
    print(f"Bottle is {'valuable' if state.bottles[0].truth.valuable else 'worthless'}"
          f" (the agent does not know)")
    print()

    # --- Greedy PGS episode ---
    history = History()
    total, weight = 0.0, 1.0
    for t in range(30):
        # Ties go to the lowest action code
        action = sim.generate_pgs(state, history)[0]
        observation, reward, done = sim.step(state, action)
        history.add(action, observation)
        total += weight * reward
        weight *= sim.discount
        print(f"  t={t:2d}  {sim.describe_action(action):16s} "
              f"obs={observation.name:5s} reward={reward:6.1f}  "
              f"agent={state.agent}  PGS={sim.potential(state.copy()):6.2f}")
        if done:
            break

    print()
    print(f"  Discounted return: {total:.2f}")
    print(f"  Bottles collected: {state.collected_bottles}")
    print()
    sim.free_state(state)

    # --- Random rollouts ---
    for policy in (RolloutPolicy.LEGAL, RolloutPolicy.PGS):
        runner = RolloutRunner(sim, RolloutConfig(policy=policy, episodes=100,
                                                  max_steps=50, seed=0))
        print(runner.run().summary())


if __name__ == "__main__":
    main()
