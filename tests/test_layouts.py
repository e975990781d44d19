"""Tests for start-state construction."""

import unittest

from cellar_pomdp.config import CellarConfig, ConfigurationError
from cellar_pomdp.coord import Coord
from cellar_pomdp.layouts import PRESET_LAYOUTS
from cellar_pomdp.simulator import Cellar
from cellar_pomdp.state import ObjectKind


class TestPresetLayouts(unittest.TestCase):

    def test_preset_positions_are_distinct(self):
        for name, (bottles, objects) in PRESET_LAYOUTS.items():
            config = CellarConfig.preset(name)
            with self.subTest(preset=name):
                tiles = list(bottles) + list(objects)
                self.assertEqual(len(bottles), config.bottles)
                self.assertEqual(len(objects), config.num_objects)
                self.assertEqual(len(set(tiles)), len(tiles))
                start = Coord(0, config.size // 2)
                self.assertNotIn(start, tiles)
                for tile in tiles:
                    self.assertTrue(tile.inside(config.size))

    def test_preset_is_used(self):
        sim = Cellar(CellarConfig.preset("5_1", seed=1))
        self.assertEqual(sim.layout.name, "5_1")
        self.assertEqual(sim.start, Coord(0, 2))
        self.assertEqual(sim.bottle_positions, (Coord(2, 3),))

    def test_positions_fixed_values_vary(self):
        sim = Cellar(CellarConfig.preset("7_8", seed=5))
        values = set()
        for _ in range(20):
            state = sim.create_start_state()
            self.assertEqual([o.position for o in state.objects],
                             list(sim.layout.object_positions))
            values.add(tuple(b.truth.valuable for b in state.bottles))
        self.assertGreater(len(values), 1)


class TestStartState(unittest.TestCase):

    def test_start_state_is_neutral(self):
        for name in ("5_1", "5_2", "7_8", "11_11"):
            sim = Cellar(CellarConfig.preset(name, seed=0))
            state = sim.create_start_state()
            with self.subTest(preset=name):
                self.assertEqual(state.agent, sim.start)
                self.assertEqual(state.target, -1)
                self.assertEqual(state.collected_bottles, 0)
                self.assertEqual(state.wasted_actions, 0)
                for bottle in state.bottles:
                    self.assertFalse(bottle.collected)
                    self.assertEqual(bottle.belief.probability, 0.5)
                    self.assertEqual(bottle.belief.count, 0)
                    self.assertEqual(bottle.belief.measured, 0)
                for obj in state.objects:
                    self.assertTrue(obj.active)
                    self.assertEqual(obj.belief.probability, 0.5)
                    self.assertEqual(obj.assumed, ObjectKind.UNKNOWN)
                sim.validate(state)

    def test_object_kinds_match_counts(self):
        sim = Cellar(CellarConfig.preset("5_2", seed=2))
        for _ in range(10):
            state = sim.create_start_state()
            kinds = [o.truth.kind for o in state.objects]
            self.assertEqual(kinds.count(ObjectKind.CRATE), 6)
            self.assertEqual(kinds.count(ObjectKind.SHELF), 4)

    def test_valuable_prior(self):
        config = CellarConfig(size=6, bottles=5, crates=1, shelves=1,
                              valuable_prior=1.0, seed=0)
        state = Cellar(config).create_start_state()
        self.assertTrue(all(b.truth.valuable for b in state.bottles))


class TestGeneralLayout(unittest.TestCase):

    def test_random_layout(self):
        config = CellarConfig(size=6, bottles=4, crates=5, shelves=5, seed=11)
        sim = Cellar(config)
        tiles = list(sim.layout.bottle_positions) + list(sim.layout.object_positions)
        self.assertEqual(len(tiles), 14)
        self.assertEqual(len(set(tiles)), 14)
        self.assertNotIn(sim.start, tiles)
        sim.validate(sim.create_start_state())

    def test_same_seed_same_layout(self):
        config = CellarConfig(size=6, bottles=3, crates=2, shelves=2, seed=4)
        self.assertEqual(Cellar(config).layout, Cellar(config).layout)

    def test_full_grid(self):
        config = CellarConfig(size=3, bottles=2, crates=3, shelves=3, seed=0)
        sim = Cellar(config)
        sim.validate(sim.create_start_state())

    def test_randomized_preset_dimensions(self):
        config = CellarConfig.preset("5_1", randomize_layout=True, seed=9)
        sim = Cellar(config)
        self.assertTrue(sim.layout.name.startswith("random_"))

    def test_overfull_grid_rejected(self):
        with self.assertRaises(ConfigurationError):
            Cellar(CellarConfig(size=2, bottles=2, crates=1, shelves=1))


if __name__ == "__main__":
    unittest.main()
