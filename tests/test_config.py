"""Tests for configuration validation and presets."""

import unittest

from cellar_pomdp.config import (
    PRESETS, CellarConfig, ConfigurationError, RewardTable,
)


class TestCellarConfig(unittest.TestCase):

    def test_defaults_match_published_problem(self):
        config = CellarConfig()
        self.assertEqual(config.dimensions, (5, 2, 6, 4))
        self.assertEqual(config.num_objects, 10)
        self.assertAlmostEqual(config.discount, 0.95)
        self.assertEqual(config.preset_name, "5_2")

    def test_presets(self):
        for name, dims in PRESETS.items():
            config = CellarConfig.preset(name)
            self.assertEqual(config.dimensions, dims)
            self.assertEqual(config.preset_name, name)

    def test_preset_overrides(self):
        config = CellarConfig.preset("7_8", discount=0.9, seed=3)
        self.assertEqual(config.size, 7)
        self.assertAlmostEqual(config.discount, 0.9)
        self.assertEqual(config.seed, 3)

    def test_unknown_preset(self):
        with self.assertRaises(ConfigurationError):
            CellarConfig.preset("9_9")

    def test_randomize_layout_disables_preset(self):
        config = CellarConfig.preset("5_1", randomize_layout=True)
        self.assertIsNone(config.preset_name)

    def test_too_many_entities(self):
        # 3x3 has 8 free tiles once the start tile is reserved
        CellarConfig(size=3, bottles=2, crates=3, shelves=3)
        with self.assertRaises(ConfigurationError):
            CellarConfig(size=3, bottles=3, crates=3, shelves=3)

    def test_invalid_values(self):
        bad = [
            dict(size=0),
            dict(bottles=-1),
            dict(crates=-2),
            dict(discount=0.0),
            dict(discount=1.5),
            dict(entropy=1.2),
            dict(activation_threshold=-0.1),
            dict(valuable_prior=2.0),
            dict(half_efficiency_distance=0.0),
            dict(uncertainty_count=-1),
        ]
        for kwargs in bad:
            with self.subTest(**kwargs):
                with self.assertRaises(ConfigurationError):
                    CellarConfig(**kwargs)

    def test_configuration_error_is_value_error(self):
        with self.assertRaises(ValueError):
            CellarConfig(size=-1)

    def test_frozen(self):
        config = CellarConfig()
        with self.assertRaises(Exception):
            config.size = 7

    def test_with_changes_revalidates(self):
        config = CellarConfig()
        self.assertEqual(config.with_changes(size=6).size, 6)
        with self.assertRaises(ConfigurationError):
            config.with_changes(size=2)

    def test_reward_table_defaults(self):
        rewards = RewardTable()
        self.assertEqual(rewards.step, -1.0)
        self.assertEqual(rewards.failed_push, -10.0)


if __name__ == "__main__":
    unittest.main()
