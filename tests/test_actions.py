"""Tests for action codes and coordinates."""

import unittest

from cellar_pomdp.actions import SAMPLE, ActionKind, ActionSpace
from cellar_pomdp.config import IllegalActionError
from cellar_pomdp.coord import Compass, Coord


class TestCompass(unittest.TestCase):

    def test_deltas(self):
        self.assertEqual(Compass.NORTH.delta(), (0, 1))
        self.assertEqual(Compass.SOUTH.delta(), (0, -1))
        self.assertEqual(Compass.EAST.delta(), (1, 0))
        self.assertEqual(Compass.WEST.delta(), (-1, 0))

    def test_opposites(self):
        for d in Compass.all():
            self.assertEqual(d.opposite().opposite(), d)
            self.assertNotEqual(d.opposite(), d)

    def test_coord_helpers(self):
        a = Coord(1, 2)
        self.assertEqual(a.step(Compass.NORTH), Coord(1, 3))
        self.assertEqual(a.manhattan(Coord(4, 0)), 5)
        self.assertAlmostEqual(Coord(0, 0).euclidean(Coord(3, 4)), 5.0)
        self.assertTrue(a.inside(3))
        self.assertFalse(Coord(3, 0).inside(3))


class TestActionSpace(unittest.TestCase):

    def setUp(self):
        self.space = ActionSpace(num_bottles=2, num_objects=3)

    def test_offsets(self):
        self.assertEqual(self.space.bottle_check, 5)
        self.assertEqual(self.space.object_check, 7)
        self.assertEqual(self.space.push, 10)
        self.assertEqual(self.space.num_actions, 14)
        self.assertEqual(len(self.space.all()), 14)

    def test_decode(self):
        self.assertEqual(self.space.decode(2), (ActionKind.MOVE, Compass.EAST))
        self.assertEqual(self.space.decode(SAMPLE), (ActionKind.SAMPLE, 0))
        self.assertEqual(self.space.decode(6), (ActionKind.CHECK_BOTTLE, 1))
        self.assertEqual(self.space.decode(9), (ActionKind.CHECK_OBJECT, 2))
        self.assertEqual(self.space.decode(13), (ActionKind.PUSH, Compass.WEST))

    def test_encoders_match_decode(self):
        self.assertEqual(self.space.decode(self.space.check_bottle_action(1)),
                         (ActionKind.CHECK_BOTTLE, 1))
        self.assertEqual(self.space.decode(self.space.check_object_action(0)),
                         (ActionKind.CHECK_OBJECT, 0))
        self.assertEqual(self.space.decode(self.space.push_action(Compass.SOUTH)),
                         (ActionKind.PUSH, Compass.SOUTH))

    def test_out_of_range(self):
        for action in (-1, 14, 100):
            with self.assertRaises(IllegalActionError):
                self.space.decode(action)
        with self.assertRaises(IllegalActionError):
            self.space.check_bottle_action(2)

    def test_describe(self):
        self.assertEqual(self.space.describe(0), "move north")
        self.assertEqual(self.space.describe(4), "sample")
        self.assertEqual(self.space.describe(5), "check bottle 0")
        self.assertEqual(self.space.describe(8), "check object 1")
        self.assertEqual(self.space.describe(12), "push east")

    def test_no_entities(self):
        space = ActionSpace(0, 0)
        self.assertEqual(space.num_actions, 9)
        self.assertEqual(space.decode(5), (ActionKind.PUSH, Compass.NORTH))


if __name__ == "__main__":
    unittest.main()
