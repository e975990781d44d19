"""Tests for legal, preferred and PGS action generation."""

import unittest
from unittest import mock

from cellar_pomdp.config import CellarConfig
from cellar_pomdp.coord import Compass, Coord
from cellar_pomdp.history import History, SearchPhase, Status
from cellar_pomdp.simulator import Cellar

N, S, E, W = (int(d) for d in Compass.all())


class TestLegal(unittest.TestCase):
    """cellar[5,1,0,4]: bottle at (2,3), shelves at (1,1) (2,2) (3,4) (3,1)."""

    def setUp(self):
        self.sim = Cellar(CellarConfig.preset("5_1", seed=3))
        self.state = self.sim.create_start_state()

    def test_start_actions(self):
        self.assertEqual(self.sim.generate_legal(self.state),
                         [N, S, E, 5, 6, 7, 8, 9])

    def test_pushes_replace_blocked_moves(self):
        self.state.agent = Coord(1, 2)
        legal = self.sim.generate_legal(self.state)
        push = self.sim.actions.push_action
        self.assertIn(push(Compass.SOUTH), legal)
        self.assertIn(push(Compass.EAST), legal)
        self.assertNotIn(push(Compass.NORTH), legal)
        self.assertNotIn(S, legal)
        self.assertNotIn(E, legal)
        self.assertEqual(legal, sorted(legal))

    def test_sample_only_on_bottle(self):
        self.assertNotIn(4, self.sim.generate_legal(self.state))
        self.state.agent = Coord(2, 3)
        self.assertIn(4, self.sim.generate_legal(self.state))
        self.sim.step(self.state, 4)
        self.assertNotIn(4, self.sim.generate_legal(self.state))

    def test_resolved_and_collected_checks_excluded(self):
        self.state.objects[1].belief.measured = 1
        self.state.objects[1].belief.probability = 1.0
        self.state.bottles[0].collected = True
        legal = self.sim.generate_legal(self.state)
        self.assertNotIn(5, legal)
        self.assertNotIn(self.sim.actions.check_object_action(1), legal)
        self.assertIn(self.sim.actions.check_object_action(0), legal)

    def test_exit_is_legal_from_last_column(self):
        self.state.agent = Coord(4, 2)
        self.assertIn(E, self.sim.generate_legal(self.state))

    def test_terminal_has_no_actions(self):
        self.state.agent = Coord(5, 2)
        self.assertEqual(self.sim.generate_legal(self.state), [])
        self.assertEqual(self.sim.generate_preferred(self.state), [])
        self.assertEqual(self.sim.generate_pgs(self.state), [])


class TestPreferred(unittest.TestCase):

    def setUp(self):
        self.sim = Cellar(CellarConfig.preset("5_1", seed=3))
        self.state = self.sim.create_start_state()

    def test_subset_of_legal(self):
        for agent in (Coord(0, 2), Coord(1, 2), Coord(2, 3), Coord(4, 0)):
            self.state.agent = agent
            legal = self.sim.generate_legal(self.state)
            preferred = self.sim.generate_preferred(self.state)
            pgs = self.sim.generate_pgs(self.state)
            with self.subTest(agent=agent):
                self.assertTrue(preferred)
                self.assertTrue(set(preferred) <= set(legal))
                self.assertTrue(pgs)
                self.assertTrue(set(pgs) <= set(preferred))

    def test_prunes_irrelevant_actions(self):
        # Walking east, checking the bottle and checking the shelf at (2,2)
        self.assertEqual(self.sim.generate_preferred(self.state), [E, 5, 7])

    def test_undo_move_removed(self):
        history = History()
        history.add(W)
        self.assertEqual(self.sim.generate_preferred(self.state, history), [5, 7])

    def test_tree_search_keeps_undo_move(self):
        history = History()
        history.add(W)
        tree = Status(phase=SearchPhase.TREE)
        rollout = Status(phase=SearchPhase.ROLLOUT)
        self.assertEqual(
            self.sim.generate_preferred(self.state, history, tree), [E, 5, 7])
        self.assertEqual(
            self.sim.generate_preferred(self.state, history, rollout), [5, 7])

    def test_target_selected_once_per_call(self):
        self.state.agent = Coord(1, 2)
        guide = self.sim.guide
        with mock.patch.object(guide, "select_target",
                               wraps=guide.select_target) as select:
            self.sim.generate_preferred(self.state)
            self.assertEqual(select.call_count, 1)
            select.reset_mock()
            self.sim.generate_pgs(self.state)
            self.assertEqual(select.call_count, 1)

    def test_falls_back_to_legal(self):
        legal = self.sim.generate_legal(self.state)
        with mock.patch.object(self.sim.guide, "score", return_value=-1.0):
            self.assertEqual(self.sim.generate_preferred(self.state), legal)

    def test_pgs_keeps_best(self):
        # An unresolved bottle check outranks a single step toward the exit
        self.assertEqual(self.sim.generate_pgs(self.state), [5])

    def test_pgs_ties(self):
        with mock.patch.object(self.sim.guide, "score", return_value=0.0):
            self.assertEqual(self.sim.generate_pgs(self.state),
                             self.sim.generate_legal(self.state))


if __name__ == "__main__":
    unittest.main()
