from __future__ import annotations

import random
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from taskroom.errors import HostHasNotAnsweredError, OutOfRangeError
from taskroom.games.questions import QuestionDeck
from taskroom.games.strategies import (
    ClosestNumberStrategy,
    ConsensusStrategy,
    UniqueClosestStrategy,
)


class ClosestNumberStrategyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.strategy = ClosestNumberStrategy()
        self.strategy.configure("50")

    def test_exact_guess_wins(self):
        scoring = self.strategy.score({"A": 40, "B": 60, "C": 50}, "host")
        self.assertEqual(scoring.winners, ["C"])
        self.assertEqual([row.identity for row in scoring.rows], ["C", "A", "B"])

    def test_equal_distance_ties_all_win(self):
        scoring = self.strategy.score({"B": 55, "A": 45}, "host")
        self.assertEqual(set(scoring.winners), {"A", "B"})
        # lower value ranks first on a tie
        self.assertEqual(scoring.rows[0].identity, "A")

    def test_secret_outside_range_rejected(self):
        strategy = ClosestNumberStrategy()
        with self.assertRaises(OutOfRangeError):
            strategy.configure("101")
        with self.assertRaises(OutOfRangeError):
            strategy.configure(None)
        self.assertIsNone(strategy.secret)

    def test_custom_range(self):
        strategy = ClosestNumberStrategy(10, 20)
        strategy.configure(15)
        self.assertEqual(strategy.parse_answer("20"), 20)
        with self.assertRaises(OutOfRangeError):
            strategy.parse_answer("9")

    def test_non_numeric_answer_rejected(self):
        for bad in ("abc", "", "4.5", True):
            with self.assertRaises(OutOfRangeError):
                self.strategy.parse_answer(bad)


class UniqueClosestStrategyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.strategy = UniqueClosestStrategy()

    def test_duplicates_are_excluded(self):
        scoring = self.strategy.score({"A": 49, "B": 49, "C": 52}, None)
        self.assertEqual(scoring.winners, ["C"])
        flagged = {row.identity for row in scoring.rows if row.duplicate}
        self.assertEqual(flagged, {"A", "B"})
        self.assertFalse(scoring.reset_alive)

    def test_all_duplicates_means_no_winner_and_reset(self):
        scoring = self.strategy.score({"A": 50, "B": 50}, None)
        self.assertEqual(scoring.winners, [])
        self.assertTrue(scoring.reset_alive)
        self.assertEqual(len(scoring.rows), 2)

    def test_zero_is_allowed(self):
        self.assertEqual(self.strategy.parse_answer("0"), 0)
        with self.assertRaises(OutOfRangeError):
            self.strategy.parse_answer("-1")

    def test_unique_ties_all_win(self):
        scoring = self.strategy.score({"A": 48, "B": 52, "C": 70}, None)
        self.assertEqual(set(scoring.winners), {"A", "B"})


class ConsensusStrategyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.strategy = ConsensusStrategy(deck=QuestionDeck(rng=random.Random(3)))
        self.strategy.configure(None)

    def test_matching_players_win_and_host_is_excluded(self):
        answers = {"host": "B", "A": "B", "C": "A", "D": "B"}
        scoring = self.strategy.score(answers, "host")
        self.assertEqual(set(scoring.winners), {"A", "D"})
        self.assertNotIn("host", scoring.winners)
        self.assertFalse(scoring.forgiven)
        self.assertIsNone(scoring.champion)

    def test_nobody_matches_everyone_survives(self):
        answers = {"host": "B", "A": "A", "C": "A"}
        scoring = self.strategy.score(answers, "host")
        self.assertEqual(set(scoring.winners), {"A", "C"})
        self.assertTrue(scoring.forgiven)

    def test_single_winner_is_champion(self):
        scoring = self.strategy.score({"host": "C", "A": "C", "B": "D"}, "host")
        self.assertEqual(scoring.winners, ["A"])
        self.assertEqual(scoring.champion, "A")

    def test_host_must_answer(self):
        with self.assertRaises(HostHasNotAnsweredError):
            self.strategy.check_ready({"A": "A"}, "host")
        self.strategy.check_ready({"host": "A"}, "host")

    def test_answer_aliases(self):
        self.assertEqual(self.strategy.parse_answer("b"), "B")
        self.assertEqual(self.strategy.parse_answer("4"), "D")
        with self.assertRaises(OutOfRangeError):
            self.strategy.parse_answer("E")
        with self.assertRaises(OutOfRangeError):
            self.strategy.parse_answer("5")

    def test_prompt_lists_four_choices(self):
        lines = self.strategy.prompt_lines()
        self.assertTrue(lines[0].startswith("❓"))
        self.assertEqual(sum(1 for line in lines if line.startswith(" A.") or line.startswith(" D.")), 2)


if __name__ == "__main__":
    unittest.main()
