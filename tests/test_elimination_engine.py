from __future__ import annotations

import random
import sys
import threading
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from taskroom.errors import (
    AlreadyAnsweredError,
    EliminatedError,
    HostHasNotAnsweredError,
    NoSubmissionsError,
    NoWinnersYetError,
    NotHostError,
    OutOfRangeError,
    RoundNotOpenError,
    RoundNotStartedError,
)
from taskroom.games.elimination import EliminationRoundEngine, Phase
from taskroom.games.questions import QuestionDeck
from taskroom.games.registry import GameKind, RoomRegistry
from taskroom.games.strategies import ClosestNumberStrategy, ConsensusStrategy, UniqueClosestStrategy

ROOM = "chan-1"


class ClosestGameEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = RoomRegistry()
        self.engine = EliminationRoundEngine(self.registry, GameKind.CLOSEST, ClosestNumberStrategy)
        self.engine.host(ROOM, "host")

    def _round(self, secret=50, **answers):
        self.engine.start(ROOM, "host", secret)
        for who, value in answers.items():
            self.engine.answer(ROOM, who, value)
        return self.engine.result(ROOM, "host")

    def test_only_host_drives_transitions(self):
        with self.assertRaises(NotHostError):
            self.engine.start(ROOM, "mallory", 10)
        with self.assertRaises(NotHostError):
            self.engine.close(ROOM, "mallory")
        with self.assertRaises(NotHostError):
            self.engine.result(ROOM, "mallory")
        with self.assertRaises(NotHostError):
            self.engine.next_round(ROOM, "mallory")
        with self.assertRaises(NotHostError):
            self.engine.reset(ROOM, "mallory")
        status = self.engine.status(ROOM)
        self.assertEqual(status.round_number, 0)
        self.assertEqual(status.phase, Phase.IDLE)

    def test_start_without_any_host_fails(self):
        with self.assertRaises(NotHostError):
            self.engine.start("other-room", "someone", 10)

    def test_start_opens_round_and_increments(self):
        opened = self.engine.start(ROOM, "host", "42")
        self.assertEqual(opened.round_number, 1)
        self.assertEqual(opened.restricted_to, [])
        self.assertEqual(self.engine.status(ROOM).phase, Phase.OPEN)
        self.assertEqual(self.engine.start(ROOM, "host", "42").round_number, 2)

    def test_invalid_secret_leaves_state_unchanged(self):
        with self.assertRaises(OutOfRangeError):
            self.engine.start(ROOM, "host", "0")
        status = self.engine.status(ROOM)
        self.assertEqual(status.round_number, 0)
        self.assertEqual(status.phase, Phase.IDLE)

    def test_one_answer_per_identity(self):
        self.engine.start(ROOM, "host", 50)
        self.engine.answer(ROOM, "A", "10")
        with self.assertRaises(AlreadyAnsweredError):
            self.engine.answer(ROOM, "A", "20")
        self.assertEqual(self.engine.status(ROOM).answered, ["A"])

    def test_out_of_range_answer_is_not_recorded(self):
        self.engine.start(ROOM, "host", 50)
        with self.assertRaises(OutOfRangeError):
            self.engine.answer(ROOM, "A", "500")
        self.engine.answer(ROOM, "A", "5")
        self.assertEqual(self.engine.status(ROOM).answered, ["A"])

    def test_answer_before_start_and_after_close_or_result(self):
        with self.assertRaises(RoundNotOpenError):
            self.engine.answer(ROOM, "A", 5)
        self.engine.start(ROOM, "host", 50)
        self.engine.answer(ROOM, "A", 5)
        self.engine.close(ROOM, "host")
        with self.assertRaises(RoundNotOpenError):
            self.engine.answer(ROOM, "B", 5)
        self.engine.result(ROOM, "host")
        with self.assertRaises(RoundNotOpenError):
            self.engine.answer(ROOM, "B", 5)

    def test_close_requires_open_round(self):
        with self.assertRaises(RoundNotOpenError):
            self.engine.close(ROOM, "host")

    def test_result_before_start(self):
        with self.assertRaises(RoundNotStartedError):
            self.engine.result(ROOM, "host")

    def test_result_with_no_answers_closes_round(self):
        self.engine.start(ROOM, "host", 50)
        with self.assertRaises(NoSubmissionsError):
            self.engine.result(ROOM, "host")
        self.assertEqual(self.engine.status(ROOM).phase, Phase.CLOSED)
        with self.assertRaises(RoundNotOpenError):
            self.engine.answer(ROOM, "A", 5)

    def test_result_scores_and_seeds_alive_from_respondents(self):
        outcome = self._round(A=40, B=60, C=50)
        self.assertEqual(outcome.winners, ["C"])
        self.assertEqual(outcome.round_number, 1)
        status = self.engine.status(ROOM)
        self.assertEqual(status.phase, Phase.RESOLVED)
        self.assertEqual(status.alive, ["A", "B", "C"])
        self.assertEqual(status.winners, ["C"])

    def test_result_again_returns_same_outcome(self):
        first = self._round(A=45, B=55)
        again = self.engine.result(ROOM, "host")
        self.assertIs(first, again)

    def test_second_start_without_next_round_keeps_respondents(self):
        self._round(A=40, B=60, C=50)
        opened = self.engine.start(ROOM, "host", 10)
        self.assertEqual(opened.restricted_to, ["A", "B", "C"])
        with self.assertRaises(EliminatedError):
            self.engine.answer(ROOM, "D", 10)
        self.engine.answer(ROOM, "A", 10)

    def test_next_round_restricts_to_winners(self):
        self._round(A=45, B=55, C=90)
        roster = self.engine.next_round(ROOM, "host")
        self.assertEqual(roster, ["A", "B"])
        status = self.engine.status(ROOM)
        self.assertEqual(status.phase, Phase.IDLE)
        self.assertEqual(status.winners, [])
        opened = self.engine.start(ROOM, "host", 30)
        self.assertEqual(opened.restricted_to, ["A", "B"])
        with self.assertRaises(EliminatedError):
            self.engine.answer(ROOM, "C", 30)
        self.engine.answer(ROOM, "B", 30)

    def test_next_round_needs_winners(self):
        with self.assertRaises(NoWinnersYetError):
            self.engine.next_round(ROOM, "host")
        self._round(A=45)
        self.engine.next_round(ROOM, "host")
        with self.assertRaises(NoWinnersYetError):
            self.engine.next_round(ROOM, "host")

    def test_start_clears_answers_and_winners(self):
        self._round(A=45)
        self.engine.start(ROOM, "host", 20)
        status = self.engine.status(ROOM)
        self.assertEqual(status.answered, [])
        self.assertEqual(status.winners, [])

    def test_reset_discards_everything(self):
        self._round(A=45, B=55)
        self.engine.next_round(ROOM, "host")
        self.engine.reset(ROOM, "host")
        status = self.engine.status(ROOM)
        self.assertIsNone(status.host_id)
        self.assertEqual(status.round_number, 0)
        self.assertEqual(status.alive, [])
        self.engine.host(ROOM, "teammate")
        self.assertEqual(self.engine.status(ROOM).host_id, "teammate")
        with self.assertRaises(NotHostError):
            self.engine.start(ROOM, "host", 5)

    def test_repeated_host_is_idempotent(self):
        self._round(A=45)
        before = self.engine.status(ROOM)
        self.assertFalse(self.engine.host(ROOM, "host"))
        self.assertFalse(self.engine.host(ROOM, "host"))
        self.assertEqual(self.engine.status(ROOM), before)

    def test_host_can_be_reassigned(self):
        self.assertTrue(self.engine.host(ROOM, "cohost"))
        with self.assertRaises(NotHostError):
            self.engine.start(ROOM, "host", 5)
        self.engine.start(ROOM, "cohost", 5)

    def test_rooms_are_independent(self):
        self.engine.start(ROOM, "host", 50)
        with self.assertRaises(RoundNotOpenError):
            self.engine.answer("chan-2", "A", 10)

    def test_concurrent_answers_are_all_recorded_once(self):
        self.engine.start(ROOM, "host", 50)
        errors = []

        def submit(who):
            for _ in range(5):
                try:
                    self.engine.answer(ROOM, who, 10)
                except AlreadyAnsweredError:
                    errors.append(who)

        threads = [threading.Thread(target=submit, args=(f"p{i}",)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len(self.engine.status(ROOM).answered), 20)
        self.assertEqual(len(errors), 20 * 4)


class UniqueGameEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = EliminationRoundEngine(RoomRegistry(), GameKind.UNIQUE, UniqueClosestStrategy)
        self.engine.host(ROOM, "host")

    def test_all_duplicates_frees_everyone(self):
        self.engine.start(ROOM, "host")
        self.engine.answer(ROOM, "A", 50)
        self.engine.answer(ROOM, "B", 50)
        outcome = self.engine.result(ROOM, "host")
        self.assertEqual(outcome.winners, [])
        self.assertTrue(outcome.alive_reset)
        self.assertEqual(self.engine.status(ROOM).alive, [])
        with self.assertRaises(NoWinnersYetError):
            self.engine.next_round(ROOM, "host")
        self.engine.start(ROOM, "host")
        self.engine.answer(ROOM, "Z", 10)

    def test_duplicate_excluded_from_winners(self):
        self.engine.start(ROOM, "host")
        for who, value in (("A", 49), ("B", 49), ("C", 52)):
            self.engine.answer(ROOM, who, value)
        outcome = self.engine.result(ROOM, "host")
        self.assertEqual(outcome.winners, ["C"])


class ConsensusGameEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        deck = QuestionDeck(rng=random.Random(7))
        self.engine = EliminationRoundEngine(
            RoomRegistry(), GameKind.CONSENSUS, lambda: ConsensusStrategy(deck=deck)
        )
        self.engine.host(ROOM, "host")

    def test_start_carries_question(self):
        opened = self.engine.start(ROOM, "host")
        self.assertTrue(opened.prompt_lines)
        self.assertTrue(opened.prompt_lines[0].startswith("❓"))

    def test_host_must_answer_before_result(self):
        self.engine.start(ROOM, "host")
        self.engine.answer(ROOM, "A", "B")
        with self.assertRaises(HostHasNotAnsweredError):
            self.engine.result(ROOM, "host")
        self.assertEqual(self.engine.status(ROOM).phase, Phase.OPEN)
        self.engine.answer(ROOM, "host", "B")
        outcome = self.engine.result(ROOM, "host")
        self.assertEqual(outcome.winners, ["A"])
        self.assertEqual(outcome.champion, "A")

    def test_winners_and_host_carry_forward(self):
        self.engine.start(ROOM, "host")
        for who, value in (("host", "B"), ("A", "B"), ("C", "A"), ("D", "b")):
            self.engine.answer(ROOM, who, value)
        outcome = self.engine.result(ROOM, "host")
        self.assertEqual(set(outcome.winners), {"A", "D"})
        self.engine.next_round(ROOM, "host")
        self.engine.start(ROOM, "host")
        # the host always answers even though they are not in the winner roster
        self.engine.answer(ROOM, "host", "C")
        with self.assertRaises(EliminatedError):
            self.engine.answer(ROOM, "C", "C")

    def test_forgiveness_keeps_everyone(self):
        self.engine.start(ROOM, "host")
        for who, value in (("host", "B"), ("A", "A"), ("C", "A")):
            self.engine.answer(ROOM, who, value)
        outcome = self.engine.result(ROOM, "host")
        self.assertTrue(outcome.forgiven)
        self.assertEqual(set(outcome.winners), {"A", "C"})


if __name__ == "__main__":
    unittest.main()
