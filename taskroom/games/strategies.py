"""Scoring rules for the elimination games.

Each strategy validates its own round configuration and answers and turns a
closed round's answers into ranked transcript rows plus a winner list. The
engine owns everything else (phases, hosts, alive sets).
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..errors import HostHasNotAnsweredError, OutOfRangeError
from .questions import CHOICE_LABELS, Question, QuestionDeck, parse_choice

UNIQUE_TARGET = 50


@dataclass
class ScoreRow:
    identity: str
    value: Any
    distance: Optional[int] = None
    matched: Optional[bool] = None
    duplicate: bool = False
    is_host: bool = False


@dataclass
class Scoring:
    rows: List[ScoreRow]
    winners: List[str]
    champion: Optional[str] = None
    forgiven: bool = False
    reset_alive: bool = False


def _parse_int(value: Any, low: int, high: int) -> int:
    if isinstance(value, bool):
        raise OutOfRangeError(f"Pick a whole number from {low} to {high}.")
    if isinstance(value, int):
        number = value
    else:
        text = str(value or "").strip()
        if not text.lstrip("-").isdigit():
            raise OutOfRangeError(f"Pick a whole number from {low} to {high}.")
        number = int(text)
    if number < low or number > high:
        raise OutOfRangeError(f"Pick a whole number from {low} to {high}.")
    return number


class ScoringStrategy(ABC):
    title = "Elimination"
    # The host answers every round and is never eliminated.
    host_participates = False

    def configure(self, config: Any) -> None:
        """Validate and store the host's round config. Raises before storing."""

    def prompt_lines(self) -> List[str]:
        return []

    @abstractmethod
    def parse_answer(self, value: Any) -> Any:
        ...

    def check_ready(self, answers: Dict[str, Any], host_id: Optional[str]) -> None:
        """Raise when the round cannot be scored yet."""

    @abstractmethod
    def score(self, answers: Dict[str, Any], host_id: Optional[str]) -> Scoring:
        ...

    def target_label(self) -> Optional[str]:
        return None


class ClosestNumberStrategy(ScoringStrategy):
    """Closest to the host's secret number wins; equal distances all win."""

    title = "Closest Number"

    def __init__(self, low: int = 1, high: int = 100) -> None:
        if low > high:
            raise ValueError("low must not exceed high")
        self.low = low
        self.high = high
        self.secret: Optional[int] = None

    def configure(self, config: Any) -> None:
        if config is None or config == "":
            raise OutOfRangeError(f"Start with a secret number from {self.low} to {self.high}.")
        self.secret = _parse_int(config, self.low, self.high)

    def prompt_lines(self) -> List[str]:
        return [f"Guess a number from {self.low} to {self.high}. Closest to the secret survives."]

    def parse_answer(self, value: Any) -> int:
        return _parse_int(value, self.low, self.high)

    def target_label(self) -> Optional[str]:
        return None if self.secret is None else f"Secret number: {self.secret}"

    def score(self, answers: Dict[str, Any], host_id: Optional[str]) -> Scoring:
        secret = self.secret if self.secret is not None else self.low
        rows = [ScoreRow(identity=who, value=val, distance=abs(val - secret)) for who, val in answers.items()]
        rows.sort(key=lambda row: (row.distance, row.value, row.identity))
        best = rows[0].distance if rows else None
        winners = [row.identity for row in rows if row.distance == best]
        return Scoring(rows=rows, winners=winners)


class UniqueClosestStrategy(ScoringStrategy):
    """Closest to 50 wins, but any value picked twice is out."""

    title = "Unique Closest"

    def __init__(self, target: int = UNIQUE_TARGET, low: int = 0, high: int = 100) -> None:
        self.target = target
        self.low = low
        self.high = high

    def prompt_lines(self) -> List[str]:
        return [
            f"Pick a number from {self.low} to {self.high}. Closest to {self.target} wins,",
            "but any number picked by more than one player is knocked out.",
        ]

    def parse_answer(self, value: Any) -> int:
        return _parse_int(value, self.low, self.high)

    def target_label(self) -> Optional[str]:
        return f"Target: {self.target}"

    def score(self, answers: Dict[str, Any], host_id: Optional[str]) -> Scoring:
        counts = Counter(answers.values())
        rows = [
            ScoreRow(
                identity=who,
                value=val,
                distance=abs(val - self.target),
                duplicate=counts[val] > 1,
            )
            for who, val in answers.items()
        ]
        rows.sort(key=lambda row: (row.duplicate, row.distance, row.value, row.identity))
        eligible = [row for row in rows if not row.duplicate]
        if not eligible:
            return Scoring(rows=rows, winners=[], reset_alive=True)
        best = eligible[0].distance
        winners = [row.identity for row in eligible if row.distance == best]
        return Scoring(rows=rows, winners=winners)


class ConsensusStrategy(ScoringStrategy):
    """Players survive by matching the host's own pick."""

    title = "Guess the Host"
    host_participates = True

    def __init__(self, deck: Optional[QuestionDeck] = None, rng: Optional[random.Random] = None) -> None:
        self.deck = deck or QuestionDeck(rng=rng)
        self.question: Optional[Question] = None

    def configure(self, config: Any) -> None:
        self.question = self.deck.draw()

    def prompt_lines(self) -> List[str]:
        if self.question is None:
            return []
        lines = self.question.lines()
        lines[0] = "❓ " + lines[0]
        lines.append("Match the host's answer to survive. The host answers too.")
        return lines

    def parse_answer(self, value: Any) -> str:
        label = parse_choice(value)
        if label is None:
            raise OutOfRangeError(f"Answer with one of {', '.join(CHOICE_LABELS)}.")
        return label

    def check_ready(self, answers: Dict[str, Any], host_id: Optional[str]) -> None:
        if host_id is None or host_id not in answers:
            raise HostHasNotAnsweredError()

    def target_label(self) -> Optional[str]:
        return None if self.question is None else self.question.prompt

    def score(self, answers: Dict[str, Any], host_id: Optional[str]) -> Scoring:
        host_choice = answers.get(host_id)
        rows: List[ScoreRow] = []
        for who, val in answers.items():
            is_host = who == host_id
            rows.append(ScoreRow(identity=who, value=val, matched=(val == host_choice), is_host=is_host))
        rows.sort(key=lambda row: (not row.is_host, not row.matched))
        players = [row for row in rows if not row.is_host]
        winners = [row.identity for row in players if row.matched]
        forgiven = False
        if players and not winners:
            winners = [row.identity for row in players]
            forgiven = True
        champion = winners[0] if len(winners) == 1 else None
        return Scoring(rows=rows, winners=winners, champion=champion, forgiven=forgiven)
