"""Shared elimination-round engine.

One engine instance drives one game kind across every room. The per-game
differences live in a :class:`~taskroom.games.strategies.ScoringStrategy`
created fresh for each room's round record.

Phase flow::

    IDLE --start--> OPEN --close--> CLOSED --result--> RESOLVED
      ^               \\______result______/               |
      |                                                   |
      +------------------------next_round-----------------+

``start`` re-opens from any phase. Validation always runs before mutation so
a failed call leaves the round untouched; the one exception is ``result`` on a
round nobody answered, which still closes the round.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from ..errors import (
    AlreadyAnsweredError,
    EliminatedError,
    NoSubmissionsError,
    NoWinnersYetError,
    NotHostError,
    RoundNotOpenError,
    RoundNotStartedError,
)
from .registry import GameKind, RoomRegistry
from .strategies import ScoreRow, ScoringStrategy

logger = logging.getLogger("taskroom.games")


class Phase(Enum):
    IDLE = "idle"
    OPEN = "open"
    CLOSED = "closed"
    RESOLVED = "resolved"


@dataclass
class RoundOutcome:
    round_number: int
    rows: List[ScoreRow]
    winners: List[str]
    target_label: Optional[str] = None
    champion: Optional[str] = None
    forgiven: bool = False
    alive_reset: bool = False


@dataclass
class RoundOpened:
    round_number: int
    restricted_to: List[str]
    prompt_lines: List[str]


@dataclass
class RoundStatus:
    host_id: Optional[str]
    round_number: int
    phase: Phase
    answered: List[str]
    alive: List[str]
    winners: List[str]
    prompt_lines: List[str] = field(default_factory=list)


@dataclass
class EliminationRound:
    strategy: ScoringStrategy
    host_id: Optional[str] = None
    round_number: int = 0
    phase: Phase = Phase.IDLE
    alive: Set[str] = field(default_factory=set)
    answers: Dict[str, Any] = field(default_factory=dict)
    winners: List[str] = field(default_factory=list)
    outcome: Optional[RoundOutcome] = None

    def require_host(self, actor: str) -> None:
        if self.host_id is None or actor != self.host_id:
            raise NotHostError()

    def can_answer(self, actor: str) -> bool:
        if not self.alive or actor in self.alive:
            return True
        return self.strategy.host_participates and actor == self.host_id


class EliminationRoundEngine:
    def __init__(
        self,
        registry: RoomRegistry,
        kind: GameKind,
        strategy_factory: Callable[[], ScoringStrategy],
    ) -> None:
        self.registry = registry
        self.kind = kind
        self.strategy_factory = strategy_factory

    def _new_round(self) -> EliminationRound:
        return EliminationRound(strategy=self.strategy_factory())

    def _slot(self, room_key: str):
        return self.registry.slot(room_key, self.kind, self._new_round)

    def _hosted(self, slot, actor: str) -> EliminationRound:
        record: Optional[EliminationRound] = slot.peek()
        if record is None:
            raise NotHostError()
        record.require_host(actor)
        return record

    # ------------------------------------------------------------------
    # Host-driven transitions
    # ------------------------------------------------------------------

    def host(self, room_key: str, actor: str) -> bool:
        """Make ``actor`` the host. Returns True when the host changed."""
        with self._slot(room_key) as slot:
            record: EliminationRound = slot.state
            changed = record.host_id != actor
            if changed:
                logger.info("[%s/%s] host -> %s", room_key, self.kind.value, actor)
            record.host_id = actor
            return changed

    def start(self, room_key: str, actor: str, config: Any = None) -> RoundOpened:
        with self._slot(room_key) as slot:
            record = self._hosted(slot, actor)
            record.strategy.configure(config)
            record.round_number += 1
            record.phase = Phase.OPEN
            record.answers = {}
            record.winners = []
            record.outcome = None
            logger.info("[%s/%s] round %d open", room_key, self.kind.value, record.round_number)
            return RoundOpened(
                round_number=record.round_number,
                restricted_to=sorted(record.alive),
                prompt_lines=record.strategy.prompt_lines(),
            )

    def close(self, room_key: str, actor: str) -> int:
        """Stop accepting answers. Returns the number of answers collected."""
        with self._slot(room_key) as slot:
            record = self._hosted(slot, actor)
            if record.phase is not Phase.OPEN:
                raise RoundNotOpenError()
            record.phase = Phase.CLOSED
            return len(record.answers)

    def result(self, room_key: str, actor: str) -> RoundOutcome:
        with self._slot(room_key) as slot:
            record = self._hosted(slot, actor)
            if record.phase is Phase.RESOLVED and record.outcome is not None:
                return record.outcome
            if record.phase not in (Phase.OPEN, Phase.CLOSED):
                raise RoundNotStartedError()
            if not record.answers:
                record.phase = Phase.CLOSED
                raise NoSubmissionsError()
            record.strategy.check_ready(record.answers, record.host_id)

            scoring = record.strategy.score(record.answers, record.host_id)
            record.winners = list(scoring.winners)
            if not record.alive:
                record.alive = set(record.answers.keys())
            if scoring.reset_alive:
                record.alive = set()
            record.phase = Phase.RESOLVED
            record.outcome = RoundOutcome(
                round_number=record.round_number,
                rows=scoring.rows,
                winners=list(scoring.winners),
                target_label=record.strategy.target_label(),
                champion=scoring.champion,
                forgiven=scoring.forgiven,
                alive_reset=scoring.reset_alive,
            )
            logger.info(
                "[%s/%s] round %d resolved: %d answers, winners=%s",
                room_key,
                self.kind.value,
                record.round_number,
                len(record.answers),
                record.winners,
            )
            return record.outcome

    def next_round(self, room_key: str, actor: str) -> List[str]:
        with self._slot(room_key) as slot:
            record = self._hosted(slot, actor)
            if not record.winners:
                raise NoWinnersYetError()
            record.alive = set(record.winners)
            record.winners = []
            record.answers = {}
            record.outcome = None
            record.phase = Phase.IDLE
            return sorted(record.alive)

    def reset(self, room_key: str, actor: str) -> None:
        with self._slot(room_key) as slot:
            self._hosted(slot, actor)
            slot.discard()
            logger.info("[%s/%s] game discarded by %s", room_key, self.kind.value, actor)

    # ------------------------------------------------------------------
    # Player operations
    # ------------------------------------------------------------------

    def answer(self, room_key: str, actor: str, value: Any) -> Any:
        with self._slot(room_key) as slot:
            record: Optional[EliminationRound] = slot.peek()
            if record is None or record.phase is not Phase.OPEN:
                raise RoundNotOpenError()
            if not record.can_answer(actor):
                raise EliminatedError()
            if actor in record.answers:
                raise AlreadyAnsweredError()
            parsed = record.strategy.parse_answer(value)
            record.answers[actor] = parsed
            return parsed

    def status(self, room_key: str) -> RoundStatus:
        with self._slot(room_key) as slot:
            record: Optional[EliminationRound] = slot.peek()
            if record is None:
                return RoundStatus(None, 0, Phase.IDLE, [], [], [])
            return RoundStatus(
                host_id=record.host_id,
                round_number=record.round_number,
                phase=record.phase,
                answered=list(record.answers.keys()),
                alive=sorted(record.alive),
                winners=list(record.winners),
                prompt_lines=record.strategy.prompt_lines() if record.phase is Phase.OPEN else [],
            )
