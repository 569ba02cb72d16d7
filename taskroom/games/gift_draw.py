"""Gift exchange: collect one wish per player, then draw someone else's."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from ..errors import (
    AlreadyClosedError,
    EmptyTextError,
    NoWishesError,
    PoolExhaustedError,
    RoundClosedError,
    RoundNotClosedError,
)
from .registry import GameKind, RoomRegistry

logger = logging.getLogger("taskroom.games")


@dataclass
class Wish:
    id: int
    text: str
    author_id: str
    taken_by: Optional[str] = None


@dataclass
class GiftRound:
    closed: bool = False
    wishes: List[Wish] = field(default_factory=list)

    def wish_by_author(self, author_id: str) -> Optional[Wish]:
        for wish in self.wishes:
            if wish.author_id == author_id:
                return wish
        return None

    def drawn_by(self, actor: str) -> Optional[Wish]:
        for wish in self.wishes:
            if wish.taken_by == actor:
                return wish
        return None

    def next_id(self) -> int:
        return max((wish.id for wish in self.wishes), default=0) + 1


class GiftDrawEngine:
    def __init__(self, registry: RoomRegistry, rng: Optional[random.Random] = None) -> None:
        self.registry = registry
        self.rng = rng or random.Random()

    def _slot(self, room_key: str):
        return self.registry.slot(room_key, GameKind.GIFT, GiftRound)

    def submit_wish(self, room_key: str, actor: str, text: str) -> Tuple[Wish, bool]:
        """Add or edit ``actor``'s wish. Returns a copy and whether it is new."""
        clean = (text or "").strip()
        with self._slot(room_key) as slot:
            gift: GiftRound = slot.state
            if gift.closed:
                raise RoundClosedError()
            if not clean:
                raise EmptyTextError()
            existing = gift.wish_by_author(actor)
            if existing is not None:
                existing.text = clean
                return replace(existing), False
            wish = Wish(id=gift.next_id(), text=clean, author_id=actor)
            gift.wishes.append(wish)
            return replace(wish), True

    def close(self, room_key: str, actor: str) -> int:
        with self._slot(room_key) as slot:
            gift: Optional[GiftRound] = slot.peek()
            if gift is None or not gift.wishes:
                raise NoWishesError()
            if gift.closed:
                raise AlreadyClosedError()
            gift.closed = True
            logger.info("[%s/gift] closed by %s with %d wishes", room_key, actor, len(gift.wishes))
            return len(gift.wishes)

    def list(self, room_key: str) -> Tuple[bool, List[Wish]]:
        with self._slot(room_key) as slot:
            gift: Optional[GiftRound] = slot.peek()
            if gift is None:
                return False, []
            return gift.closed, [replace(wish) for wish in gift.wishes]

    def draw(self, room_key: str, actor: str) -> Tuple[Wish, bool]:
        """Draw a wish for ``actor``. Returns a copy and whether it was drawn before."""
        with self._slot(room_key) as slot:
            gift: Optional[GiftRound] = slot.peek()
            if gift is None or not gift.closed:
                raise RoundNotClosedError()
            if not gift.wishes:
                raise NoWishesError()
            previous = gift.drawn_by(actor)
            if previous is not None:
                return replace(previous), True
            pool = [wish for wish in gift.wishes if wish.author_id != actor and wish.taken_by is None]
            if not pool:
                raise PoolExhaustedError()
            chosen = self.rng.choice(pool)
            chosen.taken_by = actor
            logger.info("[%s/gift] %s drew wish #%d", room_key, actor, chosen.id)
            return replace(chosen), False

    def reset(self, room_key: str, actor: str) -> None:
        with self._slot(room_key) as slot:
            slot.discard()
            logger.info("[%s/gift] round discarded by %s", room_key, actor)
