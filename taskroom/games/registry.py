"""In-memory room state shared by the game engines.

A room lazily owns one state bucket per game kind. Every mutation of a bucket
happens inside :meth:`RoomRegistry.slot`, which holds the lock for that
``(room, kind)`` pair only, so different rooms and different kinds never
contend with each other. A room exists only while it holds at least one
bucket; read-only lookups never create one.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Optional, Tuple


class GameKind(Enum):
    CLOSEST = "closest"
    UNIQUE = "unique"
    CONSENSUS = "consensus"
    GIFT = "gift"


@dataclass
class Room:
    key: str
    states: Dict[GameKind, Any] = field(default_factory=dict)


class RoomSlot:
    """Handle on one room's bucket for one game kind, valid while locked."""

    def __init__(self, registry: "RoomRegistry", room_key: str, kind: GameKind, factory: Callable[[], Any]) -> None:
        self._registry = registry
        self.room_key = room_key
        self.kind = kind
        self._factory = factory

    @property
    def state(self) -> Any:
        current = self.peek()
        if current is None:
            current = self._factory()
            room = self._registry.room(self.room_key)
            with self._registry._lock:
                room.states[self.kind] = current
        return current

    def peek(self) -> Optional[Any]:
        room = self._registry.find(self.room_key)
        return None if room is None else room.states.get(self.kind)

    def discard(self) -> None:
        self._registry._drop(self.room_key, self.kind)


class RoomRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rooms: Dict[str, Room] = {}
        self._slot_locks: Dict[Tuple[str, GameKind], threading.Lock] = {}

    def room(self, room_key: str) -> Room:
        with self._lock:
            room = self._rooms.get(room_key)
            if room is None:
                room = Room(key=room_key)
                self._rooms[room_key] = room
            return room

    def find(self, room_key: str) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(room_key)

    def _drop(self, room_key: str, kind: GameKind) -> None:
        with self._lock:
            room = self._rooms.get(room_key)
            if room is None:
                return
            room.states.pop(kind, None)
            if not room.states:
                del self._rooms[room_key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def _slot_lock(self, room_key: str, kind: GameKind) -> threading.Lock:
        with self._lock:
            lock = self._slot_locks.get((room_key, kind))
            if lock is None:
                lock = threading.Lock()
                self._slot_locks[(room_key, kind)] = lock
            return lock

    @contextmanager
    def slot(self, room_key: str, kind: GameKind, factory: Callable[[], Any]) -> Iterator[RoomSlot]:
        """Lock ``(room_key, kind)``; the room itself is only created on first write."""
        if not room_key:
            raise ValueError("Room key cannot be empty")
        with self._slot_lock(room_key, kind):
            yield RoomSlot(self, room_key, kind, factory)
