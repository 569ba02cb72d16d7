"""Core helpers for the taskroom chat assistant."""

from .replies import PendingReply
from .games import GameManager, GameKind, RoomRegistry
from .task_store import TaskStore
from .task_manager import TaskManager
from .dispatcher import CommandRouter

__all__ = [
    "PendingReply",
    "GameManager",
    "GameKind",
    "RoomRegistry",
    "TaskStore",
    "TaskManager",
    "CommandRouter",
]
