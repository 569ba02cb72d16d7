from .game_manager import GameManager
from .registry import GameKind, RoomRegistry

__all__ = ["GameManager", "GameKind", "RoomRegistry"]
