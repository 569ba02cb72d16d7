from __future__ import annotations

from typing import Any, List, Optional

from .command_utils import promote_bare_command, split_command
from .games import GameManager
from .games.game_manager import GAME_COMMANDS
from .replies import PendingReply
from .rooms import room_key_for
from .task_manager import TaskManager

KNOWN_COMMANDS: List[str] = ["/task", "/gift", "/games", "/help"] + list(GAME_COMMANDS)


class CommandRouter:
    """Route one chat line to the task checklist or the room games."""

    def __init__(self, *, task_manager: TaskManager, game_manager: GameManager) -> None:
        self.task_manager = task_manager
        self.game_manager = game_manager

    def handle(
        self,
        text: str,
        *,
        channel_id: Any,
        actor: str,
        parent_id: Optional[Any] = None,
        is_thread: bool = False,
    ) -> Optional[PendingReply]:
        room_key = room_key_for(channel_id, parent_id, is_thread)
        if not room_key:
            return PendingReply("⚠️ Could not work out which channel this is.", "no room", public=False)

        line = (text or "").strip()
        if not line.startswith("/"):
            line = promote_bare_command(line, KNOWN_COMMANDS) or ""
            if not line:
                return None

        cmd, args = split_command(line)
        if cmd == "/task":
            return self.task_manager.handle_command(args, room_key, actor)
        if self.game_manager.is_game_command(cmd):
            return self.game_manager.handle_command(cmd, args, room_key, actor)
        if cmd == "/help":
            return self._help()
        return PendingReply("⚠️ Unknown command. Try `/help`.", "unknown command", public=False)

    def _help(self) -> PendingReply:
        lines = [
            "🧭 Commands",
            "• /task help — per-channel task checklist",
            "• /games — room mini-games",
            "• /gift help — gift exchange draw",
        ]
        return PendingReply("\n".join(lines), "help")
