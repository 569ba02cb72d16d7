"""
taskroom.errors — Exception hierarchy
=====================================

Every failure the game core or the task store can report is a typed,
recoverable condition. Each class carries a stable ``code`` and a default
user-facing ``message`` so the managers can render it without string matching.
"""

from __future__ import annotations

from typing import Optional


class TaskroomError(Exception):
    """Base exception for all taskroom errors."""

    code = "error"
    message = "Something went wrong."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


# ── Game core ───────────────────────────────────────────────


class GameError(TaskroomError):
    """Base for elimination-game and gift-draw outcomes."""

    code = "game_error"


class NotHostError(GameError):
    code = "not_host"
    message = "Only the host can do that."


class RoundNotOpenError(GameError):
    code = "round_not_open"
    message = "The round is not open for answers."


class RoundNotStartedError(GameError):
    code = "round_not_started"
    message = "No round has been started yet."


class EliminatedError(GameError):
    code = "eliminated"
    message = "You have been eliminated from this game."


class AlreadyAnsweredError(GameError):
    code = "already_answered"
    message = "You already answered this round."


class OutOfRangeError(GameError):
    code = "out_of_range"
    message = "That value is outside the allowed range."


class NoSubmissionsError(GameError):
    code = "no_submissions"
    message = "Nobody answered this round."


class NoWinnersYetError(GameError):
    code = "no_winners_yet"
    message = "There are no winners to carry into the next round."


class HostHasNotAnsweredError(GameError):
    code = "host_has_not_answered"
    message = "The host has not answered yet."


class RoundClosedError(GameError):
    code = "round_closed"
    message = "Wish submissions are closed."


class AlreadyClosedError(GameError):
    code = "already_closed"
    message = "Wish submissions are already closed."


class NoWishesError(GameError):
    code = "no_wishes"
    message = "No wishes have been submitted."


class RoundNotClosedError(GameError):
    code = "round_not_closed"
    message = "Wish submissions are still open."


class PoolExhaustedError(GameError):
    code = "pool_exhausted"
    message = "There are no wishes left for you to draw."


class EmptyTextError(GameError):
    code = "empty_text"
    message = "Your wish cannot be empty."


# ── Task store ──────────────────────────────────────────────


class TaskStoreError(TaskroomError):
    """Base for task checklist failures."""

    code = "task_error"


class DuplicateTaskError(TaskStoreError):
    code = "duplicate"
    message = "A task with that title already exists."


class TaskNotFoundError(TaskStoreError):
    code = "not_found"
    message = "Task not found."


class InvalidStatusError(TaskStoreError):
    code = "invalid_status"
    message = "Status must be one of: todo, doing, done."
