"""Typed operations parsed from chat text for the game commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..command_utils import resolve_subcommand
from .questions import parse_choice


@dataclass(frozen=True)
class HostOp:
    pass


@dataclass(frozen=True)
class StartOp:
    config: Optional[str] = None


@dataclass(frozen=True)
class AnswerOp:
    value: str


@dataclass(frozen=True)
class CloseOp:
    pass


@dataclass(frozen=True)
class ResultOp:
    pass


@dataclass(frozen=True)
class NextRoundOp:
    pass


@dataclass(frozen=True)
class ResetOp:
    pass


@dataclass(frozen=True)
class StatusOp:
    pass


@dataclass(frozen=True)
class HelpOp:
    pass


@dataclass(frozen=True)
class UnknownOp:
    token: str


RoundOp = Union[HostOp, StartOp, AnswerOp, CloseOp, ResultOp, NextRoundOp, ResetOp, StatusOp, HelpOp, UnknownOp]


@dataclass(frozen=True)
class WishOp:
    text: str


@dataclass(frozen=True)
class GiftCloseOp:
    pass


@dataclass(frozen=True)
class GiftListOp:
    pass


@dataclass(frozen=True)
class DrawOp:
    pass


@dataclass(frozen=True)
class GiftResetOp:
    pass


GiftOp = Union[WishOp, GiftCloseOp, GiftListOp, DrawOp, GiftResetOp, HelpOp, UnknownOp]

ROUND_SUBCOMMANDS = ("host", "start", "answer", "close", "result", "next", "reset", "status", "help")
GIFT_SUBCOMMANDS = ("wish", "close", "list", "draw", "reset", "help")


def _looks_like_answer(token: str) -> bool:
    text = token.strip()
    return text.lstrip("-").isdigit() or parse_choice(text) is not None


def parse_round_command(args: str) -> RoundOp:
    parts = (args or "").split(None, 1)
    if not parts:
        return StatusOp()
    head = parts[0]
    rest = parts[1].strip() if len(parts) > 1 else ""
    if _looks_like_answer(head) and not rest:
        return AnswerOp(value=head)
    sub = resolve_subcommand(head, ROUND_SUBCOMMANDS)
    if sub == "host":
        return HostOp()
    if sub == "start":
        return StartOp(config=rest or None)
    if sub == "answer":
        return AnswerOp(value=rest)
    if sub == "close":
        return CloseOp()
    if sub == "result":
        return ResultOp()
    if sub == "next":
        return NextRoundOp()
    if sub == "reset":
        return ResetOp()
    if sub == "status":
        return StatusOp()
    if sub == "help":
        return HelpOp()
    return UnknownOp(token=head)


def parse_gift_command(args: str) -> GiftOp:
    parts = (args or "").split(None, 1)
    if not parts:
        return GiftListOp()
    head = parts[0]
    rest = parts[1].strip() if len(parts) > 1 else ""
    sub = resolve_subcommand(head, GIFT_SUBCOMMANDS)
    if sub == "wish":
        return WishOp(text=rest)
    if sub == "close":
        return GiftCloseOp()
    if sub == "list":
        return GiftListOp()
    if sub == "draw":
        return DrawOp()
    if sub == "reset":
        return GiftResetOp()
    if sub == "help":
        return HelpOp()
    return UnknownOp(token=head)
