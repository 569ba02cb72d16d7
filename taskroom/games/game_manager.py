from __future__ import annotations

import random
from typing import Any, Callable, Dict, List, Optional

from ..errors import GameError
from ..replies import PendingReply
from .commands import (
    AnswerOp,
    CloseOp,
    DrawOp,
    GiftCloseOp,
    GiftListOp,
    GiftOp,
    GiftResetOp,
    HelpOp,
    HostOp,
    NextRoundOp,
    ResetOp,
    ResultOp,
    RoundOp,
    StartOp,
    StatusOp,
    UnknownOp,
    WishOp,
    parse_gift_command,
    parse_round_command,
)
from .elimination import EliminationRoundEngine, Phase, RoundOpened, RoundOutcome
from .gift_draw import GiftDrawEngine, Wish
from .questions import QuestionDeck
from .registry import GameKind, RoomRegistry
from .strategies import ClosestNumberStrategy, ConsensusStrategy, ScoreRow, UniqueClosestStrategy

BroadcastFn = Callable[[str, str], bool]


# ----------------------------
# Utility + Shared Data
# ----------------------------

def _format_lines(lines: List[str]) -> str:
    return "\n".join([line.rstrip() for line in lines if line is not None])


def default_mention(identity: str) -> str:
    return f"<@{identity}>"


GAME_COMMANDS: Dict[str, GameKind] = {
    "/game1": GameKind.CLOSEST,
    "/closest": GameKind.CLOSEST,
    "/game2": GameKind.UNIQUE,
    "/unique": GameKind.UNIQUE,
    "/game3": GameKind.CONSENSUS,
    "/consensus": GameKind.CONSENSUS,
}

GAME_TITLES = {
    GameKind.CLOSEST: "🎯 Closest Number",
    GameKind.UNIQUE: "🦄 Unique Closest",
    GameKind.CONSENSUS: "🤝 Guess the Host",
    GameKind.GIFT: "🎁 Gift Draw",
}

GAME_PRIMARY_COMMAND = {
    GameKind.CLOSEST: "/game1",
    GameKind.UNIQUE: "/game2",
    GameKind.CONSENSUS: "/game3",
}

PHASE_LABELS = {
    Phase.IDLE: "waiting for the host to start",
    Phase.OPEN: "open for answers",
    Phase.CLOSED: "closed, waiting for results",
    Phase.RESOLVED: "results are in",
}


class GameManager:
    """Container for the room games: three elimination games and the gift draw."""

    def __init__(
        self,
        *,
        clean_log: Callable[..., None],
        registry: Optional[RoomRegistry] = None,
        broadcast: Optional[BroadcastFn] = None,
        secret_min: int = 1,
        secret_max: int = 100,
        rng: Optional[random.Random] = None,
        mention: Callable[[str], str] = default_mention,
    ) -> None:
        self.clean_log = clean_log
        self.registry = registry or RoomRegistry()
        self.broadcast = broadcast
        self.mention = mention
        self.rng = rng or random.Random()

        self.engines: Dict[GameKind, EliminationRoundEngine] = {
            GameKind.CLOSEST: EliminationRoundEngine(
                self.registry,
                GameKind.CLOSEST,
                lambda: ClosestNumberStrategy(secret_min, secret_max),
            ),
            GameKind.UNIQUE: EliminationRoundEngine(
                self.registry,
                GameKind.UNIQUE,
                UniqueClosestStrategy,
            ),
            GameKind.CONSENSUS: EliminationRoundEngine(
                self.registry,
                GameKind.CONSENSUS,
                lambda: ConsensusStrategy(deck=QuestionDeck(rng=self.rng)),
            ),
        }
        self.gift = GiftDrawEngine(self.registry, rng=self.rng)

    def is_game_command(self, cmd: str) -> bool:
        cmd = (cmd or "").lower()
        return cmd in GAME_COMMANDS or cmd in {"/gift", "/games"}

    # ------------------------
    # Public dispatcher
    # ------------------------
    def handle_command(self, cmd: str, arguments: str, room_key: str, actor: str) -> PendingReply:
        cmd = cmd.lower()
        args = (arguments or "").strip()
        if cmd == "/games":
            return self._games_menu()
        if cmd == "/gift":
            return self._handle_gift(parse_gift_command(args), room_key, actor)
        kind = GAME_COMMANDS.get(cmd)
        if kind is not None:
            return self._handle_round(kind, parse_round_command(args), room_key, actor)
        return PendingReply("Game not recognized.", "games")

    def _announce(self, room_key: str, text: str, reason: str) -> PendingReply:
        """Send ``text`` to the room; the caller only gets an acknowledgement when the sink took it."""
        if self.broadcast is None:
            return PendingReply(text, reason)
        try:
            delivered = self.broadcast(room_key, text)
        except Exception as exc:
            self.clean_log(f"broadcast to {room_key} failed: {exc}", "⚠️", show_always=True)
            return PendingReply(text, reason)
        if not delivered:
            return PendingReply(text, reason)
        return PendingReply("📣 Posted to the room.", reason, public=False, broadcast=text)

    # ------------------------
    # Menu
    # ------------------------
    def _games_menu(self) -> PendingReply:
        lines = [
            "🎮 Room Games",
            "",
            "• /game1 — closest to the host's secret number survives",
            "• /game2 — closest to 50 wins, duplicates are knocked out",
            "• /game3 — match the host's answer to survive",
            "• /gift — wish list and secret gift draw",
            "",
            "Tips: use `help` with each game for its commands.",
        ]
        return PendingReply(_format_lines(lines), "games menu")

    def _round_help(self, kind: GameKind) -> PendingReply:
        cmd = GAME_PRIMARY_COMMAND[kind]
        start_hint = f"`{cmd} start <secret>`" if kind is GameKind.CLOSEST else f"`{cmd} start`"
        answer_hint = "<A-D>" if kind is GameKind.CONSENSUS else "<number>"
        lines = [
            GAME_TITLES[kind],
            f"Host: `{cmd} host`, then {start_hint}, `close`, `result`, `next`, `reset`.",
            f"Players: `{cmd} answer {answer_hint}` (one answer per round).",
            f"Anyone: `{cmd} status`.",
        ]
        return PendingReply(_format_lines(lines), "game help")

    # ------------------------
    # Elimination games
    # ------------------------
    def _handle_round(self, kind: GameKind, op: RoundOp, room_key: str, actor: str) -> PendingReply:
        engine = self.engines[kind]
        title = GAME_TITLES[kind]
        reason = f"{kind.value} {type(op).__name__}"
        try:
            if isinstance(op, HostOp):
                engine.host(room_key, actor)
                return PendingReply(f"{title}: {self.mention(actor)} is now the host.", reason)
            if isinstance(op, StartOp):
                opened = engine.start(room_key, actor, op.config)
                self.clean_log(f"{kind.value} round {opened.round_number} started in {room_key}", "🎲")
                return self._announce(room_key, self._opened_text(kind, opened), reason)
            if isinstance(op, AnswerOp):
                engine.answer(room_key, actor, op.value)
                return PendingReply(f"🔒 Answer locked in for {self.mention(actor)}.", reason, public=False)
            if isinstance(op, CloseOp):
                count = engine.close(room_key, actor)
                return PendingReply(f"{title}: answers closed ({count} received).", reason)
            if isinstance(op, ResultOp):
                outcome = engine.result(room_key, actor)
                self.clean_log(f"{kind.value} round {outcome.round_number} scored in {room_key}", "🏁")
                return self._announce(room_key, self._outcome_text(kind, outcome), reason)
            if isinstance(op, NextRoundOp):
                roster = engine.next_round(room_key, actor)
                lines = [f"{title}: next round roster", ", ".join(self.mention(who) for who in roster)]
                return self._announce(room_key, _format_lines(lines), reason)
            if isinstance(op, ResetOp):
                engine.reset(room_key, actor)
                return PendingReply(f"{title}: game reset. Anyone can `host` again.", reason)
            if isinstance(op, StatusOp):
                return self._status(kind, room_key)
            if isinstance(op, HelpOp):
                return self._round_help(kind)
        except GameError as exc:
            return PendingReply(f"⚠️ {exc.message}", reason, public=False)
        return PendingReply(
            f"Unknown option '{op.token}'. Try `{GAME_PRIMARY_COMMAND[kind]} help`.",
            "game help",
            public=False,
        )

    def _opened_text(self, kind: GameKind, opened: RoundOpened) -> str:
        lines = [f"{GAME_TITLES[kind]} — round {opened.round_number} is open!"]
        lines.extend(opened.prompt_lines)
        if opened.restricted_to:
            lines.append("Still in: " + ", ".join(self.mention(who) for who in opened.restricted_to))
        lines.append(f"Answer with `{GAME_PRIMARY_COMMAND[kind]} answer <value>`.")
        return _format_lines(lines)

    def _row_text(self, index: int, row: ScoreRow, winners: List[str]) -> str:
        parts = [f"{index}. {self.mention(row.identity)}"]
        if row.is_host:
            parts.append("(host)")
        parts.append(f"→ {row.value}")
        if row.distance is not None:
            parts.append(f"(off by {row.distance})")
        if row.duplicate:
            parts.append("✖ duplicate")
        if row.matched is not None and not row.is_host:
            parts.append("✅" if row.matched else "❌")
        if row.identity in winners:
            parts.append("🏆")
        return " ".join(parts)

    def _outcome_text(self, kind: GameKind, outcome: RoundOutcome) -> str:
        lines = [f"{GAME_TITLES[kind]} — round {outcome.round_number} results"]
        if outcome.target_label:
            lines.append(outcome.target_label)
        for index, row in enumerate(outcome.rows, start=1):
            lines.append(self._row_text(index, row, outcome.winners))
        if outcome.winners:
            lines.append("Winners: " + ", ".join(self.mention(who) for who in outcome.winners))
        else:
            lines.append("No winners this round.")
        if outcome.forgiven:
            lines.append("Nobody matched the host, so everyone survives!")
        if outcome.alive_reset:
            lines.append("Every pick was duplicated. The game is open to everyone again.")
        if outcome.champion:
            lines.append(f"👑 {self.mention(outcome.champion)} is the last one standing!")
        return _format_lines(lines)

    def _status(self, kind: GameKind, room_key: str) -> PendingReply:
        status = self.engines[kind].status(room_key)
        lines = [GAME_TITLES[kind]]
        if status.host_id is None:
            lines.append(f"No host yet. Use `{GAME_PRIMARY_COMMAND[kind]} host` to take charge.")
            return PendingReply(_format_lines(lines), "game status")
        lines.append(f"Host: {self.mention(status.host_id)}")
        lines.append(f"Round {status.round_number}: {PHASE_LABELS[status.phase]}")
        lines.extend(status.prompt_lines)
        if status.phase in (Phase.OPEN, Phase.CLOSED):
            lines.append(f"Answers received: {len(status.answered)}")
        if status.alive:
            lines.append("Still in: " + ", ".join(self.mention(who) for who in status.alive))
        if status.winners:
            lines.append("Winners: " + ", ".join(self.mention(who) for who in status.winners))
        return PendingReply(_format_lines(lines), "game status")

    # ------------------------
    # Gift draw
    # ------------------------
    def _handle_gift(self, op: GiftOp, room_key: str, actor: str) -> PendingReply:
        reason = f"gift {type(op).__name__}"
        try:
            if isinstance(op, WishOp):
                wish, created = self.gift.submit_wish(room_key, actor, op.text)
                verb = "saved" if created else "updated"
                return PendingReply(f"🎁 Wish #{wish.id} {verb}.", reason, public=False)
            if isinstance(op, GiftCloseOp):
                count = self.gift.close(room_key, actor)
                self.clean_log(f"gift list closed in {room_key} ({count} wishes)", "🎁")
                return PendingReply(f"🔒 Wish list closed with {count} wishes. Use `/gift draw` to pick one.", reason)
            if isinstance(op, GiftListOp):
                return self._gift_list(room_key)
            if isinstance(op, DrawOp):
                wish, repeated = self.gift.draw(room_key, actor)
                return PendingReply(self._draw_text(wish, repeated), reason, public=False)
            if isinstance(op, GiftResetOp):
                self.gift.reset(room_key, actor)
                return PendingReply("♻️ Gift round cleared.", reason)
            if isinstance(op, HelpOp):
                lines = [
                    GAME_TITLES[GameKind.GIFT],
                    "`/gift wish <text>` — add or edit your wish",
                    "`/gift close` — stop taking wishes",
                    "`/gift list` — show all wishes",
                    "`/gift draw` — draw someone else's wish",
                    "`/gift reset` — start over",
                ]
                return PendingReply(_format_lines(lines), "gift help")
        except GameError as exc:
            return PendingReply(f"⚠️ {exc.message}", reason, public=False)
        return PendingReply(f"Unknown option '{op.token}'. Try `/gift help`.", "gift help", public=False)

    def _gift_list(self, room_key: str) -> PendingReply:
        closed, wishes = self.gift.list(room_key)
        if not wishes:
            return PendingReply("🎁 No wishes yet. Add one with `/gift wish <text>`.", "gift list")
        state = "closed" if closed else "open"
        lines = [f"🎁 Wish list ({state})"]
        for wish in wishes:
            taken = " — 🎀 taken" if wish.taken_by else ""
            lines.append(f"#{wish.id} {wish.text} — from {self.mention(wish.author_id)}{taken}")
        return PendingReply(_format_lines(lines), "gift list")

    def _draw_text(self, wish: Wish, repeated: bool) -> str:
        prefix = "🎁 You already drew" if repeated else "🎁 You drew"
        return f"{prefix} wish #{wish.id} from {self.mention(wish.author_id)}: {wish.text}"

    def stats(self) -> Dict[str, Any]:
        return {"rooms": len(self.registry)}
