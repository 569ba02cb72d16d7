"""`/task` command surface over the per-room task store."""

from __future__ import annotations

import re
from collections import OrderedDict
from typing import Callable, Dict, List, Optional

from unidecode import unidecode

from .command_utils import parse_flag, parse_options, resolve_subcommand
from .errors import TaskStoreError
from .replies import PendingReply
from .task_store import DEFAULT_CATEGORY, TASK_STATUSES, TaskStore

STATUS_EMOJI = {"done": "✅", "doing": "⏳", "todo": "⚠️"}
USER_EMOJI = "👤"
EMPTY_LIST_TEXT = "— no tasks in this list —"
MAX_CATEGORY_SUGGESTIONS = 25

TASK_SUBCOMMANDS = ("add", "list", "set", "assign", "category", "remove", "categories", "help")
LIST_STATUSES = TASK_STATUSES + ("all",)

_MENTION = re.compile(r"^<@!?(\w+)>$")

LogFn = Callable[..., None]


def _fold(text: str) -> str:
    return unidecode(text or "").casefold()


def _strip_mention(token: str) -> str:
    match = _MENTION.match(token.strip())
    if match:
        return match.group(1)
    return token.strip().lstrip("@")


def chunk_text(text: str, limit: int) -> List[str]:
    """Split ``text`` into pieces of at most ``limit`` characters, preferring line breaks."""
    limit = max(1, int(limit))
    chunks: List[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks or [""]


class TaskManager:
    def __init__(
        self,
        *,
        store: TaskStore,
        clean_log: LogFn,
        announce: Optional[Callable[[str], None]] = None,
        team_role_id: Optional[str] = None,
        chunk_size: int = 1800,
    ) -> None:
        self.store = store
        self.clean_log = clean_log
        self.announce = announce
        self.team_role_id = team_role_id
        self.chunk_size = max(200, int(chunk_size))

    # Utility helpers -------------------------------------------------
    def _post_announcement(self, text: str) -> None:
        if not self.announce:
            return
        ping = f"<@&{self.team_role_id}> " if self.team_role_id else ""
        try:
            self.announce(f"{ping}{text}")
        except Exception as exc:
            self.clean_log(f"announce error: {exc}", "⚠️", show_always=True)

    def _target(self, positional: List[str], options: Dict[str, str]) -> Optional[str]:
        if options.get("id"):
            return options["id"].strip()
        if options.get("title"):
            return options["title"].strip()
        joined = " ".join(positional).strip()
        return joined or None

    def _task_line(self, task: dict) -> str:
        status = task.get("status") or "todo"
        icon = STATUS_EMOJI.get(status, "•")
        who = f" {USER_EMOJI} <@{task['assigneeId']}>" if task.get("assigneeId") else ""
        note = f" — {task['note']}" if task.get("note") else ""
        return f"- [#{task.get('id')}] **{task.get('title')}** — {icon} _{status}_{who}{note}"

    # Public dispatcher -----------------------------------------------
    def handle_command(self, arguments: str, room_key: str, actor: str) -> PendingReply:
        parts = (arguments or "").strip().split(None, 1)
        if not parts:
            return self._help()
        sub = resolve_subcommand(parts[0], TASK_SUBCOMMANDS)
        rest = parts[1] if len(parts) > 1 else ""
        positional, options = parse_options(rest)
        try:
            if sub == "add":
                return self._add(room_key, actor, positional, options)
            if sub == "list":
                return self._list(room_key, positional, options)
            if sub == "set":
                return self._set(room_key, actor, positional, options)
            if sub == "assign":
                return self._assign(room_key, actor, positional, options)
            if sub == "category":
                return self._category(room_key, positional, options)
            if sub == "remove":
                return self._remove(room_key, positional, options)
            if sub == "categories":
                query = " ".join(positional)
                suggestions = self.suggest_categories(room_key, query)
                return PendingReply("🗂️ Categories: " + ", ".join(suggestions), "task categories", public=False)
            if sub == "help":
                return self._help()
        except TaskStoreError as exc:
            return PendingReply(f"⚠️ {exc.message}", "task error", public=False)
        except ValueError as exc:
            return PendingReply(f"⚠️ {exc}", "task error", public=False)
        return PendingReply("⚠️ Unknown task command. Try `/task help`.", "task help", public=False)

    def _help(self) -> PendingReply:
        lines = [
            "📋 Task checklist (per channel)",
            "• /task add <title> [category=..] [note=..]",
            "• /task list [todo|doing|done|all] [category=..] [public=yes]",
            "• /task set <todo|doing|done> <id|title>",
            "• /task assign <@user> <id|title>",
            "• /task category <new category> <id|title>",
            "• /task remove <id|title>",
            "• /task categories [search]",
        ]
        return PendingReply("\n".join(lines), "task help")

    def _add(self, room_key: str, actor: str, positional: List[str], options: Dict[str, str]) -> PendingReply:
        title = options.get("title") or " ".join(positional).strip()
        if not title:
            return PendingReply("⚠️ Usage: `/task add <title> [category=..] [note=..]`", "task add", public=False)
        category = options.get("category") or DEFAULT_CATEGORY
        task_id = self.store.add_task(
            room_key,
            title=title,
            author_id=actor or "unknown",
            note=options.get("note", ""),
            category=category,
        )
        self.clean_log(f"task #{task_id} added in {room_key}", "📝")
        return PendingReply(f"📝 Added task: **{title}** (#{task_id}) — _/{category.strip() or DEFAULT_CATEGORY}_", "task add")

    def _list(self, room_key: str, positional: List[str], options: Dict[str, str]) -> PendingReply:
        status = (options.get("status") or (positional[0] if positional else "all")).lower()
        if status not in LIST_STATUSES:
            return PendingReply("⚠️ Status must be one of: todo, doing, done, all.", "task list", public=False)
        category = (options.get("category") or "").strip()
        is_public = parse_flag(options.get("public"))
        tasks = self.store.list_tasks(room_key, status=status, category=category or None)

        if not category:
            groups: "OrderedDict[str, List[dict]]" = OrderedDict()
            for task in tasks:
                groups.setdefault(task.get("category") or DEFAULT_CATEGORY, []).append(task)
            blocks = []
            for cat in sorted(groups, key=str.casefold):
                lines = [self._task_line(task) for task in groups[cat]]
                blocks.append(f"**/{cat}**\n" + "\n".join(lines))
            output = "\n\n".join(blocks) or EMPTY_LIST_TEXT
        else:
            lines = [self._task_line(task) for task in tasks] or [EMPTY_LIST_TEXT]
            output = f"**/{category}**\n" + "\n".join(lines)

        label = f"{status} • {category}" if category else status
        header = f"**Task List ({label})**\n"
        chunks = chunk_text(output, self.chunk_size - len(header))
        return PendingReply(header + chunks[0], "task list", public=is_public, follow_ups=chunks[1:])

    def _set(self, room_key: str, actor: str, positional: List[str], options: Dict[str, str]) -> PendingReply:
        status = (options.get("status") or (positional.pop(0) if positional else "")).lower()
        target = self._target(positional, options)
        if not target:
            return PendingReply("⚠️ Provide at least one of: `id` or `title`.", "task set", public=False)
        self.store.set_task_status(room_key, target, status)
        icon = STATUS_EMOJI.get(status, "")
        self._post_announcement(f"📌 **{target}** is now {icon} _{status}_. (by <@{actor}>)")
        return PendingReply(f"🔄 Updated **{target}** → {icon} _{status}_", "task set")

    def _assign(self, room_key: str, actor: str, positional: List[str], options: Dict[str, str]) -> PendingReply:
        user = options.get("user") or (positional.pop(0) if positional else "")
        user_id = _strip_mention(user)
        target = self._target(positional, options)
        if not user_id:
            return PendingReply("⚠️ Usage: `/task assign <@user> <id|title>`", "task assign", public=False)
        if not target:
            return PendingReply("⚠️ Provide at least one of: `id` or `title`.", "task assign", public=False)
        self.store.assign_task(room_key, target, user_id)
        self._post_announcement(f"🧑‍💻 **{target}** assigned to <@{user_id}> (by <@{actor}>)")
        return PendingReply(f"{USER_EMOJI} Assigned **{target}** to <@{user_id}>", "task assign")

    def _category(self, room_key: str, positional: List[str], options: Dict[str, str]) -> PendingReply:
        new_category = options.get("new_category") or (positional.pop(0) if positional else "")
        target = self._target(positional, options)
        if not new_category.strip():
            return PendingReply("⚠️ Usage: `/task category <new category> <id|title>`", "task category", public=False)
        if not target:
            return PendingReply("⚠️ Provide at least one of: `id` or `title`.", "task category", public=False)
        task = self.store.set_task_category(room_key, target, new_category)
        return PendingReply(f"🗂️ Moved **{target}** → _/{task['category']}_", "task category")

    def _remove(self, room_key: str, positional: List[str], options: Dict[str, str]) -> PendingReply:
        target = self._target(positional, options)
        if not target:
            return PendingReply("⚠️ Provide at least one of: `id` or `title`.", "task remove", public=False)
        self.store.remove_task(room_key, target)
        self.clean_log(f"task {target} removed in {room_key}", "🗑️")
        return PendingReply(f"❌ Removed task **{target}**", "task remove")

    def suggest_categories(self, room_key: str, query: str = "") -> List[str]:
        """Categories used in the room matching ``query``; at least ``general``."""
        wanted = _fold(query.strip())
        names = [name for name in self.store.categories(room_key) if wanted in _fold(name)]
        return names[:MAX_CATEGORY_SUGGESTIONS] or [DEFAULT_CATEGORY]
