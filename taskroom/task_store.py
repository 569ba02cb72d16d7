"""JSON-backed task checklist store, one file per room."""

from __future__ import annotations

import json
import logging
import os
import re
import threading
import time
import unicodedata
from typing import Any, Dict, List, Optional, Union

from .errors import DuplicateTaskError, InvalidStatusError, TaskNotFoundError

logger = logging.getLogger("taskroom.tasks")

TASK_STATUSES = ("todo", "doing", "done")
DEFAULT_CATEGORY = "general"

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9_.-]")

TitleOrId = Union[int, str]


def _now_ms() -> int:
    return int(time.time() * 1000)


def normalize_title(value: Any) -> str:
    return unicodedata.normalize("NFC", str(value if value is not None else "")).strip().lower()


def normalize_category(value: Any) -> str:
    text = unicodedata.normalize("NFC", str(value if value is not None else "")).strip()
    return text or DEFAULT_CATEGORY


def _as_id(title_or_id: TitleOrId) -> Optional[int]:
    if isinstance(title_or_id, bool):
        return None
    if isinstance(title_or_id, int):
        return title_or_id
    text = str(title_or_id).strip()
    if text.isdigit():
        return int(text)
    return None


class TaskStore:
    """Persist per-room task lists under ``root`` as ``<room>.json``.

    Every call reloads the room file so edits made by another process are
    picked up; concurrent writers follow last-write-wins.
    """

    def __init__(self, root: str) -> None:
        self._root = root
        self._lock = threading.Lock()

    @property
    def root(self) -> str:
        return self._root

    def ensure_store(self) -> None:
        os.makedirs(self._root, exist_ok=True)

    def _file_of(self, room_key: str) -> str:
        name = _UNSAFE_FILENAME.sub("_", str(room_key).strip())
        if not name:
            raise ValueError("Room key cannot be empty")
        return os.path.join(self._root, f"{name}.json")

    def _load(self, room_key: str) -> Dict[str, Any]:
        path = self._file_of(room_key)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except FileNotFoundError:
            return {"tasks": [], "lastId": 0}
        except (OSError, ValueError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return {"tasks": [], "lastId": 0}
        if not isinstance(raw, dict):
            logger.warning("%s does not hold a task list; starting empty", path)
            return {"tasks": [], "lastId": 0}
        tasks = [entry for entry in raw.get("tasks") or [] if isinstance(entry, dict)]
        for task in tasks:
            if not task.get("category"):
                task["category"] = DEFAULT_CATEGORY
        last_id = raw.get("lastId")
        if last_id is None:
            last_id = max([0] + [int(task.get("id") or 0) for task in tasks])
            logger.info("migrated %s (lastId=%d)", path, last_id)
        return {"tasks": tasks, "lastId": int(last_id)}

    def _save(self, room_key: str, data: Dict[str, Any]) -> None:
        path = self._file_of(room_key)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)

    def _find(self, tasks: List[dict], title_or_id: TitleOrId) -> dict:
        task_id = _as_id(title_or_id)
        if task_id is not None:
            for task in tasks:
                if task.get("id") == task_id:
                    return task
        wanted = normalize_title(title_or_id)
        for task in tasks:
            if normalize_title(task.get("title")) == wanted:
                return task
        raise TaskNotFoundError(f"Task '{title_or_id}' not found.")

    # ---------- CRUD ----------
    def add_task(
        self,
        room_key: str,
        *,
        title: str,
        author_id: str,
        note: str = "",
        category: str = DEFAULT_CATEGORY,
    ) -> int:
        clean_title = (title or "").strip()
        if not clean_title:
            raise ValueError("Task title cannot be empty")
        with self._lock:
            db = self._load(room_key)
            wanted = normalize_title(clean_title)
            if any(normalize_title(task.get("title")) == wanted for task in db["tasks"]):
                raise DuplicateTaskError(f"A task titled '{clean_title}' already exists.")
            task_id = db["lastId"] + 1
            db["lastId"] = task_id
            now = _now_ms()
            db["tasks"].append(
                {
                    "id": task_id,
                    "title": clean_title,
                    "note": note or "",
                    "authorId": author_id,
                    "assigneeId": None,
                    "status": "todo",
                    "category": normalize_category(category),
                    "createdAt": now,
                    "updatedAt": now,
                }
            )
            self._save(room_key, db)
            return task_id

    def list_tasks(self, room_key: str, *, status: str = "all", category: Optional[str] = None) -> List[dict]:
        with self._lock:
            items = self._load(room_key)["tasks"]
        if status and status != "all":
            items = [task for task in items if task.get("status") == status]
        if category and category != "all":
            wanted = normalize_category(category)
            items = [task for task in items if normalize_category(task.get("category")) == wanted]
        return [dict(task) for task in items]

    def _update(self, room_key: str, title_or_id: TitleOrId, **changes: Any) -> dict:
        with self._lock:
            db = self._load(room_key)
            task = self._find(db["tasks"], title_or_id)
            task.update(changes)
            task["updatedAt"] = _now_ms()
            self._save(room_key, db)
            return dict(task)

    def set_task_status(self, room_key: str, title_or_id: TitleOrId, status: str) -> dict:
        if status not in TASK_STATUSES:
            raise InvalidStatusError()
        return self._update(room_key, title_or_id, status=status)

    def assign_task(self, room_key: str, title_or_id: TitleOrId, user_id: str) -> dict:
        return self._update(room_key, title_or_id, assigneeId=user_id)

    def set_task_category(self, room_key: str, title_or_id: TitleOrId, category: str) -> dict:
        return self._update(room_key, title_or_id, category=normalize_category(category))

    def remove_task(self, room_key: str, title_or_id: TitleOrId) -> None:
        with self._lock:
            db = self._load(room_key)
            task = self._find(db["tasks"], title_or_id)
            db["tasks"] = [entry for entry in db["tasks"] if entry is not task]
            self._save(room_key, db)

    def categories(self, room_key: str) -> List[str]:
        names = {normalize_category(task.get("category")) for task in self.list_tasks(room_key)}
        return sorted(names, key=str.casefold)
