"""Webhook delivery for room broadcasts and the announcement channel.

Posting never blocks the caller: each message is handed to a daemon thread and
delivery problems only show up in the log.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Optional

import requests

logger = logging.getLogger("taskroom.broadcast")

LogFn = Callable[..., None]


class WebhookBroadcaster:
    def __init__(
        self,
        *,
        clean_log: LogFn,
        room_webhooks: Optional[Dict[str, str]] = None,
        default_url: Optional[str] = None,
        announce_url: Optional[str] = None,
        timeout: float = 10.0,
        background: bool = True,
    ) -> None:
        self.clean_log = clean_log
        self.room_webhooks = dict(room_webhooks or {})
        self.default_url = default_url or None
        self.announce_url = announce_url or None
        self.timeout = max(1.0, float(timeout))
        self.background = background

    def url_for(self, room_key: str) -> Optional[str]:
        return self.room_webhooks.get(str(room_key)) or self.default_url

    @property
    def has_room_delivery(self) -> bool:
        return bool(self.room_webhooks or self.default_url)

    def send(self, room_key: str, text: str) -> bool:
        """Queue ``text`` for the room. Returns False when the room has no webhook."""
        url = self.url_for(room_key)
        if not url:
            logger.debug("no webhook for room %s", room_key)
            return False
        self._dispatch(url, text, f"room {room_key}")
        return True

    def announce(self, text: str) -> None:
        if not self.announce_url:
            return
        self._dispatch(self.announce_url, text, "announcements")

    def _dispatch(self, url: str, text: str, label: str) -> None:
        if not text:
            return
        if not self.background:
            self._post(url, text, label)
            return
        worker = threading.Thread(target=self._post, args=(url, text, label), daemon=True)
        worker.start()

    def _post(self, url: str, text: str, label: str) -> bool:
        try:
            resp = requests.post(url, json={"content": text}, timeout=self.timeout)
        except requests.RequestException as exc:
            self.clean_log(f"Webhook to {label} failed: {exc}", "⚠️", show_always=True)
            return False
        if resp.status_code >= 300:
            self.clean_log(f"Webhook to {label} error {resp.status_code}: {resp.text[:80]}", "⚠️", show_always=True)
            return False
        self.clean_log(f"Posted to {label}", "📣")
        return True
