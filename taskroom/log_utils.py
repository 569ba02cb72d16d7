"""Logging setup plus the emoji ``clean_log`` helper handed to the managers."""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from typing import Callable, Dict, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
RATE_LIMIT_SECONDS = 2.0  # Don't show same message more than once every 2 seconds


class _NoiseFilter(logging.Filter):
    NOISY = (
        "GET /healthz",
        "GET /live",
    )

    def __init__(self, debug: bool) -> None:
        super().__init__()
        self.debug = debug

    def filter(self, rec: logging.LogRecord) -> bool:
        noisy = any(s in rec.getMessage() for s in self.NOISY)
        return self.debug or not noisy


def configure_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    root_log = logging.getLogger()
    root_log.setLevel(level)
    for lg in (root_log, logging.getLogger("werkzeug")):
        lg.addFilter(_NoiseFilter(debug))


class CleanLogger:
    """Emoji-enhanced log lines with per-message rate limiting."""

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        *,
        enabled: bool = True,
        debug: bool = False,
        rate_limit_seconds: float = RATE_LIMIT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.logger = logger or logging.getLogger("taskroom")
        self.enabled = enabled
        self.debug = debug
        self.rate_limit_seconds = rate_limit_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._last_message_time: Dict[str, float] = defaultdict(float)
        self._message_counts: Dict[str, int] = defaultdict(int)

    def __call__(self, message, emoji="📝", show_always=False, rate_limit=True) -> None:
        message = str(message).strip()
        if rate_limit and not self.debug:
            message_key = f"{emoji}_{message[:50]}"  # Use first 50 chars as key
            with self._lock:
                current_time = self._clock()
                if current_time - self._last_message_time[message_key] < self.rate_limit_seconds:
                    self._message_counts[message_key] += 1
                    return
                # If we had suppressed messages, show count
                suppressed_count = self._message_counts.pop(message_key, 0)
                if suppressed_count > 1:
                    message += f" (suppressed {suppressed_count} similar messages)"
                self._last_message_time[message_key] = current_time

        if show_always or (self.enabled and not self.debug):
            self.logger.info(f"{emoji} {message}")
        elif not self.enabled and not self.debug:
            # Plain lines without emojis when clean logs are disabled
            self.logger.info(f"[Info] {message}")
