from __future__ import annotations

from typing import Any, Optional


def room_key_for(channel_id: Any, parent_id: Optional[Any] = None, is_thread: bool = False) -> Optional[str]:
    """Threads share their parent channel's room; everything else is keyed by channel."""
    if is_thread and parent_id not in (None, ""):
        return str(parent_id)
    if channel_id in (None, ""):
        return None
    return str(channel_id)
