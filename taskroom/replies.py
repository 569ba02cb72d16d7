from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class PendingReply:
    text: str
    reason: str = "command"
    public: bool = True
    follow_ups: List[str] = field(default_factory=list)
    broadcast: Optional[str] = None
