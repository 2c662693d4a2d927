import time
from collections import deque
from typing import Deque, Dict, List, Optional


class EventBuffer:
    """Recent detection events kept in memory for the admin API."""

    def __init__(self, maxlen: int = 200):
        self.buffer: Deque[Dict] = deque(maxlen=maxlen)

    def add(self, event: Dict) -> None:
        self.buffer.append({"ts": time.time(), **event})

    def recent(self, limit: int = 50, event_type: Optional[str] = None) -> List[Dict]:
        if limit <= 0:
            return []
        events = [
            e for e in self.buffer if event_type is None or e.get("type") == event_type
        ]
        return events[-limit:]
