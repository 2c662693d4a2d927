import json
import time
from collections import deque
from pathlib import Path
from typing import Deque, Dict, List

from whackamole.core.privacy import redact_payload


class AuditLog:
    """Append-only JSON lines record of moderation actions.

    The file keeps growing; only the newest ``max_records`` stay in memory
    for the admin API.
    """

    def __init__(self, path: Path, max_records: int = 500):
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.records: Deque[Dict] = deque(maxlen=max_records)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        for line in self.path.read_text(encoding="utf-8").splitlines():
            try:
                self.records.append(json.loads(line))
            except json.JSONDecodeError:
                continue

    def add(self, event: str, detail: Dict) -> None:
        entry = {
            "ts": time.time(),
            "event": event,
            "detail": redact_payload(detail),
        }
        self.records.append(entry)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def recent(self, limit: int = 50) -> List[Dict]:
        if limit <= 0:
            return []
        return list(self.records)[-limit:]
