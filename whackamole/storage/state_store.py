import asyncio
import json
import time
from pathlib import Path

from pydantic import BaseModel, Field


class RuntimeState(BaseModel):
    """Operator switches. Detection history is never written here."""

    enabled: bool = True
    updated_at: float = Field(default_factory=time.time)


class StateStore:
    def __init__(self, path: Path):
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.lock = asyncio.Lock()
        self.state = RuntimeState()

    async def load(self) -> RuntimeState:
        if not self.path.exists():
            return self.state
        async with self.lock:
            self.state = RuntimeState.parse_obj(
                json.loads(self.path.read_text(encoding="utf-8"))
            )
            return self.state

    async def save(self) -> None:
        async with self.lock:
            self.state.updated_at = time.time()
            self.path.write_text(
                json.dumps(self.state.dict(), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )

    async def set_enabled(self, enabled: bool) -> RuntimeState:
        self.state.enabled = enabled
        await self.save()
        return self.state
