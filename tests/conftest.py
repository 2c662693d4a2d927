"""
Shared fixtures for all tests.
"""

from datetime import timedelta
from typing import Any, List, Tuple

import pytest

from whackamole.moderation.dispatcher import DeliveryError, ModerationDispatcher
from whackamole.storage.audit import AuditLog
from whackamole.storage.event_buffer import EventBuffer


class RecordingDispatcher(ModerationDispatcher):
    """Dispatcher that records calls and fails on demand."""

    def __init__(self, fail_deletes: bool = False, fail_timeouts: bool = False):
        self.fail_deletes = fail_deletes
        self.fail_timeouts = fail_timeouts
        self.deleted: List[Any] = []
        self.timeouts: List[Tuple[Any, timedelta]] = []

    async def delete_message(self, origin_ref: Any) -> None:
        if self.fail_deletes:
            raise DeliveryError(f"cannot delete {origin_ref}")
        self.deleted.append(origin_ref)

    async def warn_and_timeout(self, author_ref: Any, duration: timedelta) -> None:
        if self.fail_timeouts:
            raise DeliveryError(f"cannot time out {author_ref}")
        self.timeouts.append((author_ref, duration))


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def event_buffer():
    return EventBuffer()


@pytest.fixture
def audit_log(tmp_path):
    return AuditLog(tmp_path / "audit.log")
