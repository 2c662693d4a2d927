import logging
from datetime import timedelta
from typing import Any

from whackamole.core.detector import SpamVerdict
from whackamole.moderation.dispatcher import DeliveryError, ModerationDispatcher
from whackamole.storage.audit import AuditLog
from whackamole.storage.event_buffer import EventBuffer

logger = logging.getLogger(__name__)


class ModerationEnforcer:
    """Carries out a spam verdict through the dispatcher.

    Failures are logged and recorded, never retried. The detector has already
    updated its history by the time this runs.
    """

    def __init__(
        self,
        dispatcher: ModerationDispatcher,
        timeout: timedelta,
        event_buffer: EventBuffer,
        audit_log: AuditLog,
    ):
        self.dispatcher = dispatcher
        self.timeout = timeout
        self.event_buffer = event_buffer
        self.audit_log = audit_log

    async def enforce(self, verdict: SpamVerdict, author_ref: Any, content: str = "") -> int:
        """Returns the number of actions that failed."""
        if not verdict.is_spam:
            return 0

        failures = 0
        deleted = 0
        for ref in verdict.delete_refs:
            try:
                await self.dispatcher.delete_message(ref)
                deleted += 1
            except DeliveryError as exc:
                failures += 1
                self._record_failure("delete_message", verdict, exc)

        if verdict.warn:
            try:
                await self.dispatcher.warn_and_timeout(author_ref, self.timeout)
            except DeliveryError as exc:
                failures += 1
                self._record_failure("warn_and_timeout", verdict, exc)

        self.event_buffer.add(
            {
                "type": verdict.kind.value,
                "user": verdict.author_id,
                "deleted": deleted,
                "failures": failures,
            }
        )
        self.audit_log.add(
            verdict.kind.value,
            {
                "user": verdict.author_id,
                "content": content[:200],
                "targets": len(verdict.delete_refs),
                "deleted": deleted,
                "timeout_seconds": int(self.timeout.total_seconds()) if verdict.warn else 0,
            },
        )
        return failures

    def _record_failure(self, action: str, verdict: SpamVerdict, exc: DeliveryError) -> None:
        logger.warning("%s failed for user=%s: %s", action, verdict.author_id, exc)
        self.event_buffer.add(
            {
                "type": "delivery_error",
                "action": action,
                "user": verdict.author_id,
                "detail": str(exc),
            }
        )
