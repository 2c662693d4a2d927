import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from whackamole.config import DetectionConfig
from whackamole.core.history import Entry, SweepResult, WindowedLog

logger = logging.getLogger(__name__)

URL_RE = re.compile(r"(?<!\S)https?://\S+")
URL_BUCKET = "urls"


class ConfigurationError(ValueError):
    pass


class VerdictKind(Enum):
    NOT_SPAM = "not_spam"
    SPAM_BY_URL = "spam_by_url"
    SPAM_BY_CONTENT = "spam_by_content"


@dataclass
class SpamVerdict:
    kind: VerdictKind
    author_id: int
    delete_refs: List[Any] = field(default_factory=list)
    warn: bool = False

    @property
    def is_spam(self) -> bool:
        return self.kind is not VerdictKind.NOT_SPAM


def extract_urls(content: str) -> List[str]:
    return URL_RE.findall(content)


class DuplicateDetector:
    """Flags messages repeated too often inside the sliding window.

    Two independent rules are applied, URL first:

    * a URL already posted ``duplication_threshold`` times by anyone makes the
      message spam; only the offending message is targeted,
    * content already posted ``duplication_threshold`` times by the same author
      makes the message spam; every stored copy is purged and targeted.

    The detector never talks to Discord. It returns a ``SpamVerdict`` holding
    the origin refs to delete once all history locks are released.
    """

    def __init__(self, duplication_threshold: int, time_span_minutes: int):
        if duplication_threshold < 1:
            raise ConfigurationError(
                f"duplication_threshold must be positive, got {duplication_threshold}"
            )
        if time_span_minutes < 1:
            raise ConfigurationError(
                f"time_span_minutes must be positive, got {time_span_minutes}"
            )
        self.duplication_threshold = duplication_threshold
        self.time_span_minutes = time_span_minutes
        self.messages: WindowedLog[int] = WindowedLog(time_span_minutes)
        self.urls: WindowedLog[str] = WindowedLog(time_span_minutes)

    @classmethod
    def from_config(cls, config: DetectionConfig) -> "DuplicateDetector":
        return cls(config.duplication_threshold, config.time_span_minutes)

    async def on_message(
        self, author_id: int, content: str, now: datetime, origin_ref: Any
    ) -> SpamVerdict:
        urls = extract_urls(content)

        async with self.urls.scope(URL_BUCKET) as url_history:
            url_history.evict_expired(now, self.time_span_minutes)
            for url in urls:
                seen = url_history.count_matching(lambda e: e.content == url)
                if seen >= self.duplication_threshold:
                    logger.info(
                        "URL repeated %s times, author=%s url=%s", seen, author_id, url
                    )
                    return SpamVerdict(
                        VerdictKind.SPAM_BY_URL,
                        author_id,
                        delete_refs=[origin_ref],
                        warn=True,
                    )
            for url in urls:
                url_history.append(Entry(url, now, origin_ref))

        async with self.messages.scope(author_id) as history:
            history.evict_expired(now, self.time_span_minutes)
            duplicate_count = history.count_matching(lambda e: e.content == content)
            history.append(Entry(content, now, origin_ref))
            if duplicate_count < self.duplication_threshold:
                return SpamVerdict(VerdictKind.NOT_SPAM, author_id)
            purged = history.remove_matching(lambda e: e.content == content)

        logger.info(
            "Content repeated %s times, author=%s purged=%s",
            duplicate_count + 1,
            author_id,
            len(purged),
        )
        return SpamVerdict(
            VerdictKind.SPAM_BY_CONTENT,
            author_id,
            delete_refs=[e.origin_ref for e in purged],
            warn=True,
        )

    async def sweep(self, now: datetime) -> SweepResult:
        return await self.urls.sweep(now) + await self.messages.sweep(now)

    def stats(self) -> Dict[str, int]:
        return {
            "tracked_authors": len(self.messages),
            "message_entries": self.messages.entry_count(),
            "url_entries": self.urls.entry_count(),
        }
