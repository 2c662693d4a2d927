import abc
from datetime import timedelta
from typing import Any


class DeliveryError(RuntimeError):
    """A moderation action could not be delivered to the chat backend."""


class ModerationDispatcher(abc.ABC):
    @abc.abstractmethod
    async def delete_message(self, origin_ref: Any) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def warn_and_timeout(self, author_ref: Any, duration: timedelta) -> None:
        raise NotImplementedError
