"""Table change notifications delivered to subscribed callbacks."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Protocol

from redis import asyncio as aioredis

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event: str
    user_id: str | None = None
    record: dict[str, Any] | None = None

    def to_json(self) -> str:
        return json.dumps(
            {"table": self.table, "event": self.event, "user_id": self.user_id, "record": self.record},
            ensure_ascii=False,
            default=str,
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> "ChangeEvent":
        data = json.loads(raw)
        return cls(
            table=data["table"],
            event=data["event"],
            user_id=data.get("user_id"),
            record=data.get("record"),
        )


ChangeCallback = Callable[[ChangeEvent], Awaitable[None]]


class ChangePublisher(Protocol):
    async def publish(self, event: ChangeEvent) -> None: ...


@dataclass(eq=False)
class Subscription:
    feed: "ChangeFeed"
    table: str
    callback: ChangeCallback
    events: frozenset[str] | None = None
    user_id: str | None = None
    active: bool = field(default=True)

    def matches(self, event: ChangeEvent) -> bool:
        if not self.active or event.table != self.table:
            return False
        if self.events is not None and event.event not in self.events:
            return False
        if self.user_id is not None and event.user_id != self.user_id:
            return False
        return True

    def unsubscribe(self) -> None:
        self.feed.remove(self)


class ChangeFeed:
    """In-process topic → callback registry; topics are table names."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        *,
        events: Iterable[str] | None = None,
        user_id: str | None = None,
    ) -> Subscription:
        subscription = Subscription(
            feed=self,
            table=table,
            callback=callback,
            events=frozenset(events) if events is not None else None,
            user_id=user_id,
        )
        self._subscriptions.append(subscription)
        return subscription

    def remove(self, subscription: Subscription) -> None:
        subscription.active = False
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def subscriber_count(self, table: str | None = None) -> int:
        return sum(1 for sub in self._subscriptions if table is None or sub.table == table)

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver ``event`` to every matching subscriber.

        A failing callback is logged and does not prevent delivery to the others.
        """

        for subscription in list(self._subscriptions):
            if not subscription.matches(event):
                continue
            try:
                await subscription.callback(event)
            except Exception:
                logger.exception(
                    "Change subscriber failed", extra={"table": event.table, "event": event.event}
                )


class RedisChangeBridge:
    """Fan change events out over Redis pub/sub and replay them into a local feed."""

    def __init__(self, feed: ChangeFeed, redis_url: str, *, channel_prefix: str = "aletheia:changes") -> None:
        self._feed = feed
        self._redis_url = redis_url
        self._prefix = channel_prefix
        self._redis: aioredis.Redis | None = None
        self._listener: asyncio.Task[None] | None = None

    def _channel(self, table: str) -> str:
        return f"{self._prefix}:{table}"

    async def _r(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = aioredis.from_url(self._redis_url, decode_responses=True)
        return self._redis

    async def publish(self, event: ChangeEvent) -> None:
        await (await self._r()).publish(self._channel(event.table), event.to_json())

    async def _listen(self) -> None:
        pubsub = (await self._r()).pubsub()
        await pubsub.psubscribe(f"{self._prefix}:*")
        try:
            async for message in pubsub.listen():
                if message.get("type") != "pmessage":
                    continue
                try:
                    event = ChangeEvent.from_json(message["data"])
                except (KeyError, ValueError):
                    logger.warning("Dropping malformed change message on %s", message.get("channel"))
                    continue
                await self._feed.publish(event)
        finally:
            await pubsub.aclose()

    def start(self) -> asyncio.Task[None]:
        if self._listener is None or self._listener.done():
            self._listener = asyncio.create_task(self._listen())
        return self._listener

    async def close(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


__all__ = [
    "DELETE",
    "INSERT",
    "UPDATE",
    "ChangeCallback",
    "ChangeEvent",
    "ChangeFeed",
    "ChangePublisher",
    "RedisChangeBridge",
    "Subscription",
]
