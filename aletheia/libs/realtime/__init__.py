"""Realtime change-feed abstractions."""

from .changefeed import (
    DELETE,
    INSERT,
    UPDATE,
    ChangeCallback,
    ChangeEvent,
    ChangeFeed,
    ChangePublisher,
    RedisChangeBridge,
    Subscription,
)

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
