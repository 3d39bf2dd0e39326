"""Simple synchronous in-process event bus."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventBus:
    """Publish/subscribe bus for schedule change events.

    Handlers are called synchronously in registration order. A handler
    subscribed to a base class also receives every subclass, so one
    subscription to ``ScheduleChanged`` sees all mutations.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Callable) -> None:
        self._subscribers[event_type].append(handler)

    def publish(self, event: Any) -> None:
        logger.debug("publish %s", type(event).__name__)
        for cls in type(event).__mro__:
            for handler in self._subscribers.get(cls, []):
                handler(event)
