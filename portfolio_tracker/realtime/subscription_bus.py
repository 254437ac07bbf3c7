"""Registry for refreshed-portfolio subscribers."""
import inspect
import logging
from typing import Any, Callable, List, Sequence

from portfolio_tracker.domain.models import HybridView

logger = logging.getLogger(__name__)

Subscriber = Callable[[List[HybridView]], Any]


class SubscriptionBus:
    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, handler: Subscriber) -> Callable[[], None]:
        self._subscribers.append(handler)

        def unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return unsubscribe

    async def publish(self, views: Sequence[HybridView]) -> None:
        collection = list(views)
        # Snapshot so handlers can unsubscribe mid-publish
        for handler in list(self._subscribers):
            try:
                result = handler(list(collection))
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Subscriber %r failed; continuing", handler)

    def count(self) -> int:
        return len(self._subscribers)
