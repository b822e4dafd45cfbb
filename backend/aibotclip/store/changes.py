"""In-process change feed for row storage.

Every successful write through `RowStore` publishes a `ChangeEvent`.
Subscribers register a callback per table and get back a `Subscription`
handle; closing the handle stops delivery immediately.

Delivery rules:
  - callbacks always run on the event loop that created the subscription
    (scheduled with `call_soon_threadsafe`, never invoked inline by the
    publisher)
  - a coroutine callback is wrapped in a task; the subscription keeps a
    reference until it finishes
  - a callback scheduled before `close()` but not yet run is dropped
  - tasks already running when the handle closes run to completion; the
    consumer is responsible for ignoring their result
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Union

logger = logging.getLogger("aibotclip.changes")

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
ALL_EVENTS = frozenset({INSERT, UPDATE, DELETE})


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    kind: str
    row_id: str
    row: dict[str, Any] | None = None


ChangeCallback = Callable[[ChangeEvent], Union[None, Awaitable[None]]]


def normalize_events(events: str | Iterable[str]) -> frozenset[str]:
    """Accept "*" or any iterable of event kinds (case-insensitive)."""
    if events == "*":
        return ALL_EVENTS
    if isinstance(events, str):
        events = [events]
    kinds = frozenset(e.upper() for e in events)
    unknown = kinds - ALL_EVENTS
    if unknown:
        raise ValueError(f"Unknown change events: {', '.join(sorted(unknown))}")
    return kinds


class Subscription:
    """Cancellable handle for one change callback."""

    def __init__(
        self,
        broker: ChangeBroker,
        table: str,
        events: frozenset[str],
        callback: ChangeCallback,
        loop: asyncio.AbstractEventLoop,
    ):
        self.table = table
        self.events = events
        self._broker = broker
        self._callback = callback
        self._loop = loop
        self._tasks: set[asyncio.Task] = set()
        self.closed = False

    def matches(self, event: ChangeEvent) -> bool:
        return not self.closed and event.table == self.table and event.kind in self.events

    def deliver(self, event: ChangeEvent) -> None:
        self._loop.call_soon_threadsafe(self._run, event)

    def _run(self, event: ChangeEvent) -> None:
        if self.closed:
            return
        try:
            result = self._callback(event)
        except Exception:
            logger.exception("Change callback failed for %s %s", event.table, event.kind)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Change callback failed for %s", self.table, exc_info=task.exception()
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._broker._remove(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class ChangeBroker:
    """Fan-out of change events to table subscriptions."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        table: str,
        events: str | Iterable[str],
        callback: ChangeCallback,
    ) -> Subscription:
        """Register a callback. Must be called from inside a running event loop."""
        loop = asyncio.get_running_loop()
        sub = Subscription(self, table, normalize_events(events), callback, loop)
        self._subscriptions.append(sub)
        logger.debug("Subscribed to %s (%s)", table, ",".join(sorted(sub.events)))
        return sub

    def publish(self, event: ChangeEvent) -> int:
        """Schedule delivery to every matching subscription. Returns the match count."""
        delivered = 0
        for sub in list(self._subscriptions):
            if sub.matches(event):
                sub.deliver(event)
                delivered += 1
        return delivered

    def _remove(self, sub: Subscription) -> None:
        try:
            self._subscriptions.remove(sub)
        except ValueError:
            pass

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)
