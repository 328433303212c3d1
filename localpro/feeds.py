"""
Live feeds over any storage backend.

A feed is a query (a zero-argument callable returning records) polled on an
interval. Each result set gets a version fingerprint; subscribers are only
called when the version changes. Lifecycles are explicit: ``subscribe()``
starts delivery and ``unsubscribe()`` (or cancelling the subscription's
:class:`CancellationToken`) stops it.
"""

import asyncio
import hashlib
import inspect
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation shared between a feed and its owner."""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if cancelled meanwhile."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True


@dataclass
class Snapshot:
    version: str
    items: List[Any] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "items": [i.to_dict() if hasattr(i, "to_dict") else i for i in self.items],
        }


def fingerprint(items: List[Any]) -> str:
    """Stable digest of a result set."""
    payload = [i.to_dict() if hasattr(i, "to_dict") else i for i in items]
    encoded = json.dumps(payload, sort_keys=True, default=str).encode()
    return hashlib.sha256(encoded).hexdigest()[:16]


async def take_snapshot(query: Callable[[], List[Any]]) -> Snapshot:
    """Run a blocking storage query off the event loop."""
    items = await asyncio.to_thread(query)
    return Snapshot(version=fingerprint(items), items=items)


async def wait_for_change(
    query: Callable[[], List[Any]],
    since: Optional[str],
    timeout: float,
    interval: float = 1.0,
    token: Optional[CancellationToken] = None,
) -> Snapshot:
    """Long-poll: return as soon as the version differs from ``since``.

    Returns the latest snapshot when ``timeout`` elapses or the token is
    cancelled, whether or not it changed.
    """
    token = token or CancellationToken()
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    snapshot = await take_snapshot(query)
    while snapshot.version == since:
        remaining = deadline - loop.time()
        if remaining <= 0:
            break
        if await token.sleep(min(interval, remaining)):
            break
        snapshot = await take_snapshot(query)
    return snapshot


class FeedSubscription:
    """Push snapshots of ``query`` to ``callback`` whenever they change.

    ``callback`` may be a plain function or a coroutine function. Errors in
    the query or the callback are logged and polling continues.
    """

    def __init__(
        self,
        query: Callable[[], List[Any]],
        callback: Callable[[Snapshot], Any],
        interval: float = 1.0,
        token: Optional[CancellationToken] = None,
    ):
        self.query = query
        self.callback = callback
        self.interval = interval
        self.token = token or CancellationToken()
        self._task: Optional[asyncio.Task] = None
        self._version: Optional[str] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self) -> "FeedSubscription":
        """Start polling on the running event loop."""
        if self.active:
            return self
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self

    def unsubscribe(self) -> None:
        self.token.cancel()

    async def wait_closed(self) -> None:
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        while not self.token.cancelled:
            try:
                snapshot = await take_snapshot(self.query)
                if snapshot.version != self._version:
                    self._version = snapshot.version
                    result = self.callback(snapshot)
                    if inspect.isawaitable(result):
                        await result
            except Exception as e:
                logger.warning(f"Feed poll failed: {e}")
            if await self.token.sleep(self.interval):
                break
