"""Debounced request coalescing.

Callers submit single items under a key; items sharing a key are buffered
and handed to one ``flush`` call once the key has been quiet for ``window``
seconds. Every submit restarts the window, but a batch never waits longer
than ``max_delay`` after its first item.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Hashable, List, Mapping, Optional, Set

logger = logging.getLogger(__name__)

FlushFn = Callable[[Hashable, List[Hashable]], Awaitable[Mapping[Hashable, Any]]]


class _Batch:
    __slots__ = ("started", "waiters", "timer")

    def __init__(self, started: float):
        self.started = started
        # item -> futures waiting on it; dict keeps submission order
        self.waiters: Dict[Hashable, List[asyncio.Future]] = {}
        self.timer: Optional[asyncio.TimerHandle] = None


class BatchCollector:
    """
    Per-key debounce buffer fanning one batch result out to many futures.

    Args:
        flush: Coroutine called as ``flush(key, items)``; must return a mapping
            from item to result. Items missing from the mapping resolve to None.
        window: Quiet period in seconds before a key is flushed
        max_delay: Upper bound in seconds between a batch's first item and its flush
    """

    def __init__(self, flush: FlushFn, *, window: float = 0.05, max_delay: float = 0.25):
        if window < 0 or max_delay < window:
            raise ValueError("window must be >= 0 and max_delay >= window")
        self._flush_fn = flush
        self.window = window
        self.max_delay = max_delay
        self._batches: Dict[Hashable, _Batch] = {}
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending_keys(self) -> List[Hashable]:
        return list(self._batches)

    def submit(self, key: Hashable, item: Hashable) -> asyncio.Future:
        """Buffer ``item`` under ``key``; the future resolves with its result."""
        loop = asyncio.get_running_loop()
        batch = self._batches.get(key)
        if batch is None:
            batch = self._batches[key] = _Batch(loop.time())

        future = loop.create_future()
        batch.waiters.setdefault(item, []).append(future)

        if batch.timer is not None:
            batch.timer.cancel()
        remaining = batch.started + self.max_delay - loop.time()
        delay = max(0.0, min(self.window, remaining))
        batch.timer = loop.call_later(delay, self._start_flush, key)
        return future

    async def flush_all(self) -> None:
        """Flush every buffered key now and wait for the results to land."""
        for key in list(self._batches):
            self._start_flush(key)
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _start_flush(self, key: Hashable) -> None:
        batch = self._batches.pop(key, None)
        if batch is None:
            return
        if batch.timer is not None:
            batch.timer.cancel()
        task = asyncio.get_running_loop().create_task(self._run(key, batch))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, key: Hashable, batch: _Batch) -> None:
        items = list(batch.waiters)
        try:
            results = await self._flush_fn(key, items)
        except asyncio.CancelledError:
            for futures in batch.waiters.values():
                for future in futures:
                    future.cancel()
            raise
        except Exception as e:
            logger.warning("Batch flush for %r failed (%d items): %s", key, len(items), e)
            for futures in batch.waiters.values():
                for future in futures:
                    if not future.done():
                        future.set_exception(e)
            return

        for item, futures in batch.waiters.items():
            value = results.get(item)
            for future in futures:
                if not future.done():
                    future.set_result(value)
