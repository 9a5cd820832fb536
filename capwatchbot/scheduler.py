import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .cache import MarketCapCache
from .config import POLL_SECONDS, WATCH_DELAY_SECONDS, FETCH_TIMEOUT_SECONDS, CHANGE_NOTIFY_ON_FIRST
from .errors import DataUnavailable, DeliveryFailed, FetchTimeout
from .evaluator import evaluate
from .helpers import humanize
from .logging_setup import log
from .models import Watch


@dataclass
class CycleStats:
    watches: int = 0
    evaluated: int = 0
    fired: int = 0
    skipped: int = 0


class PollingScheduler:
    """Walks every owner's watches one at a time and fires notifications.

    Only one cycle runs at a time and only one upstream request is in flight at
    a time. Cycles start every `interval` seconds, or right after the previous
    one when it overran.
    """

    def __init__(self, store, market, notifier, cache: Optional[MarketCapCache] = None,
                 interval: float = POLL_SECONDS, item_delay: float = WATCH_DELAY_SECONDS,
                 fetch_timeout: float = FETCH_TIMEOUT_SECONDS,
                 notify_on_bootstrap: bool = CHANGE_NOTIFY_ON_FIRST,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.store = store
        self.market = market
        self.notifier = notifier
        self.cache = cache if cache is not None else MarketCapCache()
        self.interval = interval
        self.item_delay = item_delay
        self.fetch_timeout = fetch_timeout
        self.notify_on_bootstrap = notify_on_bootstrap
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self._stopping = False
        self._cycle_lock = asyncio.Lock()
        self.last_cycle: Optional[CycleStats] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Start the polling loop; returns False if it was already running."""
        if self.running:
            return False
        self._stopping = False
        self._task = asyncio.create_task(self._loop(), name="capwatch-poller")
        log.info(f"Polling started | interval={self.interval}s delay={self.item_delay}s")
        return True

    async def ensure_running(self, _watch: Optional[Watch] = None):
        self.start()

    async def stop(self, timeout: float = 5.0):
        task, self._task = self._task, None
        if task is None:
            return
        # wait_for on 3.10/3.11 can swallow a cancel; the flag ends the loop regardless
        self._stopping = True
        task.cancel()
        done, _ = await asyncio.wait({task}, timeout=timeout)
        if not done:
            log.warning(f"Polling task still running {timeout}s after stop")
            self._task = task
        elif not task.cancelled() and task.exception() is not None:
            log.error(f"Polling task ended with error: {task.exception()!r}")

    async def _loop(self):
        loop = asyncio.get_running_loop()
        while not self._stopping:
            started = loop.time()
            try:
                await self.tick()
            except Exception:
                log.exception("poll cycle error")
            if self._stopping:
                break
            await self._sleep(max(0.0, self.interval - (loop.time() - started)))

    async def tick(self) -> bool:
        """Run one full cycle. Returns False without doing anything if one is in progress."""
        if self._cycle_lock.locked():
            return False
        async with self._cycle_lock:
            stats = CycleStats()
            first = True
            for owner_id in self.store.owners():
                for watch in self.store.list(owner_id):
                    if not first and self.item_delay:
                        await self._sleep(self.item_delay)
                    first = False
                    stats.watches += 1
                    try:
                        await self._process(watch, stats)
                    except Exception:
                        stats.skipped += 1
                        log.exception(f"Watch evaluation failed | owner={owner_id} id={watch.id}")
            self.last_cycle = stats
            if stats.watches:
                log.debug(f"Cycle done | watches={stats.watches} evaluated={stats.evaluated} "
                          f"fired={stats.fired} skipped={stats.skipped}")
            return True

    async def _fetch(self, fn, address: str) -> float:
        try:
            return await asyncio.wait_for(fn(address), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            raise FetchTimeout(f"{getattr(fn, '__name__', 'fetch')} timed out for {address}") from None

    async def _process(self, watch: Watch, stats: CycleStats):
        try:
            supply = await self._fetch(self.market.fetch_supply, watch.token_address)
            price = await self._fetch(self.market.fetch_price, watch.token_address)
        except DataUnavailable as e:
            stats.skipped += 1
            log.warning(f"No market data this cycle | id={watch.id} token={watch.token_symbol} err={e}")
            return

        current = self.cache.update(watch.token_address, price=price, supply=supply).mc
        result = evaluate(watch, current, notify_on_bootstrap=self.notify_on_bootstrap)
        stats.evaluated += 1

        if self.store.mutate(watch.owner_id, watch.id, lambda _w: result.watch) is None:
            log.info(f"Watch removed mid-cycle; dropping result | id={watch.id}")
            return
        if not result.should_notify:
            return

        stats.fired += 1
        log.info(f"Watch fired | owner={watch.owner_id} id={watch.id} kind={watch.kind.value} "
                 f"token={watch.token_symbol} mc={humanize(current)}")
        try:
            await self.notifier.send(watch.owner_id, result.message)
        except DeliveryFailed as e:
            log.error(f"Notification not delivered | owner={watch.owner_id} id={watch.id} err={e}")
