import asyncio
import logging
from typing import Set

from .config import INTERVAL
from .delta import DeltaTracker

logger = logging.getLogger(__name__)


def next_deadline(deadline: float, now: float, interval: float) -> float:
    """The next tick after deadline, skipping ticks a stalled loop already missed."""
    deadline += interval
    if deadline < now:
        deadline += (int((now - deadline) // interval) + 1) * interval
    return deadline


class Scheduler:
    """
    Drives the samplers on three fixed-rate tiers:

    - fast   (interval):       cpu, memory, network, uptime, disk i/o
    - medium (interval * 10):  latency, disk usage, battery
    - resync (interval * 100): forget delta state, then run the medium tier

    Ticks are not skipped while a previous one is still running, so slow
    provider queries can overlap.
    """

    def __init__(self, samplers, tracker: DeltaTracker, interval: float = INTERVAL):
        self.samplers = samplers
        self.tracker = tracker
        self.fast_interval = interval
        self.medium_interval = interval * 10
        self.resync_interval = interval * 100
        self._loops: Set[asyncio.Task] = set()
        self._inflight: Set[asyncio.Task] = set()

    async def _run_tier(self, name: str, samplers):
        results = await asyncio.gather(*(sampler() for sampler in samplers), return_exceptions=True)
        for sampler, result in zip(samplers, results):
            if isinstance(result, Exception):
                logger.error(f"{name} sampler {sampler.__name__} failed: {result!r}")

    async def run_fast(self):
        await self._run_tier("fast", self.samplers.fast_tier())

    async def run_medium(self):
        await self._run_tier("medium", self.samplers.medium_tier())

    async def resync(self):
        self.tracker.reset()
        await self.run_medium()

    def _spawn(self, coro):
        task = asyncio.create_task(coro)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _every(self, interval: float, job):
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            deadline = next_deadline(deadline, loop.time(), interval)
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            self._spawn(job())

    @property
    def running(self) -> bool:
        return bool(self._loops)

    def start(self):
        if self.running:
            return
        self._spawn(self.run_medium())
        for interval, job in (
            (self.fast_interval, self.run_fast),
            (self.medium_interval, self.run_medium),
            (self.resync_interval, self.resync),
        ):
            self._loops.add(asyncio.create_task(self._every(interval, job)))
        logger.info(
            f"scheduler started: fast={self.fast_interval}s, medium={self.medium_interval}s, "
            f"resync={self.resync_interval}s"
        )

    async def stop(self):
        tasks = list(self._loops) + list(self._inflight)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loops.clear()
        self._inflight.clear()
