"""Polling scheduler.

Three fixed-rate timers (accepted inbox, pending inbox, session keep-alive) plus
one initial run of both inbox cycles shortly after startup. Every job goes
through the same lock, so cycles run one at a time even when a slow cycle
overruns its interval. A tick is dropped while the same job is still queued or
running, so at most one instance of each job is ever outstanding.
"""

import asyncio
import logging

from relay import config

logger = logging.getLogger(__name__)


class Scheduler:
    def __init__(self, processor, source, sleep=asyncio.sleep):
        self.processor = processor
        self.source = source
        self.sleep = sleep
        self._lock = asyncio.Lock()
        self._tasks = []
        self._jobs = set()
        # names of jobs queued on the lock or running
        self._active = set()

    def start(self):
        """Schedule all jobs on the running loop. Call once, after both logins."""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._initial_run()),
            asyncio.create_task(self._every(config.ACCEPTED_POLL_SECONDS, self.check_accepted)),
            asyncio.create_task(self._every(config.PENDING_POLL_SECONDS, self.check_pending)),
            asyncio.create_task(self._every(config.KEEPALIVE_SECONDS, self.keep_alive)),
        ]
        logger.info(
            f"[cron] polling accepted every {config.ACCEPTED_POLL_SECONDS}s, "
            f"pending every {config.PENDING_POLL_SECONDS}s, "
            f"keep-alive every {config.KEEPALIVE_SECONDS}s"
        )

    def stop(self):
        for task in [*self._tasks, *self._jobs]:
            task.cancel()
        self._tasks = []
        self._jobs.clear()
        self._active.clear()

    async def _initial_run(self):
        await self.sleep(config.INITIAL_DELAY_SECONDS)
        for job in (self.check_accepted, self.check_pending):
            if self._claim(job):
                await self._run_claimed(job)

    async def _every(self, seconds, job):
        # fixed rate; a tick is skipped while the previous run is still outstanding
        while True:
            await self.sleep(seconds)
            if not self._claim(job):
                logger.debug(f"[cron] {job.__name__} still queued or running, skipping tick")
                continue
            task = asyncio.create_task(self._run_claimed(job))
            self._jobs.add(task)
            task.add_done_callback(self._jobs.discard)

    def _claim(self, job):
        if job.__name__ in self._active:
            return False
        self._active.add(job.__name__)
        return True

    async def _run_claimed(self, job):
        try:
            await job()
        finally:
            self._active.discard(job.__name__)

    async def check_accepted(self):
        async with self._lock:
            await self.processor.run_cycle(pending=False)

    async def check_pending(self):
        async with self._lock:
            await self.processor.run_cycle(pending=True)

    async def keep_alive(self):
        async with self._lock:
            logger.info("[keepalive] refreshing Instagram session...")
            try:
                await self.source.ping()
                logger.info("[keepalive] Instagram session refreshed")
                return
            except Exception as e:
                logger.error(f"[keepalive] failed to refresh Instagram session: {e}")

            try:
                await self.source.login()
                logger.info("[keepalive] re-logged into Instagram")
            except Exception as e:
                logger.error(f"[keepalive] failed to re-login to Instagram: {e}")
