"""Bulk publish then drain the queue, checking that no message is delivered twice.

Phase 1 pushes a fixed number of messages through a pool of workers. Phase 2
fetches in concurrent batches, each with a fresh client id, a random batch size
and a random lease, until a whole batch comes back empty. Messages are never
deleted here: the service's lease is what keeps a fetched message from being
handed out again, so any repeated ``messageId`` is a delivery bug.
"""
import asyncio
import logging
import random
import time
import uuid
from dataclasses import dataclass

from mqload.workloads.payload import random_message

logger = logging.getLogger(__name__)

MIN_LEASE_SECONDS = 10
MAX_LEASE_SECONDS = 30
POST_OK = (200, 201)


@dataclass
class DrainReport:
    posted: int
    received: int
    duplicates: int
    elapsed: float


class Drainer:
    def __init__(self, client, metrics, messages=1000, workers=100, get_concurrency=10, max_count=5,
                 min_length=250, max_length=300, rng=None):
        self.client = client
        self.metrics = metrics
        self.messages = messages
        self.workers = workers
        self.get_concurrency = get_concurrency
        self.max_count = max_count
        self.min_length = min_length
        self.max_length = max_length
        self.rng = rng or random.Random()
        self.seen = set()
        self.duplicates = 0
        self.posted = 0

    async def _post_worker(self, worker_id, jobs):
        while True:
            try:
                job = jobs.get_nowait()
            except asyncio.QueueEmpty:
                return
            message = random_message(self.min_length, self.max_length, rng=self.rng)
            status = await self.client.enqueue(message)
            if status in POST_OK:
                self.posted += 1
                self.metrics.post_requests.inc()
                if job % 1000 == 0:
                    logger.info("[worker %d] posted job %d", worker_id, job)
            elif status is not None:
                logger.info("[worker %d] job %d: POST returned status %s", worker_id, job, status)

    async def publish(self):
        jobs = asyncio.Queue()
        for j in range(1, self.messages + 1):
            jobs.put_nowait(j)
        await asyncio.gather(*[self._post_worker(w, jobs) for w in range(1, self.workers + 1)])
        return self.posted

    async def _fetch_once(self):
        client_id = str(uuid.uuid4())
        count = self.rng.randint(1, self.max_count)
        lease = self.rng.randint(MIN_LEASE_SECONDS, MAX_LEASE_SECONDS)
        status, messages = await self.client.fetch(client_id, count=count, lease_seconds=lease)
        if status != 200 or not messages:
            return 0
        for m in messages:
            mid = m.get("messageId") if isinstance(m, dict) else None
            if mid in self.seen:
                self.duplicates += 1
                self.metrics.drain_duplicates.inc()
                logger.error("duplicate messageId received: %s", mid)
            else:
                self.seen.add(mid)
        return len(messages)

    async def drain(self):
        received = 0
        while True:
            counts = await asyncio.gather(*[self._fetch_once() for _ in range(self.get_concurrency)])
            found = sum(counts)
            if found == 0:
                logger.info("no messages found in the last batch, drain finished")
                return received
            received += found
            await asyncio.sleep(0.1)

    async def run(self):
        start = time.monotonic()
        logger.info("publishing %d messages with %d workers", self.messages, self.workers)
        await self.publish()
        logger.info("draining with %d concurrent fetches", self.get_concurrency)
        received = await self.drain()
        return DrainReport(self.posted, received, self.duplicates, time.monotonic() - start)
