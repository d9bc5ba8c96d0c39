import asyncio
import logging

import aiohttp
from aiohttp import web

from mqload.communication.message_passing import MessageQueueClient
from mqload.scheduler.constant_vus import ConstantVUs
from mqload.utils.metrics import LoadMetrics, setup_metrics
from mqload.workloads.consumer import Consumer
from mqload.workloads.drain import Drainer
from mqload.workloads.producer import Producer

logger = logging.getLogger(__name__)


class LoadRunner:
    def __init__(self, cfg, metrics=None):
        self.cfg = cfg
        self.metrics = metrics or LoadMetrics()
        self.metrics_runner = None

    async def start_metrics(self):
        port = int(self.cfg["METRICS_PORT"])
        if port <= 0:
            return
        self.metrics_runner = web.AppRunner(setup_metrics(self.metrics))
        await self.metrics_runner.setup()
        site = web.TCPSite(self.metrics_runner, host="0.0.0.0", port=port)
        await site.start()
        logger.info("serving metrics on :%d/metrics", port)

    async def stop_metrics(self):
        if self.metrics_runner is not None:
            await self.metrics_runner.cleanup()
            self.metrics_runner = None

    def client(self, session):
        return MessageQueueClient(session, self.cfg["BASE_URL"], timeout=self.cfg["REQUEST_TIMEOUT"])

    async def run_all(self, executors):
        tasks = [asyncio.create_task(e.run()) for e in executors]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for t in tasks:
                if not t.done():
                    t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        for t in done:
            if t.exception() is not None:
                raise t.exception()
        return [t.result() for t in tasks]

    async def run(self):
        cfg = self.cfg
        await self.start_metrics()
        try:
            async with aiohttp.ClientSession() as session:
                client = self.client(session)
                producer = Producer(client, self.metrics, cfg["MIN_MESSAGE_LENGTH"], cfg["MAX_MESSAGE_LENGTH"])
                consumer = Consumer(client, self.metrics, count=cfg["FETCH_COUNT"], lease_seconds=cfg["LEASE_SECONDS"])
                scenarios = cfg["SCENARIOS"]
                executors = [
                    ConstantVUs(scenarios["producer"], producer.produce, cfg["GRACEFUL_STOP"]),
                    ConstantVUs(scenarios["consumer"], consumer.consume, cfg["GRACEFUL_STOP"]),
                ]
                results = await self.run_all(executors)
        finally:
            await self.stop_metrics()
        for r in results:
            logger.info("scenario %s: %d VUs, %d iterations, %d interrupted", r.name, r.vus, r.iterations, r.interrupted)
        logger.info("totals: %s", self.metrics.totals())
        return {r.name: r for r in results}

    async def drain(self):
        cfg = self.cfg
        await self.start_metrics()
        try:
            async with aiohttp.ClientSession() as session:
                drainer = Drainer(
                    self.client(session), self.metrics,
                    messages=cfg["DRAIN_MESSAGES"],
                    workers=cfg["DRAIN_WORKERS"],
                    get_concurrency=cfg["DRAIN_GET_CONCURRENCY"],
                    max_count=cfg["DRAIN_MAX_COUNT"],
                    min_length=cfg["MIN_MESSAGE_LENGTH"],
                    max_length=cfg["MAX_MESSAGE_LENGTH"],
                )
                report = await drainer.run()
        finally:
            await self.stop_metrics()
        logger.info("drain: posted=%d received=%d duplicates=%d elapsed=%.2fs",
                    report.posted, report.received, report.duplicates, report.elapsed)
        return report
