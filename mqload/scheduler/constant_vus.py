import asyncio
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class ScenarioResult:
    name: str
    vus: int
    iterations: int
    interrupted: int


class ConstantVUs:
    """Run ``operation`` in a loop on a fixed number of virtual users for a fixed duration.

    Iterations still running when the duration ends get ``graceful_stop``
    seconds to finish and are cancelled after that.
    """

    def __init__(self, scenario, operation, graceful_stop=30.0):
        self.scenario = scenario
        self.operation = operation
        self.graceful_stop = graceful_stop
        self.iterations = 0

    async def _vu(self, deadline):
        loop = asyncio.get_running_loop()
        while loop.time() < deadline:
            await self.operation()
            self.iterations += 1

    async def run(self):
        s = self.scenario
        if s.vus == 0:
            return ScenarioResult(s.name, 0, 0, 0)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + s.duration
        logger.info("scenario %s: %d VUs for %.1fs", s.name, s.vus, s.duration)
        tasks = [asyncio.create_task(self._vu(deadline)) for _ in range(s.vus)]
        try:
            done, pending = await asyncio.wait(
                tasks, timeout=s.duration + self.graceful_stop, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        for t in done:
            if t.exception() is not None:
                raise t.exception()
        if pending:
            logger.info("scenario %s: abandoned %d in-flight iterations", s.name, len(pending))
        return ScenarioResult(s.name, s.vus, self.iterations, len(pending))
