import logging

from mqload.workloads.payload import random_message

logger = logging.getLogger(__name__)


class Producer:
    """Enqueue one random message per iteration, counting 200 responses."""

    def __init__(self, client, metrics, min_length=250, max_length=300, rng=None):
        self.client = client
        self.metrics = metrics
        self.min_length = min_length
        self.max_length = max_length
        self.rng = rng

    async def produce(self):
        message = random_message(self.min_length, self.max_length, rng=self.rng)
        status = await self.client.enqueue(message)
        if status == 200:
            self.metrics.post_requests.inc()
            logger.debug("enqueued message of length %d", len(message))
            return True
        if status is not None:
            logger.info("enqueue returned status %s", status)
        return False
