import logging
import uuid

logger = logging.getLogger(__name__)

DELETE_CHECK = "consumer: delete status is 200"


class Consumer:
    """Fetch one message for a fresh client id and acknowledge it."""

    def __init__(self, client, metrics, count=1, lease_seconds=None):
        self.client = client
        self.metrics = metrics
        self.count = count
        self.lease_seconds = lease_seconds

    async def consume(self):
        client_id = str(uuid.uuid4())
        status, messages = await self.client.fetch(client_id, count=self.count, lease_seconds=self.lease_seconds)
        if status != 200:
            if status is not None:
                logger.info("fetch returned status %s", status)
            return False
        if not messages:
            return False
        self.metrics.get_requests.inc()
        first = messages[0]
        message_id = first.get("messageId") if isinstance(first, dict) else None
        if message_id is None:
            logger.warning("%s failed: fetched item has no messageId", DELETE_CHECK)
            self.metrics.delete_checks.labels(result="fail").inc()
            return False
        delete_status = await self.client.remove(message_id, client_id)
        if delete_status == 200:
            self.metrics.delete_checks.labels(result="pass").inc()
            return True
        logger.warning("%s failed for %s: got %s", DELETE_CHECK, message_id, delete_status)
        self.metrics.delete_checks.labels(result="fail").inc()
        return False
