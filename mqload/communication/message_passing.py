import asyncio
import json
import logging

import aiohttp

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


class MessageQueueClient:
    """Thin wrapper around the ``/messages`` endpoints of the queue service.

    Network failures are logged and reported as a ``None`` status so that the
    workloads can treat them like any other unsuccessful request.
    """

    def __init__(self, session, base_url, timeout=30.0):
        self.session = session
        self.url = base_url.rstrip("/") + "/messages"
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def enqueue(self, message):
        try:
            async with self.session.post(self.url, json={"message": message}, headers=JSON_HEADERS, timeout=self.timeout) as r:
                await r.read()
                return r.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("POST %s failed: %r", self.url, e)
            return None

    async def fetch(self, client_id, count=1, lease_seconds=None):
        params = {"clientId": client_id, "count": str(count)}
        if lease_seconds is not None:
            params["leaseExpiredAtInSeconds"] = str(lease_seconds)
        try:
            async with self.session.get(self.url, params=params, timeout=self.timeout) as r:
                if r.status != 200:
                    await r.read()
                    return r.status, []
                try:
                    body = await r.json(content_type=None)
                except (json.JSONDecodeError, UnicodeDecodeError):
                    logger.info("GET %s returned a body that is not JSON", self.url)
                    return r.status, []
                return r.status, body if isinstance(body, list) else []
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("GET %s failed: %r", self.url, e)
            return None, []

    async def remove(self, message_id, client_id):
        params = {"messageId": str(message_id), "clientId": client_id}
        try:
            async with self.session.delete(self.url, params=params, timeout=self.timeout) as r:
                await r.read()
                return r.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("DELETE %s failed: %r", self.url, e)
            return None
