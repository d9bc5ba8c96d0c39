import time
import uuid

import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer


class FakeQueueService:
    """In-memory stand-in for the queue service's /messages endpoints."""

    def __init__(self, redeliver=False):
        self.messages = {}
        self.calls = []
        self.status = {}
        self.post_status = 200
        self.redeliver = redeliver

    def add(self, message_id=None, body="hello"):
        mid = message_id or str(uuid.uuid4())
        self.messages[mid] = {"messageId": mid, "message": body, "leased_by": None, "lease_exp": 0.0}
        return mid

    def calls_for(self, method):
        return [c for c in self.calls if c["method"] == method]

    def app(self):
        app = web.Application()
        app.add_routes([
            web.post('/messages', self.post),
            web.get('/messages', self.get),
            web.delete('/messages', self.delete),
        ])
        return app

    async def post(self, request):
        body = await request.json()
        self.calls.append({"method": "POST", "query": dict(request.query), "json": body,
                           "content_type": request.content_type})
        if "POST" in self.status:
            return web.Response(status=self.status["POST"])
        self.add(body=body["message"])
        return web.Response(status=self.post_status)

    async def get(self, request):
        q = dict(request.query)
        self.calls.append({"method": "GET", "query": q})
        if "GET" in self.status:
            return web.Response(status=self.status["GET"])
        count = int(q.get("count", 1))
        lease = int(q.get("leaseExpiredAtInSeconds", 10))
        now = time.time()
        out = []
        for m in self.messages.values():
            if len(out) >= count:
                break
            if self.redeliver or m["leased_by"] is None or m["lease_exp"] < now:
                m["leased_by"] = q["clientId"]
                m["lease_exp"] = now + lease
                out.append({"messageId": m["messageId"], "message": m["message"]})
        return web.json_response(out)

    async def delete(self, request):
        q = dict(request.query)
        self.calls.append({"method": "DELETE", "query": q})
        if "DELETE" in self.status:
            return web.Response(status=self.status["DELETE"])
        m = self.messages.get(q.get("messageId"))
        if m is None or m["leased_by"] != q.get("clientId"):
            return web.Response(status=404)
        del self.messages[q["messageId"]]
        return web.Response(status=200)


async def _serve(service):
    server = TestServer(service.app())
    await server.start_server()
    return server


@pytest_asyncio.fixture
async def queue_service():
    service = FakeQueueService()
    server = await _serve(service)
    service.base_url = str(server.make_url("/")).rstrip("/")
    yield service
    await server.close()


@pytest_asyncio.fixture
async def redelivering_service():
    service = FakeQueueService(redeliver=True)
    server = await _serve(service)
    service.base_url = str(server.make_url("/")).rstrip("/")
    yield service
    await server.close()
