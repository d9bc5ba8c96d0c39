import aiohttp
import pytest

from mqload.communication.message_passing import MessageQueueClient
from mqload.utils.metrics import LoadMetrics
from mqload.workloads.producer import Producer


@pytest.mark.asyncio
async def test_produce_counts_success(queue_service):
    metrics = LoadMetrics()
    async with aiohttp.ClientSession() as s:
        p = Producer(MessageQueueClient(s, queue_service.base_url), metrics)
        assert await p.produce() is True
        assert await p.produce() is True
    assert metrics.count("post_requests") == 2
    assert len(queue_service.messages) == 2


@pytest.mark.asyncio
async def test_produce_body_shape(queue_service):
    async with aiohttp.ClientSession() as s:
        p = Producer(MessageQueueClient(s, queue_service.base_url), LoadMetrics())
        for _ in range(20):
            await p.produce()
    posts = queue_service.calls_for("POST")
    assert len(posts) == 20
    for call in posts:
        assert list(call["json"]) == ["message"]
        assert isinstance(call["json"]["message"], str)
        assert 250 <= len(call["json"]["message"]) <= 300
        assert call["content_type"] == "application/json"


@pytest.mark.asyncio
async def test_produce_non_200_not_counted(queue_service):
    queue_service.status["POST"] = 500
    metrics = LoadMetrics()
    async with aiohttp.ClientSession() as s:
        p = Producer(MessageQueueClient(s, queue_service.base_url), metrics)
        assert await p.produce() is False
    assert metrics.count("post_requests") == 0
    assert len(queue_service.calls_for("POST")) == 1


@pytest.mark.asyncio
async def test_produce_connection_error_not_counted(unused_tcp_port):
    metrics = LoadMetrics()
    async with aiohttp.ClientSession() as s:
        p = Producer(MessageQueueClient(s, f"http://127.0.0.1:{unused_tcp_port}", timeout=2), metrics)
        assert await p.produce() is False
    assert metrics.count("post_requests") == 0


@pytest.mark.asyncio
async def test_produce_counts_only_200(queue_service):
    queue_service.post_status = 201
    metrics = LoadMetrics()
    async with aiohttp.ClientSession() as s:
        p = Producer(MessageQueueClient(s, queue_service.base_url), metrics)
        assert await p.produce() is False
    assert metrics.count("post_requests") == 0
