import pytest
from aiohttp.test_utils import TestClient, TestServer

from mqload.utils.metrics import LoadMetrics, setup_metrics


def test_counters_start_at_zero():
    m = LoadMetrics()
    assert m.count("post_requests") == 0
    assert m.count("delete_checks", result="pass") == 0


def test_registries_are_independent():
    a, b = LoadMetrics(), LoadMetrics()
    a.post_requests.inc()
    assert a.count("post_requests") == 1
    assert b.count("post_requests") == 0


def test_totals():
    m = LoadMetrics()
    m.get_requests.inc(2)
    m.delete_checks.labels(result="fail").inc()
    t = m.totals()
    assert t["get_requests"] == 2
    assert t["delete_checks_fail"] == 1
    assert t["delete_checks_pass"] == 0


@pytest.mark.asyncio
async def test_metrics_endpoint():
    m = LoadMetrics()
    m.post_requests.inc(3)
    client = TestClient(TestServer(setup_metrics(m)))
    await client.start_server()
    try:
        r = await client.get("/metrics")
        assert r.status == 200
        text = await r.text()
        assert "post_requests_total 3.0" in text
    finally:
        await client.close()
