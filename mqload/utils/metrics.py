from aiohttp import web
from prometheus_client import CollectorRegistry, Counter, generate_latest, CONTENT_TYPE_LATEST


class LoadMetrics:
    def __init__(self, registry=None):
        self.registry = registry or CollectorRegistry()
        self.post_requests = Counter("post_requests", "Enqueue requests answered with 200", registry=self.registry)
        self.get_requests = Counter("get_requests", "Fetches that returned at least one message", registry=self.registry)
        self.delete_checks = Counter("delete_checks", "Outcome of the removal status check", ["result"], registry=self.registry)
        self.drain_duplicates = Counter("drain_duplicates", "Message ids delivered more than once", registry=self.registry)

    def count(self, name, **labels):
        value = self.registry.get_sample_value(f"{name}_total", labels or None)
        return value or 0.0

    def totals(self):
        return {
            "post_requests": self.count("post_requests"),
            "get_requests": self.count("get_requests"),
            "delete_checks_pass": self.count("delete_checks", result="pass"),
            "delete_checks_fail": self.count("delete_checks", result="fail"),
            "drain_duplicates": self.count("drain_duplicates"),
        }


def setup_metrics(metrics):
    app = web.Application()

    async def handle(request):
        data = generate_latest(metrics.registry)
        return web.Response(body=data, headers={"Content-Type": CONTENT_TYPE_LATEST})
    app.add_routes([web.get('/metrics', handle)])
    return app
