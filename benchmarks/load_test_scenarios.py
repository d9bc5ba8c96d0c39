import logging
import uuid

from locust import HttpUser, LoadTestShape, constant, events, task

from mqload.utils.config import load_config
from mqload.utils.metrics import LoadMetrics
from mqload.workloads.consumer import DELETE_CHECK
from mqload.workloads.payload import random_message

logger = logging.getLogger("mqload.locust")

cfg = load_config()
SCENARIOS = cfg["SCENARIOS"]
metrics = LoadMetrics()


class ProducerUser(HttpUser):
    scenario = "producer"
    host = cfg["BASE_URL"]
    fixed_count = SCENARIOS["producer"].vus
    wait_time = constant(0)

    @task
    def produce_messages(self):
        message = random_message(cfg["MIN_MESSAGE_LENGTH"], cfg["MAX_MESSAGE_LENGTH"])
        r = self.client.post("/messages", json={"message": message}, headers={"Content-Type": "application/json"}, name="/messages")
        if r.status_code == 200:
            metrics.post_requests.inc()


class ConsumerUser(HttpUser):
    scenario = "consumer"
    host = cfg["BASE_URL"]
    fixed_count = SCENARIOS["consumer"].vus
    wait_time = constant(0)

    @task
    def consume_messages(self):
        client_id = str(uuid.uuid4())
        params = {"clientId": client_id, "count": cfg["FETCH_COUNT"]}
        if cfg["LEASE_SECONDS"] is not None:
            params["leaseExpiredAtInSeconds"] = cfg["LEASE_SECONDS"]
        r = self.client.get("/messages", params=params, name="/messages")
        if r.status_code != 200:
            return
        try:
            messages = r.json()
        except ValueError:
            return
        if not isinstance(messages, list) or not messages:
            return
        metrics.get_requests.inc()
        message_id = messages[0].get("messageId") if isinstance(messages[0], dict) else None
        if message_id is None:
            metrics.delete_checks.labels(result="fail").inc()
            return
        with self.client.delete("/messages", params={"messageId": message_id, "clientId": client_id},
                                name="/messages", catch_response=True) as d:
            if d.status_code == 200:
                metrics.delete_checks.labels(result="pass").inc()
                d.success()
            else:
                metrics.delete_checks.labels(result="fail").inc()
                d.failure(DELETE_CHECK)


class ScenarioShape(LoadTestShape):
    """Keep each user class running for its own scenario duration."""

    def tick(self):
        run_time = self.get_run_time()
        active = [u for u in (ProducerUser, ConsumerUser)
                  if u.fixed_count > 0 and run_time < SCENARIOS[u.scenario].duration]
        if not active:
            return None
        users = sum(u.fixed_count for u in active)
        return users, users, active


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    logger.info("totals: %s", metrics.totals())

# Run with: locust -f benchmarks/load_test_scenarios.py --headless
