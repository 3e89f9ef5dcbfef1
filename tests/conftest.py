"""Root test configuration."""

import logging

import pytest
import structlog
from tscloud.clients.typesense import ClusterNotFoundError, TypesenseCloudError
from tscloud.domain.models import ClusterRecord


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class FakeClusterAPI:
    """In-memory stand-in for the Typesense Cloud client.

    ``statuses`` is consumed one entry per ``get_cluster`` call; once it is
    exhausted the last status sticks.
    """

    def __init__(self, statuses=None, cluster_id="clu-123"):
        self.cluster_id = cluster_id
        self.statuses = list(statuses or ["in_service"])
        self.calls = []
        self.records = {}
        self.create_error = None
        self.get_error = None
        self.update_error = None
        self.terminate_error = None

    def _record(self, cluster_id):
        return self.records[cluster_id]

    async def create_cluster(self, request):
        self.calls.append(("create", request))
        if self.create_error:
            raise self.create_error
        body = request.payload()
        record = ClusterRecord(
            id=self.cluster_id,
            name=body.get("name") or "generated-name",
            memory=body["memory"],
            vcpu=body["vcpu"],
            regions=body["regions"],
            high_availability=body["high_availability"],
            high_performance_disk=body["high_performance_disk"],
            search_delivery_network="off",
            load_balancing="no",
            typesense_server_version="27.1",
            auto_upgrade_capacity=body["auto_upgrade_capacity"],
            status="provisioning",
        )
        self.records[record.id] = record
        return record

    async def get_cluster(self, cluster_id):
        self.calls.append(("get", cluster_id))
        if self.get_error:
            raise self.get_error
        if cluster_id not in self.records:
            raise ClusterNotFoundError(f"Cluster {cluster_id} not found", status_code=404)
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        record = self.records[cluster_id].model_copy(update={"status": status})
        self.records[cluster_id] = record
        return record

    async def update_cluster(self, cluster_id, request):
        self.calls.append(("update", cluster_id, request))
        if self.update_error:
            raise self.update_error
        if cluster_id not in self.records:
            raise ClusterNotFoundError(f"Cluster {cluster_id} not found", status_code=404)
        self.records[cluster_id] = self.records[cluster_id].model_copy(update=request.payload())

    async def terminate_cluster(self, cluster_id):
        self.calls.append(("terminate", cluster_id))
        if self.terminate_error:
            raise self.terminate_error
        self.records.pop(cluster_id, None)

    def seed(self, **fields):
        defaults = {
            "id": self.cluster_id,
            "name": "search-prod",
            "memory": "0.5_gb",
            "vcpu": "2_vcpus_1_hr_burst_per_day",
            "regions": ["oregon"],
            "high_availability": "no",
            "high_performance_disk": "no",
            "search_delivery_network": "off",
            "load_balancing": "no",
            "typesense_server_version": "27.1",
            "auto_upgrade_capacity": False,
            "status": "in_service",
        }
        defaults.update(fields)
        record = ClusterRecord(**defaults)
        self.records[record.id] = record
        return record

    def count(self, op):
        return sum(1 for call in self.calls if call[0] == op)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def fake_api():
    return FakeClusterAPI()


@pytest.fixture
def no_sleep():
    return RecordingSleep()


@pytest.fixture
def api_error():
    return TypesenseCloudError("HTTP 500: boom", status_code=500)
