"""
Typesense Cloud provider and the cluster lifecycle engine.

``TypesenseClusterResource`` reconciles a ``ClusterConfig`` against the
management API:

    create  -> POST the cluster, poll until it leaves ``provisioning``
    read    -> fetch the cluster (NotFound when it is gone)
    update  -> send name / auto_upgrade_capacity, then re-read
    delete  -> terminate, no wait
    import  -> accept the id as-is

The engine holds no per-cluster state between calls. Every snapshot it
returns is built from the latest API response.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable

import structlog

from tscloud.clients.typesense import (
    ClusterAPI,
    ClusterNotFoundError,
    TypesenseCloudClient,
    TypesenseCloudError,
)
from tscloud.core.errors import (
    ConvergenceFailed,
    ConvergenceTimeout,
    CreateFailed,
    DeleteFailed,
    NotFound,
    ReadFailed,
    UpdateFailed,
)
from tscloud.domain.models import (
    ClusterConfig,
    ClusterCreateRequest,
    ClusterRecord,
    ClusterState,
    ClusterUpdateRequest,
)
from tscloud.providers.base import (
    AttributeSchema,
    LifecycleResource,
    Provider,
    ProviderResourceSchema,
)
from tscloud.providers.registry import register_provider

logger = structlog.get_logger()

#: Seconds between status polls while a new cluster is provisioning.
DEFAULT_POLL_INTERVAL: float = 8.0

#: Seconds after which a cluster still provisioning is reported as timed out.
DEFAULT_CONVERGENCE_TIMEOUT: float = 1800.0

SleepFn = Callable[[float], Awaitable[Any]]


def build_create_request(config: ClusterConfig) -> ClusterCreateRequest:
    return ClusterCreateRequest(
        memory=config.memory,
        vcpu=config.vcpu,
        regions=[config.region],
        high_availability=config.high_availability,
        high_performance_disk=config.high_performance_disk,
        name=config.name,
        auto_upgrade_capacity=config.auto_upgrade_capacity,
    )


def build_update_request(config: ClusterConfig) -> ClusterUpdateRequest:
    # memory, vcpu and region are replace-only and never part of an update.
    return ClusterUpdateRequest(
        name=config.name,
        auto_upgrade_capacity=config.auto_upgrade_capacity,
    )


class TypesenseClusterResource(LifecycleResource):
    RESOURCE = "typesense_cluster"

    def __init__(
        self,
        client: ClusterAPI,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        convergence_timeout: float | None = DEFAULT_CONVERGENCE_TIMEOUT,
        max_poll_attempts: int | None = None,
        sleep: SleepFn | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if poll_interval < 0:
            raise ValueError("poll_interval must not be negative")
        if max_poll_attempts is not None and max_poll_attempts < 1:
            raise ValueError("max_poll_attempts must be at least 1")
        self._client = client
        self._poll_interval = poll_interval
        self._convergence_timeout = convergence_timeout
        self._max_poll_attempts = max_poll_attempts
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic

    @staticmethod
    def schema() -> ProviderResourceSchema:
        return ProviderResourceSchema(
            name=TypesenseClusterResource.RESOURCE,
            description="Typesense Cloud cluster",
            attributes=(
                AttributeSchema("id", "Cluster ID assigned by Typesense Cloud", computed=True),
                AttributeSchema("name", "Cluster display name", optional=True, computed=True),
                AttributeSchema("memory", "Memory configuration, e.g. 0.5_gb", required=True, immutable=True),
                AttributeSchema("vcpu", "vCPU configuration", required=True, immutable=True),
                AttributeSchema("region", "Region the cluster runs in", required=True, immutable=True),
                AttributeSchema(
                    "high_performance_disk",
                    "yes/no",
                    optional=True,
                    computed=True,
                    immutable=True,
                    default="no",
                ),
                AttributeSchema(
                    "high_availability",
                    "yes/no",
                    optional=True,
                    computed=True,
                    immutable=True,
                    default="no",
                ),
                AttributeSchema("typesense_server_version", "Server version", computed=True),
                AttributeSchema("search_delivery_network", "Assigned by Typesense Cloud", computed=True),
                AttributeSchema("load_balancing", "Assigned by Typesense Cloud", computed=True),
                AttributeSchema(
                    "auto_upgrade_capacity",
                    "Upgrade capacity automatically",
                    type="bool",
                    optional=True,
                    computed=True,
                    default=False,
                ),
                AttributeSchema("status", "Cluster lifecycle status", computed=True),
            ),
        )

    async def create(self, desired: ClusterConfig) -> ClusterState:
        log = logger.bind(region=desired.region, memory=desired.memory, vcpu=desired.vcpu)
        log.info("cluster_create_requested")
        try:
            created = await self._client.create_cluster(build_create_request(desired))
        except TypesenseCloudError as exc:
            log.error("cluster_create_failed", error=str(exc))
            raise CreateFailed("Could not create cluster") from exc

        log = log.bind(cluster_id=created.id)
        log.info("cluster_created", status=created.status)
        record = await self._wait_for_convergence(created.id)
        log.info("cluster_converged", status=record.status)
        return ClusterState.from_record(record)

    async def _wait_for_convergence(self, cluster_id: str) -> ClusterRecord:
        """Poll the cluster until its status is anything but ``provisioning``."""
        started = self._clock()
        attempts = 0
        last_status: str | None = None
        try:
            while True:
                if self._max_poll_attempts is not None and attempts >= self._max_poll_attempts:
                    raise ConvergenceTimeout(
                        f"Cluster still provisioning after {attempts} polls",
                        cluster_id=cluster_id,
                        last_status=last_status,
                    )
                if (
                    self._convergence_timeout is not None
                    and self._clock() - started >= self._convergence_timeout
                ):
                    raise ConvergenceTimeout(
                        f"Cluster still provisioning after {self._convergence_timeout:.0f}s",
                        cluster_id=cluster_id,
                        last_status=last_status,
                    )

                await self._sleep(self._poll_interval)
                attempts += 1
                try:
                    record = await self._client.get_cluster(cluster_id)
                except TypesenseCloudError as exc:
                    logger.error(
                        "cluster_poll_failed",
                        cluster_id=cluster_id,
                        attempt=attempts,
                        error=str(exc),
                    )
                    raise ConvergenceFailed(
                        "Cluster created, but could not reach expected state",
                        cluster_id=cluster_id,
                    ) from exc

                last_status = record.status
                if not record.is_provisioning:
                    return record
                logger.debug(
                    "cluster_poll",
                    cluster_id=cluster_id,
                    attempt=attempts,
                    elapsed=round(self._clock() - started, 1),
                )
        except asyncio.CancelledError:
            logger.warning("cluster_wait_cancelled", cluster_id=cluster_id, attempts=attempts)
            raise

    async def read(self, resource_id: str) -> ClusterState:
        record = await self._fetch(resource_id)
        return ClusterState.from_record(record)

    async def update(self, resource_id: str, desired: ClusterConfig) -> ClusterState:
        request = build_update_request(desired)
        try:
            await self._client.update_cluster(resource_id, request)
        except TypesenseCloudError as exc:
            logger.error("cluster_update_failed", cluster_id=resource_id, error=str(exc))
            raise UpdateFailed("Could not update cluster", cluster_id=resource_id) from exc
        logger.info("cluster_updated", cluster_id=resource_id, **request.payload())

        # The update has been applied remotely at this point; a failed re-read
        # still surfaces as ReadFailed and nothing is rolled back.
        record = await self._fetch(resource_id)
        return ClusterState.from_record(record)

    async def delete(self, resource_id: str) -> None:
        try:
            await self._client.terminate_cluster(resource_id)
        except TypesenseCloudError as exc:
            logger.error("cluster_delete_failed", cluster_id=resource_id, error=str(exc))
            raise DeleteFailed("Could not delete cluster", cluster_id=resource_id) from exc
        logger.info("cluster_terminated", cluster_id=resource_id)

    def import_state(self, external_id: str) -> str:
        return external_id

    async def _fetch(self, cluster_id: str) -> ClusterRecord:
        try:
            return await self._client.get_cluster(cluster_id)
        except ClusterNotFoundError as exc:
            logger.info("cluster_read_not_found", cluster_id=cluster_id)
            raise NotFound(f"Cluster {cluster_id} no longer exists", cluster_id=cluster_id) from exc
        except TypesenseCloudError as exc:
            logger.error("cluster_read_failed", cluster_id=cluster_id, error=str(exc))
            raise ReadFailed(f"Could not read cluster {cluster_id}", cluster_id=cluster_id) from exc


class TypesenseProvider(Provider):
    name = "typesense"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        convergence_timeout: float | None = DEFAULT_CONVERGENCE_TIMEOUT,
        max_poll_attempts: int | None = None,
        client: ClusterAPI | None = None,
    ) -> None:
        if client is None:
            kwargs: dict[str, Any] = {"timeout": timeout, "max_retries": max_retries}
            if base_url:
                kwargs["base_url"] = base_url
            client = TypesenseCloudClient(api_key, **kwargs)
        self._client = client
        self._poll_interval = poll_interval
        self._convergence_timeout = convergence_timeout
        self._max_poll_attempts = max_poll_attempts

    async def aclose(self) -> None:  # clients open a connection per request
        return None

    async def resources(self) -> list[ProviderResourceSchema]:
        return [TypesenseClusterResource.schema()]

    def cluster(self) -> TypesenseClusterResource:
        return TypesenseClusterResource(
            self._client,
            poll_interval=self._poll_interval,
            convergence_timeout=self._convergence_timeout,
            max_poll_attempts=self._max_poll_attempts,
        )


def _factory(**kwargs: Any) -> TypesenseProvider:
    return TypesenseProvider(**kwargs)


register_provider(
    TypesenseProvider.name,
    _factory,
    version="0.1.0",
    description="Typesense Cloud clusters",
    resources=[TypesenseClusterResource.RESOURCE],
)

__all__ = [
    "DEFAULT_CONVERGENCE_TIMEOUT",
    "DEFAULT_POLL_INTERVAL",
    "TypesenseClusterResource",
    "TypesenseProvider",
    "build_create_request",
    "build_update_request",
]
