"""
Typesense Cloud management API client.

Implements the four cluster calls the lifecycle engine depends on:

    POST  /clusters                               - create a cluster
    GET   /clusters/{id}                          - fetch a cluster
    PATCH /clusters/{id}                          - change name / auto upgrade
    POST  /clusters/{id}/lifecycle/terminate      - terminate a cluster

Every failure surfaces as a single ``TypesenseCloudError`` per call, with
``ClusterNotFoundError`` reserved for clusters the API reports as missing.
"""

from __future__ import annotations

from typing import Any, Awaitable, Protocol

import httpx
import structlog
from circuitbreaker import CircuitBreakerError
from pydantic import ValidationError as PydanticValidationError

from tscloud.clients.base import BaseHTTPClient, HTTPClientError, NotFoundHTTPError
from tscloud.domain.models import ClusterCreateRequest, ClusterRecord, ClusterUpdateRequest

logger = structlog.get_logger()

DEFAULT_BASE_URL = "https://cloud.typesense.org/api/v1"
DEFAULT_USER_AGENT = "tscloud-provider/0.1.0"
API_KEY_HEADER = "X-TYPESENSE-CLOUD-MANAGEMENT-API-KEY"


class TypesenseCloudError(RuntimeError):
    """Raised when a Typesense Cloud API call fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ClusterNotFoundError(TypesenseCloudError):
    """Raised when the API reports that a cluster id does not exist."""


class ClusterAPI(Protocol):
    """Client contract consumed by the cluster lifecycle engine."""

    async def create_cluster(self, request: ClusterCreateRequest) -> ClusterRecord:
        ...

    async def get_cluster(self, cluster_id: str) -> ClusterRecord:
        ...

    async def update_cluster(self, cluster_id: str, request: ClusterUpdateRequest) -> None:
        ...

    async def terminate_cluster(self, cluster_id: str) -> None:
        ...


class TypesenseCloudClient(BaseHTTPClient):
    """Typesense Cloud client with retry logic and circuit breaker."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        super().__init__(
            base_url,
            timeout=timeout,
            max_retries=max_retries,
            backoff_factor=backoff_factor,
        )
        self._api_key = api_key
        self._user_agent = user_agent

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["User-Agent"] = self._user_agent
        if self._api_key:
            headers[API_KEY_HEADER] = self._api_key
        return headers

    async def create_cluster(self, request: ClusterCreateRequest) -> ClusterRecord:
        data = await self._call("create", self.post("/clusters", json=request.payload()))
        return self._parse_cluster(data, "create")

    async def get_cluster(self, cluster_id: str) -> ClusterRecord:
        data = await self._call("get", self.get(f"/clusters/{cluster_id}"), cluster_id=cluster_id)
        return self._parse_cluster(data, "get")

    async def update_cluster(self, cluster_id: str, request: ClusterUpdateRequest) -> None:
        await self._call(
            "update",
            self.patch(f"/clusters/{cluster_id}", json=request.payload()),
            cluster_id=cluster_id,
        )

    async def terminate_cluster(self, cluster_id: str) -> None:
        await self._call(
            "terminate",
            self.post(f"/clusters/{cluster_id}/lifecycle/terminate"),
            cluster_id=cluster_id,
        )

    async def _call(
        self,
        operation: str,
        pending: Awaitable[Any],
        *,
        cluster_id: str | None = None,
    ) -> dict[str, Any]:
        try:
            data = await pending
        except NotFoundHTTPError as exc:
            if cluster_id is not None:
                raise ClusterNotFoundError(
                    f"Cluster {cluster_id} not found", status_code=exc.status_code
                ) from exc
            raise TypesenseCloudError(
                f"Typesense Cloud {operation} failed: {exc}", status_code=exc.status_code
            ) from exc
        except HTTPClientError as exc:
            raise TypesenseCloudError(
                f"Typesense Cloud {operation} failed: {exc}", status_code=exc.status_code
            ) from exc
        except (httpx.HTTPError, CircuitBreakerError) as exc:
            raise TypesenseCloudError(f"Typesense Cloud {operation} failed: {exc}") from exc

        if not isinstance(data, dict):
            logger.error("cluster_payload_invalid", operation=operation, payload_type=type(data).__name__)
            raise TypesenseCloudError(f"Typesense Cloud {operation} returned an unexpected payload")
        if data.get("success") is False:
            message = data.get("message") or data.get("error") or "request rejected"
            raise TypesenseCloudError(f"Typesense Cloud {operation} failed: {message}")
        return data

    @staticmethod
    def _parse_cluster(data: dict[str, Any], operation: str) -> ClusterRecord:
        body = data.get("cluster", data)
        try:
            return ClusterRecord.model_validate(body)
        except PydanticValidationError as exc:
            logger.error("cluster_payload_invalid", operation=operation, error=str(exc))
            raise TypesenseCloudError(
                f"Typesense Cloud {operation} returned an unexpected payload"
            ) from exc
