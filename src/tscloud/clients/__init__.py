from tscloud.clients.base import (
    BaseHTTPClient,
    HTTPClientError,
    NotFoundHTTPError,
    PermanentHTTPError,
    RetryableHTTPError,
)
from tscloud.clients.typesense import (
    ClusterAPI,
    ClusterNotFoundError,
    TypesenseCloudClient,
    TypesenseCloudError,
)

__all__ = [
    "BaseHTTPClient",
    "HTTPClientError",
    "NotFoundHTTPError",
    "PermanentHTTPError",
    "RetryableHTTPError",
    "ClusterAPI",
    "ClusterNotFoundError",
    "TypesenseCloudClient",
    "TypesenseCloudError",
]
