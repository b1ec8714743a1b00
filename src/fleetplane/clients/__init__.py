from fleetplane.clients.base import (
    BaseHTTPClient,
    HTTPClientError,
    PermanentHTTPError,
    RetryableHTTPError,
)
from fleetplane.clients.kube import KubeClient, ResourceClient
from fleetplane.clients.manager import ManagerClient

__all__ = [
    "BaseHTTPClient",
    "HTTPClientError",
    "KubeClient",
    "ManagerClient",
    "PermanentHTTPError",
    "ResourceClient",
    "RetryableHTTPError",
]
