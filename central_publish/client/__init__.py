"""Client module for the Central publishing service.

Public API:
    build_authentication(host_credential, username, password, token) -> Authentication
    create_publisher_config(uri, authentication) -> PublisherConfig
    PublishingClient: initialize / upload / status / close
"""

from central_publish.client.auth import build_authentication
from central_publish.client.errors import (
    ConnectivityError,
    DeploymentFailedError,
    PollingCancelledError,
    PublisherError,
    PublisherStateError,
    StatusCheckError,
    TransportError,
)
from central_publish.client.publisher import PublishingClient
from central_publish.client.types import (
    Authentication,
    DeploymentState,
    DeploymentStatus,
    HostCredential,
    PublisherConfig,
    PublishingType,
    create_publisher_config,
)

__all__ = [
    "Authentication",
    "ConnectivityError",
    "DeploymentFailedError",
    "DeploymentState",
    "DeploymentStatus",
    "HostCredential",
    "PollingCancelledError",
    "PublisherConfig",
    "PublisherError",
    "PublisherStateError",
    "PublishingClient",
    "PublishingType",
    "StatusCheckError",
    "TransportError",
    "build_authentication",
    "create_publisher_config",
]
