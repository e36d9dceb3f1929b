"""Publishing client for the Central portal API.

Wraps a single httpx.AsyncClient whose pool holds exactly one connection,
so every request issued through one PublishingClient is serialized. This
keeps request ordering deterministic for a deployment and avoids flooding
the service with parallel uploads.

Endpoints (relative to the configured base uri):
    POST publisher/upload?name=..&publishingType=..   multipart, part "bundle"
    GET  publisher/status?id=..                       JSON DeploymentStatus
"""

import logging
from typing import BinaryIO, Mapping, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

import httpx

from central_publish.client.errors import (
    ConnectivityError,
    PublisherStateError,
    TransportError,
)
from central_publish.client.types import DeploymentStatus, PublisherConfig, PublishingType

logger = logging.getLogger(__name__)

UPLOAD_PATH = "publisher/upload"
STATUS_PATH = "publisher/status"

# Bundles can be large and the service may be slow to accept them
CONNECT_TIMEOUT = 60.0
REQUEST_TIMEOUT = 30 * 60.0

MAX_CONNECTIONS = 1


def map_to_query_string(params: Mapping[str, str]) -> str:
    """Join params as key=value pairs with '&', in insertion order.

    Values are enum names and opaque ids, so no escaping is applied here.
    """
    return "&".join(f"{key}={value}" for key, value in params.items())


def join(base_uri: str, path_segment: str, query: Optional[str] = None) -> str:
    """Resolve path_segment against base_uri and attach query.

    Scheme, authority and any fragment come from the resolved uri, so a base
    uri with a sub-path (e.g. .../api/v1/) keeps it.
    """
    resolved = urlsplit(urljoin(base_uri, path_segment))
    return urlunsplit((
        resolved.scheme,
        resolved.netloc,
        resolved.path,
        query or "",
        resolved.fragment,
    ))


class PublishingClient:
    """Async client for upload and status calls.

    Lifecycle: initialize() once, any number of upload()/status() calls,
    then close(). Also usable as an async context manager after
    initialize().
    """

    def __init__(self) -> None:
        self._config: Optional[PublisherConfig] = None
        self._http: Optional[httpx.AsyncClient] = None
        self._closed = False

    @property
    def config(self) -> Optional[PublisherConfig]:
        return self._config

    async def initialize(self, config: PublisherConfig) -> None:
        if self._config is not None:
            raise PublisherStateError("Publisher is already initialized")

        self._config = config
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT),
            limits=httpx.Limits(
                max_connections=MAX_CONNECTIONS,
                max_keepalive_connections=MAX_CONNECTIONS,
            ),
        )
        logger.info("Initialized publisher with url: %s", config.uri)

    async def upload(
        self,
        deployment_name: Optional[str],
        publishing_type: PublishingType,
        filename: str,
        stream: BinaryIO,
    ) -> str:
        """Upload a bundle and return the deployment id.

        Raises:
            TransportError: On a non-2xx response. Not retried.
            ConnectivityError: If no response was obtained. Not retried.
        """
        config = self._require_config()

        query: dict[str, str] = {}
        if deployment_name is not None:
            query["name"] = deployment_name
        query["publishingType"] = PublishingType(publishing_type).value
        url = join(config.uri, UPLOAD_PATH, map_to_query_string(query))

        response = await self._request(
            "POST",
            url,
            files={"bundle": (filename, stream, "application/octet-stream")},
        )
        deployment_id = response.text.strip()
        logger.info("Upload completed with deployment id: %s", deployment_id)
        return deployment_id

    async def status(self, deployment_id: str) -> DeploymentStatus:
        """Fetch the current status of a deployment.

        Raises:
            TransportError: On a non-2xx response.
            ConnectivityError: If no response was obtained.
            ValueError: If the body is not a valid status document.
        """
        config = self._require_config()
        url = join(config.uri, STATUS_PATH, map_to_query_string({"id": deployment_id}))

        response = await self._request("GET", url)
        status = DeploymentStatus.from_dict(response.json())
        logger.debug("Deployment status: %s", status.to_dict())
        return status

    async def close(self) -> None:
        """Release the transport.

        A second call raises PublisherStateError and leaves state untouched.
        """
        if self._closed:
            raise PublisherStateError("Publisher is already closed")
        self._closed = True

        http, self._http = self._http, None
        if http is not None:
            await http.aclose()

    async def __aenter__(self) -> "PublishingClient":
        self._require_config()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if not self._closed:
            await self.close()

    def _require_config(self) -> PublisherConfig:
        if self._closed:
            raise PublisherStateError("Publisher is closed")
        if self._config is None or self._http is None:
            raise PublisherStateError("Publisher is not initialized; call initialize() first")
        return self._config

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        config = self._require_config()
        headers = dict(config.authentication.headers)

        try:
            response = await self._http.request(method, url, headers=headers, **kwargs)
        except httpx.RequestError as exc:
            raise ConnectivityError(f"{method} {url} failed: {exc}", cause=exc) from exc

        if not 200 <= response.status_code < 300:
            raise TransportError(response)
        return response
