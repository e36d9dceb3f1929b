"""Error taxonomy for the publishing client and the status poller.

All errors derive from PublisherError, which carries the original
exception (if any) for upstream logging. Local file I/O failures are not
wrapped: they surface as the builtin OSError.
"""

from typing import TYPE_CHECKING, Optional

import httpx

if TYPE_CHECKING:
    from central_publish.client.types import DeploymentStatus


class PublisherError(Exception):
    """Base class for publishing failures."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class TransportError(PublisherError):
    """The service answered with a non-2xx response.

    Carries the raw response so callers can inspect status and body.
    """

    def __init__(self, response: httpx.Response):
        self.response = response
        self.status_code = response.status_code
        self.body = response.text
        super().__init__(f"HTTP {self.status_code}: {self.body[:500]}")


class ConnectivityError(PublisherError):
    """No response was obtained (timeout, refused connection, DNS...)."""


class PublisherStateError(PublisherError):
    """The client was used out of order (not initialized, closed twice...)."""


class StatusCheckError(PublisherError):
    """A status query failed in a way retrying cannot fix."""


class PollingCancelledError(PublisherError):
    """The poll loop was stopped from outside before reaching a terminal state."""


class DeploymentFailedError(PublisherError):
    """The deployment reached FAILED on the service.

    Not a transport problem: the upload went through and the service
    rejected the content. `status.errors` lists per-artifact messages.
    """

    def __init__(self, status: "DeploymentStatus"):
        self.status = status
        lines = [f"Deployment {status.deployment_id} failed"]
        for artifact, messages in (status.errors or {}).items():
            for message in messages:
                lines.append(f"  {artifact}: {message}")
        super().__init__("\n".join(lines))
