"""Types for the publishing client.

DeploymentStatus mirrors the JSON returned by GET publisher/status.
The service uses camelCase keys; from_dict maps them onto snake_case
fields and to_dict maps them back for logging.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Mapping, Optional
from urllib.parse import urlsplit

DEFAULT_PUBLISHER_URL = "https://central.sonatype.com/api/v1/"


class PublishingType(StrEnum):
    """How the service proceeds once validation passes."""

    AUTOMATIC = "AUTOMATIC"
    USER_MANAGED = "USER_MANAGED"


class DeploymentState(StrEnum):
    """Deployment lifecycle on the service.

    PENDING -> VALIDATING -> PUBLISHING -> PUBLISHED | FAILED
    """

    PENDING = "PENDING"
    VALIDATING = "VALIDATING"
    PUBLISHING = "PUBLISHING"
    PUBLISHED = "PUBLISHED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (DeploymentState.PUBLISHED, DeploymentState.FAILED)


@dataclass(frozen=True)
class DeploymentStatus:
    """Point-in-time snapshot of one deployment."""

    deployment_id: str
    deployment_state: DeploymentState
    deployment_name: Optional[str] = None
    purls: Optional[list[str]] = None
    errors: Optional[dict[str, list[str]]] = None

    @classmethod
    def from_dict(cls, data: dict) -> "DeploymentStatus":
        """Build a status from the service's JSON body.

        Raises ValueError on a missing or unknown deploymentState.
        """
        raw_state = data.get("deploymentState")
        if raw_state is None:
            raise ValueError("Status response has no deploymentState")

        purls = data.get("purls")
        errors = data.get("errors")
        return cls(
            deployment_id=str(data.get("deploymentId", "")),
            deployment_state=DeploymentState(raw_state),
            deployment_name=data.get("deploymentName"),
            purls=list(purls) if purls is not None else None,
            errors=(
                {str(k): list(v) for k, v in errors.items()}
                if errors is not None
                else None
            ),
        )

    def to_dict(self) -> dict:
        return {
            "deploymentId": self.deployment_id,
            "deploymentName": self.deployment_name,
            "deploymentState": self.deployment_state.value,
            "purls": self.purls,
            "errors": self.errors,
        }


@dataclass(frozen=True)
class Authentication:
    """Outbound auth headers, fixed at construction.

    headers is a read-only view so any number of in-flight requests can
    read it without locking.
    """

    headers: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self):
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def __repr__(self) -> str:
        # Never print credentials
        return f"Authentication(headers={sorted(self.headers)})"


@dataclass(frozen=True)
class HostCredential:
    """Username/password pair supplied by the host build configuration."""

    username: Optional[str] = None
    password: Optional[str] = None


@dataclass(frozen=True)
class PublisherConfig:
    """Where to publish and how to authenticate.

    Build with create_publisher_config() rather than directly.
    """

    uri: str = DEFAULT_PUBLISHER_URL
    authentication: Authentication = field(default_factory=Authentication)


def create_publisher_config(
    uri: Optional[str] = None,
    authentication: Optional[Authentication] = None,
) -> PublisherConfig:
    """Validate inputs and build a PublisherConfig.

    An unset uri falls back to the public Central endpoint. The uri must be
    absolute http(s); a trailing slash is added so relative endpoint paths
    resolve beneath it rather than replacing its last segment.

    Raises:
        ValueError: If the uri is not an absolute http(s) URL.
    """
    resolved = uri or DEFAULT_PUBLISHER_URL
    parts = urlsplit(resolved)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"Publisher uri must be an absolute http(s) URL, got {resolved!r}")
    if not parts.path.endswith("/"):
        resolved = parts._replace(path=parts.path + "/").geturl()

    return PublisherConfig(
        uri=resolved,
        authentication=authentication or Authentication(),
    )
