"""Types for the publish pipeline."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

from central_publish.client.types import DeploymentState, DeploymentStatus


class PublishState(StrEnum):
    """Per-project decision recorded during one pipeline run."""

    PENDING = "pending"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class PublishOutcome:
    """What one pipeline run produced.

    skipped=True means there was nothing to publish and no request was
    sent; deployment_id and status are then None.
    """

    deployment_id: Optional[str] = None
    status: Optional[DeploymentStatus] = None
    skipped: bool = False

    @property
    def is_published(self) -> bool:
        return (
            self.status is not None
            and self.status.deployment_state == DeploymentState.PUBLISHED
        )

    def to_dict(self) -> dict:
        return {
            "deployment_id": self.deployment_id,
            "status": self.status.to_dict() if self.status else None,
            "skipped": self.skipped,
        }
