"""Publish pipeline orchestrator.

Drives one publish run end to end:
1. Assemble the staging repository into bundle.zip
2. Skip the run if the bundle holds no artifacts
3. Upload the bundle, then poll the deployment until it is terminal
4. Turn a FAILED deployment into DeploymentFailedError

Upload and status errors are not retried here: upload failures stop the
run, and the poller already absorbs transient status failures.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import structlog

from central_publish.bundle.assembler import assemble, stage_artifacts
from central_publish.bundle.types import Artifact
from central_publish.client.errors import DeploymentFailedError
from central_publish.client.publisher import PublishingClient
from central_publish.client.types import (
    DeploymentState,
    HostCredential,
    PublisherConfig,
    PublishingType,
)
from central_publish.core.config import Settings, get_settings
from central_publish.core.logging import (
    bind_deployment_id,
    configure_structlog,
    reset_deployment_id,
)
from central_publish.pipeline.types import PublishOutcome
from central_publish.polling.poller import DEFAULT_POLL_INTERVAL, poll_until_terminal

logger = structlog.get_logger(__name__)

BUNDLE_FILENAME = "bundle.zip"
STAGING_DIRNAME = "staging"


def default_deployment_name(now: Optional[datetime] = None) -> str:
    """Deployment-yyyyMMddHHmmss, in local time."""
    return "Deployment-" + (now or datetime.now()).strftime("%Y%m%d%H%M%S")


async def publish_repository(
    repository_root: Path,
    work_dir: Path,
    config: PublisherConfig,
    *,
    deployment_name: Optional[str] = None,
    publishing_type: PublishingType = PublishingType.USER_MANAGED,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    client: Optional[PublishingClient] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> PublishOutcome:
    """Bundle, upload and wait for one deployment.

    Args:
        repository_root: Local repository holding the release artifacts.
        work_dir: Where bundle.zip is written.
        config: Service endpoint and authentication.
        deployment_name: Shown in the portal; defaults to a timestamped name.
        publishing_type: AUTOMATIC publishes on success, USER_MANAGED waits
            for a manual release in the portal.
        poll_interval: Seconds between status checks.
        client: Uninitialized client to use; a new one is created if omitted.
        stop_event: Set it to stop polling early.

    Returns:
        PublishOutcome. skipped=True when there was nothing to publish.

    Raises:
        OSError: Local checksum/archive failure.
        TransportError, ConnectivityError: Upload failed.
        StatusCheckError: Status checks failed permanently.
        DeploymentFailedError: The service rejected the deployment.
    """
    archive_path = Path(work_dir) / BUNDLE_FILENAME
    # Hashing and deflating run off the event loop
    bundle = await asyncio.to_thread(assemble, Path(repository_root), archive_path)
    if bundle.is_empty:
        logger.info("No artifacts to publish", repository=str(repository_root))
        return PublishOutcome(skipped=True)

    name = deployment_name or default_deployment_name()
    client = client or PublishingClient()
    await client.initialize(config)
    try:
        logger.info(
            "Uploading bundle",
            bundle=str(archive_path),
            deployment_name=name,
            publishing_type=str(publishing_type),
        )
        with archive_path.open("rb") as stream:
            deployment_id = await client.upload(
                name, publishing_type, archive_path.name, stream,
            )

        token = bind_deployment_id(deployment_id)
        try:
            logger.info("Waiting for deployment state", target=str(DeploymentState.PUBLISHED))
            status = await poll_until_terminal(
                client,
                deployment_id,
                interval=poll_interval,
                stop_event=stop_event,
            )
            if status.deployment_state == DeploymentState.FAILED:
                logger.error("Failed to publish", errors=status.errors)
                raise DeploymentFailedError(status)
            logger.info("Published successfully", purls=status.purls)
        finally:
            reset_deployment_id(token)
    finally:
        await client.close()

    return PublishOutcome(deployment_id=deployment_id, status=status)


async def publish_artifacts(
    artifacts: Iterable[Artifact],
    work_dir: Path,
    config: PublisherConfig,
    **kwargs,
) -> PublishOutcome:
    """Stage release artifacts under work_dir/staging, then publish them.

    Snapshot artifacts are left out of the bundle. Keyword arguments are
    passed through to publish_repository().
    """
    work_dir = Path(work_dir)
    staging_root = work_dir / STAGING_DIRNAME
    staged = await asyncio.to_thread(stage_artifacts, list(artifacts), staging_root)
    if not staged:
        return PublishOutcome(skipped=True)
    return await publish_repository(staging_root, work_dir, config, **kwargs)


async def publish_from_settings(
    repository_root: Path,
    work_dir: Path,
    settings: Optional[Settings] = None,
    *,
    host_credential: Optional[HostCredential] = None,
    client: Optional[PublishingClient] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> PublishOutcome:
    """Entry point for host integrations: configure from the environment and publish.

    Loads Settings (CENTRAL_* variables) unless given, sets up logging, and
    runs publish_repository() with the configured endpoint, credentials,
    deployment name, publishing type and poll interval. host_credential is
    the host build's username/password, used when no token or explicit
    pair is configured.
    """
    settings = settings or get_settings()
    configure_structlog(debug=settings.debug)

    return await publish_repository(
        repository_root,
        work_dir,
        settings.to_publisher_config(host_credential),
        deployment_name=settings.deployment_name,
        publishing_type=settings.publishing_type,
        poll_interval=settings.poll_interval_seconds,
        client=client,
        stop_event=stop_event,
    )
