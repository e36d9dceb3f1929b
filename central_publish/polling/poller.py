"""Status poll loop.

Queries the deployment status until a terminal state is seen or a
failure is classified as fatal. There is no attempt limit: validation on
the service can take a long time, and any overall deadline belongs to the
caller (wrap the call in asyncio.timeout() or cancel the task).
"""

import asyncio
import logging
from typing import Optional, Protocol

from central_publish.client.errors import PollingCancelledError, StatusCheckError
from central_publish.client.types import DeploymentStatus
from central_publish.polling.classifier import ErrorClass, classify, is_terminal

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0


class StatusSource(Protocol):
    """Anything with an async status(deployment_id) call."""

    async def status(self, deployment_id: str) -> DeploymentStatus:
        ...  # noqa: PLR6301


async def poll_until_terminal(
    client: StatusSource,
    deployment_id: str,
    *,
    interval: float = DEFAULT_POLL_INTERVAL,
    stop_event: Optional[asyncio.Event] = None,
) -> DeploymentStatus:
    """Poll `client.status()` until PUBLISHED or FAILED.

    Status calls are issued one at a time. Between attempts the loop waits
    `interval` seconds, whether the previous attempt returned a
    non-terminal state or a transient error.

    Args:
        client: Status source, usually an initialized PublishingClient.
        deployment_id: Id returned by the upload.
        interval: Fixed delay between attempts, in seconds.
        stop_event: Optional event; once set, the loop stops before its
            next attempt.

    Returns:
        The first terminal DeploymentStatus, unchanged.

    Raises:
        StatusCheckError: On a fatal failure (401/403/404); the original
            error is the __cause__.
        PollingCancelledError: If stop_event was set.
        asyncio.CancelledError: If the surrounding task is cancelled.
    """
    logger.info("Waiting for deployment %s to reach a terminal state", deployment_id)
    attempt = 0

    while True:
        if stop_event is not None and stop_event.is_set():
            raise PollingCancelledError(
                f"Polling for deployment {deployment_id} was stopped after {attempt} attempts"
            )
        attempt += 1

        try:
            status = await client.status(deployment_id)
        except Exception as exc:
            if classify(exc) is ErrorClass.FATAL:
                logger.error(
                    "Status check for deployment %s failed permanently: %s",
                    deployment_id, exc,
                )
                raise StatusCheckError(
                    f"Status check for deployment {deployment_id} failed: {exc}",
                    cause=exc,
                ) from exc
            logger.warning(
                "Error while checking deployment status (attempt %d): %s",
                attempt, exc,
            )
        else:
            if is_terminal(status):
                logger.info(
                    "Deployment %s reached %s after %d attempts",
                    deployment_id, status.deployment_state, attempt,
                )
                return status
            logger.debug(
                "Deployment %s is %s (attempt %d)",
                deployment_id, status.deployment_state, attempt,
            )

        await _wait(interval, stop_event)


async def _wait(interval: float, stop_event: Optional[asyncio.Event]) -> None:
    """Sleep for `interval`, waking early if stop_event is set."""
    if stop_event is None:
        await asyncio.sleep(interval)
        return
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=interval)
    except asyncio.TimeoutError:
        pass
