"""Pure decision functions for the status poll loop.

Two independent questions, kept separate so each can be tested alone:
    classify(error)     -> should the loop stop on this failure?
    is_terminal(status) -> should the loop stop on this result?
"""

from enum import StrEnum

from central_publish.client.errors import PublisherStateError, StatusCheckError, TransportError
from central_publish.client.types import DeploymentStatus

# The deployment reference is invalid or access is denied for good
FATAL_STATUS_CODES: frozenset[int] = frozenset({401, 403, 404})


class ErrorClass(StrEnum):
    FATAL = "fatal"
    RETRYABLE = "retryable"


def unwrap_error(error: BaseException) -> BaseException:
    """Strip wrappers that only relay another error.

    Handles single-member exception groups (asyncio.TaskGroup) and
    StatusCheckError, recursively.
    """
    if isinstance(error, BaseExceptionGroup) and len(error.exceptions) == 1:
        return unwrap_error(error.exceptions[0])
    if isinstance(error, StatusCheckError) and error.cause is not None:
        return unwrap_error(error.cause)
    return error


def classify(error: BaseException) -> ErrorClass:
    """FATAL for 401/403/404 responses and client misuse, RETRYABLE otherwise.

    A closed or uninitialized client never recovers on its own.
    Connectivity failures, timeouts, 5xx, 429 and malformed bodies are
    all treated as transient.
    """
    root = unwrap_error(error)
    if isinstance(root, PublisherStateError):
        return ErrorClass.FATAL
    if isinstance(root, TransportError) and root.status_code in FATAL_STATUS_CODES:
        return ErrorClass.FATAL
    return ErrorClass.RETRYABLE


def is_terminal(status: DeploymentStatus) -> bool:
    """PUBLISHED and FAILED end polling; errors on a FAILED status don't matter."""
    return status.deployment_state.is_terminal
