"""Polling module: wait for a deployment to finish.

Public API:
    poll_until_terminal(client, deployment_id, interval, stop_event) -> DeploymentStatus
    classify(error) -> ErrorClass
    is_terminal(status) -> bool
"""

from central_publish.polling.classifier import ErrorClass, classify, is_terminal, unwrap_error
from central_publish.polling.poller import DEFAULT_POLL_INTERVAL, poll_until_terminal

__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "ErrorClass",
    "classify",
    "is_terminal",
    "poll_until_terminal",
    "unwrap_error",
]
