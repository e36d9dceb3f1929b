"""Pipeline module: bundle, upload and wait.

Public API:
    publish_repository(repository_root, work_dir, config, ...) -> PublishOutcome
    publish_artifacts(artifacts, work_dir, config, ...) -> PublishOutcome
    publish_from_settings(repository_root, work_dir, settings, ...) -> PublishOutcome
    PublishCoordinator: per-run project bookkeeping
"""

from central_publish.pipeline.coordination import PublishCoordinator
from central_publish.pipeline.orchestrator import (
    default_deployment_name,
    publish_artifacts,
    publish_from_settings,
    publish_repository,
)
from central_publish.pipeline.types import PublishOutcome, PublishState

__all__ = [
    "PublishCoordinator",
    "PublishOutcome",
    "PublishState",
    "default_deployment_name",
    "publish_artifacts",
    "publish_from_settings",
    "publish_repository",
]
