"""Types for the bundle module."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Artifact:
    """A single build output handed over by the host build tool.

    repository_path is the file's location inside the staging repository
    layout (e.g. com/example/demo/1.0.0/demo-1.0.0.jar). When omitted the
    bare file name is used.
    """

    path: Path
    is_snapshot: bool = False
    repository_path: Optional[str] = None

    @property
    def staged_path(self) -> str:
        return self.repository_path or self.path.name


@dataclass(frozen=True)
class ChecksumSidecar:
    """A generated digest file sitting next to exactly one artifact."""

    algorithm: str  # "md5" | "sha1"
    digest: str     # lowercase hex
    path: Path


@dataclass(frozen=True)
class Bundle:
    """The archive produced by one assembly run.

    artifacts holds the non-sidecar files packed into the archive, in
    archive order. An empty tuple means there was nothing to publish.
    """

    archive_path: Path
    artifacts: tuple[Artifact, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.artifacts
