"""Bundle module for checksumming and archiving artifacts.

Public API:
    assemble(repository_root, archive_path) -> Bundle
    stage_artifacts(artifacts, staging_root) -> list[Artifact]
    write_checksums(path) -> list[ChecksumSidecar]
"""

from central_publish.bundle.assembler import assemble, stage_artifacts
from central_publish.bundle.checksum import write_checksums
from central_publish.bundle.types import Artifact, Bundle, ChecksumSidecar

__all__ = [
    "Artifact",
    "Bundle",
    "ChecksumSidecar",
    "assemble",
    "stage_artifacts",
    "write_checksums",
]
