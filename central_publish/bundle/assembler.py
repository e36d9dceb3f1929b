"""Bundle assembler — turns a local artifact repository into one zip.

The flow for a single run:
1. Walk every file under the repository root
2. Write .md5/.sha1 sidecars next to each artifact
3. Pack the tree into a zip at maximum compression, rooted at the
   repository root (no wrapper folder), skipping local-only metadata

Any OSError aborts the run; local I/O is not retried.
"""

import logging
import shutil
import zipfile
from pathlib import Path
from typing import Iterable

from central_publish.bundle.checksum import is_sidecar, write_checksums
from central_publish.bundle.types import Artifact, Bundle

logger = logging.getLogger(__name__)

# Written by the host build tool's local install step, never published
LOCAL_METADATA_FILENAME = "maven-metadata-local.xml"

COMPRESS_LEVEL = 9


def assemble(repository_root: Path, archive_path: Path) -> Bundle:
    """Checksum and pack `repository_root` into `archive_path`.

    Returns a Bundle listing the packed artifacts. A root with no
    artifacts still produces a (near-empty) archive; callers must check
    Bundle.is_empty before uploading.
    """
    repository_root = Path(repository_root)
    archive_path = Path(archive_path)

    logger.info("Creating checksum files for all files in %s", repository_root)
    for path in _iter_files(repository_root, archive_path):
        write_checksums(path)

    artifacts: list[Artifact] = []
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(
        archive_path,
        mode="w",
        compression=zipfile.ZIP_DEFLATED,
        compresslevel=COMPRESS_LEVEL,
    ) as zf:
        for path in _iter_files(repository_root, archive_path):
            if _is_local_metadata(path):
                continue
            arcname = path.relative_to(repository_root).as_posix()
            zf.write(path, arcname=arcname)
            if not is_sidecar(path):
                artifacts.append(Artifact(
                    path=path,
                    is_snapshot=_looks_like_snapshot(arcname),
                    repository_path=arcname,
                ))

    logger.info(
        "Bundle %s created successfully, size: %s (%d artifacts)",
        archive_path,
        display_size(archive_path.stat().st_size),
        len(artifacts),
    )
    return Bundle(archive_path=archive_path, artifacts=tuple(artifacts))


def stage_artifacts(artifacts: Iterable[Artifact], staging_root: Path) -> list[Artifact]:
    """Copy release artifacts into a staging repository.

    Snapshot artifacts are skipped: they go to the snapshot repository
    through the host build tool, not through a bundle upload.
    Returns the staged artifacts, pointing at their new locations.
    """
    staging_root = Path(staging_root)
    staged: list[Artifact] = []

    for artifact in artifacts:
        if artifact.is_snapshot:
            logger.info("Skipping snapshot artifact %s", artifact.path)
            continue
        target = staging_root / artifact.staged_path
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(artifact.path, target)
        staged.append(Artifact(
            path=target,
            is_snapshot=False,
            repository_path=artifact.staged_path,
        ))

    if not staged:
        logger.info("No artifacts to install")
    else:
        logger.info("Staged %d artifacts into %s", len(staged), staging_root)
    return staged


def display_size(num_bytes: int) -> str:
    """Format a byte count the way build tools print bundle sizes."""
    size = num_bytes
    for unit in ("bytes", "KB", "MB"):
        if size < 1024:
            return f"{size} {unit}"
        size //= 1024
    return f"{size} GB"


def _iter_files(root: Path, archive_path: Path) -> list[Path]:
    """Every regular file under root, sorted, excluding the archive itself."""
    archive = archive_path.resolve()
    return sorted(
        p for p in root.rglob("*")
        if p.is_file() and p.resolve() != archive
    )


def _is_local_metadata(path: Path) -> bool:
    # Prefix match also drops the sidecars generated for the metadata file
    return path.name.startswith(LOCAL_METADATA_FILENAME)


def _looks_like_snapshot(arcname: str) -> bool:
    return "-SNAPSHOT" in arcname
