"""Checksum sidecar generation.

For every artifact file, writes <file>.md5 and <file>.sha1 holding the
lowercase hex digest of the file's full contents. Files that are already
digests or signatures are left alone so we never hash a hash.
"""

import hashlib
import logging
from pathlib import Path

from central_publish.bundle.types import ChecksumSidecar

logger = logging.getLogger(__name__)

CHECKSUM_ALGORITHMS: tuple[str, ...] = ("md5", "sha1")

# Sidecar suffixes produced by us or by signing tools (gpg writes .asc)
SIDECAR_SUFFIXES: tuple[str, ...] = (".md5", ".sha1", ".sha256", ".sha512", ".asc")

_CHUNK_SIZE = 64 * 1024


def is_sidecar(path: Path) -> bool:
    return path.name.endswith(SIDECAR_SUFFIXES)


def file_digest(path: Path, algorithm: str) -> str:
    """Return the lowercase hex digest of a file, read in chunks."""
    digest = hashlib.new(algorithm)
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def write_checksums(path: Path) -> list[ChecksumSidecar]:
    """Write one sidecar per configured algorithm next to `path`.

    Directories and sidecar files are skipped and yield an empty list.
    Existing sidecars are overwritten. OSError propagates unchanged.
    """
    if path.is_dir() or is_sidecar(path):
        return []

    sidecars: list[ChecksumSidecar] = []
    for algorithm in CHECKSUM_ALGORITHMS:
        digest = file_digest(path, algorithm)
        sidecar_path = path.with_name(f"{path.name}.{algorithm}")
        sidecar_path.write_text(digest, encoding="utf-8")
        sidecars.append(ChecksumSidecar(algorithm=algorithm, digest=digest, path=sidecar_path))

    logger.debug("Wrote %d checksum files for %s", len(sidecars), path)
    return sidecars
