"""Content hashing of a commit's metadata plus its snapshotted tree."""

from __future__ import annotations

import hashlib
import os

from ._exclude import ExcludeFilter
from .snapshot import iter_files

HASH_ALGORITHM = "sha256"
HASH_LENGTH = 64

_CHUNK = 64 * 1024


def hash_tree(
    metadata: str,
    directory: str | os.PathLike[str],
    exclude: ExcludeFilter | None = None,
) -> str:
    """Return the lowercase hex digest of *metadata* followed by every file.

    Metadata is absorbed first as UTF-8, then the raw bytes of each file in
    :func:`~rat.snapshot.iter_files` order.  Any ``OSError`` aborts the
    computation.
    """
    h = hashlib.new(HASH_ALGORITHM)
    h.update(metadata.encode("utf-8"))
    for path in iter_files(directory, exclude):
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(_CHUNK), b""):
                h.update(chunk)
    return h.hexdigest()


def is_hash(value: str) -> bool:
    """True if *value* looks like a full commit hash."""
    if len(value) != HASH_LENGTH:
        return False
    return all(c in "0123456789abcdef" for c in value)
