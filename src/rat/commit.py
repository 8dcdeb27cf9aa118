"""Commit objects: metadata format and the ``commits/`` namespace."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .exceptions import CorruptHistoryError


@dataclass(frozen=True)
class Commit:
    """A stored commit.

    ``parent`` is the empty string for a root commit.
    """
    hash: str
    parent: str
    message: str

    @property
    def is_root(self) -> bool:
        return not self.parent


def format_metadata(parent: str | None, message: str) -> str:
    """Render the metadata string that is hashed and stored for a commit."""
    return f"parent {parent or ''}\n\n{message}"


def parse_metadata(commit_hash: str, text: str) -> Commit:
    """Parse ``parent <hash>\\n\\n<message>`` into a :class:`Commit`.

    The message is everything after the first blank line, kept verbatim.
    """
    header, sep, message = text.partition("\n\n")
    key, _, value = header.partition(" ")
    if not sep or key != "parent" or "\n" in header:
        raise CorruptHistoryError(
            f"Commit {commit_hash} has malformed metadata (expected 'parent <hash>' header)"
        )
    return Commit(hash=commit_hash, parent=value.strip(), message=message)


def commit_path(commits_dir: str | os.PathLike[str], commit_hash: str) -> Path:
    return Path(commits_dir) / commit_hash


def read_commit(commits_dir: str | os.PathLike[str], commit_hash: str) -> Commit:
    """Read and parse the metadata stored for *commit_hash*.

    Raises:
        CorruptHistoryError: If the metadata file is missing or malformed.
    """
    path = commit_path(commits_dir, commit_hash)
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        raise CorruptHistoryError(f"Commit {commit_hash} is referenced but not stored")
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        raise CorruptHistoryError(f"Commit {commit_hash} metadata is not valid UTF-8")
    return parse_metadata(commit_hash, text)


def write_commit(commits_dir: str | os.PathLike[str], commit_hash: str, metadata: str) -> bool:
    """Store *metadata* under *commit_hash*.

    Content is addressed by its hash, so an existing file already holds the
    same bytes and is left alone.  Returns True if a file was written.
    """
    path = commit_path(commits_dir, commit_hash)
    if path.exists():
        return False
    path.write_bytes(metadata.encode("utf-8"))
    return True
