"""History traversal: walk parent pointers newest-first."""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from .commit import read_commit
from .exceptions import CorruptHistoryError


@dataclass(frozen=True)
class LogEntry:
    """One commit in a history walk, with the branches pointing at it."""
    hash: str
    parent: str
    message: str
    branches: tuple[str, ...] = ()


def build_ref_index(branch_refs: Mapping[str, str]) -> dict[str, list[str]]:
    """Invert ``{branch: hash}`` into ``{hash: [branch, ...]}``.

    Several branches may point at the same commit; names are kept sorted.
    """
    index: dict[str, list[str]] = {}
    for name in sorted(branch_refs):
        index.setdefault(branch_refs[name], []).append(name)
    return index


def walk_history(
    commits_dir: str | os.PathLike[str],
    start: str | None,
    ref_index: Mapping[str, list[str]] | None = None,
) -> Iterator[LogEntry]:
    """Yield commits from *start* back to the root.

    Nothing is yielded when *start* is None (an empty branch).  A dangling
    parent pointer or a parent cycle raises :class:`CorruptHistoryError`
    rather than ending the walk early.
    """
    ref_index = ref_index or {}
    seen: set[str] = set()
    current = start
    while current:
        if current in seen:
            raise CorruptHistoryError(f"Parent cycle detected at commit {current}")
        seen.add(current)
        commit = read_commit(commits_dir, current)
        yield LogEntry(
            hash=commit.hash,
            parent=commit.parent,
            message=commit.message,
            branches=tuple(ref_index.get(commit.hash, ())),
        )
        current = commit.parent
