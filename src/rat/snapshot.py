"""Recursive directory reads and copies used to snapshot a work tree.

Both walks visit entries sorted by name at every level, so the order in
which files are hashed does not depend on the filesystem.  Anything that is
not a regular file (after following symlinks) is treated as a directory and
descended into, which means a dangling symlink surfaces as an ``OSError``.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterator
from pathlib import Path

from ._exclude import ExcludeFilter


def _sorted_entries(directory: Path) -> list[os.DirEntry]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda e: e.name)


def _join(prefix: str, name: str) -> str:
    return f"{prefix}/{name}" if prefix else name


def iter_files(root: str | os.PathLike[str], exclude: ExcludeFilter | None = None) -> Iterator[Path]:
    """Yield every non-excluded regular file under *root*, depth first."""
    exclude = exclude or ExcludeFilter()

    def walk(directory: Path, rel: str) -> Iterator[Path]:
        for entry in _sorted_entries(directory):
            rel_path = _join(rel, entry.name)
            is_file = entry.is_file()
            if exclude.is_excluded(rel_path, is_dir=not is_file):
                continue
            if is_file:
                yield Path(entry.path)
            else:
                yield from walk(Path(entry.path), rel_path)

    yield from walk(Path(root), "")


def copy_tree(
    src: str | os.PathLike[str],
    dst: str | os.PathLike[str],
    exclude: ExcludeFilter | None = None,
) -> int:
    """Copy *src* into *dst* recursively, skipping excluded entries.

    *dst* is created if needed.  Files already present in *dst* are
    overwritten; files only present in *dst* are left alone.

    Returns the number of files copied.
    """
    exclude = exclude or ExcludeFilter()
    copied = 0

    def copy(from_dir: Path, to_dir: Path, rel: str) -> None:
        nonlocal copied
        entries = _sorted_entries(from_dir)
        to_dir.mkdir(parents=True, exist_ok=True)
        for entry in entries:
            rel_path = _join(rel, entry.name)
            is_file = entry.is_file()
            if exclude.is_excluded(rel_path, is_dir=not is_file):
                continue
            target = to_dir / entry.name
            if is_file:
                shutil.copy2(entry.path, target)
                copied += 1
            else:
                copy(Path(entry.path), target, rel_path)

    copy(Path(src), Path(dst), "")
    return copied
