"""Nest: the on-disk store of commits, snapshots and refs."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from ._exclude import ExcludeFilter
from ._lock import nest_lock
from .commit import Commit, format_metadata, read_commit, write_commit
from .exceptions import (
    CommitNotFoundError,
    CorruptHistoryError,
    NestExistsError,
    NestNotFoundError,
    RatError,
    StorageIOError,
)
from .hashing import hash_tree, is_hash
from .history import LogEntry, build_ref_index, walk_history
from .refs import HeadValue, RefStore, Symbolic, Direct, validate_branch_name
from .snapshot import copy_tree

logger = logging.getLogger(__name__)

NEST_DIRNAME = ".rat"
DEFAULT_BRANCH = "main"
EXCLUDE_FILENAME = "exclude"


@contextmanager
def _storage_errors(action: str):
    """Re-raise plain ``OSError`` as :class:`StorageIOError`."""
    try:
        yield
    except RatError:
        raise
    except OSError as exc:
        raise StorageIOError(f"{action}: {exc}") from exc


class Nest:
    """A snapshot store rooted at *root*, recording the tree at *work_tree*.

    Layout::

        <root>/HEAD
        <root>/refs/heads/<name>
        <root>/commits/<hash>
        <root>/contents/<hash>/...
    """

    def __init__(self, root: str | os.PathLike[str], work_tree: str | os.PathLike[str]):
        self.root = Path(root)
        self.work_tree = Path(work_tree)
        self.refs = RefStore(self.root)
        self.commits_dir = self.root / "commits"
        self.contents_dir = self.root / "contents"

    def __repr__(self) -> str:
        return f"Nest({str(self.root)!r}, work_tree={str(self.work_tree)!r})"

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def init(
        cls,
        work_tree: str | os.PathLike[str] = ".",
        *,
        nest: str | os.PathLike[str] | None = None,
        branch: str = DEFAULT_BRANCH,
    ) -> Nest:
        """Create a new nest with HEAD attached to the empty *branch*.

        Args:
            work_tree: Directory whose contents are committed.
            nest: Nest location (default ``<work_tree>/.rat``).
            branch: Initial branch name (default "main").

        Raises:
            NestExistsError: If the nest directory already exists.
        """
        validate_branch_name(branch)
        work_tree = Path(work_tree)
        root = Path(nest) if nest is not None else work_tree / NEST_DIRNAME
        store = cls(root, work_tree)
        with _storage_errors("Failed to initialize nest"):
            try:
                root.mkdir(parents=True)
            except FileExistsError:
                raise NestExistsError(f"Nest already exists: {root}")
            store.commits_dir.mkdir()
            store.contents_dir.mkdir()
            store.refs.heads_dir.mkdir(parents=True)
            store.refs.set_head(Symbolic(branch))
        logger.debug("initialized nest at %s on branch %s", root, branch)
        return store

    @classmethod
    def open(
        cls,
        work_tree: str | os.PathLike[str] = ".",
        *,
        nest: str | os.PathLike[str] | None = None,
    ) -> Nest:
        """Open an existing nest.

        Raises:
            NestNotFoundError: If there is no nest (no HEAD file) at the location.
        """
        work_tree = Path(work_tree)
        root = Path(nest) if nest is not None else work_tree / NEST_DIRNAME
        if not (root / "HEAD").is_file():
            raise NestNotFoundError(f"Not a rat nest: {root}")
        return cls(root, work_tree)

    @classmethod
    def find(cls, start: str | os.PathLike[str] = ".") -> Nest:
        """Open the nest in *start* or the nearest parent directory holding one."""
        path = Path(start).resolve()
        for candidate in (path, *path.parents):
            if (candidate / NEST_DIRNAME / "HEAD").is_file():
                return cls(candidate / NEST_DIRNAME, candidate)
        raise NestNotFoundError(f"Not inside a rat nest: {start}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def exclude_filter(self, work_tree: str | os.PathLike[str] | None = None) -> ExcludeFilter:
        """Filter for walks of *work_tree*: the nest itself plus ``<nest>/exclude``."""
        work_tree = Path(work_tree) if work_tree is not None else self.work_tree
        names: tuple[str, ...] = ()
        try:
            self.root.resolve().relative_to(work_tree.resolve())
        except ValueError:
            pass
        else:
            names = (self.root.name,)
        exclude_file = self.root / EXCLUDE_FILENAME
        exclude_from = exclude_file if exclude_file.is_file() else None
        with _storage_errors("Failed to read exclude file"):
            return ExcludeFilter(names, exclude_from=exclude_from)

    def has_commit(self, commit_hash: str) -> bool:
        if not is_hash(commit_hash):
            return False
        return (self.commits_dir / commit_hash).is_file()

    def read_commit(self, commit_hash: str) -> Commit:
        if not self.has_commit(commit_hash):
            raise CommitNotFoundError(f"Unknown commit: {commit_hash}")
        with _storage_errors(f"Failed to read commit {commit_hash}"):
            return read_commit(self.commits_dir, commit_hash)

    def _lookup_branch(self, name: str) -> str | None:
        try:
            validate_branch_name(name)
        except ValueError:
            return None
        return self.refs.read_branch(name)

    def resolve(self, target: str) -> str:
        """Resolve a branch name or commit hash to a stored commit hash."""
        with _storage_errors(f"Failed to resolve {target}"):
            branch_hash = self._lookup_branch(target)
            if branch_hash is not None:
                return branch_hash
            if self.has_commit(target):
                return target
        raise CommitNotFoundError(f"Unknown commit or branch: {target}")

    @property
    def head(self) -> HeadValue:
        with _storage_errors("Failed to read HEAD"):
            return self.refs.read_head()

    def head_commit(self) -> str | None:
        """Hash HEAD resolves to, or None on a branch with no commits."""
        with _storage_errors("Failed to resolve HEAD"):
            return self.refs.resolve_head()

    @property
    def current_branch(self) -> str | None:
        with _storage_errors("Failed to read HEAD"):
            return self.refs.current_branch()

    def branches(self) -> dict[str, str]:
        with _storage_errors("Failed to list branches"):
            return self.refs.list_branch_refs()

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def commit(self, message: str, work_tree: str | os.PathLike[str] | None = None) -> str:
        """Snapshot *work_tree* (default: the nest's work tree) as a new commit.

        The parent is whatever HEAD resolves to.  HEAD (or the branch it is
        attached to) advances to the new commit.  The work tree is only read.

        Returns:
            The new commit's hash.
        """
        work_tree = Path(work_tree) if work_tree is not None else self.work_tree
        with _storage_errors("Commit failed"), nest_lock(self.root):
            parent = self.refs.resolve_head() or ""
            metadata = format_metadata(parent, message)
            exclude = self.exclude_filter(work_tree)
            commit_hash = hash_tree(metadata, work_tree, exclude)
            write_commit(self.commits_dir, commit_hash, metadata)
            copied = copy_tree(work_tree, self.contents_dir / commit_hash, exclude)
            self.refs.write_head(commit_hash)
        logger.debug("created commit %s (%d files, parent %s)", commit_hash, copied, parent or "none")
        return commit_hash

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def checkout(self, target: str) -> str:
        """Copy a snapshot onto the work tree and move HEAD.

        *target* is a branch name (HEAD becomes attached to it) or a commit
        hash (HEAD becomes detached).  Files in the work tree that are not in
        the snapshot are left alone.

        Returns:
            The checked-out commit's hash.
        """
        with _storage_errors(f"Checkout of {target} failed"), nest_lock(self.root):
            branch_hash = self._lookup_branch(target)
            if branch_hash is not None:
                commit_hash = branch_hash
                new_head: HeadValue = Symbolic(target)
            elif self.has_commit(target):
                commit_hash = target
                new_head = Direct(target)
            else:
                raise CommitNotFoundError(f"Unknown commit or branch: {target}")
            snapshot = self.contents_dir / commit_hash
            if not snapshot.is_dir():
                raise CorruptHistoryError(f"Snapshot for commit {commit_hash} is missing")
            copy_tree(snapshot, self.work_tree, self.exclude_filter())
            self.refs.set_head(new_head)
        logger.debug("checked out %s", commit_hash)
        return commit_hash

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def iter_log(self, start: str | None = None) -> Iterator[LogEntry]:
        """Yield history newest-first from *start* (default: HEAD)."""
        with _storage_errors("Failed to read history"):
            head = self.resolve(start) if start is not None else self.refs.resolve_head()
            ref_index = build_ref_index(self.refs.list_branch_refs())
            yield from walk_history(self.commits_dir, head, ref_index)

    def log(self, start: str | None = None) -> list[LogEntry]:
        """Return the full history newest-first; empty on a branch with no commits."""
        return list(self.iter_log(start))

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def create_branch(self, name: str, target: str | None = None) -> str:
        """Create branch *name* at *target* (default: the commit HEAD resolves to).

        Raises:
            BranchExistsError: If *name* already exists; nothing changes.
            CommitNotFoundError: If *target* is not a stored commit.
            ValueError: If *name* is not a valid branch name.

        Returns:
            The hash the new branch points at.
        """
        validate_branch_name(name)
        with _storage_errors(f"Failed to create branch {name}"), nest_lock(self.root):
            if target is None:
                target = self.refs.resolve_head()
                if target is None:
                    raise CommitNotFoundError("HEAD has no commits yet")
            elif not self.has_commit(target):
                raise CommitNotFoundError(f"Unknown commit: {target}")
            self.refs.create_branch(name, target)
        logger.debug("created branch %s at %s", name, target)
        return target
