"""HEAD and branch refs.

HEAD is either symbolic (``ref: refs/heads/<name>``) or direct (a bare
commit hash, i.e. detached).  Branch refs live under ``refs/heads/`` and
hold a bare commit hash.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .exceptions import BranchExistsError, CorruptHistoryError

logger = logging.getLogger(__name__)

SYMBOLIC_PREFIX = "ref: "
HEADS_PREFIX = "refs/heads/"


def _umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


@dataclass(frozen=True)
class Direct:
    """HEAD pointing straight at a commit (detached)."""
    hash: str

    def __str__(self) -> str:
        return self.hash


@dataclass(frozen=True)
class Symbolic:
    """HEAD naming a branch that is dereferenced on resolution."""
    branch: str

    def __str__(self) -> str:
        return f"{SYMBOLIC_PREFIX}{HEADS_PREFIX}{self.branch}"


HeadValue = Union[Direct, Symbolic]


def parse_head(text: str) -> HeadValue:
    """Classify the contents of the HEAD file."""
    text = text.strip()
    if text.startswith(SYMBOLIC_PREFIX):
        target = text[len(SYMBOLIC_PREFIX):].strip()
        if not target.startswith(HEADS_PREFIX) or len(target) == len(HEADS_PREFIX):
            raise CorruptHistoryError(f"HEAD points outside {HEADS_PREFIX}: {target!r}")
        branch = target[len(HEADS_PREFIX):]
        try:
            validate_branch_name(branch)
        except ValueError as exc:
            raise CorruptHistoryError(f"HEAD names an invalid branch: {exc}")
        return Symbolic(branch)
    if not text:
        raise CorruptHistoryError("HEAD is empty")
    return Direct(text)


def validate_branch_name(name: str) -> None:
    """Reject names that cannot be stored as a single file under refs/heads."""
    if not name or name in (".", ".."):
        raise ValueError(f"Invalid branch name {name!r}")
    for ch, label in (("/", "slash"), ("\\", "backslash"), (":", "colon")):
        if ch in name:
            raise ValueError(f"Invalid branch name {name!r}: contains {label}")
    if any(ch.isspace() or not ch.isprintable() for ch in name):
        raise ValueError(f"Invalid branch name {name!r}: contains whitespace or control characters")


class RefStore:
    """Reads and writes HEAD and branch refs inside a nest."""

    def __init__(self, nest_root: str | os.PathLike[str]):
        self._root = Path(nest_root)
        self.head_path = self._root / "HEAD"
        self.heads_dir = self._root / "refs" / "heads"

    def __repr__(self) -> str:
        return f"RefStore({str(self._root)!r})"

    # ------------------------------------------------------------------
    # Low-level slots
    # ------------------------------------------------------------------

    def _write_atomic(self, path: Path, text: str) -> None:
        fd, tmp = tempfile.mkstemp(dir=self._root, prefix=".ref-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(text)
            # mkstemp creates 0600 files
            os.chmod(tmp, 0o666 & ~_umask())
            os.replace(tmp, path)
        except BaseException:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise

    def _branch_path(self, name: str) -> Path:
        validate_branch_name(name)
        return self.heads_dir / name

    # ------------------------------------------------------------------
    # HEAD
    # ------------------------------------------------------------------

    def read_head(self) -> HeadValue:
        """Read HEAD.  A missing HEAD raises ``FileNotFoundError``."""
        return parse_head(self.head_path.read_text(encoding="utf-8"))

    def resolve_head(self) -> str | None:
        """Return the commit HEAD points at, or None on an empty branch."""
        head = self.read_head()
        if isinstance(head, Direct):
            return head.hash
        return self.read_branch(head.branch)

    def set_head(self, value: HeadValue) -> None:
        """Overwrite HEAD itself."""
        self._write_atomic(self.head_path, str(value))

    def write_head(self, commit_hash: str) -> None:
        """Advance HEAD to *commit_hash*.

        A symbolic HEAD writes through to its branch; a detached HEAD is
        overwritten directly.
        """
        head = self.read_head()
        if isinstance(head, Symbolic):
            self._write_atomic(self._branch_path(head.branch), commit_hash)
            logger.debug("advanced branch %s to %s", head.branch, commit_hash)
        else:
            self.set_head(Direct(commit_hash))
            logger.debug("moved detached HEAD to %s", commit_hash)

    def current_branch(self) -> str | None:
        """Branch name HEAD is attached to, or None when detached."""
        head = self.read_head()
        return head.branch if isinstance(head, Symbolic) else None

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def read_branch(self, name: str) -> str | None:
        """Return the hash stored for branch *name*, or None if absent."""
        try:
            value = self._branch_path(name).read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return value or None

    def branch_exists(self, name: str) -> bool:
        return self._branch_path(name).is_file()

    def list_branch_refs(self) -> dict[str, str]:
        """Map every branch name to the hash it points at, sorted by name."""
        refs: dict[str, str] = {}
        with os.scandir(self.heads_dir) as it:
            entries = sorted((e for e in it if e.is_file()), key=lambda e: e.name)
        for entry in entries:
            with open(entry.path, encoding="utf-8") as f:
                value = f.read().strip()
            if value:
                refs[entry.name] = value
        return refs

    def create_branch(self, name: str, commit_hash: str) -> None:
        """Create branch *name* pointing at *commit_hash*.

        Raises:
            BranchExistsError: If *name* is taken; nothing is written.
            ValueError: If *name* is not a valid branch name.
        """
        path = self._branch_path(name)
        try:
            with open(path, "x", encoding="utf-8", newline="") as f:
                f.write(commit_hash)
        except FileExistsError:
            raise BranchExistsError(f"Branch {name} already exists")
        logger.debug("created branch %s at %s", name, commit_hash)
