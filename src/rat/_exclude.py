"""Exclude-filter support for snapshot walks.

Combines entry names that are skipped at every directory level (the nest
itself) with optional gitignore-style patterns, read from the nest's
``exclude`` file or passed directly.

Pattern syntax follows gitignore rules (implemented by
``dulwich.ignore.IgnoreFilter``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

from dulwich.ignore import IgnoreFilter


class ExcludeFilter:
    """Decides which entries a snapshot walk skips."""

    def __init__(
        self,
        names: Iterable[str] = (),
        *,
        patterns: Sequence[str] | None = None,
        exclude_from: str | Path | None = None,
    ) -> None:
        self._names = frozenset(names)
        base_lines: list[bytes] = []
        for p in patterns or ():
            base_lines.append(p.encode("utf-8"))
        if exclude_from is not None:
            path = Path(exclude_from)
            for raw in path.read_bytes().splitlines():
                line = raw.strip()
                if line and not line.startswith(b"#"):
                    base_lines.append(line)
        self._base: IgnoreFilter | None = (
            IgnoreFilter(base_lines) if base_lines else None
        )

    def __repr__(self) -> str:
        return f"ExcludeFilter(names={sorted(self._names)!r}, patterns={self._base is not None})"

    @property
    def names(self) -> frozenset[str]:
        return self._names

    # ------------------------------------------------------------------
    @property
    def active(self) -> bool:
        """True if any filtering is configured."""
        return bool(self._names) or self._base is not None

    # ------------------------------------------------------------------
    def is_excluded(self, rel_path: str, *, is_dir: bool = False) -> bool:
        """Check *rel_path* (``/``-separated, relative to the walk root).

        The final path component is compared against the excluded names;
        the whole path is then checked against the patterns.
        """
        if rel_path.rsplit("/", 1)[-1] in self._names:
            return True
        if self._base is None:
            return False
        check = rel_path + "/" if is_dir else rel_path
        return self._base.is_ignored(check) is True
