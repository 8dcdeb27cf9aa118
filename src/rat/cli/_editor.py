"""Collect a commit message from the user's editor."""

from __future__ import annotations

import os

import click

from ..exceptions import NoEditorConfiguredError, StorageIOError
from ..nest import Nest

EDITMSG_FILENAME = "COMMIT_EDITMSG"
EDITOR_ENVVARS = ("EDITOR", "VISUAL")


def find_editor() -> str:
    """Return ``$EDITOR``, falling back to ``$VISUAL``."""
    for var in EDITOR_ENVVARS:
        editor = os.environ.get(var)
        if editor:
            return editor
    raise NoEditorConfiguredError("No editor set. Set EDITOR or VISUAL, or pass -m.")


def edit_message(nest: Nest) -> str:
    """Open an empty ``COMMIT_EDITMSG`` in the editor and return what was saved."""
    editor = find_editor()
    path = nest.root / EDITMSG_FILENAME
    try:
        path.write_text("", encoding="utf-8")
    except OSError as exc:
        raise StorageIOError(f"Failed to prepare commit message file: {exc}") from exc
    click.edit(filename=str(path), editor=editor)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise StorageIOError(f"Failed to read commit message: {exc}") from exc
