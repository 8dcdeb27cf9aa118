"""Exceptions for rat."""


class RatError(Exception):
    """Base class for every error raised by rat."""


class StorageIOError(RatError, OSError):
    """A filesystem read, write or create inside the nest or work tree failed.

    The original :class:`OSError` is chained as ``__cause__``.
    """


class NestNotFoundError(StorageIOError, FileNotFoundError):
    """No nest exists at the requested location."""


class NestExistsError(StorageIOError, FileExistsError):
    """``init`` was asked to create a nest that already exists."""


class CorruptHistoryError(RatError):
    """Stored history is inconsistent.

    Raised when HEAD or a parent pointer names a commit whose metadata file
    is missing, when metadata does not start with a ``parent <hash>`` header,
    or when a snapshot directory has vanished.
    """


class BranchExistsError(RatError, KeyError):
    """A branch with the requested name already exists."""

    def __str__(self) -> str:
        # KeyError.__str__ would wrap the message in quotes
        return str(self.args[0]) if self.args else ""


class CommitNotFoundError(RatError, KeyError):
    """A hash or branch name does not refer to a stored commit."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class EmptyCommitMessageError(RatError):
    """The collected commit message was blank, so the commit was cancelled."""


class NoEditorConfiguredError(RatError):
    """Neither ``EDITOR`` nor ``VISUAL`` is set."""
