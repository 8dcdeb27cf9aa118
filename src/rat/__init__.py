from .nest import Nest, NEST_DIRNAME, DEFAULT_BRANCH
from .commit import Commit
from .history import LogEntry
from .refs import Direct, Symbolic, HeadValue
from .exceptions import (
    RatError,
    StorageIOError,
    NestNotFoundError,
    NestExistsError,
    CorruptHistoryError,
    BranchExistsError,
    CommitNotFoundError,
    EmptyCommitMessageError,
    NoEditorConfiguredError,
)

__all__ = [
    "Nest", "NEST_DIRNAME", "DEFAULT_BRANCH",
    "Commit", "LogEntry", "Direct", "Symbolic", "HeadValue",
    "RatError", "StorageIOError", "NestNotFoundError", "NestExistsError",
    "CorruptHistoryError", "BranchExistsError", "CommitNotFoundError",
    "EmptyCommitMessageError", "NoEditorConfiguredError",
]
