"""rat CLI: record and restore snapshots of a working directory."""

from ._helpers import main  # noqa: F401  entry point

# Import command modules to register Click commands with the main group.
from . import _basic, _refs  # noqa: F401
