"""Exception taxonomy for stylesweep.

Fatal errors abort a run. Per-file problems are never raised across component
boundaries; they are recorded in a WarningLog instead.
"""
from pathlib import Path


class StyleSweepError(Exception):
    """Base class for all stylesweep errors."""


class MissingRootError(StyleSweepError):
    """A required root directory does not exist."""

    def __init__(self, kind: str, path: str | Path):
        self.kind = kind
        self.path = Path(path)
        super().__init__(f"{kind} directory does not exist: {self.path}")


class NoStylesheetsError(StyleSweepError):
    """No stylesheet files were discovered under the styles root."""

    def __init__(self, root: str | Path):
        self.root = Path(root)
        super().__init__(f"No stylesheet files found under {self.root}")


class BackupError(StyleSweepError):
    """A backup copy could not be created or restored."""


class OperationCancelled(StyleSweepError):
    """The run was cancelled at a file boundary."""
