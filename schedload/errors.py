"""
Exceptions for schedload.

Only DirectiveFileError escapes to the caller during normal operation.
The other failures are isolated per line or per instruction and end up
in logs and in the ExecutionResult.
"""

from __future__ import annotations

from pathlib import Path


class SchedloadError(Exception):
    """Base class for all schedload errors."""


class DirectiveFileError(SchedloadError):
    """The directive file could not be opened or read."""

    def __init__(self, path: str | Path, reason: str = ""):
        self.path = Path(path)
        self.reason = reason
        message = f"Could not open directive file: {self.path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ArtifactNotFoundError(SchedloadError):
    """
    The host could not locate or initialize an artifact through a loader.

    Raised by LoaderHost implementations. The executor catches it and
    records a load failure for that single instruction.
    """

    def __init__(self, artifact_id: str, loader_label: str, reason: str = ""):
        self.artifact_id = artifact_id
        self.loader_label = loader_label
        self.reason = reason
        message = f"Failed to load {artifact_id} using {loader_label}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ExecutorStateError(SchedloadError):
    """A TimelineExecutor was asked to run more than once."""


class DriverStateError(SchedloadError):
    """A driver was started twice or used before it was started."""
