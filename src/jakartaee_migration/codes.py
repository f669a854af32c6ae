"""Outcome and artifact-kind constants for migration runs.

These constants prevent stringly-typed outcomes and ensure client code
compares against the values the orchestrator actually reports.
"""

from enum import Enum


class OutcomeCode(str, Enum):
    """Overall outcome of a migration run."""

    SUCCESS = "SUCCESS"
    # Something below the root failed; the rest of the tree was still migrated
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    # The destination root could not be created; nothing was migrated
    DIRECTORY_FAILURE = "DIRECTORY_FAILURE"


class ArtifactKind(str, Enum):
    """What the orchestrator found at a source path."""

    DIRECTORY = "directory"
    ARCHIVE = "archive"
    FILE = "file"
