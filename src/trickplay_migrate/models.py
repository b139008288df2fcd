"""Core enums, constants, and type definitions for trickplay migration.

Enums:
    OperationKind -- Which batch pass is running (convert, delete). Each kind
                     has its own single-flight guard and progress log.
    Severity      -- Progress log line severity (info, success, error).

Dataclasses:
    ConversionCandidate -- One (media item, width) pair with a legacy BIF path.
    ConvertOptions      -- Conversion request flags.
    DeleteOptions       -- Deletion request flags.
    CandidateResult     -- Outcome of one candidate within a batch.
    BatchResult         -- Aggregate counts for a batch pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Iterable


class OperationKind(StrEnum):
    CONVERT = "convert"
    DELETE = "delete"


class Severity(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


# Legacy Jellyscrub artifacts
LEGACY_EXTENSION = ".bif"
LEGACY_FOLDER_NAME = "trickplay"

# Files allowed to remain in a legacy folder without blocking its removal
RESIDUAL_EXTENSIONS: frozenset[str] = frozenset({".json", ".ignore"})

VIDEO_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".mkv",
        ".mp4",
        ".m4v",
        ".avi",
        ".mov",
        ".ts",
        ".webm",
        ".wmv",
    }
)


@dataclass(frozen=True)
class ConversionCandidate:
    """A media item and one of its legacy BIF resolutions."""

    item: Any
    path: Path
    width: int


@dataclass(frozen=True)
class ConvertOptions:
    force_convert: bool = False


@dataclass(frozen=True)
class DeleteOptions:
    force_delete: bool = False
    delete_non_empty: bool = False


@dataclass
class CandidateResult:
    """Per-candidate outcome.

    ``attempted`` and ``completed`` feed the batch summary. ``error`` holds the
    message of the exception that ended the candidate, if any.
    """

    candidate: ConversionCandidate
    attempted: bool = False
    completed: bool = False
    error: str | None = None


@dataclass
class BatchResult:
    """Result summary from a convert or delete pass."""

    total: int = 0
    attempted: int = 0
    completed: int = 0
    failed: int = 0

    @classmethod
    def from_results(cls, results: Iterable[CandidateResult]) -> BatchResult:
        summary = cls()
        for result in results:
            summary.total += 1
            if result.attempted:
                summary.attempted += 1
            if result.completed:
                summary.completed += 1
            if result.error is not None or (result.attempted and not result.completed):
                summary.failed += 1
        return summary
