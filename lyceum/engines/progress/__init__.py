"""Learner progress through the lecture workflow."""

from lyceum.engines.progress.progress_service import (
    CompletionStatus,
    LectureProgress,
    ProgressService,
    ProgressUpdate,
)

__all__ = [
    "CompletionStatus",
    "LectureProgress",
    "ProgressService",
    "ProgressUpdate",
]
