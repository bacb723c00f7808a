"""Data models for revision analysis."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class FileStatus(str, Enum):
    """GitHub file statuses from a commit comparison."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    RENAMED = "renamed"
    COPIED = "copied"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


class ChangedFile(BaseModel):
    """One file touched between the base and head revisions."""

    filename: str
    status: FileStatus = FileStatus.MODIFIED


class ComplexityMetrics(BaseModel):
    """Oracle output for one file's text at one revision.

    `score` is on the oracle's native scale: 0-100, higher means simpler code.
    """

    total_lines: int
    dependencies: int = 0
    score: float = Field(ge=0.0, le=100.0)
    cyclomatic: int = 0
    halstead_volume: float = 0.0
    maintainability: float = 0.0


class FileAnalysisResult(BaseModel):
    """Before/after metrics for one changed file.

    Unsupported files carry no metrics at all. A supported file always has
    `metrics`; `previous_metrics` is missing when the file has no base revision.
    """

    filename: str
    extension: str | None = None
    is_flow: bool = False
    metrics: ComplexityMetrics | None = None
    previous_metrics: ComplexityMetrics | None = None

    @model_validator(mode="after")
    def _previous_requires_current(self) -> FileAnalysisResult:
        if self.metrics is None and self.previous_metrics is not None:
            raise ValueError(f"{self.filename}: previous metrics without current metrics")
        return self

    @property
    def analyzed(self) -> bool:
        return self.metrics is not None


class RunOutcome(BaseModel):
    """Summary of one triggering event's run."""

    event: str
    repository: str
    pull_number: int
    files_changed: int = 0
    files_analyzed: int = 0
    posted: bool = False
    comment_id: int | None = None
