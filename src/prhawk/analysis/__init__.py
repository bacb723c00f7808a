"""Diff-aware complexity analysis for PRHawk."""

from prhawk.analysis.extensions import ExtensionInfo, classify, is_supported
from prhawk.analysis.models import (
    ChangedFile,
    ComplexityMetrics,
    FileAnalysisResult,
    FileStatus,
    RunOutcome,
)
from prhawk.analysis.oracle import ComplexityOracle, TreeSitterOracle, create_oracle
from prhawk.analysis.pipeline import analyze_files, decode_content
from prhawk.analysis.scoring import ComplexityDelta, NormalizedScore, delta, normalize

__all__ = [
    "ChangedFile",
    "ComplexityDelta",
    "ComplexityMetrics",
    "ComplexityOracle",
    "ExtensionInfo",
    "FileAnalysisResult",
    "FileStatus",
    "NormalizedScore",
    "RunOutcome",
    "TreeSitterOracle",
    "analyze_files",
    "classify",
    "create_oracle",
    "decode_content",
    "delta",
    "is_supported",
    "normalize",
]
