"""Revision analysis - score every changed file at base and head.

Each changed file is an independent unit of work: fetch both revisions,
decode them, and run the oracle on supported sources. Units run concurrently
and the results keep the order of the comparison's file list.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from typing import Awaitable, Callable, TypeVar

from prhawk.analysis.extensions import ExtensionInfo, classify
from prhawk.analysis.models import (
    ChangedFile,
    ComplexityMetrics,
    FileAnalysisResult,
    FileStatus,
)
from prhawk.analysis.oracle import ComplexityOracle
from prhawk.exceptions import ContentUnavailableError, FetchError, OracleError

logger = logging.getLogger(__name__)

# (path, ref) -> base64-encoded file content
ContentFetcher = Callable[[str, str], Awaitable[str]]

T = TypeVar("T")


def decode_content(encoded: str, path: str = "") -> str:
    """Decode base64 file content from the contents API into UTF-8 text."""
    try:
        return base64.b64decode(encoded).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise FetchError(f"Could not decode content of {path or 'file'}: {e}") from e


async def analyze_files(
    changed_files: list[ChangedFile],
    base_ref: str,
    head_ref: str,
    fetch_content: ContentFetcher,
    oracle: ComplexityOracle,
    fetch_unsupported: bool = True,
) -> list[FileAnalysisResult]:
    """Analyze every changed file between `base_ref` and `head_ref`.

    Returns one result per changed file, in input order. The first failure
    cancels every other file's unit of work before it propagates.

    Raises:
        FetchError: If any revision of a scored file could not be fetched.
        OracleError: If the oracle fails on a supported file.
    """
    return await _gather_or_cancel([
        _analyze_file(
            changed,
            base_ref,
            head_ref,
            fetch_content,
            oracle,
            fetch_unsupported,
        )
        for changed in changed_files
    ])


async def _gather_or_cancel(coros: list[Awaitable[T]]) -> list[T]:
    """Await all coroutines; on the first error cancel and reap the rest."""
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def _analyze_file(
    changed: ChangedFile,
    base_ref: str,
    head_ref: str,
    fetch_content: ContentFetcher,
    oracle: ComplexityOracle,
    fetch_unsupported: bool,
) -> FileAnalysisResult:
    info = classify(changed.filename)
    result = FileAnalysisResult(
        filename=changed.filename,
        extension=info.extension,
        is_flow=info.is_flow,
    )

    # Nothing exists at head to score
    if changed.status == FileStatus.REMOVED:
        return result
    if not info.supported and not fetch_unsupported:
        return result

    has_base = changed.status != FileStatus.ADDED

    if not info.supported:
        # Content is never decoded, so submodules and oversized files are fine
        await _gather_or_cancel([
            _fetch_unscored(fetch_content, changed.filename, head_ref),
            _fetch_unscored(fetch_content, changed.filename, base_ref) if has_base
            else _no_content(),
        ])
        if info.is_flow:
            logger.debug("Skipping flow-typed file %s", changed.filename)
        return result

    head_encoded, base_encoded = await _gather_or_cancel([
        fetch_content(changed.filename, head_ref),
        fetch_content(changed.filename, base_ref) if has_base else _no_content(),
    ])

    result.metrics = await _score(oracle, decode_content(head_encoded, changed.filename), info)
    if base_encoded is not None:
        result.previous_metrics = await _score(
            oracle, decode_content(base_encoded, changed.filename), info
        )
    return result


async def _fetch_unscored(fetch_content: ContentFetcher, path: str, ref: str) -> None:
    try:
        await fetch_content(path, ref)
    except ContentUnavailableError as e:
        logger.debug("Ignoring unscored content: %s", e)


async def _no_content() -> None:
    return None


async def _score(oracle: ComplexityOracle, text: str, info: ExtensionInfo) -> ComplexityMetrics:
    # CPU-bound, so it runs on a worker thread
    try:
        return await asyncio.to_thread(
            oracle.score, text, info.extension, info.is_typescript, False
        )
    except OracleError:
        raise
    except Exception as e:
        raise OracleError(f"Complexity oracle failed on .{info.extension} source: {e}") from e
