"""Tests for the revision analysis pipeline."""

from __future__ import annotations

import asyncio
import threading

import pytest

from prhawk.analysis.models import ChangedFile, ComplexityMetrics, FileAnalysisResult
from prhawk.analysis.pipeline import analyze_files, decode_content
from prhawk.exceptions import ContentUnavailableError, FetchError, OracleError

from tests.fakes import BASE_SHA, HEAD_SHA, FakeOracle, encode


def make_fetcher(contents: dict[tuple[str, str], str], calls: list | None = None):
    async def fetch(path: str, ref: str) -> str:
        if calls is not None:
            calls.append((path, ref))
        if (path, ref) not in contents:
            raise FetchError(f"{path}@{ref} not found", status_code=404)
        return encode(contents[(path, ref)])

    return fetch


class ThreadRecordingOracle(FakeOracle):
    """Records which thread each score call ran on."""

    def __init__(self) -> None:
        super().__init__()
        self.threads: list[int] = []

    def score(self, text, extension, is_typescript, flow=False):
        self.threads.append(threading.get_ident())
        return super().score(text, extension, is_typescript, flow)


class TestDecode:
    def test_decode_utf8(self):
        assert decode_content(encode("const π = 3.14;\n")) == "const π = 3.14;\n"

    def test_decode_garbage(self):
        with pytest.raises(FetchError):
            decode_content("!!!not base64!!!", "a.js")


class TestAnalyzeFiles:
    @pytest.mark.asyncio
    async def test_supported_file_scored_at_both_revisions(self, fake_oracle: FakeOracle):
        fetch = make_fetcher({
            ("src/a.ts", HEAD_SHA): "// score: 70\nconst a = 1;\n",
            ("src/a.ts", BASE_SHA): "// score: 50\n",
        })
        results = await analyze_files(
            [ChangedFile(filename="src/a.ts")], BASE_SHA, HEAD_SHA, fetch, fake_oracle
        )

        assert len(results) == 1
        result = results[0]
        assert result.analyzed
        assert result.metrics.score == 70
        assert result.metrics.total_lines == 2
        assert result.previous_metrics.score == 50
        # Extension and typescript flag are forwarded, flow never enabled
        assert {(ext, ts, flow) for _, ext, ts, flow in fake_oracle.calls} == {("ts", True, False)}

    @pytest.mark.asyncio
    async def test_unsupported_file_fetched_but_not_scored(self, fake_oracle: FakeOracle):
        calls: list = []
        fetch = make_fetcher({
            ("README.md", HEAD_SHA): "# hi",
            ("README.md", BASE_SHA): "# hello",
        }, calls)
        results = await analyze_files(
            [ChangedFile(filename="README.md")], BASE_SHA, HEAD_SHA, fetch, fake_oracle
        )

        assert results[0].metrics is None
        assert results[0].previous_metrics is None
        assert not results[0].analyzed
        assert sorted(calls) == [("README.md", BASE_SHA), ("README.md", HEAD_SHA)]
        assert fake_oracle.calls == []

    @pytest.mark.asyncio
    async def test_unsupported_fetch_can_be_disabled(self, fake_oracle: FakeOracle):
        calls: list = []
        results = await analyze_files(
            [ChangedFile(filename="logo.png")],
            BASE_SHA,
            HEAD_SHA,
            make_fetcher({}, calls),
            fake_oracle,
            fetch_unsupported=False,
        )
        assert not results[0].analyzed
        assert calls == []

    @pytest.mark.asyncio
    async def test_flow_file_passes_through_with_flag(self, fake_oracle: FakeOracle):
        fetch = make_fetcher({
            ("types.js.flow", HEAD_SHA): "// @flow\n",
            ("types.js.flow", BASE_SHA): "// @flow\n",
        })
        results = await analyze_files(
            [ChangedFile(filename="types.js.flow")], BASE_SHA, HEAD_SHA, fetch, fake_oracle
        )
        assert results[0].is_flow
        assert not results[0].analyzed
        assert fake_oracle.calls == []

    @pytest.mark.asyncio
    async def test_added_file_has_no_previous_metrics(self, fake_oracle: FakeOracle):
        calls: list = []
        fetch = make_fetcher({("new.js", HEAD_SHA): "// score: 90\n"}, calls)
        results = await analyze_files(
            [ChangedFile(filename="new.js", status="added")],
            BASE_SHA,
            HEAD_SHA,
            fetch,
            fake_oracle,
        )
        assert results[0].metrics.score == 90
        assert results[0].previous_metrics is None
        assert calls == [("new.js", HEAD_SHA)]

    @pytest.mark.asyncio
    async def test_removed_file_is_not_fetched(self, fake_oracle: FakeOracle):
        calls: list = []
        results = await analyze_files(
            [ChangedFile(filename="old.js", status="removed")],
            BASE_SHA,
            HEAD_SHA,
            make_fetcher({}, calls),
            fake_oracle,
        )
        assert not results[0].analyzed
        assert calls == []

    @pytest.mark.asyncio
    async def test_order_matches_input(self, fake_oracle: FakeOracle):
        names = ["z.js", "a.ts", "m.md", "b.tsx"]
        contents = {}
        for name in names:
            contents[(name, HEAD_SHA)] = "// score: 10\n"
            contents[(name, BASE_SHA)] = "// score: 20\n"

        async def slow_fetch(path: str, ref: str) -> str:
            # Earlier files finish last
            await asyncio.sleep(0.001 * (len(names) - names.index(path)))
            return encode(contents[(path, ref)])

        results = await analyze_files(
            [ChangedFile(filename=n) for n in names], BASE_SHA, HEAD_SHA, slow_fetch, fake_oracle
        )
        assert [r.filename for r in results] == names

    @pytest.mark.asyncio
    async def test_missing_base_revision_aborts(self, fake_oracle: FakeOracle):
        fetch = make_fetcher({("renamed.js", HEAD_SHA): "// score: 10\n"})
        with pytest.raises(FetchError):
            await analyze_files(
                [ChangedFile(filename="renamed.js", status="renamed")],
                BASE_SHA,
                HEAD_SHA,
                fetch,
                fake_oracle,
            )

    @pytest.mark.asyncio
    async def test_oracle_failure_aborts(self):
        oracle = FakeOracle(fail_on="boom")
        fetch = make_fetcher({
            ("a.js", HEAD_SHA): "boom\n",
            ("a.js", BASE_SHA): "fine\n",
        })
        with pytest.raises(OracleError):
            await analyze_files([ChangedFile(filename="a.js")], BASE_SHA, HEAD_SHA, fetch, oracle)

    @pytest.mark.asyncio
    async def test_unavailable_unsupported_content_is_skipped(self, fake_oracle: FakeOracle):
        contents = {
            ("src/a.js", HEAD_SHA): "// score: 70\n",
            ("src/a.js", BASE_SHA): "// score: 50\n",
        }

        async def fetch(path: str, ref: str) -> str:
            if path == "package-lock.json":
                raise ContentUnavailableError(f"{path}@{ref} has unsupported encoding 'none'")
            if path == "vendor/lib":
                raise ContentUnavailableError(f"{path}@{ref} is a submodule, not a file")
            return encode(contents[(path, ref)])

        changed = [
            ChangedFile(filename="package-lock.json"),
            ChangedFile(filename="vendor/lib"),
            ChangedFile(filename="src/a.js"),
        ]
        results = await analyze_files(changed, BASE_SHA, HEAD_SHA, fetch, fake_oracle)

        assert [r.analyzed for r in results] == [False, False, True]
        assert results[2].metrics.score == 70

    @pytest.mark.asyncio
    async def test_unavailable_supported_content_aborts(self, fake_oracle: FakeOracle):
        async def fetch(path: str, ref: str) -> str:
            raise ContentUnavailableError(f"{path}@{ref} has unsupported encoding 'none'")

        with pytest.raises(ContentUnavailableError):
            await analyze_files(
                [ChangedFile(filename="bundle.js")], BASE_SHA, HEAD_SHA, fetch, fake_oracle
            )

    @pytest.mark.asyncio
    async def test_failure_cancels_pending_fetches(self, fake_oracle: FakeOracle):
        finished: list = []
        before = asyncio.all_tasks()

        async def fetch(path: str, ref: str) -> str:
            if path == "gone.js":
                raise FetchError(f"{path}@{ref} not found", status_code=404)
            await asyncio.sleep(0.05)
            finished.append((path, ref))
            return encode("// score: 10\n")

        changed = [
            ChangedFile(filename="slow.js"),
            ChangedFile(filename="gone.js"),
            ChangedFile(filename="notes.md"),
        ]
        with pytest.raises(FetchError):
            await analyze_files(changed, BASE_SHA, HEAD_SHA, fetch, fake_oracle)

        # Nothing is left running once the error surfaces
        assert asyncio.all_tasks() - before == set()
        await asyncio.sleep(0.1)
        assert finished == []
        assert fake_oracle.calls == []

    @pytest.mark.asyncio
    async def test_scoring_runs_off_the_event_loop_thread(self):
        oracle = ThreadRecordingOracle()
        fetch = make_fetcher({
            ("a.js", HEAD_SHA): "// score: 10\n",
            ("a.js", BASE_SHA): "// score: 20\n",
        })
        await analyze_files([ChangedFile(filename="a.js")], BASE_SHA, HEAD_SHA, fetch, oracle)

        assert len(oracle.threads) == 2
        assert threading.get_ident() not in oracle.threads

    @pytest.mark.asyncio
    async def test_empty_change_list(self, fake_oracle: FakeOracle):
        assert await analyze_files([], BASE_SHA, HEAD_SHA, make_fetcher({}), fake_oracle) == []


class TestFileAnalysisResult:
    def test_previous_requires_current(self):
        metrics = ComplexityMetrics(total_lines=1, score=50)
        with pytest.raises(ValueError):
            FileAnalysisResult(filename="a.js", previous_metrics=metrics)

    def test_score_range_enforced(self):
        with pytest.raises(ValueError):
            ComplexityMetrics(total_lines=1, score=101)
