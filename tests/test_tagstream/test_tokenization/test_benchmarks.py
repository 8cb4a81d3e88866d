"""Tests for the tokenizer throughput benchmark."""

from unittest.mock import MagicMock, patch

import pytest

from tagstream.tokenization.benchmarks import (
    BenchmarkResult,
    BenchmarkSuite,
    TokenizationBenchmark,
)


def make_result(test_case="plain_text", chunk_size=16, time_ms=100.0, success=True):
    return BenchmarkResult(
        test_case=test_case,
        chunk_size=chunk_size,
        processing_time_ms=time_ms,
        memory_used_mb=1.0,
        characters_processed=1000,
        events_emitted=10,
        success=success,
    )


class TestBenchmarkResult:
    """Test BenchmarkResult derived values."""

    def test_rates(self):
        result = make_result(time_ms=500.0)
        assert result.characters_per_second == 2000.0
        assert result.events_per_second == 20.0
        assert result.key == "plain_text@16"

    def test_zero_time(self):
        result = make_result(time_ms=0.0)
        assert result.characters_per_second == 0.0
        assert result.events_per_second == 0.0


class TestBenchmarkSuite:
    """Test BenchmarkSuite queries and reporting."""

    def test_lookup(self):
        suite = BenchmarkSuite()
        suite.add_result(make_result("a", 16))
        suite.add_result(make_result("a", 64))
        suite.add_result(make_result("b", 16))

        assert len(suite.get_results_by_test_case("a")) == 2
        assert suite.get_result("b@16").test_case == "b"
        assert suite.get_result("c@16") is None

    def test_statistics_skip_failures(self):
        suite = BenchmarkSuite()
        suite.add_result(make_result(time_ms=100.0))
        suite.add_result(make_result(chunk_size=64, time_ms=300.0))
        suite.add_result(make_result(chunk_size=128, time_ms=1.0, success=False))

        stats = suite.get_statistics("processing_time_ms")
        assert stats["min"] == 100.0
        assert stats["max"] == 300.0
        assert stats["mean"] == 200.0
        assert stats["count"] == 2

    def test_statistics_empty(self):
        assert BenchmarkSuite().get_statistics("processing_time_ms") == {}

    def test_generate_report(self):
        suite = BenchmarkSuite(suite_name="unit")
        suite.add_result(make_result())
        report = suite.generate_report()
        assert report["suite_name"] == "unit"
        assert report["total_results"] == 1
        assert "plain_text@16" in report["detailed_results"]
        assert report["summary"]["characters_per_second"]["count"] == 1


class TestTokenizationBenchmark:
    """Test running and comparing benchmarks."""

    @pytest.fixture
    def benchmark(self):
        return TokenizationBenchmark(
            correlation_id="bench",
            warmup_runs=0,
            benchmark_runs=1,
            chunk_sizes=[8, 64],
            scale=3,
        )

    def test_generated_cases(self, benchmark):
        assert set(benchmark.test_cases) == {
            "plain_text", "tag_dense", "attribute_heavy", "near_miss",
        }

    def test_run_benchmark(self, benchmark):
        suite = benchmark.run_benchmark()
        assert len(suite.results) == 8
        assert all(result.success for result in suite.results)

        tag_dense = suite.get_result("tag_dense@8")
        # Six tags plus the end event
        assert tag_dense.events_emitted == 7

    def test_near_miss_case_has_no_tags(self, benchmark):
        suite = benchmark.run_benchmark()
        for result in suite.get_results_by_test_case("near_miss"):
            # One text run plus the end event
            assert result.events_emitted == 2

    def test_measure_memory_usage(self, benchmark):
        process = MagicMock()
        process.memory_info.return_value.rss = 50 * 1024 * 1024
        with patch("tagstream.tokenization.benchmarks.psutil.Process", return_value=process):
            assert benchmark._measure_memory_usage() == 50.0

    def test_compare_performance(self, benchmark):
        baseline = BenchmarkSuite()
        baseline.add_result(make_result("fast", time_ms=100.0))
        baseline.add_result(make_result("slow", time_ms=100.0))
        baseline.add_result(make_result("same", time_ms=100.0))
        baseline.add_result(make_result("gone", time_ms=100.0))

        current = BenchmarkSuite()
        current.add_result(make_result("fast", time_ms=50.0))
        current.add_result(make_result("slow", time_ms=200.0))
        current.add_result(make_result("same", time_ms=102.0))

        comparison = benchmark.compare_performance(baseline, current)
        assert list(comparison["improvements"]) == ["fast@16"]
        assert list(comparison["regressions"]) == ["slow@16"]
        assert comparison["regressions"]["slow@16"]["change_percent"] == 100.0
        assert comparison["summary"] == {
            "total_improvements": 1,
            "total_regressions": 1,
            "has_regressions": True,
        }
