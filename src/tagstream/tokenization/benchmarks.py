"""Throughput benchmarking for tag tokenization.

Runs the tokenizer over generated documents at several chunk sizes, so that
regressions in the per-character state machine or in chunk handling show up
as changes in characters per second.
"""

import gc
import statistics
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import psutil

from tagstream.shared import get_logger
from tagstream.shared.config import TokenizerConfig

from .api import tokenize

DEFAULT_CHUNK_SIZES = (16, 1024, 65536)
REGRESSION_THRESHOLD = 0.05


@dataclass
class BenchmarkResult:
    """Result of a single benchmark run."""

    test_case: str
    chunk_size: int
    processing_time_ms: float
    memory_used_mb: float
    characters_processed: int
    events_emitted: int
    success: bool
    error_message: Optional[str] = None

    @property
    def characters_per_second(self) -> float:
        """Calculate characters processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_processed * 1000.0) / self.processing_time_ms

    @property
    def events_per_second(self) -> float:
        """Calculate events emitted per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.events_emitted * 1000.0) / self.processing_time_ms

    @property
    def key(self) -> str:
        return f"{self.test_case}@{self.chunk_size}"


@dataclass
class BenchmarkSuite:
    """Collection of benchmark results with statistical analysis."""

    results: List[BenchmarkResult] = field(default_factory=list)
    suite_name: str = "Tag Tokenization Benchmark"
    timestamp: float = field(default_factory=time.time)

    def add_result(self, result: BenchmarkResult) -> None:
        self.results.append(result)

    def get_results_by_test_case(self, test_case: str) -> List[BenchmarkResult]:
        return [r for r in self.results if r.test_case == test_case]

    def get_result(self, key: str) -> Optional[BenchmarkResult]:
        return next((r for r in self.results if r.key == key), None)

    def get_statistics(self, metric: str) -> Dict[str, float]:
        """Get min/max/mean/median/stdev of a metric over successful results."""
        values = [
            getattr(result, metric) for result in self.results if result.success
        ]
        if not values:
            return {}

        return {
            "min": min(values),
            "max": max(values),
            "mean": statistics.mean(values),
            "median": statistics.median(values),
            "stdev": statistics.stdev(values) if len(values) > 1 else 0.0,
            "count": len(values)
        }

    def generate_report(self) -> Dict[str, Any]:
        """Generate a JSON-compatible benchmark report."""
        return {
            "suite_name": self.suite_name,
            "timestamp": self.timestamp,
            "total_results": len(self.results),
            "summary": {
                "characters_per_second": self.get_statistics("characters_per_second"),
                "memory_used_mb": self.get_statistics("memory_used_mb"),
            },
            "detailed_results": {
                result.key: {
                    "processing_time_ms": result.processing_time_ms,
                    "memory_used_mb": result.memory_used_mb,
                    "characters_per_second": result.characters_per_second,
                    "events_per_second": result.events_per_second,
                    "success": result.success,
                    "error": result.error_message,
                }
                for result in self.results
            },
        }


class TokenizationBenchmark:
    """Tokenizer throughput benchmark over generated documents."""

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        warmup_runs: int = 1,
        benchmark_runs: int = 5,
        chunk_sizes: Optional[List[int]] = None,
        scale: int = 1000
    ) -> None:
        """Initialize benchmark.

        Args:
            correlation_id: Optional correlation ID for tracking
            warmup_runs: Number of untimed runs per case
            benchmark_runs: Number of timed runs averaged per case
            chunk_sizes: Chunk sizes to feed each document with
            scale: Repetition count for the generated documents
        """
        self.correlation_id = correlation_id
        self.warmup_runs = warmup_runs
        self.benchmark_runs = benchmark_runs
        self.chunk_sizes = list(chunk_sizes or DEFAULT_CHUNK_SIZES)
        self.logger = get_logger(__name__, correlation_id, "benchmark")
        self.test_cases = self._create_test_cases(scale)

    def _create_test_cases(self, scale: int) -> Dict[str, str]:
        return {
            "plain_text": "Lorem ipsum dolor sit amet, consectetur elit.\n" * scale,
            "tag_dense": "".join(
                f'{{@item id="{i}"/}}{{@sep/}}' for i in range(scale)
            ),
            "attribute_heavy": "".join(
                f'row {i}: {{@cell a="{i}" b="{i * 2}" c=x{i} hidden selected/}}\n'
                for i in range(scale)
            ),
            "near_miss": "{x} {@ } {{@@}} {@!bang} {not a tag}\n" * scale,
        }

    def _measure_memory_usage(self) -> float:
        """Get current memory usage in MB."""
        process = psutil.Process()
        return process.memory_info().rss / 1024 / 1024

    def _run_once(self, test_case: str, content: str, chunk_size: int) -> BenchmarkResult:
        config = TokenizerConfig(chunk_size=chunk_size, correlation_id=self.correlation_id)

        gc.collect()
        memory_before = self._measure_memory_usage()
        start_time = time.perf_counter()

        result = tokenize(content, config=config)

        processing_time = (time.perf_counter() - start_time) * 1000
        memory_used = max(0.0, self._measure_memory_usage() - memory_before)

        return BenchmarkResult(
            test_case=test_case,
            chunk_size=chunk_size,
            processing_time_ms=processing_time,
            memory_used_mb=memory_used,
            characters_processed=len(content),
            events_emitted=result.event_count,
            success=result.success,
            error_message=str(result.error) if result.error else None
        )

    def run_benchmark(self) -> BenchmarkSuite:
        """Run every test case at every chunk size and average the timed runs."""
        suite = BenchmarkSuite()

        self.logger.info(
            "Starting benchmark suite",
            extra={
                "test_cases": len(self.test_cases),
                "chunk_sizes": self.chunk_sizes,
                "benchmark_runs": self.benchmark_runs,
            }
        )

        for test_case, content in self.test_cases.items():
            for chunk_size in self.chunk_sizes:
                for _ in range(self.warmup_runs):
                    self._run_once(test_case, content, chunk_size)

                runs = [
                    self._run_once(test_case, content, chunk_size)
                    for _ in range(self.benchmark_runs)
                ]
                successful = [r for r in runs if r.success]
                if successful:
                    suite.add_result(BenchmarkResult(
                        test_case=test_case,
                        chunk_size=chunk_size,
                        processing_time_ms=statistics.mean(
                            r.processing_time_ms for r in successful
                        ),
                        memory_used_mb=statistics.mean(r.memory_used_mb for r in successful),
                        characters_processed=len(content),
                        events_emitted=successful[0].events_emitted,
                        success=True
                    ))
                elif runs:
                    suite.add_result(runs[0])

        self.logger.info(
            "Benchmark suite completed",
            extra={
                "total_results": len(suite.results),
                "suite_duration_s": time.time() - suite.timestamp,
            }
        )
        return suite

    def compare_performance(
        self,
        baseline_suite: BenchmarkSuite,
        current_suite: BenchmarkSuite
    ) -> Dict[str, Any]:
        """Compare processing times of two suites case by case.

        Changes beyond 5% in either direction are reported as improvements or
        regressions.
        """
        comparison: Dict[str, Any] = {
            "baseline_timestamp": baseline_suite.timestamp,
            "current_timestamp": current_suite.timestamp,
            "improvements": {},
            "regressions": {},
        }

        for baseline in baseline_suite.results:
            current = current_suite.get_result(baseline.key)
            if not (current and baseline.success and current.success):
                continue
            if baseline.processing_time_ms <= 0:
                continue

            time_change = (
                (current.processing_time_ms - baseline.processing_time_ms)
                / baseline.processing_time_ms
            )
            entry = {
                "change_percent": time_change * 100,
                "baseline_time_ms": baseline.processing_time_ms,
                "current_time_ms": current.processing_time_ms,
            }
            if time_change < -REGRESSION_THRESHOLD:
                comparison["improvements"][baseline.key] = entry
            elif time_change > REGRESSION_THRESHOLD:
                comparison["regressions"][baseline.key] = entry

        comparison["summary"] = {
            "total_improvements": len(comparison["improvements"]),
            "total_regressions": len(comparison["regressions"]),
            "has_regressions": bool(comparison["regressions"]),
        }
        return comparison
