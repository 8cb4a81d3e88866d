"""Main CLI entry point for the tagstream command-line tool.

Tokenizes files (or standard input) and prints the resulting text and tag
events, and runs the throughput benchmark.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from tagstream import __version__
from tagstream.shared.config import ConfigError, TokenizerConfig
from tagstream.shared.logging import get_logger
from tagstream.tokenization.api import (
    EventType,
    TokenizationResult,
    tokenize,
    tokenize_file,
)

STDIN_PATH = "-"


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.tokenizer_config = TokenizerConfig.default()
        self.output_format = "json"

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file holds TokenizerConfig fields plus an optional
        ``output_format``.

        Raises:
            ConfigError: The file is missing, not JSON, or holds invalid values
        """
        config = cls()
        try:
            data = json.loads(config_path.read_text())
        except (OSError, ValueError) as e:
            raise ConfigError(f"Could not load config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must contain a JSON object")

        config.output_format = data.pop("output_format", config.output_format)
        config.tokenizer_config = TokenizerConfig.from_dict(data)
        return config


class FileTokenizer:
    """Runs the tokenizer over CLI inputs and shapes the results for output."""

    def __init__(self, config: CLIConfig) -> None:
        self.config = config
        self.logger = get_logger(__name__, None, "cli_processor")

    def process(self, path: str) -> Dict[str, Any]:
        """Tokenize one path (``-`` reads standard input)."""
        if path == STDIN_PATH:
            # Raw bytes, so config.encoding and replacement decoding apply
            source = getattr(sys.stdin, "buffer", sys.stdin)
            result = tokenize(source, config=self.config.tokenizer_config)
        else:
            result = tokenize_file(path, config=self.config.tokenizer_config)
        self.logger.debug(
            "Tokenized input",
            extra={"file": path, "events": result.event_count, "success": result.success}
        )
        return self._to_record(path, result)

    def process_all(self, paths: List[str]) -> List[Dict[str, Any]]:
        records = []
        for path in paths:
            try:
                records.append(self.process(path))
            except OSError as e:
                self.logger.error("Failed to read input", extra={"file": path}, exc_info=False)
                records.append({"file": path, "success": False, "error": str(e), "events": []})
        return records

    @staticmethod
    def _to_record(path: str, result: TokenizationResult) -> Dict[str, Any]:
        record = result.to_dict()
        record["file"] = path
        record["success"] = result.success
        record["error"] = record["summary"]["error"]
        return record


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="tagstream",
        description="Streaming tokenizer for inline {@tag attr=\"value\"/} markup"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    tokenize_parser = subparsers.add_parser("tokenize", help="Tokenize files")
    tokenize_parser.add_argument(
        "paths",
        nargs="+",
        help="Files to tokenize ('-' reads standard input)"
    )
    tokenize_parser.add_argument(
        "--tags", "-t",
        help="Comma-separated whitelist of accepted tag names"
    )
    tokenize_parser.add_argument(
        "--chunk-size",
        type=int,
        help="Characters (or bytes) per chunk"
    )
    tokenize_parser.add_argument(
        "--encoding",
        help="Input encoding (default: utf-8)"
    )
    tokenize_parser.add_argument(
        "--format", "-f",
        choices=["json", "jsonl", "text"],
        help="Output format (default: json)"
    )
    tokenize_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    tokenize_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON configuration file"
    )

    benchmark_parser = subparsers.add_parser("benchmark", help="Measure tokenizer throughput")
    benchmark_parser.add_argument(
        "--runs",
        type=int,
        default=5,
        help="Timed runs per case (default: 5)"
    )
    benchmark_parser.add_argument(
        "--scale",
        type=int,
        default=1000,
        help="Size multiplier for generated documents (default: 1000)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def format_results(records: List[Dict[str, Any]], format_type: str) -> str:
    """Format tokenization records for output."""
    if format_type == "jsonl":
        lines = []
        for record in records:
            for event in record.get("events", []):
                lines.append(json.dumps(dict(event, file=record["file"])))
        return "\n".join(lines)

    if format_type == "text":
        lines = []
        for record in records:
            status = "✓" if record.get("success") else "✗"
            lines.append(f"{status} {record['file']}")
            for event in record.get("events", []):
                kind = event["type"]
                if kind == EventType.TEXT.name.lower():
                    lines.append(f"   text {event['text']!r}")
                elif kind == EventType.TAG.name.lower():
                    attributes = " ".join(
                        f"{name}={value!r}" for name, value in event["attributes"].items()
                    )
                    lines.append(f"   tag  {event['name']} {attributes}".rstrip())
                else:
                    lines.append("   end")
            if record.get("error"):
                lines.append(f"   Error: {record['error']}")
        return "\n".join(lines)

    return json.dumps(records, indent=2, ensure_ascii=False)


def cmd_tokenize(args: argparse.Namespace) -> int:
    """Handle tokenize command."""
    config = CLIConfig.from_file(args.config) if args.config else CLIConfig()

    overrides: Dict[str, Any] = {}
    if args.tags is not None:
        overrides["tags"] = args.tags
    if args.chunk_size is not None:
        overrides["chunk_size"] = args.chunk_size
    if args.encoding is not None:
        overrides["encoding"] = args.encoding
    if overrides:
        config.tokenizer_config = config.tokenizer_config.override(**overrides)
    if args.format:
        config.output_format = args.format

    records = FileTokenizer(config).process_all(args.paths)
    output = format_results(records, config.output_format)

    if args.output:
        args.output.write_text(output + "\n")
        print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(output)

    return 0 if all(record.get("success") for record in records) else 1


def cmd_benchmark(args: argparse.Namespace) -> int:
    """Handle benchmark command."""
    from tagstream.tokenization.benchmarks import TokenizationBenchmark

    benchmark = TokenizationBenchmark(benchmark_runs=args.runs, scale=args.scale)
    suite = benchmark.run_benchmark()
    print(json.dumps(suite.generate_report(), indent=2))
    return 0 if all(result.success for result in suite.results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    try:
        if args.command == "tokenize":
            return cmd_tokenize(args)
        if args.command == "benchmark":
            return cmd_benchmark(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
