"""Tests for the CLI main module."""

import io
import json
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from tagstream import __version__
from tagstream.cli.main import (
    CLIConfig,
    FileTokenizer,
    create_argument_parser,
    format_results,
    main,
)
from tagstream.shared.config import ConfigError


def write_temp(content, suffix=".txt"):
    """Write content to a named temporary file and return its path."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=suffix, delete=False,
                                     encoding="utf-8") as f:
        f.write(content)
        return Path(f.name)


class TestCLIConfig:
    """Test CLI configuration management."""

    def test_default_config(self):
        """Test default configuration values."""
        config = CLIConfig()
        assert config.output_format == "json"
        assert config.tokenizer_config.tags is None

    def test_config_from_file(self):
        """Test loading configuration from file."""
        path = write_temp(json.dumps({
            "tags": ["if", "each"],
            "chunk_size": 64,
            "output_format": "text",
        }), suffix=".json")
        try:
            config = CLIConfig.from_file(path)
            assert config.output_format == "text"
            assert config.tokenizer_config.tags == frozenset({"if", "each"})
            assert config.tokenizer_config.chunk_size == 64
        finally:
            path.unlink()

    def test_config_from_invalid_json(self):
        """Test that unparsable files raise ConfigError."""
        path = write_temp("{not json", suffix=".json")
        try:
            with pytest.raises(ConfigError, match="Could not load config file"):
                CLIConfig.from_file(path)
        finally:
            path.unlink()

    def test_config_must_be_object(self):
        """Test that a non-object JSON document is rejected."""
        path = write_temp("[1, 2]", suffix=".json")
        try:
            with pytest.raises(ConfigError, match="must contain a JSON object"):
                CLIConfig.from_file(path)
        finally:
            path.unlink()

    def test_config_missing_file(self):
        """Test that a missing file raises ConfigError."""
        with pytest.raises(ConfigError):
            CLIConfig.from_file(Path("/nonexistent/tagstream.json"))


class TestFileTokenizer:
    """Test per-file processing."""

    def test_process_file(self):
        """Test tokenizing a single file."""
        path = write_temp('Hi {@user id="7"/}!')
        try:
            record = FileTokenizer(CLIConfig()).process(str(path))
            assert record["file"] == str(path)
            assert record["success"] is True
            assert record["error"] is None
            assert [event["type"] for event in record["events"]] == ["text", "tag", "text", "end"]
        finally:
            path.unlink()

    def test_process_stdin(self, monkeypatch):
        """Test that '-' reads standard input."""
        monkeypatch.setattr("sys.stdin", io.StringIO("a{@b/}"))
        record = FileTokenizer(CLIConfig()).process("-")
        assert record["events"][1]["name"] == "b"

    def test_process_stdin_uses_configured_encoding(self, monkeypatch, capsys):
        """Test that standard input is decoded with the configured encoding."""
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(b"caf\xe9 {@x/}")))
        assert main(["tokenize", "-", "--encoding", "latin-1", "--format", "jsonl"]) == 0
        events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert events[0]["text"] == "caf\u00e9 "
        assert events[1]["name"] == "x"

    def test_stdin_invalid_bytes_are_replaced(self, monkeypatch, capsys):
        """Test that undecodable standard input does not abort the run."""
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(b"caf\xe9 {@x/}")))
        assert main(["tokenize", "-", "--format", "jsonl"]) == 0
        events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert events[0]["text"] == "caf\ufffd "
        assert events[1]["name"] == "x"

    def test_process_all_records_missing_files(self):
        """Test that unreadable files become failed records."""
        records = FileTokenizer(CLIConfig()).process_all(["/nonexistent/input.txt"])
        assert len(records) == 1
        assert records[0]["success"] is False
        assert records[0]["events"] == []
        assert records[0]["error"]


class TestArgumentParser:
    """Test command-line argument parsing."""

    def test_tokenize_arguments(self):
        """Test parsing of tokenize options."""
        parser = create_argument_parser()
        args = parser.parse_args([
            "tokenize", "a.txt", "b.txt", "--tags", "if,each",
            "--chunk-size", "16", "--format", "jsonl", "-o", "out.jsonl",
        ])
        assert args.command == "tokenize"
        assert args.paths == ["a.txt", "b.txt"]
        assert args.tags == "if,each"
        assert args.chunk_size == 16
        assert args.format == "jsonl"
        assert args.output == Path("out.jsonl")

    def test_benchmark_defaults(self):
        """Test benchmark option defaults."""
        args = create_argument_parser().parse_args(["benchmark"])
        assert args.runs == 5
        assert args.scale == 1000

    def test_invalid_format(self):
        """Test that unknown formats are rejected."""
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args(["tokenize", "a.txt", "--format", "xml"])

    def test_version(self, capsys):
        """Test the version flag."""
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args(["--version"])
        assert __version__ in capsys.readouterr().out


class TestFormatResults:
    """Test output formatting."""

    RECORDS = [{
        "file": "doc.txt",
        "success": True,
        "error": None,
        "events": [
            {"type": "text", "text": "Hi "},
            {"type": "tag", "name": "user", "attributes": {"id": "7"}},
            {"type": "end"},
        ],
    }]

    def test_json(self):
        """Test JSON output."""
        assert json.loads(format_results(self.RECORDS, "json")) == self.RECORDS

    def test_jsonl(self):
        """Test one JSON object per event."""
        lines = format_results(self.RECORDS, "jsonl").splitlines()
        assert len(lines) == 3
        assert json.loads(lines[1]) == {
            "type": "tag", "name": "user", "attributes": {"id": "7"}, "file": "doc.txt",
        }

    def test_text(self):
        """Test human-readable output."""
        output = format_results(self.RECORDS, "text")
        assert output.splitlines() == [
            "✓ doc.txt",
            "   text 'Hi '",
            "   tag  user id='7'",
            "   end",
        ]

    def test_text_with_error(self):
        """Test that errors are listed in text output."""
        records = [{"file": "bad.txt", "success": False, "error": "boom", "events": []}]
        assert format_results(records, "text").splitlines() == [
            "✗ bad.txt",
            "   Error: boom",
        ]


class TestMain:
    """Test the main entry point."""

    def test_no_command(self, capsys):
        """Test that running without a command prints help."""
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_tokenize_json(self, capsys):
        """Test tokenizing a file to JSON on stdout."""
        path = write_temp("Hello {@name first/}!")
        try:
            assert main(["tokenize", str(path)]) == 0
            records = json.loads(capsys.readouterr().out)
            assert records[0]["summary"]["tag_count"] == 1
            assert records[0]["events"][1]["attributes"] == {"first": "first"}
        finally:
            path.unlink()

    def test_tokenize_with_whitelist(self, capsys):
        """Test that --tags limits recognized tags."""
        path = write_temp("{@a/}{@b/}")
        try:
            assert main(["tokenize", str(path), "--tags", "b", "--format", "jsonl"]) == 0
            events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
            assert events[0] == {"type": "text", "text": "{@a/}", "file": str(path)}
            assert events[1]["name"] == "b"
        finally:
            path.unlink()

    def test_tokenize_malformed_file(self, capsys):
        """Test exit code 1 when a file holds a malformed tag."""
        path = write_temp("broken {@tag}")
        try:
            assert main(["tokenize", str(path), "--format", "text"]) == 1
            output = capsys.readouterr().out
            assert "✗" in output
            assert "Malformed tag" in output
        finally:
            path.unlink()

    def test_malformed_tag_details_in_json(self, capsys):
        """Test that JSON output keeps the malformed tag's name and character."""
        path = write_temp("broken {@tag}")
        try:
            assert main(["tokenize", str(path)]) == 1
            diagnostic = json.loads(capsys.readouterr().out)[0]["diagnostics"][0]
            assert diagnostic["severity"] == "ERROR"
            assert diagnostic["details"] == {"tag_name": "tag", "character": "}"}
            assert diagnostic["position"] == {"line": 1, "column": 13, "offset": 12}
        finally:
            path.unlink()

    def test_tokenize_missing_file(self, capsys):
        """Test exit code 1 for unreadable input."""
        assert main(["tokenize", "/nonexistent/input.txt"]) == 1

    def test_tokenize_to_output_file(self, capsys):
        """Test writing results to a file."""
        path = write_temp("{@x/}")
        with tempfile.TemporaryDirectory() as tmp_dir:
            output_path = Path(tmp_dir) / "out.json"
            try:
                assert main(["tokenize", str(path), "-o", str(output_path)]) == 0
                captured = capsys.readouterr()
                assert captured.out == ""
                assert "Results written to" in captured.err
                records = json.loads(output_path.read_text())
                assert records[0]["events"][0]["name"] == "x"
            finally:
                path.unlink()

    def test_invalid_chunk_size_is_config_error(self, capsys):
        """Test exit code 2 for invalid configuration overrides."""
        path = write_temp("text")
        try:
            assert main(["tokenize", str(path), "--chunk-size", "0"]) == 2
            assert "Configuration error" in capsys.readouterr().err
        finally:
            path.unlink()

    def test_config_file_with_unknown_keys(self, capsys):
        """Test exit code 2 for unknown configuration keys."""
        config_path = write_temp(json.dumps({"bogus": True}), suffix=".json")
        path = write_temp("text")
        try:
            assert main(["tokenize", str(path), "--config", str(config_path)]) == 2
        finally:
            path.unlink()
            config_path.unlink()

    def test_benchmark_command(self, capsys):
        """Test the benchmark command prints a report."""
        with patch("tagstream.tokenization.benchmarks.TokenizationBenchmark") as mock_benchmark:
            suite = mock_benchmark.return_value.run_benchmark.return_value
            suite.results = []
            suite.generate_report.return_value = {"total_results": 0}

            assert main(["benchmark", "--runs", "2", "--scale", "10"]) == 0

        mock_benchmark.assert_called_once_with(benchmark_runs=2, scale=10)
        assert json.loads(capsys.readouterr().out) == {"total_results": 0}
