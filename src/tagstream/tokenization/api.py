"""Event collection and streaming front end for the tag tokenizer.

``TagTokenizer`` pushes events to an observer. This module provides the
observer most callers want (``EventCollector``), a generator interface over an
iterable of chunks (``StreamingTokenizer``), and one-call helpers that return
a ``TokenizationResult``.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    Generator,
    Iterable,
    List,
    Optional,
    Union,
)

from tagstream.character import ChunkReader, InputType
from tagstream.shared.config import TagsOption, TokenizerConfig
from tagstream.shared.errors import MalformedTagError, TagStreamError
from tagstream.shared.logging import get_logger
from tagstream.shared.result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)

from .tokenizer import Chunk, Tag, TagTokenizer, TokenizerObserver

ProgressCallback = Callable[[int, int], None]  # (characters_processed, events_emitted)


class EventType(Enum):
    """Kinds of events delivered by the tokenizer."""

    TEXT = auto()
    TAG = auto()
    END = auto()


@dataclass
class TokenEvent:
    """One tokenizer event in document order."""

    type: EventType
    value: Union[str, Tag, None] = None

    @property
    def text(self) -> Optional[str]:
        return self.value if self.type == EventType.TEXT else None  # type: ignore[return-value]

    @property
    def tag(self) -> Optional[Tag]:
        return self.value if self.type == EventType.TAG else None  # type: ignore[return-value]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output."""
        data: Dict[str, Any] = {"type": self.type.name.lower()}
        if self.type == EventType.TEXT:
            data["text"] = self.value
        elif self.type == EventType.TAG and isinstance(self.value, Tag):
            data.update(self.value.to_dict())
            if self.value.position is not None:
                data["position"] = self.value.position.to_dict()
        return data


class EventCollector(TokenizerObserver):
    """Observer that records every event and error in order."""

    def __init__(self) -> None:
        self.events: List[TokenEvent] = []
        self.errors: List[TagStreamError] = []
        self.ended = False

    def on_text(self, text: str) -> None:
        self.events.append(TokenEvent(EventType.TEXT, text))

    def on_tag(self, tag: Tag) -> None:
        self.events.append(TokenEvent(EventType.TAG, tag))

    def on_end(self) -> None:
        self.ended = True
        self.events.append(TokenEvent(EventType.END))

    def on_error(self, error: TagStreamError) -> None:
        self.errors.append(error)

    @property
    def texts(self) -> List[str]:
        return [event.value for event in self.events if event.type == EventType.TEXT]  # type: ignore[misc]

    @property
    def tags(self) -> List[Tag]:
        return [event.value for event in self.events if event.type == EventType.TAG]  # type: ignore[misc]

    def drain(self) -> List[TokenEvent]:
        """Return the recorded events and forget them."""
        events, self.events = self.events, []
        return events


@dataclass
class TokenizationResult:
    """Events from a complete run plus diagnostics and throughput metrics."""

    events: List[TokenEvent] = field(default_factory=list)
    success: bool = True
    error: Optional[TagStreamError] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    @property
    def event_count(self) -> int:
        return len(self.events)

    @property
    def texts(self) -> List[str]:
        """Literal text runs, in order."""
        return [event.value for event in self.events if event.type == EventType.TEXT]  # type: ignore[misc]

    @property
    def tags(self) -> List[Tag]:
        """Recognized tags, in order."""
        return [event.value for event in self.events if event.type == EventType.TAG]  # type: ignore[misc]

    @property
    def text(self) -> str:
        """All literal text concatenated, tags removed."""
        return "".join(self.texts)

    @property
    def ended(self) -> bool:
        return any(event.type == EventType.END for event in self.events)

    @property
    def has_errors(self) -> bool:
        return any(d.severity == DiagnosticSeverity.ERROR for d in self.diagnostics)

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add a diagnostic entry to the result."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id
        ))

    def summary(self) -> Dict[str, Any]:
        """Get a compact summary of the run."""
        return {
            "success": self.success,
            "event_count": self.event_count,
            "text_count": len(self.texts),
            "tag_count": len(self.tags),
            "characters_processed": self.performance.characters_processed,
            "chunks_processed": self.performance.chunks_processed,
            "processing_time_ms": self.performance.processing_time_ms,
            "error": str(self.error) if self.error else None,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary(),
            "events": [event.to_dict() for event in self.events],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


class StreamingTokenizer:
    """Generator interface over an iterable of chunks."""

    def __init__(
        self,
        config: Optional[TokenizerConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize streaming tokenizer.

        Args:
            config: Configuration for tokenization behavior
            correlation_id: Overrides ``config.correlation_id`` when given
        """
        config = config or TokenizerConfig()
        if correlation_id is not None:
            config = config.override(correlation_id=correlation_id)
        self.config = config
        self.correlation_id = config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "streaming_tokenizer")
        self._cancelled = False

    def tokenize_stream(
        self,
        chunks: Iterable[Chunk],
        progress_callback: Optional[ProgressCallback] = None
    ) -> Generator[TokenEvent, None, TokenizationResult]:
        """Stream events from a sequence of chunks.

        All chunks go through one ``TagTokenizer``; the events each chunk
        triggers are yielded before the next chunk is read. Bytes chunks are
        decoded with ``config.encoding``. At end of input, or at a None chunk,
        the tokenizer is closed, so trailing text is delivered.

        Yields:
            TokenEvent objects in document order

        Returns:
            TokenizationResult with every event; ``success`` is False when a
            malformed tag stopped the stream or the stream was cancelled
        """
        start_time = time.time()
        collector = EventCollector()
        tokenizer = TagTokenizer(collector, self.config)
        result = TokenizationResult(correlation_id=self.correlation_id)
        metrics = result.performance

        self.logger.debug(
            "Starting streaming tokenization",
            extra={"whitelist_size": len(self.config.tags) if self.config.tags else 0}
        )

        try:
            for chunk in chunks:
                if self._cancelled or chunk is None:
                    break

                tokenizer.write(chunk)
                metrics.characters_processed = tokenizer.position.offset
                metrics.chunks_processed += 1

                for event in collector.drain():
                    result.events.append(event)
                    yield event

                if progress_callback:
                    progress_callback(metrics.characters_processed, len(result.events))

            if not self._cancelled:
                tokenizer.close()
                metrics.characters_processed = tokenizer.position.offset
                for event in collector.drain():
                    result.events.append(event)
                    yield event

        except MalformedTagError as e:
            metrics.characters_processed = tokenizer.position.offset
            self.logger.warning(
                "Streaming tokenization stopped on malformed tag",
                extra={"error": str(e), "tag_name": e.tag_name}
            )
            result.success = False
            result.error = e
            result.add_diagnostic(
                DiagnosticSeverity.ERROR,
                e.message,
                "tag_tokenizer",
                position=e.position.to_dict() if e.position else None,
                details={"tag_name": e.tag_name, "character": e.character}
            )
            # Events emitted before the failing character still count
            for event in collector.drain():
                result.events.append(event)
                yield event

        if self._cancelled:
            result.success = False
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                "Tokenization cancelled before end of input",
                "streaming_tokenizer"
            )

        metrics.processing_time_ms = (time.time() - start_time) * 1000
        metrics.events_emitted = len(result.events)

        self.logger.debug(
            "Streaming tokenization completed",
            extra={
                "events": metrics.events_emitted,
                "characters": metrics.characters_processed,
                "processing_time_ms": metrics.processing_time_ms,
                "cancelled": self._cancelled,
            }
        )
        return result

    def tokenize(
        self,
        chunks: Iterable[Chunk],
        progress_callback: Optional[ProgressCallback] = None
    ) -> TokenizationResult:
        """Consume ``tokenize_stream`` and return its result."""
        stream = self.tokenize_stream(chunks, progress_callback)
        while True:
            try:
                next(stream)
            except StopIteration as stop:
                return stop.value

    def cancel(self) -> None:
        """Stop reading further chunks."""
        self._cancelled = True
        self.logger.info("Streaming tokenization cancelled")

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled


def _resolve_config(
    config: Optional[TokenizerConfig], tags: TagsOption
) -> TokenizerConfig:
    config = config or TokenizerConfig()
    if tags is not None:
        config = config.override(tags=tags)
    return config


def tokenize_chunks(
    chunks: Iterable[Chunk],
    tags: TagsOption = None,
    config: Optional[TokenizerConfig] = None
) -> TokenizationResult:
    """Tokenize an iterable of text chunks.

    Args:
        chunks: Text or bytes chunks in stream order; None ends the input
        tags: Optional whitelist (list or comma-separated string)
        config: Optional configuration; ``tags`` overrides its whitelist

    Returns:
        TokenizationResult with events, diagnostics and metrics
    """
    return StreamingTokenizer(_resolve_config(config, tags)).tokenize(chunks)


def tokenize(
    source: InputType,
    tags: TagsOption = None,
    config: Optional[TokenizerConfig] = None
) -> TokenizationResult:
    """Tokenize a string, bytes or file object in ``config.chunk_size`` pieces.

    Example:
        >>> result = tokenize('Hello {@name first/}!')
        >>> result.texts, result.tags[0].attributes
        (['Hello ', '!'], {'first': 'first'})
    """
    config = _resolve_config(config, tags)
    return tokenize_chunks(ChunkReader(config).read(source), config=config)


def tokenize_file(
    path: Union[str, Path],
    tags: TagsOption = None,
    config: Optional[TokenizerConfig] = None
) -> TokenizationResult:
    """Tokenize a file, decoding it with ``config.encoding``."""
    config = _resolve_config(config, tags)
    with Path(path).open("rb") as file_obj:
        return tokenize_chunks(ChunkReader(config).read(file_obj), config=config)
