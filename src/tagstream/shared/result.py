"""Diagnostic and metric types shared by the tokenization front ends."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()      # Stream aborted, e.g. a malformed tag


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
            "position": self.position,
            "details": self.details,
            "correlation_id": self.correlation_id,
        }


@dataclass
class PerformanceMetrics:
    """Throughput counters for a tokenization run."""

    processing_time_ms: float = 0.0
    characters_processed: int = 0
    chunks_processed: int = 0
    events_emitted: int = 0

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
    def average_chunk_size(self) -> float:
        if self.chunks_processed == 0:
            return 0.0
        return self.characters_processed / self.chunks_processed
