"""Shared utilities for tagstream.

Configuration objects, exception types, diagnostics, and correlation-aware
logging used by every layer of the package.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    TokenizerConfig,
    parse_tag_whitelist,
)
from .errors import (
    MalformedTagError,
    TagStreamError,
    WriteAfterCloseError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "CorrelationLogger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "MalformedTagError",
    "PerformanceMetrics",
    "TagStreamError",
    "TokenizerConfig",
    "WriteAfterCloseError",
    "get_logger",
    "parse_tag_whitelist",
]
