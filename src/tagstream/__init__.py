"""tagstream: streaming tokenizer for inline ``{@tag attr="value"/}`` markup.

Scans text delivered in arbitrary chunks and reports literal text runs and
tags as soon as they are recognized, without buffering the document.

Progressive API Disclosure:
- Level 1: Simple functions - tokenize(), tokenize_chunks(), tokenize_file()
- Level 2: Streaming generator - StreamingTokenizer
- Level 3: Push-based state machine - TagTokenizer with a TokenizerObserver
"""

__version__ = "0.1.0"
__author__ = "tagstream developers"

from .shared.config import TokenizerConfig
from .shared.errors import MalformedTagError, TagStreamError, WriteAfterCloseError
from .tokenization import (
    CallbackObserver,
    EventCollector,
    EventType,
    StreamingTokenizer,
    Tag,
    TagTokenizer,
    TokenEvent,
    TokenizationResult,
    TokenizerObserver,
    tokenize,
    tokenize_chunks,
    tokenize_file,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "tokenize",
    "tokenize_chunks",
    "tokenize_file",

    # Level 2: Streaming generator
    "StreamingTokenizer",

    # Level 3: State machine and observers
    "TagTokenizer",
    "TokenizerObserver",
    "CallbackObserver",
    "EventCollector",

    # Events and results
    "EventType",
    "Tag",
    "TokenEvent",
    "TokenizationResult",

    # Configuration and errors
    "TokenizerConfig",
    "TagStreamError",
    "MalformedTagError",
    "WriteAfterCloseError",
]
