"""Tokenization engine for tagstream.

This package provides the chunk-fed state machine that recognizes
``{@name attr="value"/}`` tags in plain text, plus the observer, event and
streaming layers built on top of it.

Key Components:
    TagTokenizer: The state machine; fed with write(), finished with close()
    TokenizerObserver: Callback interface for text, tag, end and error events
    EventCollector: Observer that records events in document order
    StreamingTokenizer: Generator interface over an iterable of chunks
    Tag: A recognized tag with a snapshot of its attributes
"""

from .api import (
    EventCollector,
    EventType,
    StreamingTokenizer,
    TokenEvent,
    TokenizationResult,
    tokenize,
    tokenize_chunks,
    tokenize_file,
)
from .tokenizer import (
    CallbackObserver,
    CharSet,
    Tag,
    TagTokenizer,
    TextPosition,
    TokenizerObserver,
    TokenizerState,
)

__all__ = [
    "CallbackObserver",
    "CharSet",
    "EventCollector",
    "EventType",
    "StreamingTokenizer",
    "Tag",
    "TagTokenizer",
    "TextPosition",
    "TokenEvent",
    "TokenizationResult",
    "TokenizerObserver",
    "TokenizerState",
    "tokenize",
    "tokenize_chunks",
    "tokenize_file",
]
