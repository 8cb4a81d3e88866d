"""Streaming tag tokenizer built on a single-pass character state machine.

The tokenizer scans plain text for inline tags of the form
``{@name attr="value" flag/}`` and reports literal text runs and tags to an
observer as soon as they are recognized. Input may be fed in arbitrary chunks;
all state lives on the tokenizer, so a chunk may end anywhere (mid-name,
mid-attribute, between ``{`` and ``@``) and the next chunk resumes exactly
where the previous one stopped.

Near-miss tag syntax is replayed as literal text rather than backtracking over
the input: the only characters that ever need replaying (``{``, ``{@name``)
are still held in the accumulators.
"""

import codecs
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, FrozenSet, Optional, Union

from tagstream.shared.config import TagsOption, TokenizerConfig
from tagstream.shared.errors import (
    MalformedTagError,
    TagStreamError,
    WriteAfterCloseError,
)
from tagstream.shared.logging import get_logger

OPEN_DELIMITER = "{"
TAG_SENTINEL = "@"
CLOSE_SENTINEL = "/"
CLOSE_DELIMITER = "}"
VALUE_SEPARATOR = "="
QUOTE = '"'

Chunk = Union[str, bytes, None]


class TokenizerState(Enum):
    """State machine states for tag tokenization."""

    BEGIN = auto()          # Initial state, falls through to TEXT
    TEXT = auto()           # Accumulating literal text
    OPEN_CHAR = auto()      # Saw "{", waiting for "@"
    OPEN_TAG = auto()       # Accumulating a candidate tag name
    ATTRIB = auto()         # Between attributes
    ATTRIB_NAME = auto()    # Accumulating an attribute name
    ATTRIB_VALUE = auto()   # Accumulating an attribute value
    CLOSE_TAG = auto()      # Saw "/", waiting for "}"


class CharSet:
    """ASCII character classes consulted by the state machine."""

    WHITESPACE: FrozenSet[str] = frozenset("\n\r\t ")
    ALPHANUM: FrozenSet[str] = frozenset(
        "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
        "abcdefghijklmnopqrstuvwxyz"
        "1234567890._"
    )


@dataclass
class TextPosition:
    """Position of a character in the overall stream."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column, "offset": self.offset}


@dataclass
class Tag:
    """A recognized tag: its name and a snapshot of its attributes.

    ``position`` points at the tag's opening ``{`` and does not take part in
    equality comparisons.
    """

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    position: Optional[TextPosition] = field(default=None, compare=False, repr=False)

    def to_dict(self) -> Dict[str, object]:
        return {"name": self.name, "attributes": dict(self.attributes)}


class TokenizerObserver:
    """Receiver for tokenizer events.

    Subclass and override the callbacks of interest; the defaults discard
    everything. Callbacks run synchronously inside ``write()``/``close()`` in
    document order.
    """

    def on_text(self, text: str) -> None:
        """Called with each non-empty literal text run."""

    def on_tag(self, tag: Tag) -> None:
        """Called with each recognized tag."""

    def on_end(self) -> None:
        """Called when the stream is ended or closed."""

    def on_error(self, error: TagStreamError) -> None:
        """Called right before ``error`` is raised to the caller."""


class CallbackObserver(TokenizerObserver):
    """Observer that forwards events to plain callables."""

    def __init__(
        self,
        on_text: Optional[Callable[[str], None]] = None,
        on_tag: Optional[Callable[[Tag], None]] = None,
        on_end: Optional[Callable[[], None]] = None,
        on_error: Optional[Callable[[TagStreamError], None]] = None,
    ) -> None:
        self._on_text = on_text
        self._on_tag = on_tag
        self._on_end = on_end
        self._on_error = on_error

    def on_text(self, text: str) -> None:
        if self._on_text is not None:
            self._on_text(text)

    def on_tag(self, tag: Tag) -> None:
        if self._on_tag is not None:
            self._on_tag(tag)

    def on_end(self) -> None:
        if self._on_end is not None:
            self._on_end()

    def on_error(self, error: TagStreamError) -> None:
        if self._on_error is not None:
            self._on_error(error)


class TagTokenizer:
    """Chunk-fed tokenizer for ``{@name attr="value"/}`` tags.

    Example:
        >>> from tagstream.tokenization.api import EventCollector
        >>> collector = EventCollector()
        >>> tokenizer = TagTokenizer(collector)
        >>> _ = tokenizer.write("Hi {@us").write('er id="7"/}!').close()
        >>> collector.texts
        ['Hi ', '!']
        >>> collector.tags
        [Tag(name='user', attributes={'id': '7'})]

    Not safe for concurrent writes; one tokenizer serves one stream.
    """

    def __init__(
        self,
        observer: Optional[TokenizerObserver] = None,
        config: Optional[TokenizerConfig] = None,
        tags: TagsOption = None,
    ) -> None:
        """Initialize the tokenizer.

        Args:
            observer: Receiver of text, tag, end and error notifications
            config: Tokenizer configuration; defaults to accepting every tag
            tags: Shortcut for ``config.tags``; overrides the config when given
        """
        config = config or TokenizerConfig()
        if tags is not None:
            config = config.override(tags=tags)

        self.config = config
        self.tags: Optional[FrozenSet[str]] = config.tags
        self.observer = observer or TokenizerObserver()
        self.correlation_id = config.correlation_id
        self.logger = get_logger(__name__, config.correlation_id, "tag_tokenizer")

        self.closed = False
        self.last_error: Optional[TagStreamError] = None
        self.reset()

    def reset(self) -> None:
        """Return the state machine to BEGIN with empty accumulators.

        The closed flag is left untouched.
        """
        self.state = TokenizerState.BEGIN
        self.text_buffer = ""
        self.tag_name = ""
        self.attribute_name = ""
        self.attribute_value = ""
        self.attributes: Dict[str, str] = {}
        self._decoder = codecs.getincrementaldecoder(self.config.encoding)(errors="replace")
        self._line = 1
        self._column = 1
        self._offset = 0
        self._tag_start: Optional[TextPosition] = None

    @property
    def position(self) -> TextPosition:
        """Position of the next character to be scanned."""
        return TextPosition(self._line, self._column, self._offset)

    @property
    def pending_text(self) -> str:
        """Text accumulated since the last flush."""
        return self.text_buffer

    @property
    def is_closed(self) -> bool:
        return self.closed

    def write(self, chunk: Chunk) -> "TagTokenizer":
        """Feed a chunk of input through the state machine.

        Args:
            chunk: Text to scan, bytes to decode with ``config.encoding``, or
                None to signal end of input (same as ``end()``)

        Returns:
            This tokenizer, so calls can be chained

        Raises:
            WriteAfterCloseError: The tokenizer is closed; nothing is scanned
            MalformedTagError: A named tag hit an invalid character; the rest
                of the chunk is not scanned
        """
        if self.closed:
            self.logger.warning(
                "Write attempted after close",
                extra={
                    "chunk_length": (
                        len(chunk) if isinstance(chunk, (str, bytes, bytearray)) else 0
                    )
                }
            )
            self._fail(WriteAfterCloseError())

        if chunk is None:
            return self.end()

        if isinstance(chunk, (bytes, bytearray)):
            chunk = self._decoder.decode(bytes(chunk))
        elif not isinstance(chunk, str):
            raise TypeError(
                f"chunk must be str, bytes or None, not {type(chunk).__name__}"
            )

        for char in chunk:
            self._process_character(char)
            self._update_position(char)

        return self

    def resume(self) -> "TagTokenizer":
        """Reopen a closed tokenizer.

        The state machine continues from wherever it stopped, including a
        partially scanned tag, unless ``config.reset_on_resume`` is set, in
        which case it restarts from BEGIN with empty accumulators.
        """
        self.closed = False
        if self.config.reset_on_resume:
            self.reset()
        self.logger.debug(
            "Tokenizer resumed",
            extra={"state": self.state.name, "reset": self.config.reset_on_resume}
        )
        return self

    def end(self) -> "TagTokenizer":
        """Mark the stream finished and notify the observer.

        Pending text and partial tags are discarded, not emitted; use
        ``close()`` to deliver trailing text.
        """
        self.closed = True
        if self.text_buffer or self.state not in (TokenizerState.BEGIN, TokenizerState.TEXT):
            self.logger.debug(
                "Stream ended with unflushed input",
                extra={
                    "state": self.state.name,
                    "pending_text_length": len(self.text_buffer),
                }
            )
        self.observer.on_end()
        return self

    def close(self) -> "TagTokenizer":
        """Flush pending text as a final text event, then ``end()``.

        Raises:
            WriteAfterCloseError: The tokenizer is already closed
        """
        if self.closed:
            self._fail(WriteAfterCloseError())

        tail = self._decoder.decode(b"", final=True)
        if tail:
            self.write(tail)

        self._flush_text()
        return self.end()

    def _process_character(self, char: str) -> None:
        """Process a single character through the state machine."""
        if self.state == TokenizerState.TEXT:
            self._process_text(char)
        elif self.state == TokenizerState.OPEN_TAG:
            self._process_open_tag(char)
        elif self.state == TokenizerState.ATTRIB:
            self._process_attrib(char)
        elif self.state == TokenizerState.ATTRIB_NAME:
            self._process_attrib_name(char)
        elif self.state == TokenizerState.ATTRIB_VALUE:
            self._process_attrib_value(char)
        elif self.state == TokenizerState.CLOSE_TAG:
            self._process_close_tag(char)
        elif self.state == TokenizerState.OPEN_CHAR:
            self._process_open_char(char)
        else:
            self._process_begin(char)

    def _update_position(self, char: str) -> None:
        self._offset += 1
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

    def _process_begin(self, char: str) -> None:
        self.text_buffer = ""
        self.state = TokenizerState.TEXT
        self._process_text(char)

    def _process_text(self, char: str) -> None:
        if char == OPEN_DELIMITER:
            self._tag_start = self.position
            self.tag_name = ""
            self.attribute_name = ""
            self.attribute_value = ""
            self.attributes = {}
            self.state = TokenizerState.OPEN_CHAR
        else:
            self.text_buffer += char

    def _process_open_char(self, char: str) -> None:
        if char == TAG_SENTINEL:
            self.state = TokenizerState.OPEN_TAG
        else:
            # Not a tag after all; replay the held "{"
            self._revert_to_text(OPEN_DELIMITER + char)

    def _process_open_tag(self, char: str) -> None:
        if char in CharSet.ALPHANUM:
            self.tag_name += char

        elif char in CharSet.WHITESPACE:
            if self.config.accepts(self.tag_name):
                self._flush_text()
                self.state = TokenizerState.ATTRIB
            else:
                self._revert_to_text(OPEN_DELIMITER + TAG_SENTINEL + self.tag_name + char)

        elif char == CLOSE_SENTINEL:
            if self.config.accepts(self.tag_name):
                self._flush_text()
                self.state = TokenizerState.CLOSE_TAG
            else:
                self._revert_to_text(OPEN_DELIMITER + TAG_SENTINEL + self.tag_name + char)

        elif self.tag_name:
            self._malformed(char)

        else:
            # "{@" followed by punctuation is plain text
            self._revert_to_text(OPEN_DELIMITER + TAG_SENTINEL + char)

    def _process_attrib(self, char: str) -> None:
        if char in CharSet.ALPHANUM:
            self.attribute_name = char
            self.attribute_value = ""
            self.state = TokenizerState.ATTRIB_NAME

        elif char in CharSet.WHITESPACE:
            pass

        elif char == CLOSE_SENTINEL:
            self._flush_text()
            self.state = TokenizerState.CLOSE_TAG

        else:
            self._malformed(char)

    def _process_attrib_name(self, char: str) -> None:
        if char in CharSet.ALPHANUM:
            self.attribute_name += char

        elif char in CharSet.WHITESPACE:
            self._commit_boolean_attribute()
            self.state = TokenizerState.ATTRIB

        elif char == VALUE_SEPARATOR:
            self.state = TokenizerState.ATTRIB_VALUE

        elif char == CLOSE_SENTINEL:
            self._commit_boolean_attribute()
            self.state = TokenizerState.CLOSE_TAG

        else:
            # Lossy recovery: the tag under construction is dropped and the
            # stray character starts a new text run.
            self.logger.debug(
                "Abandoned tag on invalid attribute name character",
                extra={"tag_name": self.tag_name, "character": repr(char)}
            )
            self.text_buffer += char
            self.state = TokenizerState.TEXT

    def _process_attrib_value(self, char: str) -> None:
        if char == CLOSE_SENTINEL:
            self.attributes[self.attribute_name] = self.attribute_value
            self.state = TokenizerState.CLOSE_TAG

        elif char == QUOTE or char in CharSet.WHITESPACE:
            # An empty value means this is an opening quote (or leading
            # whitespace); only a non-empty value is terminated here.
            if self.attribute_value:
                self.attributes[self.attribute_name] = self.attribute_value
                self.state = TokenizerState.ATTRIB

        else:
            self.attribute_value += char

    def _process_close_tag(self, char: str) -> None:
        if char == CLOSE_DELIMITER:
            self._emit_tag()
            self.state = TokenizerState.TEXT

    def _commit_boolean_attribute(self) -> None:
        if self.attribute_name:
            self.attributes[self.attribute_name] = self.attribute_name

    def _revert_to_text(self, literal: str) -> None:
        self.text_buffer += literal
        self.state = TokenizerState.TEXT

    def _flush_text(self) -> None:
        if self.text_buffer:
            text = self.text_buffer
            self.text_buffer = ""
            self.observer.on_text(text)

    def _emit_tag(self) -> None:
        if self.tag_name:
            tag = Tag(
                name=self.tag_name,
                attributes=dict(self.attributes),
                position=self._tag_start,
            )
            self.observer.on_tag(tag)

    def _malformed(self, char: str) -> None:
        error = MalformedTagError(
            character=char,
            position=self.position,
            tag_name=self.tag_name,
        )
        if self.logger.is_enabled_for(logging.WARNING):
            self.logger.warning(
                "Malformed tag",
                extra={
                    "tag_name": self.tag_name,
                    "character": repr(char),
                    "state": self.state.name,
                    "position": f"{self._line}:{self._column}",
                }
            )
        self._fail(error)

    def _fail(self, error: TagStreamError) -> None:
        self.last_error = error
        self.observer.on_error(error)
        raise error
