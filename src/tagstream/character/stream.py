"""Chunk sources for the streaming tokenizer.

Turns strings, byte strings and open files into a sequence of text chunks.
Byte input goes through an incremental decoder, so a multi-byte character that
straddles two reads is reassembled instead of being replaced.
"""

import codecs
from typing import BinaryIO, Generator, Iterator, Optional, TextIO, Union

from tagstream.shared.config import (
    DEFAULT_CHUNK_SIZE,
    ConfigValidationError,
    TokenizerConfig,
)
from tagstream.shared.logging import get_logger

InputType = Union[str, bytes, bytearray, BinaryIO, TextIO]


def iter_chunks(
    source: InputType,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    encoding: str = "utf-8"
) -> Iterator[str]:
    """Yield text chunks of at most ``chunk_size`` characters from ``source``.

    Args:
        source: A string, bytes, or a text or binary file object
        chunk_size: Characters (for text) or bytes (for binary) per read
        encoding: Encoding applied to byte input; undecodable bytes become U+FFFD

    Raises:
        ConfigValidationError: chunk_size is not positive
        TypeError: source is of an unsupported type
    """
    if chunk_size <= 0:
        raise ConfigValidationError("chunk_size must be > 0", field_name="chunk_size")

    if isinstance(source, str):
        return _string_chunks(source, chunk_size)
    if isinstance(source, (bytes, bytearray)):
        return _bytes_chunks(bytes(source), chunk_size, encoding)
    if hasattr(source, "read"):
        return _file_chunks(source, chunk_size, encoding)
    raise TypeError(f"Unsupported input type: {type(source).__name__}")


def _string_chunks(text: str, chunk_size: int) -> Generator[str, None, None]:
    for start in range(0, len(text), chunk_size):
        yield text[start:start + chunk_size]


def _bytes_chunks(
    data: bytes, chunk_size: int, encoding: str
) -> Generator[str, None, None]:
    decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
    for start in range(0, len(data), chunk_size):
        text = decoder.decode(data[start:start + chunk_size])
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail


def _file_chunks(
    file_obj: Union[BinaryIO, TextIO], chunk_size: int, encoding: str
) -> Generator[str, None, None]:
    decoder: Optional[codecs.IncrementalDecoder] = None
    while True:
        block = file_obj.read(chunk_size)
        if not block:
            break
        if isinstance(block, (bytes, bytearray)):
            if decoder is None:
                decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
            block = decoder.decode(bytes(block))
            if not block:
                continue
        yield block

    if decoder is not None:
        tail = decoder.decode(b"", final=True)
        if tail:
            yield tail


class ChunkReader:
    """Reads chunks according to a TokenizerConfig and counts what it read."""

    def __init__(self, config: Optional[TokenizerConfig] = None) -> None:
        self.config = config or TokenizerConfig()
        self.logger = get_logger(__name__, self.config.correlation_id, "chunk_reader")
        self.characters_read = 0
        self.chunks_read = 0

    def read(self, source: InputType) -> Generator[str, None, None]:
        """Yield chunks from ``source`` while updating the read counters."""
        self.logger.debug(
            "Reading chunks",
            extra={
                "input_type": type(source).__name__,
                "chunk_size": self.config.chunk_size,
            }
        )
        for chunk in iter_chunks(source, self.config.chunk_size, self.config.encoding):
            self.characters_read += len(chunk)
            self.chunks_read += 1
            yield chunk
