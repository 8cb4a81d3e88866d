"""Chunk sources that feed text into the tag tokenizer."""

from .stream import ChunkReader, InputType, iter_chunks

__all__ = [
    "ChunkReader",
    "InputType",
    "iter_chunks",
]
