"""Exception types raised by the tag tokenizer.

Only two conditions are errors: a tag that was opened and named but then hit an
invalid character, and any write to a stream that has been closed. Everything
else that looks almost like a tag is reinterpreted as literal text.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from tagstream.tokenization.tokenizer import TextPosition


class TagStreamError(Exception):
    """Base exception for all tagstream errors."""


class MalformedTagError(TagStreamError):
    """A tag was opened and named, then interrupted by an invalid character.

    Scanning stops at the offending character; the rest of the chunk is
    dropped.
    """

    def __init__(
        self,
        message: str = "Malformed tag. Tag not closed correctly.",
        character: Optional[str] = None,
        position: Optional["TextPosition"] = None,
        tag_name: Optional[str] = None,
    ) -> None:
        self.message = message
        self.character = character
        self.position = position
        self.tag_name = tag_name

        location = ""
        if position is not None:
            location = f"{position.line}:{position.column} "
        super().__init__(f"{location}{message}")


class WriteAfterCloseError(TagStreamError):
    """Raised on write() or close() once the tokenizer is closed."""

    def __init__(self, message: str = "Cannot write after close.") -> None:
        self.message = message
        super().__init__(message)
