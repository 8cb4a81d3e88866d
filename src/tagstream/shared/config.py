"""Configuration for tag tokenization.

The tokenizer's only behavioral option is the tag-name whitelist; the remaining
fields control how input is chunked and decoded and how ``resume()`` treats a
stream that was closed mid-token.
"""

import json
import re
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Union

DEFAULT_CHUNK_SIZE = 8192

TagsOption = Union[None, str, Iterable[str]]

_TAG_DELIMITER = re.compile(r"\s*,\s*")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


def parse_tag_whitelist(tags: TagsOption) -> Optional[FrozenSet[str]]:
    """Normalize the ``tags`` option into a set of accepted tag names.

    Accepts a comma-separated string (whitespace around commas is ignored) or
    any iterable of names. Returns None when no names remain, which means every
    syntactically valid tag name is accepted.

    >>> sorted(parse_tag_whitelist("if, else ,each"))
    ['each', 'else', 'if']
    >>> parse_tag_whitelist([]) is None
    True
    """
    if tags is None:
        return None
    if isinstance(tags, str):
        names = _TAG_DELIMITER.split(tags.strip())
    else:
        names = []
        for item in tags:
            if not isinstance(item, str):
                raise ConfigValidationError(
                    f"Tag names must be strings, got {type(item).__name__}",
                    field_name="tags",
                )
            names.extend(_TAG_DELIMITER.split(item.strip()))

    whitelist = frozenset(name for name in names if name)
    return whitelist or None


@dataclass(frozen=True)
class TokenizerConfig:
    """Immutable configuration for a tag tokenizer and its chunk sources.

    Attributes:
        tags: Accepted tag names; None accepts any valid name. May be given as
            a comma-separated string or a list and is stored as a frozenset.
        reset_on_resume: When True, ``resume()`` also returns the state machine
            to its initial state with empty accumulators.
        chunk_size: Characters (or bytes) read per chunk from files and strings.
        encoding: Encoding used to decode byte sources.
        correlation_id: Optional ID attached to every log record.
    """

    tags: Optional[FrozenSet[str]] = None
    reset_on_resume: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE
    encoding: str = "utf-8"
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", parse_tag_whitelist(self.tags))

        if not isinstance(self.chunk_size, int) or self.chunk_size <= 0:
            raise ConfigValidationError(
                "chunk_size must be a positive integer",
                field_name="chunk_size",
                suggestions=[f"Use the default of {DEFAULT_CHUNK_SIZE}"],
            )
        try:
            "".encode(self.encoding)
        except LookupError as e:
            raise ConfigValidationError(
                f"Unknown encoding: {self.encoding}",
                field_name="encoding",
                suggestions=["utf-8", "latin-1"],
            ) from e

    def accepts(self, tag_name: str) -> bool:
        """Check whether a non-empty tag name passes the whitelist."""
        return bool(tag_name) and (self.tags is None or tag_name in self.tags)

    def override(self, **kwargs: Any) -> "TokenizerConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = TokenizerConfig(tags="if")
            >>> config.override(chunk_size=16).chunk_size
            16
        """
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a JSON-compatible dictionary."""
        result: Dict[str, Any] = {}
        for config_field in fields(self):
            value = getattr(self, config_field.name)
            if isinstance(value, frozenset):
                value = sorted(value)
            result[config_field.name] = value
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenizerConfig":
        """Create configuration from dictionary, rejecting unknown keys."""
        known = {config_field.name for config_field in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration keys: {', '.join(unknown)}",
                suggestions=sorted(known),
            )
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> "TokenizerConfig":
        """Create configuration from JSON string."""
        data = json.loads(json_str)
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "TokenizerConfig":
        """Accept every tag; ``resume()`` keeps the in-progress token."""
        return cls()

    @classmethod
    def strict_resume(cls, tags: TagsOption = None) -> "TokenizerConfig":
        """Configuration whose ``resume()`` discards any stale partial token."""
        return cls(tags=tags, reset_on_resume=True)
