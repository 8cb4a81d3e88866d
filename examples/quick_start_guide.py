#!/usr/bin/env python3
"""
Quick Start Guide for tagstream.

Walks through the three levels of the API: one-call tokenization, the
streaming generator, and the push-based tokenizer with a custom observer.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tagstream import (
    MalformedTagError,
    StreamingTokenizer,
    TagTokenizer,
    TokenizerConfig,
    TokenizerObserver,
    tokenize,
)

TEMPLATE = (
    'Dear {@name format="full"/},\n'
    "{@if paid/}Thanks for your payment!{@else/}Your invoice is due.{@end/}\n"
    "Prices use {braces} and @signs freely.\n"
)


def level_one_example():
    """Tokenize a whole string in one call."""
    print("🚀 Level 1: tokenize()")
    print("-" * 30)

    result = tokenize(TEMPLATE, tags="name, if, else, end")
    print(f"✅ Success: {result.success}")
    print(f"📊 Events: {result.event_count} ({len(result.tags)} tags)")
    for tag in result.tags:
        print(f"  🏷️  {tag.name} {tag.attributes}")
    print(f"📝 Literal text: {result.text!r}")


def level_two_example():
    """Stream events while chunks arrive."""
    print("\n🌊 Level 2: StreamingTokenizer")
    print("-" * 30)

    chunks = ["Hello {@us", 'er id="42"', "/}, welcome back!"]
    stream = StreamingTokenizer(TokenizerConfig(correlation_id="quick-start"))
    for event in stream.tokenize_stream(chunks):
        print(f"  {event.type.name:<4} {event.value!r}")


class TagCounter(TokenizerObserver):
    """Observer that only counts tags by name."""

    def __init__(self):
        self.counts = {}

    def on_tag(self, tag):
        self.counts[tag.name] = self.counts.get(tag.name, 0) + 1


def level_three_example():
    """Drive the state machine directly with a custom observer."""
    print("\n⚙️  Level 3: TagTokenizer + observer")
    print("-" * 30)

    counter = TagCounter()
    tokenizer = TagTokenizer(counter)
    for character in TEMPLATE:
        tokenizer.write(character)
    tokenizer.close()
    print(f"✅ Tag counts: {counter.counts}")

    print("\n❌ Malformed input")
    try:
        TagTokenizer().write("{@name}")
    except MalformedTagError as e:
        print(f"  Caught: {e} (character {e.character!r})")


if __name__ == "__main__":
    level_one_example()
    level_two_example()
    level_three_example()
