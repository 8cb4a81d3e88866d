"""Command-line interface for tagstream.

Tokenizes files or standard input and prints the event stream, and runs the
throughput benchmark.
"""

from .main import main

__all__ = ["main"]
