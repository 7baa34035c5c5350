"""
Where the program's `,` bytes come from.
"""

from __future__ import annotations

import io
import sys
from typing import BinaryIO, Iterator

from .errors import InputSourceError


def open_input_source(value: str | None) -> BinaryIO:
    """`None` or `-` is standard input; anything else is a file path."""
    if value is None or value == "-":
        return sys.stdin.buffer
    try:
        return open(value, "rb")
    except OSError as e:
        raise InputSourceError(f"failed to open file: {e}") from e


def empty_input() -> BinaryIO:
    return io.BytesIO(b"")


def iter_bytes(stream: BinaryIO) -> Iterator[int]:
    """Yield one byte at a time, reading lazily so interactive input works."""
    while True:
        chunk = stream.read(1)
        if not chunk:
            return
        yield chunk[0]
