"""
Interpreter — owns a parsed Program and its tape for repeated runs.

The tape is created once and survives between runs; each run collects the
bytes the program writes and hands them back decoded as UTF-8.
"""

from __future__ import annotations

import io
import logging
from typing import Iterable

from .errors import OutputDecodeError
from .machine import RunInstance, RunStats
from .program import Program
from .stepper import NormalStepper, Stepper
from .tape import SANITY_LIMIT, Storage

logger = logging.getLogger(__name__)


class Interpreter:
    def __init__(self, code: bytes | str, limit: int = SANITY_LIMIT):
        self.source = code.encode("utf-8") if isinstance(code, str) else bytes(code)
        self.program = Program.parse(self.source)
        self.storage = Storage(limit)
        self.stats: RunStats | None = None

    def start(self, stdin: Iterable[int] = b"", stdout=None) -> RunInstance:
        """Begin a run without driving it (for debuggers that pull steps)."""
        instance = self.program.run(self.storage, stdin,
                                    stdout if stdout is not None else io.BytesIO())
        self.stats = instance.stats
        return instance

    def run(self, stdin: Iterable[int] = b"", stepper: Stepper | None = None) -> str:
        output = io.BytesIO()
        instance = self.start(stdin, output)
        stepper = stepper or NormalStepper()
        logger.debug("run %r with %s", self.program, type(stepper).__name__)
        try:
            stepper.run(instance)
        finally:
            logger.debug("run stopped after %d steps", instance.stats.steps)
        return decode_output(output.getvalue())


def decode_output(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise OutputDecodeError(data, e.reason) from e
