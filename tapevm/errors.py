"""
Exception hierarchy for the tape machine.

ProgramError subclasses are recoverable: they abort the current run and are
reported to the caller. FatalMachineError subclasses are internal-limit
violations that end the whole session (the CLI exits with a distinct status).
"""

from __future__ import annotations


class TapeVMError(Exception):
    """Base class for everything raised by tapevm."""


# ---------------------------------------------------------------------------
# Recoverable
# ---------------------------------------------------------------------------

class ProgramError(TapeVMError):
    """A run was aborted."""


class PcOutOfBounds(ProgramError):
    def __init__(self, pc: int):
        super().__init__(f"Program Counter out of bounds: {pc}")
        self.pc = pc


class Eof(ProgramError):
    """Input stream exhausted, or the output sink rejected a write."""

    def __init__(self, message: str = "Eof"):
        super().__init__(message)


class CellAccessError(ProgramError):
    def __init__(self, index: int):
        super().__init__(f"Memory Error: invalid cell {index}")
        self.index = index


class BadCommand(ProgramError):
    def __init__(self, line: str):
        super().__init__(f"bad debugger command: {line!r}")
        self.line = line


# ---------------------------------------------------------------------------
# Fatal
# ---------------------------------------------------------------------------

class FatalMachineError(TapeVMError):
    """Internal limit violated; the session cannot continue."""


class TapeOverflow(FatalMachineError):
    def __init__(self, size: int, limit: int):
        super().__init__(f"sanity limit reached: tape grown too big {size}/{limit}")
        self.size = size
        self.limit = limit


class PointerUnderflow(FatalMachineError):
    def __init__(self):
        super().__init__("pointer moved left of cell 0")


class OutputDecodeError(FatalMachineError):
    def __init__(self, data: bytes, reason: str):
        super().__init__(f"program wrote invalid utf8 ({reason})")
        self.data = data


# ---------------------------------------------------------------------------
# Host
# ---------------------------------------------------------------------------

class InputSourceError(TapeVMError):
    """The program input stream could not be opened."""
