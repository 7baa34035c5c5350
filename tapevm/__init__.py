"""
tapevm — byte-tape machine with a step-level debugger.

    from tapevm import Interpreter
    Interpreter(",[.,]").run(b"echo")
"""

from .errors import (
    BadCommand, CellAccessError, Eof, FatalMachineError, OutputDecodeError,
    PcOutOfBounds, PointerUnderflow, ProgramError, TapeOverflow, TapeVMError,
)
from .interpreter import Interpreter
from .machine import RunInstance, RunStats, StepResult
from .program import Command, Loop, Program
from .stepper import DebugStepper, NormalStepper
from .tape import Storage

__version__ = "0.1.0"
