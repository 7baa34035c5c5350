"""
program — command tree for the tape language and its per-step transition.

Source bytes are parsed into a Program: an immutable sequence of commands in
which every `[ ... ]` becomes a Loop owning a nested Program. Execution is
driven from outside (see machine.RunInstance); a Program only knows how to
interpret the single command at a given program counter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Iterator, Union

from .errors import Eof, PcOutOfBounds

if TYPE_CHECKING:
    from .machine import RunInstance
    from .tape import Storage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

class Command(Enum):
    PLUS = "+"
    MINUS = "-"
    RIGHT = ">"
    LEFT = "<"
    INPUT = ","
    OUTPUT = "."
    DEBUGGER = "#"

    def __repr__(self):
        return self.name.capitalize()


@dataclass(frozen=True)
class Loop:
    """`[ body ]`. Owns its body exclusively."""
    body: Program

    def __repr__(self):
        return f"Loop({self.body!r})"


Instruction = Union[Command, Loop]

OPCODES = {ord(c.value): c for c in Command}
LOOP_OPEN = ord("[")
LOOP_CLOSE = ord("]")


# ---------------------------------------------------------------------------
# Step results (Program -> RunInstance)
# ---------------------------------------------------------------------------

class ProgramStep(Enum):
    CONTINUE = "Continue"
    DEBUGGER = "Debugger"
    LOOP_END = "LoopEnd"


@dataclass(frozen=True)
class LoopEnter:
    body: Program


# ---------------------------------------------------------------------------
# Program
# ---------------------------------------------------------------------------

@dataclass(frozen=True, repr=False)
class Program:
    commands: tuple[Instruction, ...] = ()

    @classmethod
    def parse(cls, source: bytes | str | Iterable[int]) -> Program:
        """Parse source in one left-to-right pass.

        Unknown bytes are comments. An unmatched `]` closes the current
        level; at top level it ends the program. An unmatched `[` takes the
        rest of the input as its body.
        """
        if isinstance(source, str):
            source = source.encode("utf-8")

        # One open command list per nesting level; no Python recursion.
        levels: list[list[Instruction]] = [[]]
        for offset, byte in enumerate(source):
            if byte in OPCODES:
                levels[-1].append(OPCODES[byte])
            elif byte == LOOP_OPEN:
                levels.append([])
            elif byte == LOOP_CLOSE:
                if len(levels) == 1:
                    logger.warning("unmatched ']' at byte %d ends the program", offset)
                    break
                body = cls(tuple(levels.pop()))
                levels[-1].append(Loop(body))

        if len(levels) > 1:
            logger.debug("%d unclosed '[' run to end of input", len(levels) - 1)
        while len(levels) > 1:
            body = cls(tuple(levels.pop()))
            levels[-1].append(Loop(body))

        program = cls(tuple(levels[0]))
        logger.debug("parsed %r", program)
        return program

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.commands)

    def __getitem__(self, pc: int) -> Instruction:
        return self.commands[pc]

    def __repr__(self) -> str:
        return f"<Program cmds={len(self.commands)}>"

    def to_source(self) -> str:
        """Normalized source text: comments dropped, brackets balanced."""
        out: list[str] = []
        pending: list[Iterator[Instruction]] = [iter(self.commands)]
        while pending:
            cmd = next(pending[-1], None)
            if cmd is None:
                pending.pop()
                if pending:
                    out.append("]")
            elif isinstance(cmd, Loop):
                out.append("[")
                pending.append(iter(cmd.body.commands))
            else:
                out.append(cmd.value)
        return "".join(out)

    # -------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------

    def run(self, storage: Storage, stdin: Iterable[int], stdout) -> RunInstance:
        from .machine import RunInstance
        return RunInstance(self, storage, stdin, stdout)

    def step(self, pc: int, storage: Storage, stdin: Iterator[int],
             stdout) -> ProgramStep | LoopEnter:
        """Interpret the command at `pc`.

        Past the last command this reports LOOP_END; loop entry is reported
        back to the caller, which decides whether to descend.
        """
        if pc < 0:
            raise PcOutOfBounds(pc)
        if pc >= len(self.commands):
            return ProgramStep.LOOP_END

        cmd = self.commands[pc]
        if isinstance(cmd, Loop):
            return LoopEnter(cmd.body)

        if cmd is Command.INPUT:
            byte = next(stdin, None)
            if byte is None:
                raise Eof("Eof on input")
            storage.set(byte)
        elif cmd is Command.OUTPUT:
            try:
                written = stdout.write(bytes((storage.get(),)))
            except OSError as e:
                raise Eof(f"Eof on output: {e}") from e
            if written == 0:
                raise Eof("Eof on output")
        elif cmd is Command.DEBUGGER:
            return ProgramStep.DEBUGGER
        else:
            storage.command(cmd)
        return ProgramStep.CONTINUE
