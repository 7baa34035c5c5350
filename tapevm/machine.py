"""
machine — step-at-a-time execution of a Program against a Storage.

Loop nesting is held on an explicit frame stack instead of the Python call
stack, so every step is observable from outside and nesting depth is not
bounded by the interpreter's recursion limit.

Each step is one of:
  - one command interpreted (Continue / Debugger)
  - one loop boundary crossed on the way in (Continue, or a skip when the
    current cell is 0)
  - one loop boundary crossed on the way out (LoopIteration / LoopEnd)
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Iterable

from .program import Command, LoopEnter, Program, ProgramStep
from .tape import Storage


class StepResult(Enum):
    CONTINUE = "Continue"
    DEBUGGER = "Debugger"
    LOOP_ITERATION = "LoopIteration"
    LOOP_END = "LoopEnd"

    def __str__(self):
        return self.value


@dataclass
class Frame:
    program: Program
    pc: int = 0

    def current(self):
        """Command under pc, or None past the end."""
        if 0 <= self.pc < len(self.program):
            return self.program[self.pc]
        return None


@dataclass
class RunStats:
    steps: int = 0
    loop_iterations: int = 0
    loop_exits: int = 0
    breakpoints: int = 0
    inputs: int = 0
    outputs: int = 0
    stack_peak: int = 0

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def summary(self) -> str:
        return (
            f"Steps: {self.steps}\n"
            f"Loops: {self.loop_iterations} iterations, {self.loop_exits} exits\n"
            f"IO: {self.inputs} in / {self.outputs} out\n"
            f"Breakpoints hit: {self.breakpoints}\n"
            f"Stack peak: {self.stack_peak}"
        )


# ---------------------------------------------------------------------------
# RunInstance
# ---------------------------------------------------------------------------

class RunInstance:
    """Iterator of StepResult. Exhausted when the frame stack is empty.

    Errors raised by a step propagate out of `next()`; the run is over at
    that point.
    """

    def __init__(self, program: Program, storage: Storage,
                 stdin: Iterable[int], stdout):
        self.program = program
        self.storage = storage
        self.stdin = iter(stdin)
        self.stdout = stdout
        self.stack: list[Frame] = [Frame(program, 0)]
        self.stats = RunStats(stack_peak=1)
        self.last: StepResult | None = None

    @property
    def finished(self) -> bool:
        return not self.stack

    @property
    def depth(self) -> int:
        return len(self.stack)

    def __iter__(self):
        return self

    def __next__(self) -> StepResult:
        if not self.stack:
            raise StopIteration
        result = self.step()
        self.last = result
        return result

    def step(self) -> StepResult:
        frame = self.stack[-1]
        cmd = frame.current()
        outcome = frame.program.step(frame.pc, self.storage, self.stdin, self.stdout)
        self.stats.steps += 1

        if outcome is ProgramStep.CONTINUE:
            frame.pc += 1
            if cmd is Command.INPUT:
                self.stats.inputs += 1
            elif cmd is Command.OUTPUT:
                self.stats.outputs += 1
            return StepResult.CONTINUE

        if outcome is ProgramStep.DEBUGGER:
            frame.pc += 1
            self.stats.breakpoints += 1
            return StepResult.DEBUGGER

        if isinstance(outcome, LoopEnter):
            if self.storage.get() == 0:
                frame.pc += 1
            else:
                # Outer pc stays on the Loop; it is re-evaluated on exit.
                self.stack.append(Frame(outcome.body, 0))
                if len(self.stack) > self.stats.stack_peak:
                    self.stats.stack_peak = len(self.stack)
            return StepResult.CONTINUE

        # ProgramStep.LOOP_END
        self.stack.pop()
        if self.storage.get() == 0:
            self.stats.loop_exits += 1
            return StepResult.LOOP_END
        self.stats.loop_iterations += 1
        return StepResult.LOOP_ITERATION

    def drain(self) -> RunStats:
        for _ in self:
            pass
        return self.stats

    def __str__(self) -> str:
        return str(self.storage)
