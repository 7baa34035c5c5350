"""
Steppers: what to do with the stream of steps a RunInstance produces.

NormalStepper drains it silently. DebugStepper reports every step and pauses
for operator commands. The pause is a generator boundary: `session()` yields
a CommandRequest whenever it needs a line and resumes when the caller sends
one back, so the stepping loop itself never reads from a terminal.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Callable, Generator, Iterable, TextIO

from .debug_command import (
    Break, DebugCommand, Run, RunLoopIteration, RunToAfterLoop,
    RunToEndWithoutBreak, parse_debug_command,
)
from .machine import RunInstance, RunStats, StepResult
from .program import Program
from .tape import VIEW_OFFSET, Storage

logger = logging.getLogger(__name__)


class Stepper:
    """Drives a RunInstance to completion."""

    def drive(self, program: Program, storage: Storage,
              stdin: Iterable[int], stdout) -> RunStats:
        instance = program.run(storage, stdin, stdout)
        self.run(instance)
        return instance.stats

    def run(self, instance: RunInstance) -> None:
        raise NotImplementedError


class NormalStepper(Stepper):
    def run(self, instance: RunInstance) -> None:
        instance.drain()


# ---------------------------------------------------------------------------
# Debug
# ---------------------------------------------------------------------------

@dataclass
class CommandRequest:
    """What the session shows the operator when it pauses."""
    result: StepResult | None   # None before the first step
    storage: str
    mode: DebugCommand
    steps: int


def read_console_line(prompt: str = "(tapevm) ") -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


class DebugStepper(Stepper):
    """Interactive stepper.

    Args:
        read_line: called with a CommandRequest, returns the operator's next
            line (or None at end of input). Defaults to the console.
        out: text stream the step trace is written to.
        view: cells shown either side of the pointer in the trace.
    """

    def __init__(self, read_line: Callable[[CommandRequest], str | None] | None = None,
                 out: TextIO | None = None, view: int = VIEW_OFFSET):
        self.read_line = read_line or (lambda request: read_console_line())
        self.out = out if out is not None else sys.stdout
        self.view = view
        self.mode: DebugCommand = Break()

    def run(self, instance: RunInstance) -> None:
        session = self.session(instance)
        try:
            request = next(session)
            while True:
                request = session.send(self.read_line(request))
        except StopIteration:
            pass

    def session(self, instance: RunInstance) -> Generator[CommandRequest, str | DebugCommand | None, None]:
        """Step `instance`, yielding whenever an operator command is needed.

        Send back a command line, a DebugCommand, or None for end of input
        (which finishes the run without further pauses).
        """
        result: StepResult | None = None
        while True:
            if self.mode.needs_input and not instance.finished:
                reply = yield CommandRequest(
                    result=result,
                    storage=instance.storage.render(self.view),
                    mode=self.mode,
                    steps=instance.stats.steps,
                )
                self._set_mode(self._interpret(reply))

            try:
                result = next(instance)
            except StopIteration:
                return

            self._report(result, instance)
            self._advance(result)

    # -------------------------------------------------------------------
    # Mode evolution
    # -------------------------------------------------------------------

    @staticmethod
    def _interpret(reply) -> DebugCommand:
        if reply is None:
            return RunToEndWithoutBreak()
        if isinstance(reply, DebugCommand):
            return reply
        return parse_debug_command(reply)

    def _set_mode(self, mode: DebugCommand):
        if mode != self.mode:
            logger.debug("debugger mode %r -> %r", self.mode, mode)
        self.mode = mode

    def _advance(self, result: StepResult):
        mode = self.mode
        if result is StepResult.DEBUGGER and not isinstance(mode, RunToEndWithoutBreak):
            self._set_mode(Break())
        elif isinstance(mode, Run):
            remaining = mode.count - 1
            self._set_mode(Break() if remaining <= 0 else Run(remaining))
        elif isinstance(mode, RunLoopIteration) and result is StepResult.LOOP_ITERATION:
            self._set_mode(Break())
        elif isinstance(mode, RunToAfterLoop) and result is StepResult.LOOP_END:
            self._set_mode(Break())

    def _report(self, result: StepResult, instance: RunInstance):
        self.out.write(f"{result}\n{instance.storage.render(self.view)}\n")
