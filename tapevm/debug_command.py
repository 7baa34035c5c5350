"""
Debugger command line grammar.

    r        run to end (stops at breakpoints)
    r<N>     run N steps
    rle      run until the current loop is left
    rli      run until the next loop iteration
    s        single step

RunToEndWithoutBreak and Break are stepper states; no input line produces
them.
"""

from __future__ import annotations

from dataclasses import dataclass

from lark import Lark, Transformer, v_args
from lark.exceptions import LarkError, VisitError

from .errors import BadCommand

# ============================================================
# Grammar
# ============================================================

GRAMMAR = r"""
    start: RUN_COUNT   -> run
         | "rle"       -> run_to_after_loop
         | "rli"       -> run_loop_iteration
         | "r"         -> run_to_end
         | "s"         -> step

    RUN_COUNT: /r[0-9]+/
"""

parser = Lark(GRAMMAR, parser="lalr")


# ============================================================
# Commands
# ============================================================

class DebugCommand:
    """Pending directive of the debug stepper."""

    # Whether the stepper must ask the operator before the next step.
    needs_input = False


@dataclass(frozen=True)
class Run(DebugCommand):
    count: int
    def __repr__(self): return f"Run({self.count})"

@dataclass(frozen=True)
class RunToEnd(DebugCommand):
    def __repr__(self): return "RunToEnd"

@dataclass(frozen=True)
class RunToEndWithoutBreak(DebugCommand):
    def __repr__(self): return "RunToEndWithoutBreak"

@dataclass(frozen=True)
class RunLoopIteration(DebugCommand):
    def __repr__(self): return "RunLoopIteration"

@dataclass(frozen=True)
class RunToAfterLoop(DebugCommand):
    def __repr__(self): return "RunToAfterLoop"

@dataclass(frozen=True)
class Step(DebugCommand):
    needs_input = True
    def __repr__(self): return "Step"

@dataclass(frozen=True)
class Break(DebugCommand):
    needs_input = True
    def __repr__(self): return "Break"


@v_args(inline=True)
class CommandBuilder(Transformer):
    def run(self, tok):
        return Run(int(str(tok)[1:]))

    def run_to_after_loop(self):
        return RunToAfterLoop()

    def run_loop_iteration(self):
        return RunLoopIteration()

    def run_to_end(self):
        return RunToEnd()

    def step(self):
        return Step()


command_builder = CommandBuilder()


def parse_debug_command(line: str) -> DebugCommand:
    """Parse one operator line. Raises BadCommand."""
    text = line.strip()
    if not text:
        raise BadCommand(line)
    try:
        tree = parser.parse(text)
    except LarkError as e:
        raise BadCommand(line) from e
    try:
        return command_builder.transform(tree)
    except VisitError as e:
        raise BadCommand(line) from e
