"""
Textual TUI debugger for the tape machine.

Drives the same debug session as the console debugger, showing the tape,
the loop frame stack, counters, output and the step trace after every
command. Commands can be typed (r, r<N>, rle, rli, s) or bound keys used.

Usage:
    python -m tapevm --tui program.b
    python -m tapevm --tui -e "+[-[<<[+[--->]-[<<<]]]>>>-]>-.---." -i input.txt
"""

from __future__ import annotations

import collections
import io
import threading
from typing import Iterable

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import ScrollableContainer
from textual.widgets import Footer, Input, RichLog, Static

from .debug_command import (
    DebugCommand, Run, RunLoopIteration, RunToAfterLoop, RunToEnd,
    RunToEndWithoutBreak, Step, parse_debug_command,
)
from .errors import BadCommand, TapeVMError
from .interpreter import Interpreter, decode_output
from .machine import Frame
from .program import Loop
from .stepper import DebugStepper
from .tape import VIEW_OFFSET, Storage


LOOP_GLYPH = "[…]"
POINTER_STYLE = "bold green"


class TraceBuffer:
    """Text sink for the stepper trace; the UI drains it on refresh."""

    def __init__(self, maxlen: int = 2000):
        self.lines: collections.deque[str] = collections.deque(maxlen=maxlen)

    def write(self, text: str) -> int:
        self.lines.extend(text.splitlines())
        return len(text)

    def drain(self) -> list[str]:
        lines = list(self.lines)
        self.lines.clear()
        return lines


def frame_text(frame: Frame, width: int = 32) -> Text:
    """One frame's commands around pc, pc highlighted. Loops are collapsed."""
    cmds = frame.program.commands
    lo = max(0, frame.pc - width // 2)
    hi = min(len(cmds), lo + width)
    text = Text("…" if lo > 0 else "")
    for pc in range(lo, hi):
        cmd = cmds[pc]
        glyph = LOOP_GLYPH if isinstance(cmd, Loop) else cmd.value
        text.append(glyph, style="reverse" if pc == frame.pc else "")
    if frame.pc >= len(cmds):
        text.append("⏎", style="reverse")
    if hi < len(cmds):
        text.append("…")
    return text


def tape_text(storage: Storage, view: int = VIEW_OFFSET) -> Text:
    """Index, value and character rows around the pointer."""
    text = Text()
    text.append("Size: ", style="bold")
    text.append(f"{len(storage)}/{storage.limit}    ")
    text.append("Ptr: ", style="bold")
    text.append(f"{storage.ptr}\n\n")
    rows = (
        lambda i, val: f"{i:^5}",
        lambda i, val: f"{val:^5}",
        lambda i, val: f"{chr(val) if 32 <= val < 127 else '.':^5}",
    )
    for n, cell in enumerate(rows):
        if n:
            text.append("\n")
        for i in storage.window(view):
            style = POINTER_STYLE if i == storage.ptr else ""
            text.append(cell(i, storage.peek(i)), style=style)
    return text


# ---------------------------------------------------------------------------
# CSS
# ---------------------------------------------------------------------------

DEBUGGER_CSS = """
Screen {
    layout: grid;
    grid-size: 2 4;
    grid-columns: 1fr 1fr;
    grid-rows: 1fr 1fr 1fr auto;
}

.panel {
    border: solid $accent;
    border-title-align: left;
    overflow-y: auto;
    height: 100%;
}

#command {
    column-span: 2;
}
"""


# ---------------------------------------------------------------------------
# Panel widgets
# ---------------------------------------------------------------------------

class SourcePanel(ScrollableContainer):
    """Program text, breakpoint markers highlighted."""
    BORDER_TITLE = "Source"

    def compose(self) -> ComposeResult:
        yield Static("", id="source-content")


class TapePanel(ScrollableContainer):
    """Cells around the pointer."""
    BORDER_TITLE = "Tape"

    def compose(self) -> ComposeResult:
        yield Static("", id="tape-content")


class FramePanel(ScrollableContainer):
    """Loop frame stack, innermost first."""
    BORDER_TITLE = "Frames"

    def compose(self) -> ComposeResult:
        yield Static("", id="frame-content")


class StatePanel(ScrollableContainer):
    """Debugger mode and run counters."""
    BORDER_TITLE = "State"

    def compose(self) -> ComposeResult:
        yield Static("", id="state-content")


class OutputPanel(ScrollableContainer):
    """Bytes written by the program so far."""
    BORDER_TITLE = "Output"

    def compose(self) -> ComposeResult:
        yield Static("", id="output-content")


class TracePanel(ScrollableContainer):
    """Per-step trace from the debug stepper."""
    BORDER_TITLE = "Trace"

    def compose(self) -> ComposeResult:
        yield RichLog(id="trace-log", markup=False, max_lines=400)


# ---------------------------------------------------------------------------
# Main debugger app
# ---------------------------------------------------------------------------

class TapeDebugger(App):
    """Textual TUI debugger for the tape machine."""

    CSS = DEBUGGER_CSS
    TITLE = "tapevm debugger"

    BINDINGS = [
        Binding("s", "step", "Step"),
        Binding("space", "step", "Step", show=False),
        Binding("n", "run_10", "x10"),
        Binding("i", "run_loop_iteration", "→Iter"),
        Binding("e", "run_to_after_loop", "→Exit"),
        Binding("r", "run_to_end", "Run"),
        Binding("c", "run_without_break", "Run!"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, interpreter: Interpreter, stdin: Iterable[int] = b"",
                 view: int = VIEW_OFFSET):
        super().__init__()
        self.interpreter = interpreter
        self.view = view
        self.output = io.BytesIO()
        self.trace = TraceBuffer()
        self.stepper = DebugStepper(out=self.trace, view=view)
        self.instance = interpreter.start(stdin, self.output)
        self.session = self.stepper.session(self.instance)
        # The stepper starts in Break: this only produces the first request.
        self.request = next(self.session)
        self.done = False
        self.error: Exception | None = None
        self._lock = threading.Lock()

    def compose(self) -> ComposeResult:
        yield SourcePanel(id="source-panel", classes="panel")
        yield TapePanel(id="tape-panel", classes="panel")
        yield FramePanel(id="frame-panel", classes="panel")
        yield StatePanel(id="state-panel", classes="panel")
        yield OutputPanel(id="output-panel", classes="panel")
        yield TracePanel(id="trace-panel", classes="panel")
        yield Input(placeholder="r | r<N> | rle | rli | s", id="command")
        yield Footer()

    def on_mount(self) -> None:
        # Keys go to the app bindings until the command line is clicked.
        self.query_one("#source-panel").focus()
        self.refresh_panels()

    # -------------------------------------------------------------------
    # Panel refresh
    # -------------------------------------------------------------------

    def refresh_panels(self) -> None:
        self._refresh_source()
        self._refresh_tape()
        self._refresh_frames()
        self._refresh_state()
        self._refresh_output()
        self._refresh_trace()

    def _refresh_source(self) -> None:
        source = self.interpreter.source.decode("utf-8", errors="replace")
        text = Text(source or "(empty program)")
        text.highlight_regex(r"#", "bold red")
        self.query_one("#source-content", Static).update(text)

    def _refresh_tape(self) -> None:
        content = self.query_one("#tape-content", Static)
        content.update(tape_text(self.instance.storage, self.view))

    def _refresh_frames(self) -> None:
        stack = self.instance.stack
        if not stack:
            self.query_one("#frame-content", Static).update("(finished)")
            return
        text = Text()
        for depth in range(len(stack) - 1, -1, -1):
            frame = stack[depth]
            text.append(f"{depth:2d}│ pc={frame.pc:3d}/{len(frame.program):<3d} ")
            text.append_text(frame_text(frame))
            if depth:
                text.append("\n")
        self.query_one("#frame-content", Static).update(text)

    def _refresh_state(self) -> None:
        stats = self.instance.stats
        last = self.instance.last
        text = Text()
        text.append("Status: ", style="bold")
        if self.error is not None:
            text.append("stopped on error", style="bold red")
        elif self.done:
            text.append("finished", style="bold")
        else:
            text.append("paused")
        text.append("\nMode: ", style="bold")
        text.append(f"{self.stepper.mode!r}    ")
        text.append("Last: ", style="bold")
        text.append(str(last) if last is not None else "-")
        text.append("\nDepth: ", style="bold")
        text.append(f"{self.instance.depth}\n\n{stats.summary()}")
        self.query_one("#state-content", Static).update(text)

    def output_text(self) -> Text:
        text = Text(self.output.getvalue().decode("utf-8", errors="replace"))
        if self.error is not None:
            if text.plain and not text.plain.endswith("\n"):
                text.append("\n")
            text.append(f"error: {self.error}", style="bold red")
        return text

    def _refresh_output(self) -> None:
        self.query_one("#output-content", Static).update(self.output_text())

    def _refresh_trace(self) -> None:
        log = self.query_one("#trace-log", RichLog)
        for line in self.trace.drain():
            log.write(line)

    # -------------------------------------------------------------------
    # Session control
    # -------------------------------------------------------------------

    def _advance(self, command: DebugCommand) -> None:
        # Keys pressed while a worker is still running are dropped.
        if self.done or not self._lock.acquire(blocking=False):
            return
        try:
            self.request = self.session.send(command)
        except StopIteration:
            self.done = True
        except TapeVMError as e:
            self.done = True
            self.error = e
        finally:
            self._lock.release()

    def submit(self, command: DebugCommand) -> None:
        """Apply a command. Bounded commands run inline, the rest in a worker."""
        if isinstance(command, (Step, Run)):
            self._advance(command)
            self.refresh_panels()
        else:
            self._advance_in_background(command)

    @work(thread=True, exclusive=True)
    def _advance_in_background(self, command: DebugCommand) -> None:
        self._advance(command)
        self.call_from_thread(self.refresh_panels)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        line = event.value
        event.input.value = ""
        try:
            command = parse_debug_command(line)
        except BadCommand as e:
            self.notify(str(e), severity="error")
            return
        self.submit(command)

    # -------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------

    def action_step(self) -> None:
        self.submit(Step())

    def action_run_10(self) -> None:
        self.submit(Run(10))

    def action_run_loop_iteration(self) -> None:
        self.submit(RunLoopIteration())

    def action_run_to_after_loop(self) -> None:
        self.submit(RunToAfterLoop())

    def action_run_to_end(self) -> None:
        self.submit(RunToEnd())

    def action_run_without_break(self) -> None:
        self.submit(RunToEndWithoutBreak())


def run_tui(interpreter: Interpreter, stdin: Iterable[int] = b"") -> str:
    """Run the debugger app; returns whatever the program printed."""
    app = TapeDebugger(interpreter, stdin)
    app.run()
    if app.error is not None:
        raise app.error
    return decode_output(app.output.getvalue())
