"""TUI debugger, driven headless through textual's pilot."""

from __future__ import annotations

import asyncio

from textual.widgets import Input

from tapevm import Interpreter
from tapevm.debugger import TapeDebugger, TraceBuffer, frame_text
from tapevm.machine import Frame
from tapevm.program import Program

HELLO = "+[-[<<[+[--->]-[<<<]]]>>>-]>-.---.>..>.<<<<-.<+.>>>>>.>.<<.<-."


def test_step_keys():
    async def scenario():
        app = TapeDebugger(Interpreter("+++"))
        async with app.run_test() as pilot:
            await pilot.press("s", "s")
            await pilot.pause()
            return app.instance.stats.steps, app.instance.storage.get()

    steps, cell = asyncio.run(scenario())
    assert steps == 2
    assert cell == 2


def test_run_to_end_in_background():
    async def scenario():
        app = TapeDebugger(Interpreter(HELLO))
        async with app.run_test() as pilot:
            await pilot.press("r")
            await app.workers.wait_for_complete()
            await pilot.pause()
            return app.done, app.error, app.output.getvalue()

    done, error, output = asyncio.run(scenario())
    assert done
    assert error is None
    assert output == b"hello world"


def test_typed_command():
    async def scenario():
        app = TapeDebugger(Interpreter("++++++"))
        async with app.run_test() as pilot:
            app.query_one("#command", Input).focus()
            await pilot.press("x", "enter")
            await pilot.press("r", "3", "enter")
            await pilot.pause()
            return app.done, app.instance.stats.steps

    done, steps = asyncio.run(scenario())
    assert not done
    assert steps == 3


def test_error_finishes_session():
    async def scenario():
        app = TapeDebugger(Interpreter(","))
        async with app.run_test() as pilot:
            await pilot.press("s")
            await pilot.pause()
            return app.done, app.error, app.output_text().plain

    done, error, output = asyncio.run(scenario())
    assert done
    assert "Eof" in str(error)
    assert output.endswith("error: Eof on input")


def test_keys_are_dropped_while_session_is_busy():
    async def scenario():
        app = TapeDebugger(Interpreter("+++"))
        async with app.run_test() as pilot:
            with app._lock:
                await pilot.press("s")
                await pilot.pause()
            busy_steps = app.instance.stats.steps
            await pilot.press("s")
            await pilot.pause()
            return busy_steps, app.instance.stats.steps

    busy_steps, steps = asyncio.run(scenario())
    assert busy_steps == 0
    assert steps == 1


def test_frame_text_highlights_pc():
    prog = Program.parse("+[-]>")
    text = frame_text(Frame(prog, 1))
    assert text.plain == "+[…]>"
    assert text.spans[0].start == 1
    assert frame_text(Frame(prog, 3)).plain.endswith("⏎")


def test_trace_buffer_drains():
    buf = TraceBuffer(maxlen=3)
    buf.write("a\nb\n")
    buf.write("c\nd\n")
    assert buf.drain() == ["b", "c", "d"]
    assert buf.drain() == []
