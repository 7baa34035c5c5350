"""Tape memory: lazy growth, wraparound, bounds and rendering."""

from __future__ import annotations

import pytest

from tapevm.errors import CellAccessError, PointerUnderflow, TapeOverflow
from tapevm.program import Command
from tapevm.tape import SANITY_LIMIT, Storage


def test_fresh_cell_reads_zero_and_grows_tape():
    s = Storage()
    assert len(s) == 0
    assert s.get() == 0
    assert len(s) == 1


def test_growth_is_zero_filled():
    s = Storage()
    for _ in range(3):
        s.inc_ptr()
    s.set(7)
    assert s.cells() == b"\x00\x00\x00\x07"


def test_plus_wraps_after_256():
    s = Storage()
    s.set(42)
    for _ in range(256):
        s.inc_mem()
    assert s.get() == 42


def test_minus_on_fresh_cell_is_255():
    s = Storage()
    s.dec_mem()
    assert s.get() == 255


def test_set_masks_to_byte():
    s = Storage()
    s.set(0x1FF)
    assert s.get() == 0xFF


def test_pointer_underflow_is_fatal():
    s = Storage()
    with pytest.raises(PointerUnderflow):
        s.dec_ptr()
    assert s.ptr == 0


def test_sanity_limit():
    s = Storage(limit=4)
    s.ptr = 4
    s.inc_mem()
    assert len(s) == 5
    s.ptr = 5
    with pytest.raises(TapeOverflow) as info:
        s.get()
    assert info.value.size == 6
    assert len(s) == 5


def test_pointer_may_reach_the_limit():
    s = Storage()
    s.ptr = SANITY_LIMIT
    assert s.get() == 0
    assert len(s) == 4097
    s.inc_ptr()
    with pytest.raises(TapeOverflow):
        s.inc_mem()


def test_moving_the_pointer_alone_does_not_grow():
    s = Storage()
    s.inc_ptr()
    s.inc_ptr()
    assert len(s) == 0


def test_command_dispatch():
    s = Storage()
    s.command(Command.PLUS)
    s.command(Command.PLUS)
    s.command(Command.RIGHT)
    s.command(Command.MINUS)
    s.command(Command.LEFT)
    assert s.cells() == b"\x02\xff"
    assert s.ptr == 0


def test_command_rejects_io():
    with pytest.raises(TypeError):
        Storage().command(Command.OUTPUT)


def test_peek_does_not_grow():
    s = Storage()
    assert s.peek(100) == 0
    assert len(s) == 0
    with pytest.raises(CellAccessError):
        s.peek(-1)


def test_render_marks_pointer():
    s = Storage()
    s.inc_ptr()
    s.set(5)
    s.inc_ptr()
    s.get()
    s.dec_ptr()
    lines = str(s).splitlines()
    assert lines[0] == "[Storage size=3 ptr=1]"
    assert lines[1].split() == ["0", ">", "1", "2"]
    assert lines[2].split() == ["0", "5", "0"]


def test_window_is_bounded_and_contains_pointer():
    s = Storage()
    s.ptr = 50
    s.get()
    cells = s.window(10)
    assert cells == range(40, 51)
    s.ptr = 20
    assert 20 in s.window(10)
    assert len(s.window(10)) == 21
