from __future__ import annotations

import pytest

from tapevm import Interpreter
from tapevm.errors import Eof, OutputDecodeError

HELLO = "+[-[<<[+[--->]-[<<<]]]>>>-]>-.---.>..>.<<<<-.<+.>>>>>.>.<<.<-."


def test_hello_world():
    assert Interpreter(HELLO).run() == "hello world"


def test_hello_world_from_bytes():
    assert Interpreter(HELLO.encode()).run(b"") == "hello world"


def test_comment_only_program():
    interp = Interpreter("just some words no code")
    assert interp.run() == ""
    assert interp.storage.ptr == 0
    assert set(interp.storage.cells()) <= {0}


def test_echo():
    assert Interpreter(",.,.,.").run(b"abc") == "abc"


def test_input_exhausted():
    with pytest.raises(Eof):
        Interpreter(",[.,]").run(b"abc")


def test_wraparound():
    interp = Interpreter("+" * 256)
    interp.run()
    assert interp.storage.cells() == b"\x00"
    interp = Interpreter("-")
    interp.run()
    assert interp.storage.cells() == b"\xff"


def test_multibyte_output():
    code = "+" * 0xC3 + "." + ">" + "+" * 0xA9 + "."
    assert Interpreter(code).run() == "é"


def test_invalid_utf8_output():
    with pytest.raises(OutputDecodeError) as info:
        Interpreter("-.").run()
    assert info.value.data == b"\xff"


def test_tape_survives_between_runs():
    interp = Interpreter("+>")
    interp.run()
    interp.run()
    assert interp.storage.cells() == b"\x01\x01\x00"
    assert interp.storage.ptr == 2


def test_stats_of_last_run():
    interp = Interpreter(HELLO)
    interp.run()
    assert interp.stats.outputs == 11
