from __future__ import annotations

import io
import sys

import pytest

from tapevm.errors import InputSourceError
from tapevm.sources import empty_input, iter_bytes, open_input_source


def test_iter_bytes():
    assert list(iter_bytes(io.BytesIO(b"ab\x00\xff"))) == [97, 98, 0, 255]


def test_iter_bytes_is_lazy():
    stream = io.BytesIO(b"abc")
    it = iter_bytes(stream)
    assert next(it) == 97
    assert stream.tell() == 1


def test_empty_input():
    assert list(iter_bytes(empty_input())) == []


def test_dash_and_none_mean_stdin(monkeypatch):
    fake = io.TextIOWrapper(io.BytesIO(b"x"))
    monkeypatch.setattr(sys, "stdin", fake)
    assert open_input_source("-") is fake.buffer
    assert open_input_source(None) is fake.buffer


def test_file_source(tmp_path):
    path = tmp_path / "in.bin"
    path.write_bytes(b"hi")
    with open_input_source(str(path)) as stream:
        assert list(iter_bytes(stream)) == [104, 105]


def test_missing_file(tmp_path):
    with pytest.raises(InputSourceError):
        open_input_source(str(tmp_path / "missing"))
