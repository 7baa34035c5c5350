"""
Tape memory for the machine: a growable row of byte cells and one pointer.

Cells come into existence lazily, zero-filled, the first time the pointer
touches them. The tape is bounded by a sanity limit to catch runaway
programs that walk right forever.
"""

from __future__ import annotations

from .errors import CellAccessError, PointerUnderflow, TapeOverflow
from .program import Command

SANITY_LIMIT = 4096
VIEW_OFFSET = 10


class Storage:
    """Byte tape plus pointer. Arithmetic wraps modulo 256."""

    def __init__(self, limit: int = SANITY_LIMIT):
        self.tape = bytearray()
        self.ptr = 0
        self.limit = limit

    # -------------------------------------------------------------------
    # Cell access
    # -------------------------------------------------------------------

    def _ensure_sized(self):
        # The limit bounds the pointer, so the tape holds at most limit + 1 cells.
        if self.ptr > self.limit:
            raise TapeOverflow(self.ptr + 1, self.limit)
        size = self.ptr + 1
        if size > len(self.tape):
            self.tape.extend(bytes(size - len(self.tape)))

    def get(self) -> int:
        self._ensure_sized()
        return self.tape[self.ptr]

    def set(self, val: int):
        self._ensure_sized()
        self.tape[self.ptr] = val & 0xFF

    def peek(self, index: int) -> int:
        """Read any cell without growing the tape. Untouched cells read 0."""
        if index < 0:
            raise CellAccessError(index)
        return self.tape[index] if index < len(self.tape) else 0

    def cells(self) -> bytes:
        return bytes(self.tape)

    def __len__(self) -> int:
        return len(self.tape)

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------

    def command(self, command: Command):
        if command is Command.PLUS:
            self.inc_mem()
        elif command is Command.MINUS:
            self.dec_mem()
        elif command is Command.RIGHT:
            self.inc_ptr()
        elif command is Command.LEFT:
            self.dec_ptr()
        else:
            raise TypeError(f"storage doesn't handle this type of command! {command!r}")

    def inc_mem(self):
        self.set(self.get() + 1)

    def dec_mem(self):
        self.set(self.get() - 1)

    def inc_ptr(self):
        self.ptr += 1

    def dec_ptr(self):
        if self.ptr == 0:
            raise PointerUnderflow()
        self.ptr -= 1

    # -------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------

    def window(self, view: int = VIEW_OFFSET) -> range:
        """Cell indices shown around the pointer, the pointer always included."""
        lo = max(0, self.ptr - view)
        hi = min(max(len(self.tape), self.ptr + 1), self.ptr + view + 1)
        return range(lo, hi)

    def render(self, view: int = VIEW_OFFSET) -> str:
        cells = self.window(view)
        header = "".join(
            f"{'>' if i == self.ptr else ' '}{i:^4} " for i in cells
        )
        values = "".join(f" {self.peek(i):^4} " for i in cells)
        return (
            f"[Storage size={len(self.tape)} ptr={self.ptr}]\n"
            f"{header.rstrip()}\n"
            f"{values.rstrip()}"
        )

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"<Storage size={len(self.tape)} ptr={self.ptr}>"
