"""
Intcode VM — Growable Memory Tape

The tape starts as a copy of the loaded program and grows on demand:
  - reading past the end yields 0 (the tape is not extended)
  - writing past the end zero-fills the gap, then stores the value

Addresses are plain non-negative Python ints. Every access checks the
address first; a negative address raises OutOfBoundsError rather than
wrapping around the way a negative list index would.

Cells hold arbitrary-precision Python ints, so no 64-bit wrapping is
applied to arithmetic results.
"""

from typing import Iterable, List, Tuple

from .errors import OutOfBoundsError


class Memory:
    """Zero-extended integer tape."""

    def __init__(self, program: Iterable[int] = ()):
        self._cells: List[int] = list(program)

    # --- Core read/write ---

    def get(self, address: int) -> int:
        """Read a cell. Addresses past the end read as 0."""
        if address < 0:
            raise OutOfBoundsError(address)
        if address >= len(self._cells):
            return 0
        return self._cells[address]

    def set(self, address: int, value: int):
        """Write a cell, extending the tape with zeros if needed."""
        if address < 0:
            raise OutOfBoundsError(address)
        size = len(self._cells)
        if address >= size:
            self._cells.extend([0] * (address - size + 1))
        self._cells[address] = value

    def __len__(self) -> int:
        return len(self._cells)

    def __getitem__(self, address: int) -> int:
        return self.get(address)

    def __setitem__(self, address: int, value: int):
        self.set(address, value)

    # --- Snapshots ---

    def snapshot(self) -> Tuple[int, ...]:
        """Immutable copy of the tape as it stands now."""
        return tuple(self._cells)

    def copy(self) -> 'Memory':
        return Memory(self._cells)

    # --- Debug ---

    def dump(self, start: int = 0, length: int = 64, width: int = 8) -> str:
        """Render a range of cells, `width` per row, for debugging."""
        if start < 0:
            raise OutOfBoundsError(start)
        lines = []
        for offset in range(0, length, width):
            addr = start + offset
            count = min(width, length - offset)
            cells = ' '.join(f'{self.get(addr + i):>8}' for i in range(count))
            lines.append(f'{addr:06d}  {cells}')
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return f"Memory(len={len(self._cells)})"
