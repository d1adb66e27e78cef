"""
Wrap-around memory tape for the interpreter.
"""

from typing import Tuple

DEFAULT_MEMORY_SIZE = 100


class MemoryTape:
    """
    Fixed number of 8-bit cells with a movable cursor.

    Cursor movement wraps modulo the tape size and cell arithmetic wraps
    modulo 256. A tape belongs to one execution at a time.
    """

    __slots__ = ('size', '_cells', 'cursor')

    def __init__(self, size: int = DEFAULT_MEMORY_SIZE):
        if size < 1:
            raise ValueError(f"Memory size must be at least 1, got {size}")
        self.size = size
        self._cells = bytearray(size)
        self.cursor = 0

    @property
    def value(self) -> int:
        """Value of the cell under the cursor."""
        return self._cells[self.cursor]

    @value.setter
    def value(self, value: int) -> None:
        self._cells[self.cursor] = value & 0xFF

    def move_right(self) -> None:
        self.cursor = (self.cursor + 1) % self.size

    def move_left(self) -> None:
        self.cursor = (self.cursor - 1) % self.size

    def increment(self) -> None:
        self._cells[self.cursor] = (self._cells[self.cursor] + 1) & 0xFF

    def decrement(self) -> None:
        self._cells[self.cursor] = (self._cells[self.cursor] - 1) & 0xFF

    def reset(self) -> None:
        """Zero every cell and move the cursor back to the first one."""
        self._cells = bytearray(self.size)
        self.cursor = 0

    def snapshot(self) -> Tuple[bytes, int]:
        """Immutable copy of (cells, cursor)."""
        return bytes(self._cells), self.cursor

    def __getitem__(self, index: int) -> int:
        return self._cells[index]

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return f"MemoryTape(size={self.size}, cursor={self.cursor}, value={self.value})"
