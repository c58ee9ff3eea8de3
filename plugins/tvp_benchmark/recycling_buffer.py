"""
Recycling Buffer Module

A fixed pool of pre-built values handed out round-robin, so the measured
loop never pays for generating query parameters.
"""

from typing import Generic, Iterable, List, TypeVar

T = TypeVar('T')


class RecyclingBuffer(Generic[T]):
    """
    Serve a fixed sequence of values in order, wrapping back to the start.

    Not thread-safe: each benchmark loop owns its buffer.

    Usage:
        buffer = RecyclingBuffer([10, 20, 30])
        buffer.peek()  # 10
        buffer.peek()  # 20
        buffer.peek()  # 30
        buffer.peek()  # 10
    """

    def __init__(self, items: Iterable[T]):
        """
        Initialize the buffer.

        Args:
            items: Values to serve; copied so later changes to the source are not seen

        Raises:
            ValueError: If items is empty
        """
        self._items: List[T] = list(items)
        if not self._items:
            raise ValueError("RecyclingBuffer requires at least one item")
        self._cursor = 0

    @property
    def cursor(self) -> int:
        """Index of the value the next peek() returns."""
        return self._cursor

    def peek(self) -> T:
        """Return the current value and advance the cursor, wrapping after the last value."""
        result = self._items[self._cursor]
        self._cursor = (self._cursor + 1) % len(self._items)
        return result

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"RecyclingBuffer(size={len(self._items)}, cursor={self._cursor})"
