# artmint/registry/allocator.py
"""
Sequential identifier allocation.

Identifiers start at 1 and are never reused, even after the item they
named has been destroyed.
"""

from ..errors import InvalidArgument


class IdAllocator:
    """Hands out strictly increasing item identifiers."""

    def __init__(self, next_id: int = 1):
        if next_id < 1:
            raise InvalidArgument(f"next_id must be positive, got {next_id}")
        self._next_id = next_id

    @property
    def next_id(self) -> int:
        """Identifier the next allocate() call will return."""
        return self._next_id

    def allocate(self) -> int:
        item_id = self._next_id
        self._next_id += 1
        return item_id

    def _reset(self, next_id: int) -> None:
        """Rewind to a counter captured earlier, when a failed invocation is undone."""
        self._next_id = next_id

    def __repr__(self) -> str:
        return f"IdAllocator(next_id={self._next_id})"
