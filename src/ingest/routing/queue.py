"""Stable priority queue for tasks.

Items are kept sorted at insertion time: higher priority first, then
registration order. Both the router and the build step order task chains
through this one structure.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class QueueItem(Generic[T]):
    """An item with its dispatch priority and insertion sequence."""

    item: T
    priority: int
    sequence: int


class TaskQueue(Generic[T]):
    """Priority-ordered, insertion-stable collection.

    Usage::

        queue = TaskQueue[str]()
        queue.add("a", 1)
        queue.add("b", 5)
        queue.add("c", 5)
        list(queue)  # ["b", "c", "a"]
    """

    __slots__ = ("_counter", "_items")

    def __init__(self) -> None:
        self._items: list[QueueItem[T]] = []
        self._counter = 0

    def add(self, item: T, priority: int = 0) -> "TaskQueue[T]":
        """Insert *item* after every item of equal or higher priority."""
        if not isinstance(priority, int) or isinstance(priority, bool):
            msg = f"Priority must be an integer, got {type(priority).__name__}"
            raise TypeError(msg)
        entry = QueueItem(item=item, priority=priority, sequence=self._counter)
        self._counter += 1
        index = len(self._items)
        for i, existing in enumerate(self._items):
            if existing.priority < priority:
                index = i
                break
        self._items.insert(index, entry)
        return self

    @property
    def queue(self) -> tuple[QueueItem[T], ...]:
        """Snapshot of the ordered entries."""
        return tuple(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter([entry.item for entry in self._items])

    def __len__(self) -> int:
        return len(self._items)
