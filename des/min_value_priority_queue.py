import heapq
from typing import Any, List


class MinValuePriorityQueue:
    """Binary heap returning the smallest item first.

    Items must be totally ordered. The simulator enqueues `DESEvent` objects which
    compare on (time, seq), so ties on time resolve in registration order.
    """

    def __init__(self):
        self._heap: List[Any] = []

    def enqueue(self, item: Any) -> None:
        heapq.heappush(self._heap, item)

    def dequeue(self) -> Any:
        if not self._heap:
            raise IndexError("dequeue from an empty priority queue")
        return heapq.heappop(self._heap)

    def peek(self) -> Any:
        if not self._heap:
            raise IndexError("peek into an empty priority queue")
        return self._heap[0]

    def clear(self) -> None:
        self._heap.clear()

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)
