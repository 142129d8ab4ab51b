import itertools
import logging
from dataclasses import field, dataclass
from typing import Callable

from des.min_value_priority_queue import MinValuePriorityQueue

_logger = logging.getLogger(__name__)


@dataclass(order=True)
class DESEvent:
    time: float
    seq: int
    action: Callable[[], None] = field(compare=False)


class DiscreteEventSimulator:

    def __init__(self):
        self.current_time = 0.0
        self.event_queue: MinValuePriorityQueue = MinValuePriorityQueue()
        self.scheduling_counter = itertools.count()
        self.end_time: float | None = None
        self.executed_events: int = 0
        self.discarded_events: int = 0

    def schedule_event(self, delay: float, action: Callable[[], None]) -> None:
        """Schedule an event to occur after a certain delay."""
        assert delay >= 0
        event_time = self.current_time + delay
        event = DESEvent(event_time, next(self.scheduling_counter), action)
        self.event_queue.enqueue(event)

    def schedule_at(self, time: float, action: Callable[[], None]) -> None:
        """Schedule an event at an absolute simulated time (not in the past)."""
        self.schedule_event(time - self.current_time, action)

    def run(self, until: float | None = None) -> None:
        """Run the simulation.

        Without `until` the loop runs until there are no more events. With `until`
        the loop stops at that deadline: events at exactly `until` still execute,
        later ones are discarded and the clock is left at `until`.
        """
        while self.event_queue:
            if until is not None and self.event_queue.peek().time > until:
                self.discarded_events = len(self.event_queue)
                self.event_queue.clear()
                break
            event = self.event_queue.dequeue()
            self.current_time = event.time
            event.action()
            self.executed_events += 1
        if until is not None:
            self.current_time = max(self.current_time, until)
        self.end_time = self.current_time
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug(
                f"[sim_t={self.current_time:012.6f}s] Event loop drained  executed={self.executed_events} discarded={self.discarded_events}")

    def get_current_time(self) -> float:
        return self.current_time
