from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, TYPE_CHECKING

from random_traffic.core.errors import SchedulingError

if TYPE_CHECKING:
    from network_simulation.network import Network

_logger = logging.getLogger(__name__)

# how long before the end of the epoch the queues are sampled
SAMPLE_LEAD_TIME = 1.0


@dataclass(frozen=True)
class QueueSample:
    """Read-only node id -> egress queue depth (packets), taken at `sample_time`."""

    sample_time: float
    depths: Mapping[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "depths", MappingProxyType(dict(self.depths)))

    def __getitem__(self, node_id: int) -> int:
        return self.depths[node_id]

    def __len__(self) -> int:
        return len(self.depths)

    @property
    def interface_count(self) -> int:
        return len(self.depths)


class QueueSampler:
    """Takes one queue-depth sample per node, once, shortly before the epoch ends.

    Callbacks run on the simulator timeline, so the only writer is the event loop.
    `snapshot()` hands the finished sample over as an immutable QueueSample.
    """

    def __init__(self):
        self._depths: Dict[int, int] = {}
        self._expected: int | None = None
        self.sample_time: float | None = None

    @staticmethod
    def sample_time_for(epoch_duration: float) -> float:
        sample_time = epoch_duration - SAMPLE_LEAD_TIME
        if sample_time < 0:
            raise SchedulingError(
                f"queue sample time {sample_time} is negative: epoch of {epoch_duration} is shorter than "
                f"the {SAMPLE_LEAD_TIME} sample lead time")
        return sample_time

    def install(self, network: Network, epoch_duration: float) -> None:
        sample_time = self.sample_time_for(epoch_duration)
        if self._expected is not None:
            raise SchedulingError("queue sampler is already installed")
        sim = network.simulator
        if sample_time < sim.get_current_time():
            raise SchedulingError(
                f"queue sample time {sample_time} is before current time {sim.get_current_time()}")

        self.sample_time = sample_time
        self._expected = network.node_count
        for node_id in range(network.node_count):
            host = network.node(node_id)

            def sample(node_id: int = node_id, host=host) -> None:
                self._depths[node_id] = host.port_queue_size(1)
                if _logger.isEnabledFor(logging.DEBUG):
                    _logger.debug(
                        f"[sim_t={sim.get_current_time():012.6f}s] Queue sampled      node={host.name} depth={self._depths[node_id]}")

            sim.schedule_at(sample_time, sample)
        logging.info(f"Queue sampling scheduled at t={sample_time}s for {network.node_count} nodes")

    def snapshot(self) -> QueueSample:
        if self._expected is None or self.sample_time is None:
            raise SchedulingError("queue sampler was never installed")
        if len(self._depths) != self._expected:
            raise SchedulingError(
                f"queue sample incomplete: {len(self._depths)} of {self._expected} nodes sampled "
                f"(did the run stop before t={self.sample_time}?)")
        return QueueSample(sample_time=self.sample_time, depths=self._depths)
