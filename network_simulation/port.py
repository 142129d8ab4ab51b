from __future__ import annotations

import logging
from collections import deque
from typing import Deque, TYPE_CHECKING

from network_simulation.packet import Packet

if TYPE_CHECKING:
    from network_simulation.link import Link
    from network_simulation.network_node import NetworkNode


class Port:
    """A network interface with a drop-tail egress queue.

    The node decides *what* to send; the Port decides *when* the next queued packet
    can be handed to the shared Link. A packet arriving at a full queue is dropped
    and reported to the owner's flow monitor.
    """
    def __init__(self, id: int, owner: NetworkNode, queue_max_packets: int):
        self.port_id: int = id
        self.owner: NetworkNode = owner
        self.link: Link | None = None
        self.queue_max_packets: int = queue_max_packets
        self.egress_queue: Deque[Packet] = deque()
        self.peak_queue_len: int = 0
        self.dropped_count: int = 0
        self._drain_scheduled: bool = False
        self.is_connected: bool = False

    def connect(self, link: Link) -> None:
        self.link = link
        self.is_connected = True

    def enqueue(self, packet: Packet) -> None:
        """Queue a packet for transmission and schedule a drain attempt."""
        if len(self.egress_queue) >= self.queue_max_packets:
            self._drop(packet, reason="queue full")
            return

        self.egress_queue.append(packet)
        qlen = len(self.egress_queue)
        if qlen > self.peak_queue_len:
            self.peak_queue_len = qlen
        self._ensure_drain_scheduled()

    def queue_size(self) -> int:
        return len(self.egress_queue)

    def _drop(self, packet: Packet, *, reason: str) -> None:
        self.dropped_count += 1
        if self.owner.flow_monitor is not None:
            self.owner.flow_monitor.record_drop(packet)
        if self.owner.message_verbose:
            now = self.owner.scheduler.get_current_time()
            logging.debug(
                f"[sim_t={now:012.6f}s] Packet dropped     node={self.owner.name} port={self.port_id} packet_id={packet.tracking_info.global_id} reason={reason}")

    def _ensure_drain_scheduled(self) -> None:
        if self._drain_scheduled:
            return
        self._drain_scheduled = True
        self.owner.scheduler.schedule_event(0.0, self._drain_once)

    def _drain_once(self) -> None:
        """Attempt to transmit exactly one packet, then reschedule if needed."""
        self._drain_scheduled = False

        if not self.egress_queue:
            return

        now = self.owner.scheduler.get_current_time()
        next_avail = self.link.next_available_time

        if next_avail > now:
            # Channel busy. Try again exactly when it becomes free.
            self._drain_scheduled = True
            self.owner.scheduler.schedule_event(next_avail - now, self._drain_once)
            return

        packet = self.egress_queue.popleft()
        if self.owner.message_verbose:
            logging.debug(
                f"[sim_t={now:012.6f}s] Packet transmit    node={self.owner.name} port={self.port_id} packet_id={packet.tracking_info.global_id} link={self.link.name}"
            )

        self.link.transmit(packet, self)

        if self.egress_queue:
            delay = max(0.0, self.link.next_available_time - self.owner.scheduler.get_current_time())
            self._drain_scheduled = True
            self.owner.scheduler.schedule_event(delay, self._drain_once)
