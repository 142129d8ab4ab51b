from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, List, TYPE_CHECKING

from des.des import DiscreteEventSimulator
from network_simulation.link import Link
from network_simulation.packet import Packet
from network_simulation.port import Port

if TYPE_CHECKING:
    from network_simulation.flow_monitor import FlowMonitor


class NetworkNode(ABC):
    def __init__(self, name: str,
                 ports_count: int,
                 scheduler: DiscreteEventSimulator,
                 queue_max_packets: int,
                 message_verbose: bool,
                 flow_monitor: FlowMonitor | None = None):
        self.name = name
        self.scheduler = scheduler
        self.inbox: Deque[Packet] = deque()
        self._handle_scheduled: bool = False
        self.message_verbose = message_verbose
        self.flow_monitor = flow_monitor
        self.ports: List[Port] = [Port(i, self, queue_max_packets) for i in range(ports_count)]

    @property
    @abstractmethod
    def ip_address(self) -> str | None:
        pass

    # called by links to make this node receive a packet
    # packets are not handled immediately, but scheduled to be handled at the current time step
    # the reason is to avoid deep recursion when packets are posted in response to receiving packets
    def post(self, packet: Packet) -> None:
        self.inbox.append(packet)
        if not self._handle_scheduled:
            self._handle_scheduled = True
            self.scheduler.schedule_event(0.0, self.handle_message)

    def handle_message(self):
        while self.inbox:
            self.on_message(self.inbox.popleft())
        self._handle_scheduled = False

    @abstractmethod
    def on_message(self, packet: Packet):
        pass

    def connect(self, port_id: int, link: Link):
        """Connect one of this node's ports to a link.

        Public API uses 1-based port numbering (valid range: 1..len(self.ports)).
        """
        assert 1 <= port_id <= len(self.ports)
        port = self.ports[port_id - 1]
        assert not port.is_connected
        port.connect(link)
        link.connect(port)

    def port_queue_size(self, port_id: int) -> int:
        """Return the number of queued egress packets on a given port (1-based port_id)."""
        assert 1 <= port_id <= len(self.ports)
        return self.ports[port_id - 1].queue_size()
