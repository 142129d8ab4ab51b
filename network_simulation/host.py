from __future__ import annotations

import itertools
import logging
from typing import Dict, Protocol as TypingProtocol

from des.des import DiscreteEventSimulator
from network_simulation.flow_monitor import FlowMonitor
from network_simulation.network_node import NetworkNode
from network_simulation.packet import FiveTuple, Packet, PacketHeader, PacketTrackingInfo, Protocol

_logger = logging.getLogger(__name__)

packet_ids = itertools.count()

EPHEMERAL_PORT_FIRST = 49153
EPHEMERAL_PORT_LAST = 65535


class PortListener(TypingProtocol):
    def on_receive(self, packet: Packet) -> None: ...


class Host(NetworkNode):
    """An end node with a single interface on the shared link."""

    def __init__(
        self,
        name: str,
        scheduler: DiscreteEventSimulator,
        message_verbose: bool,
        queue_max_packets: int,
        flow_monitor: FlowMonitor | None = None,
        ip_address: str | None = None,
    ):
        super().__init__(
            name,
            1,
            scheduler,
            queue_max_packets=queue_max_packets,
            message_verbose=message_verbose,
            flow_monitor=flow_monitor,
        )
        self._ip_address: str | None = ip_address
        self._received_count: int = 0
        self._listeners: Dict[int, PortListener] = {}
        self._next_ephemeral_port = EPHEMERAL_PORT_FIRST

    @property
    def ip_address(self) -> str | None:
        return self._ip_address

    def assign_address(self, ip_address: str) -> None:
        if self._ip_address is not None:
            raise ValueError(f"Host {self.name} already has address {self._ip_address}")
        self._ip_address = ip_address

    def bind(self, port: int, listener: PortListener) -> None:
        if port in self._listeners:
            raise ValueError(f"Host {self.name} port {port} is already bound")
        self._listeners[port] = listener

    def allocate_ephemeral_port(self) -> int:
        port = self._next_ephemeral_port
        if port > EPHEMERAL_PORT_LAST:
            raise RuntimeError(f"Host {self.name} ran out of ephemeral ports")
        self._next_ephemeral_port += 1
        return port

    def send_packet(
        self,
        dst_ip_address: str,
        source_port: int,
        dest_port: int,
        size_bytes: int,
        protocol: Protocol,
        seq_number: int = 0,
    ) -> Packet:
        """Build one packet, account it with the flow monitor and queue it on the interface."""
        assert self._ip_address is not None, f"Host {self.name} has no address"
        now = self.scheduler.get_current_time()
        header = PacketHeader(
            five_tuple=FiveTuple(self._ip_address, dst_ip_address, source_port, dest_port, protocol),
            seq_number=seq_number,
            size_bytes=size_bytes,
        )
        packet = Packet(header=header,
                        tracking_info=PacketTrackingInfo(global_id=next(packet_ids), birth_time=now))
        if self.flow_monitor is not None:
            self.flow_monitor.record_tx(packet, now)
        self.ports[0].enqueue(packet)
        return packet

    def on_message(self, packet: Packet):
        now = self.scheduler.get_current_time()
        self._received_count += 1
        if self.flow_monitor is not None:
            self.flow_monitor.record_rx(packet, now)

        if self.message_verbose and _logger.isEnabledFor(logging.DEBUG):
            _logger.debug(
                f"[sim_t={now:012.6f}s] Packet received    host={self.name} packet_id={packet.tracking_info.global_id}")

        listener = self._listeners.get(packet.five_tuple.dst_port)
        if listener is not None:
            listener.on_receive(packet)

    @property
    def received_count(self) -> int:
        return self._received_count
