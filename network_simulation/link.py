from __future__ import annotations

import logging
from typing import List

from des.des import DiscreteEventSimulator
from network_simulation.packet import Packet
from network_simulation.port import Port


class Link:
    """A shared broadcast channel (bus) connecting any number of ports.

    Only one transmission is on the wire at a time. A frame occupies the channel for
    its serialization time and reaches the port owning the destination address after
    the propagation delay. Frames to an address nobody owns are dropped.
    """

    def __init__(self, name: str, scheduler: DiscreteEventSimulator, bandwidth_bps: float,
                 propagation_time: float):
        self.name = name
        self.scheduler = scheduler
        self.bandwidth_bps = bandwidth_bps
        self.propagation_time = propagation_time
        self.next_available_time: float = 0.0
        self.ports: List[Port] = []

        # for statistics
        self.accumulated_transmitting_time: float = 0.0
        self.accumulated_bytes_transmitted: int = 0
        self.undeliverable_count: int = 0

    def connect(self, port: Port) -> None:
        if port in self.ports:
            raise ValueError(f"Port {port.port_id} of {port.owner.name} already attached to link {self.name}")
        self.ports.append(port)

    def _port_for_address(self, address: str, sender: Port) -> Port | None:
        for port in self.ports:
            if port is not sender and port.owner.ip_address == address:
                return port
        return None

    def transmit(self, packet: Packet, sender: Port) -> None:
        assert sender in self.ports
        now = self.scheduler.get_current_time()
        assert now >= self.next_available_time, f"Link {self.name} transmit called while busy"
        serialization_duration = packet.size_bytes * 8.0 / self.bandwidth_bps  # in seconds
        self.accumulated_transmitting_time += serialization_duration
        self.accumulated_bytes_transmitted += packet.size_bytes
        finish_serialization_time = now + serialization_duration
        self.next_available_time = finish_serialization_time
        arrival_time = finish_serialization_time + self.propagation_time

        dst = self._port_for_address(packet.five_tuple.dst_ip, sender)
        if dst is None:
            self.undeliverable_count += 1
            sender._drop(packet, reason="no such address")
            logging.warning(
                f"[sim_t={now:012.6f}s] Packet no receiver  link={self.name} packet_id={packet.tracking_info.global_id} dst={packet.five_tuple.dst_ip}")
            return

        def deliver():
            dst.owner.post(packet)

        self.scheduler.schedule_event(arrival_time - now, deliver)
