from __future__ import annotations

import logging
from dataclasses import dataclass, field

from network_simulation.host import Host
from network_simulation.packet import Packet, Protocol

_logger = logging.getLogger(__name__)


def _sim_time_prefix(host: Host) -> str:
    return f"[sim_t={host.scheduler.get_current_time():012.6f}s]"


class RateLimitedSource:
    """Constant bit-rate packet stream from a host to remote_address:remote_port.

    One packet of `packet_size_bytes` leaves every `packet_size_bytes * 8 / data_rate_bps`
    seconds between start and stop. The first packet is sent at the start instant.
    """

    def __init__(self, host: Host, remote_address: str, remote_port: int,
                 data_rate_bps: float, packet_size_bytes: int, protocol: Protocol):
        if data_rate_bps <= 0:
            raise ValueError(f"data_rate_bps must be > 0, got {data_rate_bps}")
        if packet_size_bytes <= 0:
            raise ValueError(f"packet_size_bytes must be > 0, got {packet_size_bytes}")
        self.host = host
        self.remote_address = remote_address
        self.remote_port = remote_port
        self.data_rate_bps = float(data_rate_bps)
        self.packet_size_bytes = int(packet_size_bytes)
        self.protocol = protocol
        self.local_port = host.allocate_ephemeral_port()
        self.running = False
        self.sent_packets = 0

    @property
    def interval(self) -> float:
        return self.packet_size_bytes * 8.0 / self.data_rate_bps

    def install(self, start_time: float, stop_time: float) -> None:
        sim = self.host.scheduler
        sim.schedule_at(start_time, self.start)
        sim.schedule_at(stop_time, self.stop)

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        _logger.debug(
            f"{_sim_time_prefix(self.host)} Source starting    host={self.host.name} dst={self.remote_address}:{self.remote_port}")
        self._send_next()

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        _logger.debug(
            f"{_sim_time_prefix(self.host)} Source stopped     host={self.host.name} dst={self.remote_address}:{self.remote_port} sent={self.sent_packets}")

    def _send_next(self) -> None:
        if not self.running:
            return
        self.host.send_packet(
            dst_ip_address=self.remote_address,
            source_port=self.local_port,
            dest_port=self.remote_port,
            size_bytes=self.packet_size_bytes,
            protocol=self.protocol,
            seq_number=self.sent_packets,
        )
        self.sent_packets += 1
        self.host.scheduler.schedule_event(self.interval, self._send_next)


@dataclass
class PacketSink:
    """Consumes packets addressed to `port` on `host`."""

    host: Host
    port: int
    listening: bool = field(default=False, init=False)
    total_packets: int = field(default=0, init=False)
    total_bytes: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.host.bind(self.port, self)

    def install(self, start_time: float, stop_time: float) -> None:
        sim = self.host.scheduler
        sim.schedule_at(start_time, self.start)
        sim.schedule_at(stop_time, self.stop)

    def start(self) -> None:
        self.listening = True

    def stop(self) -> None:
        self.listening = False

    def on_receive(self, packet: Packet) -> None:
        if not self.listening:
            return
        self.total_packets += 1
        self.total_bytes += packet.size_bytes
