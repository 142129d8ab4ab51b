from dataclasses import dataclass, field
from enum import Enum

import xxhash


class Protocol(Enum):
    TCP = 6
    UDP = 17


@dataclass(frozen=True)
class FiveTuple:
    src_ip: str
    dst_ip: str
    src_port: int
    dst_port: int
    protocol: Protocol

    # Cached once at creation; the flow classifier hashes every packet's tuple.
    _hash: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, '_hash', xxhash.xxh64(str(self).encode('utf-8')).intdigest())

    def __str__(self) -> str:
        return f"{self.src_ip}:{self.src_port} -> {self.dst_ip}:{self.dst_port} ({self.protocol.name})"

    def __hash__(self) -> int:
        return self._hash


@dataclass
class PacketHeader:
    """L3/L4 header: the flow identity plus the packet size on the wire."""
    five_tuple: FiveTuple
    seq_number: int
    size_bytes: int


@dataclass
class PacketTrackingInfo:
    """Simulation-only bookkeeping for a packet."""
    global_id: int
    birth_time: float


@dataclass(slots=True)
class Packet:
    header: PacketHeader
    tracking_info: PacketTrackingInfo

    @property
    def five_tuple(self) -> FiveTuple:
        return self.header.five_tuple

    @property
    def size_bytes(self) -> int:
        return self.header.size_bytes
