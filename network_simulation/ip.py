"""IPv4 address helpers used by the address plan.

Nodes on the shared link get consecutive host addresses out of one prefix
(e.g. 10.1.1.0/24 -> 10.1.1.1, 10.1.1.2, ...).
"""

from dataclasses import dataclass
from typing import List, Tuple, Union


@dataclass(frozen=True)
class IPAddress:
    """Simple IPv4 address value object (four octets, 0-255)."""
    octets: Tuple[int, int, int, int]

    @classmethod
    def parse(cls, value: Union[str, int, 'IPAddress']) -> 'IPAddress':
        """Create an IPAddress from a dotted string or a 32-bit integer."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls.from_int(value)
        if isinstance(value, str):
            parts = value.strip().split('.')
            if len(parts) != 4:
                raise ValueError(f"Invalid IPv4 string: {value}")
            try:
                o1, o2, o3, o4 = (int(p) for p in parts)
            except ValueError:
                raise ValueError(f"Invalid IPv4 string: {value}")
            octets: Tuple[int, int, int, int] = (o1, o2, o3, o4)
            cls._validate_octets(octets)
            return cls(octets)
        raise TypeError("Unsupported type for IPAddress.parse")

    @staticmethod
    def _validate_octets(octets: Tuple[int, int, int, int]) -> None:
        for o in octets:
            if not (0 <= o <= 255):
                raise ValueError(f"Invalid octet value: {o}")

    def __str__(self) -> str:
        return '.'.join(str(o) for o in self.octets)

    def to_int(self) -> int:
        a, b, c, d = self.octets
        return (a << 24) | (b << 16) | (c << 8) | d

    @classmethod
    def from_int(cls, value: int) -> 'IPAddress':
        if not (0 <= value <= 0xFFFFFFFF):
            raise ValueError("Integer value out of IPv4 range")
        return cls(((value >> 24) & 0xFF, (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF))


@dataclass(frozen=True)
class IPPrefix:
    """An IPv4 prefix (network address + prefix length), e.g. '10.1.1.0/24'."""
    network: IPAddress
    prefix_len: int

    @classmethod
    def from_string(cls, s: str) -> 'IPPrefix':
        try:
            addr_part, prefix_part = s.split('/')
            prefix_len = int(prefix_part)
        except (AttributeError, ValueError):
            raise ValueError(f"Invalid prefix string: {s}")
        net_addr = IPAddress.parse(addr_part)
        if not (0 <= prefix_len <= 32):
            raise ValueError("prefix_len must be in [0,32]")
        network_int = net_addr.to_int() & cls._mask_from_prefix(prefix_len)
        return cls(IPAddress.from_int(network_int), prefix_len)

    @staticmethod
    def _mask_from_prefix(prefix_len: int) -> int:
        if prefix_len == 0:
            return 0
        return (0xFFFFFFFF << (32 - prefix_len)) & 0xFFFFFFFF

    @property
    def usable_hosts(self) -> int:
        """Number of assignable host addresses (network and broadcast excluded)."""
        size = 1 << (32 - self.prefix_len)
        return max(0, size - 2)

    def host_addresses(self, count: int) -> List[IPAddress]:
        """First `count` host addresses of the prefix, in order."""
        if count > self.usable_hosts:
            raise ValueError(f"Prefix {self} holds {self.usable_hosts} hosts, {count} requested")
        base = self.network.to_int()
        return [IPAddress.from_int(base + i + 1) for i in range(count)]

    def __str__(self) -> str:
        return f"{self.network}/{self.prefix_len}"
