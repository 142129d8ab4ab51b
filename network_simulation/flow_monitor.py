"""Per-flow packet counters, classified by five-tuple.

The monitor is fed by the hosts (transmit / receive) and the interfaces (drops).
At the end of a run `freeze()` turns the live counters into read-only
`RawFlowStats` records, which is all the metrics layer ever sees.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from network_simulation.packet import FiveTuple, Packet

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawFlowStats:
    flow_id: int
    tx_packets: int
    rx_packets: int
    tx_bytes: int
    rx_bytes: int
    lost_packets: int
    first_tx_time: float
    last_rx_time: Optional[float]

    # classified identity of the flow
    source_address: str
    dest_address: str
    source_port: int
    dest_port: int
    protocol: str

    # sum of per-packet one-way delays over the received packets
    delay_sum: float = 0.0


@dataclass
class FlowCounters:
    tx_packets: int = 0
    tx_bytes: int = 0
    rx_packets: int = 0
    rx_bytes: int = 0
    lost_packets: int = 0
    first_tx_time: Optional[float] = None
    last_rx_time: Optional[float] = None
    delay_sum: float = 0.0


class FlowClassifier:
    """Maps five-tuples to flow ids, numbered from 1 in order of first sighting."""

    def __init__(self):
        self._ids: Dict[FiveTuple, int] = {}
        self._tuples: Dict[int, FiveTuple] = {}
        self._next_id = itertools.count(1)

    def classify(self, five_tuple: FiveTuple) -> Tuple[int, bool]:
        flow_id = self._ids.get(five_tuple)
        if flow_id is not None:
            return flow_id, False
        flow_id = next(self._next_id)
        self._ids[five_tuple] = flow_id
        self._tuples[flow_id] = five_tuple
        return flow_id, True

    def lookup(self, five_tuple: FiveTuple) -> Optional[int]:
        return self._ids.get(five_tuple)

    def five_tuple(self, flow_id: int) -> FiveTuple:
        return self._tuples[flow_id]

    def __len__(self) -> int:
        return len(self._ids)


class FlowMonitor:

    def __init__(self):
        self.classifier = FlowClassifier()
        self._counters: Dict[int, FlowCounters] = {}

    def record_tx(self, packet: Packet, now: float) -> None:
        flow_id, is_new = self.classifier.classify(packet.five_tuple)
        if is_new:
            self._counters[flow_id] = FlowCounters()
            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(f"[sim_t={now:012.6f}s] New flow           flow_id={flow_id} {packet.five_tuple}")
        c = self._counters[flow_id]
        c.tx_packets += 1
        c.tx_bytes += packet.size_bytes
        if c.first_tx_time is None:
            c.first_tx_time = now

    def record_rx(self, packet: Packet, now: float) -> None:
        flow_id = self.classifier.lookup(packet.five_tuple)
        if flow_id is None:
            # Never transmitted through this monitor; nothing to attribute it to.
            return
        c = self._counters[flow_id]
        c.rx_packets += 1
        c.rx_bytes += packet.size_bytes
        c.delay_sum += now - packet.tracking_info.birth_time
        c.last_rx_time = now

    def record_drop(self, packet: Packet) -> None:
        flow_id = self.classifier.lookup(packet.five_tuple)
        if flow_id is None:
            return
        self._counters[flow_id].lost_packets += 1

    @property
    def flow_count(self) -> int:
        return len(self._counters)

    def freeze(self) -> Mapping[int, RawFlowStats]:
        """Snapshot every observed flow as an immutable RawFlowStats, keyed by flow id."""
        frozen: Dict[int, RawFlowStats] = {}
        for flow_id in sorted(self._counters):
            c = self._counters[flow_id]
            t = self.classifier.five_tuple(flow_id)
            frozen[flow_id] = RawFlowStats(
                flow_id=flow_id,
                tx_packets=c.tx_packets,
                rx_packets=c.rx_packets,
                tx_bytes=c.tx_bytes,
                rx_bytes=c.rx_bytes,
                lost_packets=c.lost_packets,
                first_tx_time=c.first_tx_time if c.first_tx_time is not None else 0.0,
                last_rx_time=c.last_rx_time,
                source_address=t.src_ip,
                dest_address=t.dst_ip,
                source_port=t.src_port,
                dest_port=t.dst_port,
                protocol=t.protocol.name,
                delay_sum=c.delay_sum,
            )
        return frozen
