"""Turns frozen per-flow counters and the queue sample into FlowReport records.

Derivations per flow:

- bandwidth = tx_bytes * 8 / (last_rx_time - first_tx_time), in bits per second.
  A zero (or negative) observation window, or a flow that received nothing, reports
  0.0 instead of dividing.
- delay = receive_timestamp - send_timestamp. A flow that received nothing reports
  its send timestamp as receive timestamp, so its delay is 0.0.
- loss_rate = lost_packets / tx_packets, 0 when nothing was sent.
- queue_size and the two addresses come from the lookup mode (see AddressLookupMode).
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from network_simulation.flow_monitor import RawFlowStats
from random_traffic.core.config import AddressLookupMode
from random_traffic.core.errors import ConfigurationError
from random_traffic.metrics.queue_sampler import QueueSample
from random_traffic.traffic.flow_planner import FlowAssignment

_logger = logging.getLogger(__name__)

BANDWIDTH_UNDEFINED = 0.0


@dataclass(frozen=True)
class FlowReport:
    flow_id: int
    source_address: str
    dest_address: str
    tx_packets: int
    rx_packets: int
    tx_bytes: int
    rx_bytes: int
    send_timestamp: float
    receive_timestamp: float
    bandwidth: float
    delay: float
    loss_rate: float
    queue_size: int


def compute_bandwidth(tx_bytes: int, first_tx_time: float, last_rx_time: Optional[float],
                      *, flow_id: int | None = None) -> float:
    if last_rx_time is None:
        return BANDWIDTH_UNDEFINED
    window = last_rx_time - first_tx_time
    if window <= 0:
        _logger.debug(f"Zero observation window flow={flow_id} t={first_tx_time}; bandwidth reported as {BANDWIDTH_UNDEFINED}")
        return BANDWIDTH_UNDEFINED
    bandwidth = tx_bytes * 8 / window
    if not math.isfinite(bandwidth):
        _logger.debug(f"Non-finite bandwidth flow={flow_id}; reported as {BANDWIDTH_UNDEFINED}")
        return BANDWIDTH_UNDEFINED
    return bandwidth


def compute_loss_rate(lost_packets: int, tx_packets: int) -> float:
    if tx_packets <= 0:
        return 0.0
    return min(1.0, max(0.0, lost_packets / tx_packets))


class MetricsAggregator:

    def __init__(self, lookup_mode: AddressLookupMode = AddressLookupMode.ASSIGNMENT):
        self.lookup_mode = lookup_mode

    def aggregate(
        self,
        raw_stats: Mapping[int, RawFlowStats],
        queue_sample: QueueSample,
        address_plan: Mapping[int, str],
        assignments: Iterable[FlowAssignment] = (),
    ) -> List[FlowReport]:
        """One FlowReport per observed flow, ascending by flow id."""
        if not address_plan:
            raise ConfigurationError("address_plan", "no node addresses to resolve flows against")
        missing = [n for n in address_plan if n not in queue_sample.depths]
        if missing:
            raise ConfigurationError("queue_sample", f"no queue depth for node(s) {missing}")

        node_by_address = {address: node for node, address in address_plan.items()}
        by_endpoint: Dict[Tuple[str, str, int], FlowAssignment] = {
            (address_plan[a.source_node], address_plan[a.dest_node], a.port): a for a in assignments
        }

        reports = []
        for flow_id in sorted(raw_stats):
            stats = raw_stats[flow_id]
            if self.lookup_mode is AddressLookupMode.FLOW_ID_MODULO:
                src, dst, queue_size = self._modulo_lookup(flow_id, queue_sample, address_plan)
            else:
                src, dst, queue_size = self._assignment_lookup(
                    stats, queue_sample, address_plan, node_by_address, by_endpoint)
            reports.append(self._build(stats, src, dst, queue_size))
        logging.info(f"Aggregated {len(reports)} flow reports (lookup={self.lookup_mode.name.lower()})")
        return reports

    @staticmethod
    def _modulo_lookup(flow_id: int, queue_sample: QueueSample,
                       address_plan: Mapping[int, str]) -> Tuple[str, str, int]:
        nodes = sorted(address_plan)
        n = len(nodes)
        src_node = nodes[flow_id % n]
        dst_node = nodes[(flow_id + 1) % n]
        return address_plan[src_node], address_plan[dst_node], queue_sample[src_node]

    @staticmethod
    def _assignment_lookup(
        stats: RawFlowStats,
        queue_sample: QueueSample,
        address_plan: Mapping[int, str],
        node_by_address: Mapping[str, int],
        by_endpoint: Mapping[Tuple[str, str, int], FlowAssignment],
    ) -> Tuple[str, str, int]:
        assignment = by_endpoint.get((stats.source_address, stats.dest_address, stats.dest_port))
        if assignment is not None:
            return (address_plan[assignment.source_node], address_plan[assignment.dest_node],
                    queue_sample[assignment.source_node])

        source_node = node_by_address.get(stats.source_address)
        if source_node is None:
            raise ConfigurationError(
                "address_plan", f"flow {stats.flow_id} source {stats.source_address} is not in the address plan")
        _logger.debug(f"Flow {stats.flow_id} matches no assignment; using its own addresses")
        return stats.source_address, stats.dest_address, queue_sample[source_node]

    @staticmethod
    def _build(stats: RawFlowStats, src: str, dst: str, queue_size: int) -> FlowReport:
        send_ts = stats.first_tx_time
        receive_ts = stats.last_rx_time if stats.last_rx_time is not None else send_ts
        return FlowReport(
            flow_id=stats.flow_id,
            source_address=src,
            dest_address=dst,
            tx_packets=stats.tx_packets,
            rx_packets=stats.rx_packets,
            tx_bytes=stats.tx_bytes,
            rx_bytes=stats.rx_bytes,
            send_timestamp=send_ts,
            receive_timestamp=receive_ts,
            bandwidth=compute_bandwidth(stats.tx_bytes, stats.first_tx_time, stats.last_rx_time,
                                        flow_id=stats.flow_id),
            delay=receive_ts - send_ts,
            loss_rate=compute_loss_rate(stats.lost_packets, stats.tx_packets),
            queue_size=queue_size,
        )


def summarize(reports: List[FlowReport], queue_sample: QueueSample) -> Dict[str, float]:
    """Run-level figures logged next to the report."""
    tx = sum(r.tx_packets for r in reports)
    lost = sum(round(r.loss_rate * r.tx_packets) for r in reports)
    return {
        'flows': len(reports),
        'mean bandwidth (bps)': (sum(r.bandwidth for r in reports) / len(reports)) if reports else 0.0,
        'mean delay (s)': (sum(r.delay for r in reports) / len(reports)) if reports else 0.0,
        'packets sent': tx,
        'overall loss rate': (lost / tx) if tx > 0 else 0.0,
        'max sampled queue (packets)': max(queue_sample.depths.values(), default=0),
    }
