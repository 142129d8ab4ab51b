from __future__ import annotations

import logging
import random
from typing import Any, Dict, List

from network_simulation.applications import PacketSink, RateLimitedSource
from network_simulation.packet import Protocol
from network_simulation.scenario import Scenario
from random_traffic.metrics.queue_sampler import QueueSampler
from random_traffic.traffic.flow_planner import FlowAssignment, FlowPlanner


class RandomFlowsScenario(Scenario):
    """`num_flows` constant-rate flows between randomly paired nodes.

    Every planned flow gets a source on its source node and a sink on its destination
    node. Both run from `start_time` to the end of the epoch (`stop_time`). The queue sampler is
    installed last, so for nodes sampled at the same instant as other events the
    registration order decides.
    """

    name = "random-flows"

    def __init__(self, num_flows: int, epoch_duration: float, start_time: float,
                 data_rate_bps: float, packet_size_bytes: int, base_port: int,
                 protocol: Protocol = Protocol.UDP, seed: int = 0, max_destination_redraws: int = 64):
        super().__init__(start_time, epoch_duration)
        self.num_flows = int(num_flows)
        self.data_rate_bps = float(data_rate_bps)
        self.packet_size_bytes = int(packet_size_bytes)
        self.protocol = protocol
        self.seed = seed
        self.planner = FlowPlanner(base_port, random.Random(seed), max_destination_redraws)
        self.queue_sampler = QueueSampler()
        self.assignments: List[FlowAssignment] = []
        self.sources: List[RateLimitedSource] = []
        self.sinks: List[PacketSink] = []

    def install(self, network) -> None:
        # validate everything before the first event is scheduled
        QueueSampler.sample_time_for(self.stop_time)
        self.assignments = self.planner.plan(network.node_count, self.num_flows)

        for a in self.assignments:
            src = network.node(a.source_node)
            dst = network.node(a.dest_node)
            sink = PacketSink(dst, a.port)
            sink.install(self.start_time, self.stop_time)
            source = RateLimitedSource(
                src,
                remote_address=dst.ip_address,
                remote_port=a.port,
                data_rate_bps=self.data_rate_bps,
                packet_size_bytes=self.packet_size_bytes,
                protocol=self.protocol,
            )
            source.install(self.start_time, self.stop_time)
            self.sinks.append(sink)
            self.sources.append(source)

        self.queue_sampler.install(network, self.stop_time)
        logging.info(f"Installed {len(self.assignments)} source/sink pairs, active {self.start_time}s-{self.stop_time}s")

    def parameters_summary(self) -> Dict[str, Any]:
        out = super().parameters_summary()
        out.update({
            "flows": self.num_flows,
            "data_rate_bps": self.data_rate_bps,
            "packet_size_bytes": self.packet_size_bytes,
            "protocol": self.protocol.name.lower(),
            "seed": self.seed,
            "destination_fallback_draws": self.planner.fallback_draws,
        })
        return out
