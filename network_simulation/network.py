import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from des.des import DiscreteEventSimulator
from network_simulation.flow_monitor import FlowMonitor
from network_simulation.host import Host
from network_simulation.ip import IPPrefix
from network_simulation.link import Link
from network_simulation.scenario import Scenario

_logger = logging.getLogger(__name__)


class Network(ABC):
    def __init__(self, name: str, queue_max_packets: int, verbose: bool):
        """Base class for topology builders.

        Parameters:
        name: name of the topology
        queue_max_packets: drop-tail limit of every interface egress queue
        verbose: per-packet debug logging
        """
        self.simulator = DiscreteEventSimulator()
        self.flow_monitor = FlowMonitor()
        self.entities: Dict[str, Any] = {}
        self.hosts: List[Host] = []
        self.name = name
        self._links: list[Link] = []
        self.queue_max_packets = int(queue_max_packets)
        self.verbose = verbose
        self._scenario: Scenario | None = None

    def create(self) -> None:
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("Creating topology...")
        self.create_topology()
        logging.info(f"Topology '{self.name}' created: {len(self.hosts)} nodes, {len(self._links)} links")

    def assign_scenario(self, scenario: Scenario) -> None:
        logging.info("Creating scenario...")
        self._scenario = scenario
        self._scenario.install(self)
        logging.info("Scenario created.")

    def create_host(self, name: str) -> Host:
        h = Host(
            name=name,
            scheduler=self.simulator,
            message_verbose=self.verbose,
            queue_max_packets=self.queue_max_packets,
            flow_monitor=self.flow_monitor,
        )
        assert name not in self.entities
        self.entities[name] = h
        self.hosts.append(h)
        return h

    def create_link(self, name: str, bandwidth: float, delay: float) -> Link:
        l = Link(name, self.simulator, bandwidth, delay)
        assert name not in self.entities
        self.entities[name] = l
        self._links.append(l)
        return l

    def assign_addresses(self, block: str) -> None:
        """Give node i the i-th host address of `block` (a contiguous allocation)."""
        prefix = IPPrefix.from_string(block)
        for host, address in zip(self.hosts, prefix.host_addresses(len(self.hosts))):
            host.assign_address(str(address))
        logging.info(f"Assigned {len(self.hosts)} addresses from {prefix}")

    def address_plan(self) -> Dict[int, str]:
        """node index -> assigned address."""
        return {i: h.ip_address for i, h in enumerate(self.hosts)}

    def node(self, node_id: int) -> Host:
        return self.hosts[node_id]

    @property
    def node_count(self) -> int:
        return len(self.hosts)

    def run(self, until: float | None = None) -> None:
        assert self.simulator is not None
        self.simulator.run(until=until)

    def get_results(self) -> Dict[str, Any]:
        total_time = self.simulator.end_time or 0.0
        flows = self.flow_monitor.freeze().values()
        tx = sum(f.tx_packets for f in flows)
        rx = sum(f.rx_packets for f in flows)
        lost = sum(f.lost_packets for f in flows)
        delay_sum = sum(f.delay_sum for f in flows)
        total_data = sum(link.accumulated_bytes_transmitted for link in self._links)
        capacity = sum(link.bandwidth_bps / 8 * total_time for link in self._links)

        topology_summary = {
            'nodes count': len(self.hosts),
            'links count': len(self._links),
        }
        run_statistics = {
            'total run time (simulator time in seconds)': total_time,
            'executed events': self.simulator.executed_events,
            'flows observed': len(flows),
            'packets sent': tx,
            'packets received': rx,
            'packets lost': lost,
            'mean packet delay (s)': (delay_sum / rx) if rx > 0 else 0.0,
            'delivered packets percentage': (rx / tx * 100.0) if tx > 0 else 0.0,
            'link average utilization percentage': (total_data / capacity * 100.0) if capacity > 0 else 0.0,
            'max port peak queue len (packets)': max(
                (p.peak_queue_len for h in self.hosts for p in h.ports), default=0),
        }
        parameters_summary: Dict[str, Any] = {'queue_max_packets': self.queue_max_packets}
        if self._scenario is not None:
            parameters_summary.update(self._scenario.parameters_summary())

        return {
            'topology summary': topology_summary,
            'parameters summary': parameters_summary,
            'run statistics': run_statistics,
        }

    @abstractmethod
    def create_topology(self):
        pass

    @property
    def links(self):
        return self._links
