import unittest

from network_simulation.applications import PacketSink, RateLimitedSource
from network_simulation.ip import IPAddress, IPPrefix
from network_simulation.packet import Protocol
from network_simulators.bus_network_simulator import BusNetworkSimulator


def _bus(num_nodes: int, *, bandwidth: float = 100e6, block: str = "10.1.1.0/24") -> BusNetworkSimulator:
    network = BusNetworkSimulator(num_nodes=num_nodes, link_bandwidth_bps=bandwidth, link_delay_s=0.0,
                                  address_block=block, queue_max_packets=100, verbose=False)
    network.create()
    return network


class TestBusNetwork(unittest.TestCase):

    def test_topology_and_contiguous_addresses(self):
        network = _bus(4)

        self.assertEqual(network.node_count, 4)
        self.assertEqual(len(network.links), 1)
        self.assertEqual(len(network.links[0].ports), 4)
        self.assertEqual(network.address_plan(),
                         {0: "10.1.1.1", 1: "10.1.1.2", 2: "10.1.1.3", 3: "10.1.1.4"})

    def test_address_block_too_small_is_rejected(self):
        network = BusNetworkSimulator(num_nodes=3, link_bandwidth_bps=1e6, link_delay_s=0.0,
                                      address_block="10.0.0.0/30", queue_max_packets=10, verbose=False)
        with self.assertRaises(ValueError):
            network.create()

    def test_rate_limited_source_sends_between_start_and_stop(self):
        network = _bus(2)
        n0, n1 = network.node(0), network.node(1)

        sink = PacketSink(n1, 9)
        sink.install(1.0, 5.0)
        # 1000 bytes at 8 kbps -> one packet per second
        source = RateLimitedSource(n0, n1.ip_address, 9, data_rate_bps=8000, packet_size_bytes=1000,
                                   protocol=Protocol.UDP)
        source.install(1.0, 5.0)

        network.run(until=5.0)

        # packets at t=1,2,3,4; the stop at t=5 was registered before the t=5 send
        self.assertEqual(source.sent_packets, 4)
        self.assertEqual(sink.total_packets, 4)
        self.assertEqual(sink.total_bytes, 4000)
        stats = network.flow_monitor.freeze()[1]
        self.assertEqual(stats.tx_packets, 4)
        self.assertEqual(stats.first_tx_time, 1.0)
        self.assertEqual(stats.source_port, source.local_port)

    def test_get_results_reports_totals(self):
        network = _bus(2)
        n0, n1 = network.node(0), network.node(1)
        PacketSink(n1, 9).install(0.0, 2.0)
        RateLimitedSource(n0, n1.ip_address, 9, 8000, 1000, Protocol.UDP).install(0.0, 2.0)

        network.run(until=2.0)
        stats = network.get_results()["run statistics"]

        self.assertEqual(stats["flows observed"], 1)
        self.assertEqual(stats["packets sent"], 2)
        self.assertEqual(stats["packets received"], 2)
        self.assertEqual(stats["packets lost"], 0)
        # 1000 bytes at 100 Mbps, no propagation delay
        self.assertAlmostEqual(stats["mean packet delay (s)"], 8e-5, places=12)

    def test_ports_cannot_be_bound_twice(self):
        network = _bus(2)
        PacketSink(network.node(1), 9)
        with self.assertRaises(ValueError):
            PacketSink(network.node(1), 9)


class TestIPHelpers(unittest.TestCase):

    def test_parse_and_int_round_trip(self):
        addr = IPAddress.parse("10.1.1.7")
        self.assertEqual(IPAddress.from_int(addr.to_int()), addr)
        self.assertEqual(str(addr), "10.1.1.7")

    def test_invalid_addresses(self):
        for bad in ["10.1.1", "10.1.1.256", "a.b.c.d"]:
            with self.assertRaises(ValueError):
                IPAddress.parse(bad)

    def test_prefix_host_addresses(self):
        prefix = IPPrefix.from_string("192.168.0.17/24")
        self.assertEqual(str(prefix), "192.168.0.0/24")
        self.assertEqual(prefix.usable_hosts, 254)
        self.assertEqual([str(a) for a in prefix.host_addresses(2)], ["192.168.0.1", "192.168.0.2"])


if __name__ == "__main__":
    unittest.main()
