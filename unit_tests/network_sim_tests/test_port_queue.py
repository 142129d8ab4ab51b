import unittest

from des.des import DiscreteEventSimulator
from network_simulation.flow_monitor import FlowMonitor
from network_simulation.host import Host
from network_simulation.link import Link
from network_simulation.packet import Protocol


class TestPortQueue(unittest.TestCase):

    def _make_pair(self, *, queue_max_packets: int = 100):
        sim = DiscreteEventSimulator()
        monitor = FlowMonitor()

        h1 = Host(name="h1", scheduler=sim, message_verbose=False, queue_max_packets=queue_max_packets,
                  flow_monitor=monitor, ip_address="10.0.0.1")
        h2 = Host(name="h2", scheduler=sim, message_verbose=False, queue_max_packets=queue_max_packets,
                  flow_monitor=monitor, ip_address="10.0.0.2")

        # 1 Mbps, 0 propagation delay.
        link = Link("l1", sim, bandwidth_bps=1e6, propagation_time=0.0)
        h1.connect(1, link)
        h2.connect(1, link)
        return sim, monitor, h1, h2, link

    def _send(self, host: Host, dst: str, count: int, size_bytes: int = 1000):
        for i in range(count):
            host.send_packet(
                dst_ip_address=dst,
                source_port=49153,
                dest_port=80,
                size_bytes=size_bytes,  # 1000B -> 0.008s serialization
                protocol=Protocol.UDP,
                seq_number=i,
            )

    def test_port_queue_drains_using_link_availability(self):
        sim, monitor, h1, h2, _ = self._make_pair()

        # Create 2 packets at time 0. They should serialize on the link.
        self._send(h1, "10.0.0.2", 2)

        # Immediately after enqueuing, we should have a backlog.
        self.assertGreaterEqual(h1.port_queue_size(1), 1)

        sim.run()

        self.assertEqual(h2.received_count, 2)
        self.assertEqual(h1.port_queue_size(1), 0)
        self.assertAlmostEqual(sim.end_time, 0.016, places=6)

        stats = monitor.freeze()
        self.assertEqual(list(stats), [1])
        self.assertEqual(stats[1].tx_packets, 2)
        self.assertEqual(stats[1].rx_packets, 2)
        self.assertEqual(stats[1].rx_bytes, 2000)
        self.assertAlmostEqual(stats[1].last_rx_time, 0.016, places=6)

    def test_full_queue_drops_and_counts_loss(self):
        sim, monitor, h1, h2, _ = self._make_pair(queue_max_packets=1)

        self._send(h1, "10.0.0.2", 3)
        self.assertEqual(h1.port_queue_size(1), 1)
        self.assertEqual(h1.ports[0].dropped_count, 2)

        sim.run()

        stats = monitor.freeze()[1]
        self.assertEqual(stats.tx_packets, 3)
        self.assertEqual(stats.rx_packets, 1)
        self.assertEqual(stats.lost_packets, 2)
        self.assertEqual(h1.ports[0].peak_queue_len, 1)

    def test_unknown_destination_is_dropped_on_the_link(self):
        sim, monitor, h1, h2, link = self._make_pair()

        self._send(h1, "10.0.0.99", 1)
        sim.run()

        self.assertEqual(h2.received_count, 0)
        self.assertEqual(link.undeliverable_count, 1)
        self.assertEqual(monitor.freeze()[1].lost_packets, 1)

    def test_shared_link_serializes_senders(self):
        sim, monitor, h1, h2, link = self._make_pair()

        # both directions contend for the same channel
        self._send(h1, "10.0.0.2", 1)
        self._send(h2, "10.0.0.1", 1)
        sim.run()

        self.assertEqual(h1.received_count, 1)
        self.assertEqual(h2.received_count, 1)
        self.assertAlmostEqual(sim.end_time, 0.016, places=6)
        self.assertEqual(link.accumulated_bytes_transmitted, 2000)


if __name__ == "__main__":
    unittest.main()
