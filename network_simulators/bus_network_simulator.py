from network_simulation.network import Network


class BusNetworkSimulator(Network):
    """N nodes on one shared broadcast link, addressed from one contiguous block."""

    def __init__(self, num_nodes: int, link_bandwidth_bps: float, link_delay_s: float,
                 address_block: str, queue_max_packets: int, verbose: bool):
        super().__init__("bus", queue_max_packets=queue_max_packets, verbose=verbose)
        self.num_nodes = int(num_nodes)
        self.link_bandwidth_bps = float(link_bandwidth_bps)
        self.link_delay_s = float(link_delay_s)
        self.address_block = address_block

    def create_topology(self):
        bus = self.create_link('bus', bandwidth=self.link_bandwidth_bps, delay=self.link_delay_s)
        for i in range(self.num_nodes):
            h = self.create_host(f'N{i}')
            h.connect(1, bus)
        self.assign_addresses(self.address_block)
