from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List

from random_traffic.core.config import MAX_PORT
from random_traffic.core.errors import ConfigurationError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlowAssignment:
    """One planned flow: a source on `source_node` streaming to `dest_node:port`."""

    flow_id: int
    source_node: int
    dest_node: int
    port: int


class FlowPlanner:
    """Draws random source/destination pairs for concurrent flows.

    Source and destination are drawn independently and uniformly from the node ids.
    The destination is redrawn until it differs from the source; the source is never
    redrawn. After `max_destination_redraws` failed redraws the destination is taken
    directly from the node ids with the source excluded, so planning always ends.

    Pairs may repeat across flows. Ports are `base_port + (i mod num_flows)`, so no two
    flows in one plan listen on the same port.
    """

    def __init__(self, base_port: int, rng: random.Random, max_destination_redraws: int = 64):
        if not (1 <= base_port <= MAX_PORT):
            raise ConfigurationError("traffic.base_port", f"must be in [1, {MAX_PORT}], got {base_port}")
        if max_destination_redraws < 0:
            raise ConfigurationError(
                "traffic.max_destination_redraws", f"must be >= 0, got {max_destination_redraws}")
        self.base_port = base_port
        self.max_destination_redraws = max_destination_redraws
        self._rnd = rng
        self.fallback_draws = 0

    def _draw_node(self, num_nodes: int) -> int:
        # uniform(0, n) can return n itself through float rounding
        return min(int(self._rnd.uniform(0, num_nodes)), num_nodes - 1)

    def _draw_destination(self, num_nodes: int, source: int) -> int:
        dest = self._draw_node(num_nodes)
        redraws = 0
        while dest == source:
            if redraws >= self.max_destination_redraws:
                self.fallback_draws += 1
                dest = self._draw_node(num_nodes - 1)
                return dest + 1 if dest >= source else dest
            dest = self._draw_node(num_nodes)
            redraws += 1
        return dest

    def plan(self, num_nodes: int, num_flows: int) -> List[FlowAssignment]:
        if num_nodes < 2:
            raise ConfigurationError(
                "topology.nodes", f"flows need a destination other than their source; got {num_nodes} node(s)")
        if num_flows < 0:
            raise ConfigurationError("traffic.flows", f"must be >= 0, got {num_flows}")
        if self.base_port + num_flows - 1 > MAX_PORT:
            raise ConfigurationError(
                "traffic.flows", f"{num_flows} flows from base port {self.base_port} exceed port {MAX_PORT}")

        assignments: List[FlowAssignment] = []
        for i in range(num_flows):
            source = self._draw_node(num_nodes)
            dest = self._draw_destination(num_nodes, source)
            port = self.base_port + (i % num_flows)
            assignments.append(FlowAssignment(flow_id=i, source_node=source, dest_node=dest, port=port))
            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(f"Flow planned       flow={i} src=N{source} dst=N{dest} port={port}")

        logging.info(f"Planned {len(assignments)} flows over {num_nodes} nodes")
        return assignments
