from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from network_simulation.flow_monitor import RawFlowStats
from network_simulators.bus_network_simulator import BusNetworkSimulator
from random_traffic.core.config import SimulationConfig
from random_traffic.metrics.aggregator import FlowReport, MetricsAggregator, summarize
from random_traffic.metrics.queue_sampler import QueueSample
from random_traffic.scenarios.random_flows_scenario import RandomFlowsScenario
from random_traffic.traffic.flow_planner import FlowAssignment


@dataclass
class ExperimentResult:
    assignments: List[FlowAssignment]
    raw_stats: Mapping[int, RawFlowStats]
    queue_sample: QueueSample
    address_plan: Dict[int, str]
    reports: List[FlowReport]
    network_results: Dict[str, Any]
    summary: Dict[str, float]


def build_network(config: SimulationConfig) -> BusNetworkSimulator:
    return BusNetworkSimulator(
        num_nodes=config.num_nodes,
        link_bandwidth_bps=config.link_data_rate_bps,
        link_delay_s=config.link_delay_s,
        address_block=config.address_block,
        queue_max_packets=config.queue_max_packets,
        verbose=config.message_verbose,
    )


def build_scenario(config: SimulationConfig) -> RandomFlowsScenario:
    return RandomFlowsScenario(
        num_flows=config.num_flows,
        epoch_duration=config.epoch_duration_s,
        start_time=config.app_start_time_s,
        data_rate_bps=config.flow_data_rate_bps,
        packet_size_bytes=config.packet_size_bytes,
        base_port=config.base_port,
        protocol=config.protocol,
        seed=config.seed,
        max_destination_redraws=config.max_destination_redraws,
    )


def run_experiment(config: SimulationConfig) -> ExperimentResult:
    """Plan flows, run one epoch and aggregate the per-flow reports (nothing is written)."""
    network = build_network(config)
    scenario = build_scenario(config)

    network.create()
    network.assign_scenario(scenario)

    logging.info(f"Starting simulation, epoch={config.epoch_duration_s}s")
    start = time.perf_counter()
    network.run(until=config.epoch_duration_s)
    elapsed = time.perf_counter() - start
    logging.info(f"Simulation run time: {elapsed:.3f} seconds")

    queue_sample = scenario.queue_sampler.snapshot()
    raw_stats = network.flow_monitor.freeze()
    address_plan = network.address_plan()

    reports = MetricsAggregator(config.lookup_mode).aggregate(
        raw_stats, queue_sample, address_plan, scenario.assignments)

    return ExperimentResult(
        assignments=list(scenario.assignments),
        raw_stats=raw_stats,
        queue_sample=queue_sample,
        address_plan=address_plan,
        reports=reports,
        network_results=network.get_results(),
        summary=summarize(reports, queue_sample),
    )
