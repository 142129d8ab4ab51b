"""Traffic scenarios for the random-traffic experiment.

See `network_simulation.scenario.Scenario`.
"""
from random_traffic.scenarios.random_flows_scenario import RandomFlowsScenario

__all__ = ["RandomFlowsScenario"]
