from random_traffic.traffic.flow_planner import FlowAssignment, FlowPlanner

__all__ = ["FlowAssignment", "FlowPlanner"]
