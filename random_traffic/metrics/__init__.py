from random_traffic.metrics.aggregator import FlowReport, MetricsAggregator, summarize
from random_traffic.metrics.queue_sampler import QueueSample, QueueSampler
from random_traffic.metrics.report_writer import REPORT_HEADER, render_report, write_report

__all__ = [
    "FlowReport",
    "MetricsAggregator",
    "summarize",
    "QueueSample",
    "QueueSampler",
    "REPORT_HEADER",
    "render_report",
    "write_report",
]
