import os

from random_traffic.metrics.aggregator import FlowReport
from visualization.flow_report_visualizer import visualize_flow_reports


def _report(flow_id: int, bandwidth: float) -> FlowReport:
    return FlowReport(
        flow_id=flow_id, source_address="10.1.1.1", dest_address="10.1.1.2",
        tx_packets=10, rx_packets=9, tx_bytes=10240, rx_bytes=9216,
        send_timestamp=1.0, receive_timestamp=9.5, bandwidth=bandwidth, delay=8.5,
        loss_rate=0.1, queue_size=2,
    )


def test_plot_is_saved(tmp_path):
    path = visualize_flow_reports([_report(1, 5e5), _report(2, 4e5)], out_dir=str(tmp_path), tag="assignment")

    assert path is not None
    assert os.path.dirname(path) == str(tmp_path)
    assert os.path.basename(path).startswith("flow_report_assignment_")
    assert os.path.getsize(path) > 0


def test_nothing_to_plot(tmp_path):
    assert visualize_flow_reports([], out_dir=str(tmp_path)) is None
    assert list(tmp_path.iterdir()) == []
