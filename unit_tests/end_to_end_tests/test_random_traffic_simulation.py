import csv

import pytest
import yaml

import random_traffic_simulation
from random_traffic.core.config import AddressLookupMode, SimulationConfig
from random_traffic.core.runner import build_scenario, run_experiment
from random_traffic.metrics.report_writer import render_report, write_report
from random_traffic.scenarios.random_flows_scenario import RandomFlowsScenario

EXPECTED_HEADER = ("FlowID,SourceAddress,DestinationAddress,PacketsSent,PacketsReceived,BytesSent,"
                   "BytesReceived,SendTimestamp,ReceiveTimestamp,Bandwidth,Delay,PacketLossRate,QueueSize")


def _small_config(tmp_path, **overrides) -> SimulationConfig:
    values = dict(num_nodes=3, num_flows=5, epoch_duration_s=10.0,
                  report_path=str(tmp_path / "flow_report.csv"), log_dir=str(tmp_path / "logs"))
    values.update(overrides)
    return SimulationConfig(**values)


@pytest.mark.parametrize("lookup_mode", list(AddressLookupMode))
def test_three_nodes_five_flows(tmp_path, lookup_mode):
    config = _small_config(tmp_path, lookup_mode=lookup_mode)
    result = run_experiment(config)
    path = write_report(result.reports, config.report_path)

    with open(path, newline="", encoding="utf-8") as f:
        text = f.read()
    rows = list(csv.reader(text.splitlines()))

    assert text.splitlines()[0] == EXPECTED_HEADER
    assert len(rows) == 1 + 5
    assert all(len(row) == 13 for row in rows)
    flow_ids = [int(row[0]) for row in rows[1:]]
    assert flow_ids == sorted(flow_ids) == sorted(result.raw_stats)
    for row in rows[1:]:
        assert row[1] != row[2]
        assert row[12] != "" and int(row[12]) >= 0


def test_assignment_lookup_reports_the_planned_endpoints(tmp_path):
    result = run_experiment(_small_config(tmp_path))
    plan = result.address_plan
    planned = {(plan[a.source_node], plan[a.dest_node]) for a in result.assignments}

    assert len(result.assignments) == 5
    for report in result.reports:
        assert (report.source_address, report.dest_address) in planned
        assert report.queue_size == result.queue_sample[
            next(n for n, addr in plan.items() if addr == report.source_address)]


def test_uncongested_flows_deliver_everything(tmp_path):
    result = run_experiment(_small_config(tmp_path))

    for report in result.reports:
        assert report.tx_packets > 0
        assert report.loss_rate == 0.0
        assert report.send_timestamp == pytest.approx(1.0)
        assert 1.0 < report.receive_timestamp <= 10.0
        assert report.bandwidth > 0.0


def test_congested_bus_loses_packets_but_keeps_loss_rate_bounded(tmp_path):
    config = _small_config(tmp_path, link_data_rate_bps=1e6, flow_data_rate_bps=400e3,
                           packet_size_bytes=512, queue_max_packets=20)
    result = run_experiment(config)

    assert sum(round(r.loss_rate * r.tx_packets) for r in result.reports) > 0
    assert all(0.0 <= r.loss_rate <= 1.0 for r in result.reports)
    assert result.summary["max sampled queue (packets)"] > 0


def test_aggregation_of_one_run_is_reproducible(tmp_path):
    first = run_experiment(_small_config(tmp_path))
    second = run_experiment(_small_config(tmp_path))

    assert render_report(first.reports) == render_report(second.reports)


def test_zero_flows_gives_header_only_report(tmp_path):
    config = _small_config(tmp_path, num_flows=0)
    result = run_experiment(config)
    write_report(result.reports, config.report_path)

    assert (tmp_path / "flow_report.csv").read_text(encoding="utf-8") == EXPECTED_HEADER + "\n"


def _write_yaml(tmp_path, data) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


def test_main_writes_report_and_exits_zero(tmp_path):
    cfg = _write_yaml(tmp_path, {
        "run": {"log_dir": str(tmp_path / "logs")},
        "topology": {"nodes": 3},
        "traffic": {"flows": 5, "epoch_s": 10.0},
        "report": {"path": str(tmp_path / "report.csv")},
    })

    assert random_traffic_simulation.main([cfg]) == 0
    lines = (tmp_path / "report.csv").read_text(encoding="utf-8").splitlines()
    assert lines[0] == EXPECTED_HEADER
    assert len(lines) == 6
    assert any((tmp_path / "logs").iterdir())


def test_main_rejects_invalid_configuration(tmp_path):
    cfg = _write_yaml(tmp_path, {"topology": {"nodes": 1}, "report": {"path": str(tmp_path / "report.csv")}})

    assert random_traffic_simulation.main([cfg]) == 2
    assert not (tmp_path / "report.csv").exists()


def test_main_rejects_epoch_shorter_than_sample_lead_time(tmp_path):
    cfg = _write_yaml(tmp_path, {
        "run": {"log_dir": str(tmp_path / "logs")},
        "traffic": {"epoch_s": 0.5, "start_s": 0.0},
        "report": {"path": str(tmp_path / "report.csv")},
    })

    assert random_traffic_simulation.main([cfg]) == 2


def test_main_reports_unwritable_destination(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    cfg = _write_yaml(tmp_path, {
        "run": {"log_dir": str(tmp_path / "logs")},
        "topology": {"nodes": 3},
        "traffic": {"flows": 2, "epoch_s": 3.0},
        "report": {"path": str(blocker / "report.csv")},
    })

    assert random_traffic_simulation.main([cfg]) == 1


def test_scenario_window_is_in_the_run_parameters(tmp_path):
    result = run_experiment(_small_config(tmp_path, app_start_time_s=2.0))
    params = result.network_results["parameters summary"]

    assert params["scenario"] == "random-flows"
    assert (params["start_s"], params["stop_s"], params["active_s"]) == (2.0, 10.0, 8.0)
    assert params["flows"] == 5


def test_scenario_rejects_an_empty_window():
    with pytest.raises(ValueError):
        RandomFlowsScenario(num_flows=1, epoch_duration=2.0, start_time=2.0,
                            data_rate_bps=1e3, packet_size_bytes=100, base_port=9)


def test_scenario_built_from_config_spans_the_epoch(tmp_path):
    scenario = build_scenario(_small_config(tmp_path, epoch_duration_s=4.0))

    assert (scenario.start_time, scenario.stop_time) == (1.0, 4.0)
