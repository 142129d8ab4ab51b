import csv
import os
import stat
import sys

import pytest

from random_traffic.core.errors import ReportWriteError
from random_traffic.metrics.aggregator import FlowReport
from random_traffic.metrics.report_writer import REPORT_HEADER, render_report, write_report

EXPECTED_HEADER = ("FlowID,SourceAddress,DestinationAddress,PacketsSent,PacketsReceived,BytesSent,"
                   "BytesReceived,SendTimestamp,ReceiveTimestamp,Bandwidth,Delay,PacketLossRate,QueueSize")


def _report(flow_id: int, **overrides) -> FlowReport:
    values = dict(
        flow_id=flow_id, source_address="10.1.1.1", dest_address="10.1.1.2",
        tx_packets=10, rx_packets=8, tx_bytes=10240, rx_bytes=8192,
        send_timestamp=1.0, receive_timestamp=3.0, bandwidth=40960.0, delay=2.0,
        loss_rate=0.2, queue_size=3,
    )
    values.update(overrides)
    return FlowReport(**values)


def test_header_and_row_format():
    lines = render_report([_report(1)]).splitlines()

    assert ",".join(REPORT_HEADER) == EXPECTED_HEADER
    assert lines[0] == EXPECTED_HEADER
    assert lines[1] == "1,10.1.1.1,10.1.1.2,10,8,10240,8192,1.0,3.0,40960.0,2.0,0.2,3"


def test_rows_are_written_in_flow_id_order():
    text = render_report([_report(3), _report(1), _report(2)])
    rows = list(csv.reader(text.splitlines()))

    assert [row[0] for row in rows[1:]] == ["1", "2", "3"]


def test_write_report_creates_directories(tmp_path):
    path = tmp_path / "out" / "nested" / "report.csv"
    written = write_report([_report(1), _report(2)], str(path))

    assert written == os.path.abspath(path)
    assert path.read_text(encoding="utf-8") == render_report([_report(1), _report(2)])
    assert [p.name for p in path.parent.iterdir()] == ["report.csv"]


def test_empty_report_has_only_the_header(tmp_path):
    path = tmp_path / "report.csv"
    write_report([], str(path))
    assert path.read_text(encoding="utf-8") == EXPECTED_HEADER + "\n"


def test_unwritable_destination_raises(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")

    with pytest.raises(ReportWriteError) as err:
        write_report([_report(1)], str(blocker / "report.csv"))

    assert err.value.path.endswith("report.csv")
    assert isinstance(err.value, OSError)


def test_failed_rename_keeps_previous_report_and_leaves_no_temp_file(tmp_path, monkeypatch):
    path = tmp_path / "report.csv"
    path.write_text("previous\n")

    def broken_replace(src, dst):
        raise PermissionError("rename refused")

    monkeypatch.setattr(os, "replace", broken_replace)
    with pytest.raises(ReportWriteError):
        write_report([_report(1)], str(path))

    assert path.read_text() == "previous\n"
    assert [p.name for p in tmp_path.iterdir()] == ["report.csv"]


@pytest.fixture
def umask_022():
    previous = os.umask(0o022)
    try:
        yield
    finally:
        os.umask(previous)


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_new_report_follows_the_umask(tmp_path, umask_022):
    path = tmp_path / "report.csv"
    write_report([_report(1)], str(path))

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o644


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_overwritten_report_keeps_its_mode(tmp_path, umask_022):
    path = tmp_path / "report.csv"
    path.write_text("previous\n")
    os.chmod(path, 0o640)

    write_report([_report(1)], str(path))

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o640
    assert path.read_text(encoding="utf-8") == render_report([_report(1)])
