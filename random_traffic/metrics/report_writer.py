from __future__ import annotations

import csv
import io
import logging
import os
import stat
import tempfile
from typing import Iterable, List

from random_traffic.core.errors import ReportWriteError
from random_traffic.metrics.aggregator import FlowReport

REPORT_HEADER: List[str] = [
    "FlowID",
    "SourceAddress",
    "DestinationAddress",
    "PacketsSent",
    "PacketsReceived",
    "BytesSent",
    "BytesReceived",
    "SendTimestamp",
    "ReceiveTimestamp",
    "Bandwidth",
    "Delay",
    "PacketLossRate",
    "QueueSize",
]


def _row(r: FlowReport) -> List[str]:
    # str() keeps Python's shortest round-trip float formatting
    return [str(v) for v in (
        r.flow_id, r.source_address, r.dest_address,
        r.tx_packets, r.rx_packets, r.tx_bytes, r.rx_bytes,
        r.send_timestamp, r.receive_timestamp,
        r.bandwidth, r.delay, r.loss_rate, r.queue_size,
    )]


def render_report(reports: Iterable[FlowReport]) -> str:
    """The full CSV text: header row, then one row per flow in ascending flow id order."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(REPORT_HEADER)
    for r in sorted(reports, key=lambda r: r.flow_id):
        writer.writerow(_row(r))
    return buf.getvalue()


def _report_mode(target: str) -> int:
    # keep the mode of a report being replaced; a new report gets the usual 0o666 & ~umask
    try:
        return stat.S_IMODE(os.stat(target).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_report(reports: Iterable[FlowReport], path: str) -> str:
    """Write the report atomically: temporary file in the target directory, then rename.

    Either the complete report is at `path` afterwards, or `path` is untouched and
    ReportWriteError is raised. Returns the absolute path written.
    """
    text = render_report(reports)
    target = os.path.abspath(path)
    directory = os.path.dirname(target)
    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".flow_report.", suffix=".tmp", dir=directory)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, _report_mode(target))
        os.replace(tmp_path, target)
        tmp_path = None
    except OSError as e:
        raise ReportWriteError(target, e) from e
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)

    logging.info(f"Flow report written: {target}")
    return target
