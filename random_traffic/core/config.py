"""Run configuration.

A YAML file is optional; every field has a default so a bare invocation runs the
reference experiment. Layout of the YAML file::

    run:
      seed: 1972
      file_debug: false
      message_verbose: false
      visualize: false
      log_dir: results/logs
    topology:
      nodes: 10
      address_block: 10.1.1.0/24
      queue_max_packets: 100
      link:
        data_rate_bps: 100000000
        delay_s: 6.56e-6
    traffic:
      flows: 20
      epoch_s: 10.0
      start_s: 1.0
      data_rate_bps: 500000
      packet_size_bytes: 1024
      base_port: 9
      protocol: udp
      max_destination_redraws: 64
    report:
      path: results/flow_report.csv
      lookup_mode: assignment
      plot_dir: results
"""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict

import yaml

from network_simulation.ip import IPPrefix
from network_simulation.packet import Protocol
from random_traffic.core.errors import ConfigurationError

MAX_PORT = 65535


class AddressLookupMode(Enum):
    # join each flow to the assignment that produced it
    ASSIGNMENT = 1
    # legacy approximation: index the address plan and queue sample by flow id
    FLOW_ID_MODULO = 2

    @classmethod
    def parse(cls, raw: Any, *, path: str) -> "AddressLookupMode":
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            raise ConfigurationError(path, f"expected string, got {type(raw).__name__}")
        v = raw.strip().lower().replace("-", "_")
        if v in {"assignment", "exact"}:
            return cls.ASSIGNMENT
        if v in {"flow_id_modulo", "modulo"}:
            return cls.FLOW_ID_MODULO
        raise ConfigurationError(path, f"invalid lookup mode {raw!r}. Valid: assignment | flow_id_modulo")


def _parse_protocol(raw: Any, *, path: str) -> Protocol:
    if isinstance(raw, Protocol):
        return raw
    if not isinstance(raw, str):
        raise ConfigurationError(path, f"expected string, got {type(raw).__name__}")
    try:
        return Protocol[raw.strip().upper()]
    except KeyError:
        raise ConfigurationError(path, f"invalid protocol {raw!r}. Valid: udp | tcp")


def _require_dict(d: Any, path: str) -> Dict[str, Any]:
    if not isinstance(d, dict):
        raise ConfigurationError(path, f"expected mapping, got {type(d).__name__}")
    return d


def _section(d: Dict[str, Any], key: str, path: str) -> Dict[str, Any]:
    value = d.get(key)
    return {} if value is None else _require_dict(value, path)


def _number(d: Dict[str, Any], key: str, path: str, default: Any, cast):
    raw = d.get(key, default)
    if isinstance(raw, bool):
        raise ConfigurationError(f"{path}.{key}", f"expected number, got {raw!r}")
    if cast is int and isinstance(raw, float) and not raw.is_integer():
        raise ConfigurationError(f"{path}.{key}", f"expected integer, got {raw!r}")
    try:
        return cast(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{path}.{key}", f"expected number, got {raw!r}")


@dataclass(frozen=True)
class SimulationConfig:
    # run
    seed: int = 1972
    file_debug: bool = False
    message_verbose: bool = False
    visualize: bool = False
    log_dir: str = os.path.join("results", "logs")

    # topology
    num_nodes: int = 10
    address_block: str = "10.1.1.0/24"
    queue_max_packets: int = 100
    link_data_rate_bps: float = 100e6
    link_delay_s: float = 6.56e-6

    # traffic
    num_flows: int = 20
    epoch_duration_s: float = 10.0
    app_start_time_s: float = 1.0
    flow_data_rate_bps: float = 500e3
    packet_size_bytes: int = 1024
    base_port: int = 9
    protocol: Protocol = Protocol.UDP
    max_destination_redraws: int = 64

    # report
    report_path: str = os.path.join("results", "flow_report.csv")
    lookup_mode: AddressLookupMode = AddressLookupMode.ASSIGNMENT
    plot_dir: str = "results"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.num_nodes < 2:
            raise ConfigurationError("topology.nodes", f"at least 2 nodes are required, got {self.num_nodes}")
        if self.num_flows < 0:
            raise ConfigurationError("traffic.flows", f"must be >= 0, got {self.num_flows}")
        if not (math.isfinite(self.epoch_duration_s) and self.epoch_duration_s > 0):
            raise ConfigurationError("traffic.epoch_s", f"must be > 0, got {self.epoch_duration_s}")
        if not (0 <= self.app_start_time_s < self.epoch_duration_s):
            raise ConfigurationError(
                "traffic.start_s", f"must be in [0, epoch_s={self.epoch_duration_s}), got {self.app_start_time_s}")
        if self.flow_data_rate_bps <= 0:
            raise ConfigurationError("traffic.data_rate_bps", f"must be > 0, got {self.flow_data_rate_bps}")
        if self.packet_size_bytes <= 0:
            raise ConfigurationError("traffic.packet_size_bytes", f"must be > 0, got {self.packet_size_bytes}")
        if not (1 <= self.base_port <= MAX_PORT):
            raise ConfigurationError("traffic.base_port", f"must be in [1, {MAX_PORT}], got {self.base_port}")
        if self.base_port + self.num_flows - 1 > MAX_PORT:
            raise ConfigurationError(
                "traffic.flows",
                f"{self.num_flows} flows from base port {self.base_port} exceed port {MAX_PORT}")
        if self.max_destination_redraws < 0:
            raise ConfigurationError(
                "traffic.max_destination_redraws", f"must be >= 0, got {self.max_destination_redraws}")
        if self.queue_max_packets < 1:
            raise ConfigurationError("topology.queue_max_packets", f"must be >= 1, got {self.queue_max_packets}")
        if self.link_data_rate_bps <= 0:
            raise ConfigurationError("topology.link.data_rate_bps", f"must be > 0, got {self.link_data_rate_bps}")
        if self.link_delay_s < 0:
            raise ConfigurationError("topology.link.delay_s", f"must be >= 0, got {self.link_delay_s}")
        try:
            prefix = IPPrefix.from_string(self.address_block)
        except (TypeError, ValueError) as e:
            raise ConfigurationError("topology.address_block", str(e))
        if prefix.usable_hosts < self.num_nodes:
            raise ConfigurationError(
                "topology.address_block",
                f"{prefix} holds {prefix.usable_hosts} hosts, {self.num_nodes} nodes requested")
        if not self.report_path:
            raise ConfigurationError("report.path", "must be a non-empty path")

    @classmethod
    def from_mapping(cls, cfg: Dict[str, Any]) -> "SimulationConfig":
        cfg = _require_dict(cfg, "/")
        run = _section(cfg, "run", "run")
        topo = _section(cfg, "topology", "topology")
        link = _section(topo, "link", "topology.link")
        traffic = _section(cfg, "traffic", "traffic")
        report = _section(cfg, "report", "report")
        d = cls.__dataclass_fields__

        return cls(
            seed=_number(run, "seed", "run", d["seed"].default, int),
            file_debug=bool(run.get("file_debug", d["file_debug"].default)),
            message_verbose=bool(run.get("message_verbose", d["message_verbose"].default)),
            visualize=bool(run.get("visualize", d["visualize"].default)),
            log_dir=str(run.get("log_dir", d["log_dir"].default)),
            num_nodes=_number(topo, "nodes", "topology", d["num_nodes"].default, int),
            address_block=str(topo.get("address_block", d["address_block"].default)),
            queue_max_packets=_number(topo, "queue_max_packets", "topology", d["queue_max_packets"].default, int),
            link_data_rate_bps=_number(link, "data_rate_bps", "topology.link", d["link_data_rate_bps"].default, float),
            link_delay_s=_number(link, "delay_s", "topology.link", d["link_delay_s"].default, float),
            num_flows=_number(traffic, "flows", "traffic", d["num_flows"].default, int),
            epoch_duration_s=_number(traffic, "epoch_s", "traffic", d["epoch_duration_s"].default, float),
            app_start_time_s=_number(traffic, "start_s", "traffic", d["app_start_time_s"].default, float),
            flow_data_rate_bps=_number(traffic, "data_rate_bps", "traffic", d["flow_data_rate_bps"].default, float),
            packet_size_bytes=_number(traffic, "packet_size_bytes", "traffic", d["packet_size_bytes"].default, int),
            base_port=_number(traffic, "base_port", "traffic", d["base_port"].default, int),
            protocol=_parse_protocol(traffic.get("protocol", "udp"), path="traffic.protocol"),
            max_destination_redraws=_number(
                traffic, "max_destination_redraws", "traffic", d["max_destination_redraws"].default, int),
            report_path=str(report.get("path", d["report_path"].default)),
            lookup_mode=AddressLookupMode.parse(report.get("lookup_mode", "assignment"), path="report.lookup_mode"),
            plot_dir=str(report.get("plot_dir", d["plot_dir"].default)),
        )

    def summary(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = value.name.lower() if isinstance(value, Enum) else value
        return out


def load_config(path: str | None) -> SimulationConfig:
    """Load a YAML configuration file; `None` gives the defaults."""
    if path is None:
        return SimulationConfig()
    if not path.lower().endswith((".yaml", ".yml")):
        raise ConfigurationError("config", f"expected a .yaml/.yml file, got '{path}'")
    if not os.path.exists(path):
        raise ConfigurationError("config", f"configuration file not found: {os.path.abspath(path)}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError("config", f"invalid YAML in '{path}': {e}")
    if data is None:
        return SimulationConfig()
    return SimulationConfig.from_mapping(data)
