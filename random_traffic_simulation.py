"""Random point-to-point traffic simulation entrypoint.

Usage:
    python random_traffic_simulation.py [path-to-config.yaml]

Without a config file the built-in defaults are used. Exit codes: 0 on success,
2 if the configuration is invalid, 1 if the flow report cannot be written.
"""
# Ensure logging is configured before importing modules that may alter logging behavior
from log_setup import ensure_logging

ensure_logging()

import argparse
import logging
import sys
from typing import Any

from log_setup import configure_run_logging
from random_traffic.core.config import SimulationConfig, load_config
from random_traffic.core.errors import ConfigurationError, ReportWriteError, SchedulingError
from random_traffic.core.runner import run_experiment
from random_traffic.metrics.report_writer import write_report

EXIT_OK = 0
EXIT_REPORT_FAILED = 1
EXIT_INVALID_CONFIG = 2


def _fmt_block(d: Any) -> str:
    return "\n".join(f"{k}: {v}" for k, v in d.items()) if isinstance(d, dict) and d else "(empty)"


def parse_args(argv):
    p = argparse.ArgumentParser(description="Random point-to-point traffic simulation with per-flow report")
    p.add_argument("config", nargs="?", default=None, help="Optional path to a YAML configuration file")
    return p.parse_args(argv)


def main(argv) -> int:
    args = parse_args(argv)
    try:
        config: SimulationConfig = load_config(args.config)
    except ConfigurationError as e:
        logging.error(f"Invalid configuration: {e}")
        return EXIT_INVALID_CONFIG

    logfile_path = configure_run_logging(
        "random_traffic",
        log_dir=config.log_dir,
        console_level=logging.INFO,
        file_level=logging.DEBUG if config.file_debug else logging.INFO,
        force=True,
    )
    logging.info("Logging to console and file: %s", logfile_path)
    logging.info("Configuration:\n%s", _fmt_block(config.summary()))

    try:
        result = run_experiment(config)
    except (ConfigurationError, SchedulingError) as e:
        logging.error(f"Simulation setup rejected: {e}")
        return EXIT_INVALID_CONFIG

    logging.info("Results summary - Topology:\n%s", _fmt_block(result.network_results.get("topology summary")))
    logging.info("Results summary - Run statistics:\n%s", _fmt_block(result.network_results.get("run statistics")))
    logging.info("Results summary - Flows:\n%s", _fmt_block(result.summary))

    try:
        write_report(result.reports, config.report_path)
    except ReportWriteError as e:
        logging.error(f"Flow report not written ({len(result.reports)} flows): {e}")
        return EXIT_REPORT_FAILED

    if config.visualize:
        from visualization.flow_report_visualizer import visualize_flow_reports
        visualize_flow_reports(result.reports, out_dir=config.plot_dir, tag=config.lookup_mode.name.lower())

    return EXIT_OK


def _console_main() -> None:
    try:
        raise SystemExit(main(sys.argv[1:]))
    except Exception:
        logging.exception("Simulation failed with an exception")
        raise


if __name__ == "__main__":
    _console_main()
