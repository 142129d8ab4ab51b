import datetime
import logging
import os
from typing import List, Optional

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from random_traffic.metrics.aggregator import FlowReport


def visualize_flow_reports(reports: List[FlowReport], out_dir: str = "results",
                           tag: str = "") -> Optional[str]:
    """Per-flow bar charts: bandwidth, delay and loss rate, one bar per flow id.

    Args:
        reports: flow reports in ascending flow id order
        out_dir: output directory for the PNG file
        tag: optional label added to the title and file name

    Returns:
        Path to saved file, or None if there was nothing to plot or plotting failed.
    """
    if not reports:
        logging.warning("No flow reports to visualize")
        return None

    try:
        flow_ids = np.array([r.flow_id for r in reports])
        bandwidth_kbps = np.array([r.bandwidth for r in reports]) / 1e3
        delay_s = np.array([r.delay for r in reports])
        loss_pct = np.array([r.loss_rate for r in reports]) * 100.0

        fig, (ax1, ax2, ax3) = plt.subplots(3, 1, figsize=(12, 10), sharex=True)

        ax1.bar(flow_ids, bandwidth_kbps, color='steelblue', edgecolor='navy', linewidth=0.5)
        ax1.axhline(y=float(np.mean(bandwidth_kbps)), color='red', linestyle='--', linewidth=1.5,
                    label=f'Avg: {np.mean(bandwidth_kbps):.1f} kbps')
        ax1.set_ylabel('Bandwidth (kbps)', fontsize=11)
        ax1.set_title(f'Per-flow performance{" (" + tag + ")" if tag else ""}', fontsize=14, fontweight='bold')
        ax1.grid(axis='y', alpha=0.3)
        ax1.legend(loc='upper right')

        ax2.bar(flow_ids, delay_s, color='seagreen', edgecolor='darkgreen', linewidth=0.5)
        ax2.set_ylabel('Delay (s)', fontsize=11)
        ax2.grid(axis='y', alpha=0.3)

        ax3.bar(flow_ids, loss_pct, color='indianred', edgecolor='darkred', linewidth=0.5)
        ax3.set_ylabel('Loss (%)', fontsize=11)
        ax3.set_xlabel('Flow ID', fontsize=11)
        ax3.set_ylim(0, 100)
        ax3.grid(axis='y', alpha=0.3)

        plt.tight_layout()

        os.makedirs(out_dir, exist_ok=True)
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"flow_report_{tag}_{timestamp}.png" if tag else f"flow_report_{timestamp}.png"
        filepath = os.path.join(out_dir, filename)
        plt.savefig(filepath, dpi=150, bbox_inches='tight')
        plt.close(fig)

        logging.info(f"Flow report graph saved to: {filepath}")
        return filepath

    except Exception as e:
        logging.exception(f"Failed to create flow report visualization: {e}")
        return None


__all__ = ["visualize_flow_reports"]
