from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from network_simulation.network import Network


class Scenario(ABC):
    """Applications run on a built bus network over one activity window.

    `install(network)` is called once the hosts are connected and addressed. It adds
    applications and schedules their start/stop inside `[start_time, stop_time]`
    and must not add hosts or links.
    """

    name: str = "scenario"

    def __init__(self, start_time: float, stop_time: float):
        start_time, stop_time = float(start_time), float(stop_time)
        if not (math.isfinite(stop_time) and 0 <= start_time < stop_time):
            raise ValueError(f"Scenario {self.name}: invalid activity window [{start_time}, {stop_time}]")
        self.start_time = start_time
        self.stop_time = stop_time

    @property
    def active_duration(self) -> float:
        return self.stop_time - self.start_time

    @abstractmethod
    def install(self, network: Network) -> None:
        raise NotImplementedError

    def parameters_summary(self) -> Dict[str, Any]:
        return {
            "scenario": self.name,
            "start_s": self.start_time,
            "stop_s": self.stop_time,
            "active_s": self.active_duration,
        }
