from random_traffic.core.errors import ConfigurationError, RandomTrafficError, ReportWriteError, SchedulingError
from random_traffic.core.config import AddressLookupMode, SimulationConfig, load_config

__all__ = [
    "RandomTrafficError",
    "ConfigurationError",
    "SchedulingError",
    "ReportWriteError",
    "AddressLookupMode",
    "SimulationConfig",
    "load_config",
]
