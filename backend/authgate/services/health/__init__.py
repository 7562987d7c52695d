from .aggregator import HealthAggregator, HealthReport, Probe, ProbeResult, ProbeStatus, fold
from .probes import CacheProbe, DatabaseProbe, MemoryProbe
from .readiness import Readiness, check_readiness

__all__ = [
    "CacheProbe",
    "DatabaseProbe",
    "HealthAggregator",
    "HealthReport",
    "MemoryProbe",
    "Probe",
    "ProbeResult",
    "ProbeStatus",
    "Readiness",
    "check_readiness",
    "fold",
]
