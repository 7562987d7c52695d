from .service import COUNTERS, DiagnosticsService

__all__ = ["COUNTERS", "DiagnosticsService"]
