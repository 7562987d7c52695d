"""Service layer: token lifecycle, health aggregation and diagnostics.

Import concrete services from their subpackages (``authgate.services.tokens``,
``authgate.services.health``, ``authgate.services.diagnostics``); this package
stays import-free so models and repositories can depend on the ports.
"""
