# fio_exporter/__init__.py - fio Prometheus exporter
"""
Runs fio storage benchmarks on a schedule and exports the decoded terse v5
results as Prometheus gauges.
"""

from fio_exporter.profiles import FioExporterError, ConfigError
from fio_exporter.collector.runner import SpawnError, RunFailedError

__version__ = "0.1.0"

__all__ = [
    'FioExporterError',
    'ConfigError',
    'SpawnError',
    'RunFailedError',
]
