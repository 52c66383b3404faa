# fio_exporter/exporters/__init__.py - Exporters module
"""
Exporters for publishing decoded fio results.

This module provides:
- prometheus.py: Prometheus gauges and HTTP endpoint
- json_exporter.py: JSON format exporter
- stdout.py: Console output exporter
"""
