# fio_exporter/exporters/prometheus.py - Prometheus metrics exporter
"""
Publishes decoded fio results as Prometheus gauges.
Provides HTTP endpoint for Prometheus to scrape.
"""

from prometheus_client import CollectorRegistry, Gauge, start_http_server
from typing import Dict, Optional, Tuple
import logging

from fio_exporter.collector.terse import FIELDS, SUCCESS_METRIC, FieldSpec, MeasurementSet


LABELS = ['benchmark']


class PrometheusExporter:
    """
    Exports fio measurements to Prometheus.

    One gauge per terse column plus the success gauge, all labelled with
    the benchmark name. Values are last-write-wins: a column that fails to
    decode keeps its previously published value.
    """

    def __init__(self, port: int = 9996, address: str = '0.0.0.0',
                 registry: Optional[CollectorRegistry] = None,
                 fields: Tuple[FieldSpec, ...] = FIELDS):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
            address: Address to bind the HTTP server to
            registry: Registry to register gauges with (a private one by default)
            fields: Terse column table the gauges are created from
        """
        self.port = port
        self.address = address
        self.registry = registry if registry is not None else CollectorRegistry()
        self.logger = logging.getLogger(__name__)

        self.gauges: Dict[str, Gauge] = {}
        for spec in fields:
            self.gauges[spec.metric] = Gauge(spec.metric, spec.description, LABELS, registry=self.registry)

        self.success = Gauge(
            SUCCESS_METRIC,
            '1 if last benchmark was successful, 0 otherwise',
            LABELS,
            registry=self.registry
        )

    def start(self):
        """
        Start the Prometheus HTTP server.
        """
        try:
            start_http_server(self.port, addr=self.address, registry=self.registry)
            self.logger.info(f"Listening on {self.address}:{self.port}, metrics at /metrics")
        except Exception as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")
            raise

    def publish(self, measurements: MeasurementSet):
        """
        Set gauges from a decoded record.

        Args:
            measurements: MeasurementSet from the terse decoder
        """
        benchmark = measurements.benchmark

        for metric, value in measurements.values.items():
            gauge = self.gauges.get(metric)
            if gauge is None:
                self.logger.warning(f"No gauge registered for {metric}, dropping value")
                continue
            gauge.labels(benchmark=benchmark).set(value)

        self.success.labels(benchmark=benchmark).set(1 if measurements.success else 0)

    def get_value(self, metric: str, benchmark: str) -> Optional[float]:
        """
        Current value of a published gauge, or None if never set.
        """
        return self.registry.get_sample_value(metric, {'benchmark': benchmark})
