# fio_exporter/exporters/stdout.py - Console output exporter
"""
Prints decoded fio records to stdout in human-readable format.
"""

from typing import List
from colorama import Fore, Style, init
import logging

from fio_exporter.collector.terse import MeasurementSet


# Initialize colorama
init(autoreset=True)


class StdoutExporter:
    """
    Prints MeasurementSets as a coloured table.
    """

    def __init__(self, use_colors: bool = True):
        """
        Initialize the stdout exporter.

        Args:
            use_colors: Whether to use colored output
        """
        self.use_colors = use_colors
        self.logger = logging.getLogger(__name__)

    def _color(self, color: str) -> str:
        return color if self.use_colors else ""

    def _reset(self) -> str:
        return Style.RESET_ALL if self.use_colors else ""

    def print_measurements(self, measurements: MeasurementSet, record_number: int = 1):
        """
        Print one decoded record.

        Args:
            measurements: MeasurementSet to print
            record_number: Position of the record in the input
        """
        header = self._color(Fore.CYAN)
        reset = self._reset()

        print(f"\n{header}{'='*80}{reset}")
        print(f"{header}Record {record_number} (benchmark={measurements.benchmark}){reset}")
        print(f"{header}{'='*80}{reset}\n")

        for metric, value in measurements.values.items():
            print(f"  {metric:<28} {value:>16.3f}")

        for failure in measurements.failures:
            print(f"  {self._color(Fore.RED)}{failure.spec.metric:<28} "
                  f"field {failure.spec.index}: {failure.error}{reset}")

        if measurements.success:
            print(f"\n  {self._color(Fore.GREEN)}✓ all fields decoded{reset}")
        else:
            print(f"\n  {self._color(Fore.YELLOW)}✗ {len(measurements.failures)} field(s) failed{reset}")

    def print_all(self, records: List[MeasurementSet]):
        """
        Print every decoded record, or a notice if there were none.
        """
        if not records:
            print(f"{self._color(Fore.YELLOW)}No fio terse v5 records found{self._reset()}")
            return

        for i, measurements in enumerate(records, 1):
            self.print_measurements(measurements, i)
        print()
