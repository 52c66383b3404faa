# fio_exporter/exporters/json_exporter.py - JSON format exporter
"""
Exports decoded fio records as JSON.
"""

import json
from pathlib import Path
from datetime import datetime
from typing import Dict, List, Optional
import logging

from fio_exporter.collector.terse import MeasurementSet


class JSONExporter:
    """
    Exports MeasurementSets to JSON format.

    Writes to a file when an output path is given, otherwise returns the
    document as a string.
    """

    def __init__(self, indent: int = 2):
        self.indent = indent
        self.logger = logging.getLogger(__name__)

    def build_document(self, records: List[MeasurementSet], source: Optional[str] = None) -> Dict:
        return {
            'timestamp': datetime.now().isoformat(),
            'source': source,
            'record_count': len(records),
            'records': [measurements.to_dict() for measurements in records],
        }

    def dumps(self, records: List[MeasurementSet], source: Optional[str] = None) -> str:
        return json.dumps(self.build_document(records, source), indent=self.indent)

    def export_records(self, records: List[MeasurementSet], output: str,
                       source: Optional[str] = None) -> str:
        """
        Export records to a JSON file.

        Args:
            records: Decoded MeasurementSets
            output: Output file path
            source: Name of the file the records were decoded from

        Returns:
            Path to output file
        """
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            json.dump(self.build_document(records, source), f, indent=self.indent)

        self.logger.info(f"Exported {len(records)} records to {output_path}")
        return str(output_path)
