# fio_exporter/collector/terse.py - fio terse v5 record decoding
"""
Decoder for fio's terse (version 5) output format.

fio writes each summary as a single semicolon-delimited line with a fixed
positional schema. The FIELDS table maps the columns we export onto metric
names, and every column is decoded independently so that a column which
moved between fio releases only loses its own metric.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging


logger = logging.getLogger(__name__)

TERSE_V5_SIGNATURE = "5;fio-"
SUCCESS_METRIC = "fio_benchmark_success"

# Transforms applied to a raw column before float parsing
FLOAT = "float"
PERCENT = "percent"
KEY_VALUE = "key_value"


@dataclass(frozen=True)
class FieldSpec:
    """
    One exported column of a terse v5 record.
    """
    index: int
    metric: str
    transform: str
    description: str


FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(6, "fio_read_bandwidth_kbps", FLOAT, "Read bandwidth (KiB/s)"),
    FieldSpec(7, "fio_read_iops", FLOAT, "Read IOPS"),
    FieldSpec(27, "fio_read_lat_pct90", KEY_VALUE, "Read total latency 90th percentile (usec)"),
    FieldSpec(28, "fio_read_lat_pct95", KEY_VALUE, "Read total latency 95th percentile (usec)"),
    FieldSpec(29, "fio_read_lat_pct99", KEY_VALUE, "Read total latency 99th percentile (usec)"),
    FieldSpec(37, "fio_read_lat_min", FLOAT, "Read total latency minimum (usec)"),
    FieldSpec(38, "fio_read_lat_max", FLOAT, "Read total latency maximum (usec)"),
    FieldSpec(39, "fio_read_lat_mean", FLOAT, "Read total latency mean (usec)"),
    FieldSpec(41, "fio_read_bw_min_kb", FLOAT, "Read bandwidth minimum (KiB/s)"),
    FieldSpec(42, "fio_read_bw_max_kb", FLOAT, "Read bandwidth maximum (KiB/s)"),
    FieldSpec(44, "fio_read_bw_mean_kb", FLOAT, "Read bandwidth mean (KiB/s)"),
    FieldSpec(47, "fio_read_iops_min", FLOAT, "Read IOPS minimum"),
    FieldSpec(48, "fio_read_iops_max", FLOAT, "Read IOPS maximum"),
    FieldSpec(49, "fio_read_iops_mean", FLOAT, "Read IOPS mean"),
    FieldSpec(53, "fio_write_bandwidth_kbps", FLOAT, "Write bandwidth (KiB/s)"),
    FieldSpec(54, "fio_write_iops", FLOAT, "Write IOPS"),
    FieldSpec(74, "fio_write_lat_pct90", KEY_VALUE, "Write total latency 90th percentile (usec)"),
    FieldSpec(75, "fio_write_lat_pct95", KEY_VALUE, "Write total latency 95th percentile (usec)"),
    FieldSpec(76, "fio_write_lat_pct99", KEY_VALUE, "Write total latency 99th percentile (usec)"),
    FieldSpec(84, "fio_write_lat_min", FLOAT, "Write total latency minimum (usec)"),
    FieldSpec(85, "fio_write_lat_max", FLOAT, "Write total latency maximum (usec)"),
    FieldSpec(86, "fio_write_lat_mean", FLOAT, "Write total latency mean (usec)"),
    FieldSpec(88, "fio_write_bw_min_kb", FLOAT, "Write bandwidth minimum (KiB/s)"),
    FieldSpec(89, "fio_write_bw_max_kb", FLOAT, "Write bandwidth maximum (KiB/s)"),
    FieldSpec(91, "fio_write_bw_mean_kb", FLOAT, "Write bandwidth mean (KiB/s)"),
    FieldSpec(94, "fio_write_iops_min", FLOAT, "Write IOPS minimum"),
    FieldSpec(95, "fio_write_iops_max", FLOAT, "Write IOPS maximum"),
    FieldSpec(96, "fio_write_iops_mean", FLOAT, "Write IOPS mean"),
    FieldSpec(146, "fio_cpu_user", PERCENT, "User CPU utilization (%)"),
    FieldSpec(147, "fio_cpu_sys", PERCENT, "System CPU utilization (%)"),
    FieldSpec(151, "fio_iodepth_1", PERCENT, "Queue depth <=1 (%)"),
    FieldSpec(152, "fio_iodepth_2", PERCENT, "Queue depth 2 (%)"),
    FieldSpec(153, "fio_iodepth_4", PERCENT, "Queue depth 4 (%)"),
    FieldSpec(154, "fio_iodepth_8", PERCENT, "Queue depth 8 (%)"),
    FieldSpec(155, "fio_iodepth_16", PERCENT, "Queue depth 16 (%)"),
    FieldSpec(156, "fio_iodepth_32", PERCENT, "Queue depth 32 (%)"),
    FieldSpec(157, "fio_iodepth_64", PERCENT, "Queue depth 64+ (%)"),
)

MIN_RECORD_FIELDS = max(spec.index for spec in FIELDS) + 1


@dataclass
class FieldOutcome:
    """
    Result of decoding a single column: either a value or an error message.
    """
    spec: FieldSpec
    value: Optional[float] = None
    error: Optional[str] = None
    raw: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class MeasurementSet:
    """
    Named measurements decoded from one terse record.

    Fields that failed to decode are absent from ``values`` and listed in
    ``failures`` instead.
    """
    benchmark: str
    values: Dict[str, float] = field(default_factory=dict)
    failures: List[FieldOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures

    def add(self, outcome: FieldOutcome):
        if outcome.ok:
            self.values[outcome.spec.metric] = outcome.value
        else:
            self.failures.append(outcome)

    def to_dict(self) -> Dict:
        return {
            'benchmark': self.benchmark,
            'success': self.success,
            'values': dict(self.values),
            'failures': [
                {
                    'metric': f.spec.metric,
                    'index': f.spec.index,
                    'raw': f.raw,
                    'error': f.error,
                }
                for f in self.failures
            ],
        }


def decode_field(parts: List[str], spec: FieldSpec) -> FieldOutcome:
    """
    Decode one column of a split terse record.

    Never raises: an out-of-range index, a missing '=' or a non-numeric
    value all come back as a failed outcome.
    """
    if spec.index >= len(parts):
        return FieldOutcome(spec, error=f"index {spec.index} out of range ({len(parts)} fields)")

    raw = parts[spec.index]
    text = raw
    if spec.transform == PERCENT:
        text = raw.strip('%')
    elif spec.transform == KEY_VALUE:
        pieces = raw.split('=')
        if len(pieces) < 2:
            return FieldOutcome(spec, raw=raw, error="expected key=value")
        text = pieces[1]

    # float() also accepts padding and digit separators; fio never writes either
    if text != text.strip() or '_' in text:
        return FieldOutcome(spec, raw=raw, error=f"could not convert string to float: {text!r}")

    try:
        value = float(text)
    except ValueError as e:
        return FieldOutcome(spec, raw=raw, error=str(e))

    return FieldOutcome(spec, value=value, raw=raw)


class TerseDecoder:
    """
    Turns fio terse v5 output lines into MeasurementSets.

    Lines without the terse v5 signature (fio banners, warnings) are
    skipped. Accepted lines always produce a MeasurementSet, even when
    every column fails to decode.
    """

    def __init__(self, benchmark: str, fields: Tuple[FieldSpec, ...] = FIELDS):
        """
        Args:
            benchmark: Benchmark label attached to every MeasurementSet
            fields: Column table to decode
        """
        self.benchmark = benchmark
        self.fields = fields

        self.records_decoded = 0
        self.lines_skipped = 0

    @staticmethod
    def has_signature(line: str) -> bool:
        return line[:6] == TERSE_V5_SIGNATURE

    def decode(self, line: str) -> Optional[MeasurementSet]:
        """
        Decode one line of fio output.

        Args:
            line: Raw output line, trailing newline allowed

        Returns:
            MeasurementSet, or None if the line is not a terse v5 record
        """
        line = line.rstrip('\r\n')
        if not line:
            self.lines_skipped += 1
            return None

        if not self.has_signature(line):
            logger.warning(f"Line does not have the fio terse v5 signature, skipping: {line[:6]!r}")
            self.lines_skipped += 1
            return None

        parts = line.split(';')
        logger.debug(f"fio update: {len(parts)} fields")

        measurements = MeasurementSet(benchmark=self.benchmark)
        for spec in self.fields:
            outcome = decode_field(parts, spec)
            if not outcome.ok:
                logger.warning(
                    f"Error parsing {spec.metric} (field {spec.index}, raw={outcome.raw!r}): {outcome.error}"
                )
            measurements.add(outcome)

        self.records_decoded += 1
        return measurements
