# tests/conftest.py - Shared fixtures
"""
Helpers for building fio terse v5 lines and a fake fio executable.
"""

import sys
from typing import Dict, List, Optional

import pytest

from fio_exporter.collector.terse import FIELDS, KEY_VALUE, PERCENT

RECORD_LENGTH = 160


def sample_values(offset: float = 0.0) -> Dict[str, float]:
    """Distinct value per metric, derived from the column index."""
    return {spec.metric: spec.index * 1.5 + offset for spec in FIELDS}


def build_terse_line(values: Optional[Dict[str, float]] = None,
                     raw: Optional[Dict[int, str]] = None,
                     length: int = RECORD_LENGTH,
                     jobname: str = "latency") -> str:
    """
    Build a terse v5 line.

    Args:
        values: metric -> value, formatted the way fio writes that column
        raw: index -> literal column text, applied last
        length: number of columns
        jobname: fio job name column
    """
    values = sample_values() if values is None else values
    parts = ["0"] * length
    parts[0:5] = ["5", "fio-3.28", jobname, "0", "0"]

    for spec in FIELDS:
        if spec.metric not in values or spec.index >= length:
            continue
        value = values[spec.metric]
        if spec.transform == KEY_VALUE:
            parts[spec.index] = f"90.000000%={value}"
        elif spec.transform == PERCENT:
            parts[spec.index] = f"{value}%"
        else:
            parts[spec.index] = str(value)

    for index, text in (raw or {}).items():
        parts[index] = text

    return ";".join(parts)


class FakeFio:
    """A fio stand-in script that prints canned output and records its calls."""

    def __init__(self, directory):
        self.path = directory / "fio"
        self.output = directory / "fio_output.txt"
        self.calls_file = directory / "fio_calls.txt"

    def configure(self, lines: List[str], returncode: int = 0, stderr: str = "", prefix: bytes = b""):
        """prefix is written to stdout verbatim, ahead of the lines"""
        self.output.write_bytes(prefix + "".join(line + "\n" for line in lines).encode())
        self.path.write_text(
            f"#!{sys.executable}\n"
            "import sys\n"
            f"with open({str(self.calls_file)!r}, 'a') as f:\n"
            "    f.write(' '.join(sys.argv[1:]) + '\\n')\n"
            f"sys.stderr.write({stderr!r})\n"
            f"sys.stdout.buffer.write(open({str(self.output)!r}, 'rb').read())\n"
            f"sys.exit({returncode})\n"
        )
        self.path.chmod(0o755)
        return self

    @property
    def calls(self) -> List[str]:
        if not self.calls_file.exists():
            return []
        return self.calls_file.read_text().splitlines()


@pytest.fixture
def fake_fio(tmp_path):
    return FakeFio(tmp_path)
