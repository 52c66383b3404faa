# fio_exporter/utils/helpers.py - Helper functions
"""
General utility and helper functions.
"""

import math
import os
import re
import shutil
import subprocess
from typing import Optional, Union
import logging

from fio_exporter.profiles import ConfigError


logger = logging.getLogger(__name__)

DURATION_UNITS = {
    'ms': 0.001,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}

_DURATION_PART = re.compile(r'(\d+(?:\.\d+)?)(ms|s|m|h)')


def parse_duration(value: Union[str, int, float, None]) -> float:
    """
    Parse a duration into seconds.

    Accepts numbers (seconds) or Go-style strings such as "6h", "1h30m",
    "90s" or "500ms".

    Args:
        value: Duration to parse

    Returns:
        Duration in seconds

    Raises:
        ConfigError: if the value is malformed or negative
    """
    if isinstance(value, bool) or value is None:
        raise ConfigError(f"invalid duration: {value!r}")

    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip()
        if text.startswith('-'):
            raise ConfigError(f"duration must be non-negative: {value!r}")
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    break
                seconds += float(match.group(1)) * DURATION_UNITS[match.group(2)]
                pos = match.end()
            if pos != len(text) or not text:
                raise ConfigError(f"invalid duration: {value!r}")

    if not math.isfinite(seconds) or seconds < 0:
        raise ConfigError(f"duration must be a finite non-negative number: {value!r}")

    return seconds


def format_duration(seconds: float) -> str:
    """
    Format a duration in seconds to a short human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "6h", "1h30m", "500ms")
    """
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"

    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return "".join(parts)


def find_fio(binary: str = "fio") -> Optional[str]:
    """
    Locate the fio executable.

    Args:
        binary: Executable name or path

    Returns:
        Resolved path, or None if not found
    """
    return shutil.which(binary)


def get_fio_version(binary: str = "fio") -> Optional[str]:
    """
    Ask fio for its version string (e.g. "fio-3.28").
    """
    try:
        result = subprocess.run(
            [binary, '--version'],
            capture_output=True,
            text=True,
            check=True,
            timeout=10
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Failed to get fio version: {e}")
        return None

    return result.stdout.strip() or None


def check_directory_writable(directory: str) -> bool:
    """
    Check that the benchmark directory exists and is writable.
    """
    return os.path.isdir(directory) and os.access(directory, os.W_OK)


def check_prerequisites(binary: str = "fio", directory: str = "/tmp") -> bool:
    """
    Check all prerequisites for running benchmarks.

    Returns:
        True if all prerequisites are met, False otherwise
    """
    fio_path = find_fio(binary)
    version = get_fio_version(fio_path) if fio_path else None

    checks = [
        (f"fio binary ({fio_path or binary})", fio_path is not None),
        (f"fio version ({version or 'unknown'})", version is not None),
        (f"Benchmark directory writable ({directory})", check_directory_writable(directory)),
    ]

    all_passed = True

    print("Checking prerequisites...")
    for name, passed in checks:
        status = "✓" if passed else "✗"
        print(f"  {status} {name}")

        if not passed:
            all_passed = False

    return all_passed
