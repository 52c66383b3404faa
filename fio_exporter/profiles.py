# fio_exporter/profiles.py - Benchmark profiles and fio command lines
"""
Benchmark presets and the fio command lines built from them.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import shlex
import logging


logger = logging.getLogger(__name__)

CUSTOM = "custom"

PRESETS = {
    'iops': "--name=iops --numjobs=4 --ioengine=libaio --direct=1 --bs=4k --iodepth=128 --readwrite=randrw",
    'latency': "--name=latency --numjobs=1 --ioengine=libaio --direct=1 --bs=4k --iodepth=1 --readwrite=randrw",
    'throughput': "--name=throughput --numjobs=4 --ioengine=libaio --direct=1 --bs=128k --iodepth=64 --readwrite=rw",
}

PROFILE_NAMES = tuple(PRESETS) + (CUSTOM,)

# Every run reports in terse v5 with total-latency percentiles
OUTPUT_FLAGS = (
    "--output-format=terse",
    "--terse-version=5",
    "--lat_percentiles=1",
    "--clat_percentiles=0",
    "--group_reporting",
)


class FioExporterError(Exception):
    """Base class for fatal exporter errors."""


class ConfigError(FioExporterError):
    """Invalid benchmark or schedule configuration."""


@dataclass(frozen=True)
class BenchmarkProfile:
    """
    A validated benchmark selection.

    ``args`` holds the full fio argument list, without the binary.
    """
    name: str
    args: Tuple[str, ...]
    directory: str
    file_size: str
    runtime: int
    status_interval: Optional[int] = None

    @property
    def is_custom(self) -> bool:
        return self.name == CUSTOM


def validate_custom_flags(flags: Optional[str]):
    """
    Reject custom fio flags the decoder cannot cope with.

    Raises:
        ConfigError: if flags are empty or change the output format or
            percentile reporting
    """
    if flags is not None and not isinstance(flags, str):
        raise ConfigError(f"custom fio flags must be a string, got {flags!r}")
    if not flags or not flags.strip():
        raise ConfigError("custom fio flags must be supplied when benchmark is custom")
    # terse v5 output is forced for every benchmark
    if 'output' in flags:
        raise ConfigError("custom fio flags cannot contain --output-format or --output")
    if 'percentile' in flags:
        raise ConfigError("custom fio flags cannot contain any percentile related flags")


def build_profile(name: str,
                  custom_flags: Optional[str] = None,
                  directory: str = "/tmp",
                  file_size: str = "1G",
                  runtime: int = 60,
                  status_interval: Optional[int] = None) -> BenchmarkProfile:
    """
    Resolve a profile name and its parameters into a BenchmarkProfile.

    Args:
        name: One of PROFILE_NAMES
        custom_flags: Raw fio flags, required for the custom profile
        directory: Directory for benchmark files
        file_size: fio --size value
        runtime: Run duration in seconds
        status_interval: If set, fio emits a terse record every N seconds

    Returns:
        BenchmarkProfile

    Raises:
        ConfigError: on an unknown name or invalid custom flags
    """
    if name not in PROFILE_NAMES:
        raise ConfigError(f"unknown benchmark {name!r}, expected one of {', '.join(PROFILE_NAMES)}")

    if runtime <= 0:
        raise ConfigError(f"benchmark runtime must be positive, got {runtime}")
    if status_interval is not None and status_interval <= 0:
        raise ConfigError(f"status update interval must be positive, got {status_interval}")

    if name == CUSTOM:
        validate_custom_flags(custom_flags)
        try:
            args = OUTPUT_FLAGS + tuple(shlex.split(custom_flags))
        except ValueError as e:
            raise ConfigError(f"cannot parse custom fio flags: {e}") from e
    else:
        args = tuple(PRESETS[name].split())
        if status_interval is not None:
            args += (f"--status-interval={status_interval}",)
        args += (
            f"--directory={directory}",
            f"--size={file_size}",
            f"--runtime={runtime}",
            "--time_based",
        ) + OUTPUT_FLAGS

    return BenchmarkProfile(
        name=name,
        args=args,
        directory=directory,
        file_size=file_size,
        runtime=runtime,
        status_interval=status_interval,
    )
