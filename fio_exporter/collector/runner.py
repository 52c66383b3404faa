# fio_exporter/collector/runner.py - fio process execution
"""
Runs a single fio benchmark and streams its output through the decoder.
"""

import subprocess
import threading
from dataclasses import dataclass
from typing import Callable, List, Tuple
import logging

from fio_exporter.profiles import BenchmarkProfile, FioExporterError
from fio_exporter.collector.terse import MeasurementSet, TerseDecoder


logger = logging.getLogger(__name__)


class SpawnError(FioExporterError):
    """The fio binary could not be started."""


class RunFailedError(FioExporterError):
    """fio started but exited with a non-zero status."""

    def __init__(self, returncode: int, stderr: str):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"fio command error: exit status {returncode}\n{stderr}")


@dataclass
class RunInvocation:
    """
    One concrete fio execution.
    """
    profile: BenchmarkProfile
    command: Tuple[str, ...]

    @classmethod
    def for_profile(cls, profile: BenchmarkProfile, binary: str = "fio") -> 'RunInvocation':
        return cls(profile=profile, command=(binary,) + profile.args)

    @property
    def command_line(self) -> str:
        return " ".join(self.command)


class BenchmarkRunner:
    """
    Executes fio for a profile and publishes every decoded record.

    stdout is consumed line by line on the calling thread; stderr is drained
    on a helper thread so that a chatty fio cannot block on a full pipe.
    """

    def __init__(self, profile: BenchmarkProfile, publish: Callable[[MeasurementSet], None],
                 binary: str = "fio"):
        """
        Args:
            profile: Validated benchmark profile
            publish: Called with each MeasurementSet as soon as it is decoded
            binary: fio executable name or path
        """
        self.profile = profile
        self.publish = publish
        self.binary = binary
        self.decoder = TerseDecoder(profile.name)

        self.runs_completed = 0

    def run(self) -> List[MeasurementSet]:
        """
        Run fio once to completion.

        Returns:
            MeasurementSets published during the run

        Raises:
            SpawnError: if fio cannot be started
            RunFailedError: if fio exits non-zero
        """
        invocation = RunInvocation.for_profile(self.profile, self.binary)
        logger.info(f"Running fio: {invocation.command_line}")

        try:
            # Undecodable bytes become U+FFFD and fail the signature or field check
            process = subprocess.Popen(
                invocation.command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors='replace',
            )
        except OSError as e:
            raise SpawnError(f"Error starting fio command {self.binary!r}: {e}") from e

        stderr_chunks: List[str] = []
        stderr_reader = threading.Thread(
            target=self._drain, args=(process.stderr, stderr_chunks), daemon=True
        )
        stderr_reader.start()

        skipped_before = self.decoder.lines_skipped
        published = []
        try:
            with process.stdout:
                for line in process.stdout:
                    measurements = self.decoder.decode(line)
                    if measurements is None:
                        continue
                    self.publish(measurements)
                    published.append(measurements)
        except BaseException:
            process.kill()
            raise
        finally:
            returncode = process.wait()
            stderr_reader.join()
            process.stderr.close()

        if returncode != 0:
            raise RunFailedError(returncode, "".join(stderr_chunks))

        self.runs_completed += 1
        failed = sum(1 for m in published if not m.success)
        logger.info(
            f"Benchmark complete (run {self.runs_completed}): {len(published)} records, "
            f"{failed} with field errors, {self.decoder.lines_skipped - skipped_before} skipped lines"
        )
        return published

    @staticmethod
    def _drain(stream, chunks: List[str]):
        for chunk in stream:
            chunks.append(chunk)
