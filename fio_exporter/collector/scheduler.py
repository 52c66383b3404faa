# fio_exporter/collector/scheduler.py - Benchmark scheduling
"""
Drives repeated fio runs on a fixed interval, or a single run followed by
a wait so the final results can be scraped.
"""

import threading
import time
from typing import Callable
import logging

from fio_exporter.profiles import ConfigError


class Scheduler:
    """
    Single-in-flight benchmark scheduler.

    In repeat mode the interval timer is armed when a run starts, so slow
    runs do not push the cadence back. The next run waits for both the
    timer and the current run to finish.
    """

    def __init__(self, runner, interval: float, run_once: bool = False,
                 run_once_wait: float = 0.0, sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the scheduler.

        Args:
            runner: Object with a run() method performing one benchmark
            interval: Seconds between run starts, 0 for back-to-back runs
            run_once: Perform a single run and return
            run_once_wait: Seconds to wait after a single run before returning
            sleep: Sleep function used for the run-once wait
        """
        if interval < 0:
            raise ConfigError(f"interval must be non-negative, got {interval}")
        if run_once_wait < 0:
            raise ConfigError(f"run once wait must be non-negative, got {run_once_wait}")

        self.runner = runner
        self.interval = interval
        self.run_once = run_once
        self.run_once_wait = run_once_wait
        self.sleep = sleep

        self.runs_started = 0
        self._tick = threading.Event()
        self._stopped = threading.Event()
        self._timer = None

        self.logger = logging.getLogger(__name__)

    def run(self):
        """
        Run benchmarks until stopped, or once in run-once mode.

        Errors raised by the runner propagate to the caller.
        """
        if self.run_once:
            self._run_single()
            return

        self.logger.info(f"Configured interval: {self.interval}s")
        self._tick.set()
        try:
            while True:
                self._tick.wait()
                if self._stopped.is_set():
                    break
                self._tick.clear()
                self._arm_timer()
                self.runs_started += 1
                self.runner.run()
        finally:
            self._cancel_timer()

    def stop(self):
        """
        Stop the repeat loop once the current run (if any) has finished.
        """
        self._stopped.set()
        self._tick.set()

    def _run_single(self):
        self.runs_started += 1
        self.runner.run()
        self.logger.info(f"Waiting for run once wait of {self.run_once_wait}s to expire")
        self.sleep(self.run_once_wait)

    def _arm_timer(self):
        self._timer = threading.Timer(self.interval, self._tick.set)
        self._timer.daemon = True
        self._timer.start()

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
