# fio_exporter/collector/__init__.py - Benchmark collection module
"""
Collector module for running fio and decoding its output.

This module provides:
- terse.py: Field table and decoder for fio terse v5 records
- runner.py: Runs one fio benchmark and streams its output
- scheduler.py: Repeat and run-once scheduling of benchmark runs
"""
