# tests/test_cli.py - Command-line and end-to-end tests
"""
Tests for the click CLI and complete scheduler/runner/exporter cycles.
"""

import json
import logging
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from fio_exporter.cli import cli
from fio_exporter.collector.runner import BenchmarkRunner
from fio_exporter.collector.scheduler import Scheduler
from fio_exporter.collector.terse import SUCCESS_METRIC
from fio_exporter.exporters.prometheus import PrometheusExporter
from fio_exporter.profiles import build_profile
from conftest import build_terse_line, sample_values


@pytest.fixture(autouse=True)
def restore_logging():
    """setup_logging replaces the root handlers; put them back afterwards"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestEndToEnd:
    """Scheduler, runner and exporter wired together against a fake fio"""

    def test_continuous_latency_last_write_wins(self, fake_fio):
        first = sample_values()
        second = sample_values(offset=7.0)
        fake_fio.configure([build_terse_line(first), build_terse_line(second)])

        exporter = PrometheusExporter()
        observed = []

        def publish(measurements):
            exporter.publish(measurements)
            observed.append((
                exporter.get_value(SUCCESS_METRIC, 'latency'),
                exporter.get_value('fio_read_iops', 'latency'),
            ))
            if len(observed) == 2:
                scheduler.stop()

        runner = BenchmarkRunner(build_profile('latency'), publish, binary=str(fake_fio.path))
        scheduler = Scheduler(runner, interval=0)
        scheduler.run()

        assert scheduler.runs_started == 1
        assert observed == [
            (1.0, first['fio_read_iops']),
            (1.0, second['fio_read_iops']),
        ]


class TestRunCommand:
    """Test cases for 'fio-exporter run'"""

    def test_run_once(self, fake_fio, tmp_path):
        """Test run-once performs exactly one run and exits 0"""
        fake_fio.configure([build_terse_line()])
        runner = CliRunner()

        with patch.object(PrometheusExporter, 'start') as start:
            result = runner.invoke(cli, [
                'run', '--benchmark', 'latency', '--run-once', '--run-once-wait', '0',
                '--interval', '0', '--directory', str(tmp_path), '--fio-binary', str(fake_fio.path),
            ])

        assert result.exit_code == 0, result.output
        start.assert_called_once_with()
        assert len(fake_fio.calls) == 1
        assert f'--directory={tmp_path}' in fake_fio.calls[0]

    def test_custom_without_flags_rejected(self):
        """Test an empty custom profile fails before anything is spawned"""
        runner = CliRunner()

        with patch('fio_exporter.collector.runner.subprocess.Popen') as popen, \
                patch.object(PrometheusExporter, 'start') as start:
            result = runner.invoke(cli, ['run', '--benchmark', 'custom', '--run-once'])

        assert result.exit_code == 1
        popen.assert_not_called()
        start.assert_not_called()

    def test_custom_output_flag_rejected(self):
        runner = CliRunner()

        with patch('fio_exporter.collector.runner.subprocess.Popen') as popen:
            result = runner.invoke(cli, [
                'run', '--benchmark', 'custom', '--custom-fio-flags', '--name=x --output-format=json',
            ])

        assert result.exit_code == 1
        popen.assert_not_called()

    def test_invalid_interval(self):
        runner = CliRunner()
        with patch('fio_exporter.collector.runner.subprocess.Popen') as popen:
            result = runner.invoke(cli, ['run', '--interval', 'sometimes'])

        assert result.exit_code == 1
        popen.assert_not_called()

    def test_spawn_failure_exits_non_zero(self, tmp_path):
        runner = CliRunner()

        with patch.object(PrometheusExporter, 'start'):
            result = runner.invoke(cli, [
                'run', '--run-once', '--run-once-wait', '0',
                '--fio-binary', str(tmp_path / 'missing-fio'),
            ])

        assert result.exit_code == 1

    def test_fio_failure_exits_non_zero(self, fake_fio):
        """Test a non-zero fio exit ends a repeating exporter"""
        fake_fio.configure([], returncode=1, stderr='fio: failed to open /dev/nvme9n1\n')
        runner = CliRunner()

        with patch.object(PrometheusExporter, 'start'):
            result = runner.invoke(cli, [
                'run', '--interval', '0', '--fio-binary', str(fake_fio.path),
            ])

        assert result.exit_code == 1
        assert len(fake_fio.calls) == 1

    def test_config_file(self, fake_fio, tmp_path):
        fake_fio.configure([build_terse_line()])
        config_file = tmp_path / 'config.yaml'
        config_file.write_text(
            "benchmark:\n"
            "  name: throughput\n"
            "  runtime: 5\n"
            "schedule:\n"
            "  run_once: true\n"
            "  run_once_wait: 0s\n"
            "fio:\n"
            f"  binary: {fake_fio.path}\n"
        )
        runner = CliRunner()

        with patch.object(PrometheusExporter, 'start'):
            result = runner.invoke(cli, ['run', '--config', str(config_file)])

        assert result.exit_code == 0, result.output
        assert '--name=throughput' in fake_fio.calls[0]
        assert '--runtime=5' in fake_fio.calls[0]

    @pytest.mark.parametrize('yaml_text', [
        "benchmark:\n  name: custom\n  custom_flags: 123\n",
        "exporter:\n  port: null\n",
        "exporter:\n  port: 70000\n",
    ])
    def test_bad_config_values_rejected(self, tmp_path, yaml_text):
        """Test mistyped YAML values exit 1 instead of raising"""
        config_file = tmp_path / 'config.yaml'
        config_file.write_text(yaml_text)
        runner = CliRunner()

        with patch('fio_exporter.collector.runner.subprocess.Popen') as popen, \
                patch.object(PrometheusExporter, 'start') as start:
            result = runner.invoke(cli, ['run', '--config', str(config_file), '--run-once'])

        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert 'Invalid configuration' in result.output
        popen.assert_not_called()
        start.assert_not_called()


class TestDecodeCommand:
    """Test cases for 'fio-exporter decode'"""

    def test_decode_stdout(self, tmp_path):
        capture = tmp_path / 'run.txt'
        capture.write_text('fio-3.28\n' + build_terse_line() + '\n')

        result = CliRunner().invoke(cli, ['decode', str(capture)])

        assert result.exit_code == 0, result.output
        assert 'fio_read_iops' in result.output
        assert 'all fields decoded' in result.output

    def test_decode_json(self, tmp_path):
        capture = tmp_path / 'run.txt'
        capture.write_text(build_terse_line(raw={7: 'x'}) + '\n')

        result = CliRunner().invoke(cli, [
            'decode', str(capture), '--format', 'json', '--benchmark', 'iops',
        ])

        assert result.exit_code == 1
        document = json.loads(result.stdout)
        assert document['record_count'] == 1
        assert document['records'][0]['benchmark'] == 'iops'
        assert document['records'][0]['failures'][0]['metric'] == 'fio_read_iops'

    def test_decode_json_keeps_stdout_clean(self, tmp_path):
        """Test banner warnings and the summary go to stderr, not into the document"""
        capture = tmp_path / 'run.txt'
        capture.write_text('fio-3.28\n' + build_terse_line() + '\n')

        result = CliRunner().invoke(cli, ['decode', str(capture), '--format', 'json'])

        assert result.exit_code == 0, result.output
        document = json.loads(result.stdout)
        assert document['record_count'] == 1
        assert 'terse v5 signature' in result.stderr
        assert 'Decoded 1 records, 1 lines skipped' in result.stderr

    def test_decode_json_file(self, tmp_path):
        capture = tmp_path / 'run.txt'
        capture.write_text(build_terse_line() + '\n')
        output = tmp_path / 'out' / 'run.json'

        result = CliRunner().invoke(cli, [
            'decode', str(capture), '--format', 'json', '--output', str(output),
        ])

        assert result.exit_code == 0, result.output
        document = json.loads(output.read_text())
        assert document['records'][0]['success'] is True

    def test_decode_no_records(self, tmp_path):
        capture = tmp_path / 'run.txt'
        capture.write_text('not fio output\n')

        result = CliRunner().invoke(cli, ['decode', str(capture)])

        assert result.exit_code == 1
        assert 'No fio terse v5 records found' in result.output


class TestCheckCommand:
    """Test cases for 'fio-exporter check'"""

    def test_check_missing_fio(self, tmp_path):
        result = CliRunner().invoke(cli, [
            'check', '--fio-binary', str(tmp_path / 'missing-fio'), '--directory', str(tmp_path),
        ])

        assert result.exit_code == 1
        assert 'Some prerequisites are missing' in result.output

    def test_check_ok(self, tmp_path):
        with patch('fio_exporter.utils.helpers.find_fio', return_value='/usr/bin/fio'), \
                patch('fio_exporter.utils.helpers.get_fio_version', return_value='fio-3.28'):
            result = CliRunner().invoke(cli, ['check', '--directory', str(tmp_path)])

        assert result.exit_code == 0
        assert 'fio-3.28' in result.output
