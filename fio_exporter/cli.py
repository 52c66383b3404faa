# fio_exporter/cli.py - Command-line interface
"""
Command-line interface for the fio Prometheus exporter.
"""

import click
import sys
import logging

from fio_exporter.profiles import PROFILE_NAMES, FioExporterError, ConfigError
from fio_exporter.utils.logger import setup_logging
from fio_exporter.utils.config import Config
from fio_exporter.utils.helpers import check_prerequisites, format_duration


logger = logging.getLogger(__name__)


@click.group()
@click.option('--log-level', default='INFO', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']))
@click.option('--log-file', type=click.Path(), help='Log file path')
@click.pass_context
def cli(ctx, log_level, log_file):
    """
    fio Prometheus exporter

    Runs fio benchmarks periodically and exports the results as Prometheus
    metrics.
    """
    ctx.ensure_object(dict)

    setup_logging(level=log_level, log_file=log_file)

    ctx.obj['log_level'] = log_level
    ctx.obj['log_file'] = log_file


@cli.command()
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False), help='YAML configuration file')
@click.option('--benchmark', type=click.Choice(PROFILE_NAMES), help='Benchmark profile (default: latency)')
@click.option('--custom-fio-flags', help='fio flags for the custom benchmark (experts only)')
@click.option('--directory', help='Absolute path to directory to use for benchmark files')
@click.option('--file-size', help='Size of file to use for benchmark (e.g. 1G)')
@click.option('--runtime', type=int, help='Runtime for benchmark in seconds')
@click.option('--interval', help='Interval between benchmark runs (e.g. 6h, 30m, 0 for continuous)')
@click.option('--run-once/--no-run-once', default=None, help='Exit after one benchmark and the run once wait')
@click.option('--run-once-wait', help='Wait this long before exiting a run once benchmark (e.g. 1h)')
@click.option('--status-updates/--no-status-updates', default=None, help='Update metrics during the benchmark')
@click.option('--status-update-interval', type=int, help='Metric update interval in seconds when status updates are enabled')
@click.option('--address', help='Listen address for the metrics endpoint')
@click.option('--port', type=int, help='TCP listen port for the metrics endpoint')
@click.option('--fio-binary', help='fio executable name or path')
@click.pass_context
def run(ctx, config_file, benchmark, custom_fio_flags, directory, file_size, runtime, interval,
        run_once, run_once_wait, status_updates, status_update_interval, address, port, fio_binary):
    """
    Run benchmarks and serve the results on /metrics.

    Example:
        fio-exporter run --benchmark iops --directory /mnt/data
        fio-exporter run --benchmark latency --run-once --run-once-wait 10m
        fio-exporter run --benchmark custom --custom-fio-flags "--name=seq --rw=read --bs=1M --size=1G"
    """
    from fio_exporter.collector.runner import BenchmarkRunner
    from fio_exporter.collector.scheduler import Scheduler
    from fio_exporter.exporters.prometheus import PrometheusExporter

    # Everything is validated before the endpoint starts or fio is spawned
    try:
        cfg = Config(config_file)
        cfg.update({
            'benchmark.name': benchmark,
            'benchmark.custom_flags': custom_fio_flags,
            'benchmark.directory': directory,
            'benchmark.file_size': file_size,
            'benchmark.runtime': runtime,
            'benchmark.status_updates': status_updates,
            'benchmark.status_update_interval': status_update_interval,
            'schedule.interval': interval,
            'schedule.run_once': run_once,
            'schedule.run_once_wait': run_once_wait,
            'exporter.address': address,
            'exporter.port': port,
            'fio.binary': fio_binary,
        })
        profile = cfg.benchmark_profile()
        interval_s = cfg.duration('schedule.interval')
        wait_s = cfg.duration('schedule.run_once_wait')
        listen_port = cfg.port()
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    exporter = PrometheusExporter(port=listen_port, address=cfg.get('exporter.address'))
    runner = BenchmarkRunner(profile, exporter.publish, binary=cfg.get('fio.binary'))
    scheduler = Scheduler(
        runner,
        interval=interval_s,
        run_once=bool(cfg.get('schedule.run_once')),
        run_once_wait=wait_s,
    )

    if scheduler.run_once:
        logger.info(f"Running {profile.name} benchmark once, then waiting {format_duration(wait_s)}")
    else:
        logger.info(f"Running {profile.name} benchmark every {format_duration(interval_s)}")

    try:
        exporter.start()
        scheduler.run()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        scheduler.stop()
    except FioExporterError as e:
        logger.critical(str(e))
        sys.exit(1)
    except OSError as e:
        logger.critical(f"Failed to start metrics endpoint: {e}")
        sys.exit(1)

    sys.exit(0)


@cli.command()
@click.argument('source', type=click.File('r'))
@click.option('--benchmark', default='decode', help='Benchmark label for the decoded records')
@click.option('--format', 'output_format', type=click.Choice(['stdout', 'json']), default='stdout', help='Output format')
@click.option('--output', type=click.Path(dir_okay=False), help='Output file (for JSON format)')
@click.pass_context
def decode(ctx, source, benchmark, output_format, output):
    """
    Decode captured fio terse output without running fio.

    Exits non-zero if any record had a field that failed to decode, which
    usually means the fio version changed its column layout.

    Example:
        fio --output-format=terse --terse-version=5 ... > run.txt
        fio-exporter decode run.txt
        fio-exporter decode run.txt --format json --output run.json
    """
    from fio_exporter.collector.terse import TerseDecoder
    from fio_exporter.exporters.stdout import StdoutExporter
    from fio_exporter.exporters.json_exporter import JSONExporter

    # The JSON document owns stdout
    if output_format == 'json' and not output:
        setup_logging(ctx.obj['log_level'], ctx.obj['log_file'], stream=sys.stderr)

    decoder = TerseDecoder(benchmark)
    records = []
    for line in source:
        measurements = decoder.decode(line)
        if measurements is not None:
            records.append(measurements)
    logger.info(f"Decoded {decoder.records_decoded} records, {decoder.lines_skipped} lines skipped")

    if output_format == 'json':
        exporter = JSONExporter()
        if output:
            exporter.export_records(records, output, source=source.name)
        else:
            click.echo(exporter.dumps(records, source=source.name))
    else:
        StdoutExporter().print_all(records)

    if not records or not all(m.success for m in records):
        sys.exit(1)


@cli.command()
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False), help='YAML configuration file')
@click.option('--fio-binary', help='fio executable name or path')
@click.option('--directory', help='Benchmark directory to check')
def check(config_file, fio_binary, directory):
    """
    Check prerequisites for running benchmarks.

    Verifies:
    - fio is installed and runnable
    - The benchmark directory is writable
    """
    cfg = Config(config_file)
    cfg.update({'fio.binary': fio_binary, 'benchmark.directory': directory})

    if check_prerequisites(cfg.get('fio.binary'), str(cfg.get('benchmark.directory'))):
        click.echo("\n✓ All prerequisites met!")
        sys.exit(0)
    else:
        click.echo("\n✗ Some prerequisites are missing")
        sys.exit(1)


if __name__ == '__main__':
    cli(obj={})
