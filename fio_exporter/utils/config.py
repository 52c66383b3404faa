# fio_exporter/utils/config.py - Configuration management
"""
Configuration management for the exporter.
Loads settings from an optional YAML file on top of built-in defaults.
"""

import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from fio_exporter.profiles import BenchmarkProfile, ConfigError, build_profile
from fio_exporter.utils.helpers import parse_duration


class Config:
    """
    Configuration manager for the exporter.

    Values are addressed with dot-notation keys, e.g. 'schedule.interval'.
    """

    DEFAULT_CONFIG = {
        'benchmark': {
            'name': 'latency',
            'custom_flags': '',
            'directory': '/tmp',
            'file_size': '1G',
            'runtime': 60,
            'status_updates': False,
            'status_update_interval': 30,
        },
        'schedule': {
            'interval': '6h',
            'run_once': False,
            'run_once_wait': '1h',
        },
        'exporter': {
            'address': '0.0.0.0',
            'port': 9996,
        },
        'fio': {
            'binary': 'fio',
        },
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML configuration file
        """
        self.logger = logging.getLogger(__name__)
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file:
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str):
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML file

        Raises:
            ConfigError: if the file cannot be parsed
        """
        config_path = Path(config_file)

        if not config_path.exists():
            self.logger.warning(f"Config file not found: {config_file}, using defaults")
            return

        try:
            with open(config_path, 'r') as f:
                loaded_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to load config {config_file}: {e}") from e

        if not isinstance(loaded_config, dict):
            raise ConfigError(f"Config file {config_file} must contain a mapping")

        self._merge_config(self.config, loaded_config)
        self.logger.info(f"Loaded configuration from {config_file}")

    def _merge_config(self, base: Dict, override: Dict):
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'benchmark.directory')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self.config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """
        Set configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'schedule.run_once')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            config = config.setdefault(k, {})

        config[keys[-1]] = value

    def update(self, overrides: Dict[str, Any]):
        """
        Apply dot-notation overrides, skipping None values.
        """
        for key, value in overrides.items():
            if value is not None:
                self.set(key, value)

    def duration(self, key: str) -> float:
        """
        Read a duration setting in seconds.

        Raises:
            ConfigError: if the value is malformed or negative
        """
        return parse_duration(self.get(key))

    def _integer(self, key: str) -> int:
        value = self.get(key)
        if isinstance(value, bool):
            raise ConfigError(f"{key} must be an integer, got {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{key} must be an integer, got {value!r}") from e

    def port(self) -> int:
        """
        Read the metrics listen port.

        Raises:
            ConfigError: if the port is not an integer in 0-65535
        """
        port = self._integer('exporter.port')
        if not 0 <= port <= 65535:
            raise ConfigError(f"exporter.port must be between 0 and 65535, got {port}")
        return port

    def benchmark_profile(self) -> BenchmarkProfile:
        """
        Build and validate the configured BenchmarkProfile.

        Raises:
            ConfigError: on invalid benchmark settings
        """
        status_interval = None
        if self.get('benchmark.status_updates'):
            status_interval = self._integer('benchmark.status_update_interval')

        return build_profile(
            name=self.get('benchmark.name'),
            custom_flags=self._custom_flags(),
            directory=str(self.get('benchmark.directory')),
            file_size=str(self.get('benchmark.file_size')),
            runtime=self._integer('benchmark.runtime'),
            status_interval=status_interval,
        )

    def _custom_flags(self) -> Optional[str]:
        flags = self.get('benchmark.custom_flags')
        if flags is not None and not isinstance(flags, str):
            raise ConfigError(f"benchmark.custom_flags must be a string, got {flags!r}")
        return flags

    def to_dict(self) -> Dict:
        """
        Get full configuration as dictionary.
        """
        return copy.deepcopy(self.config)
