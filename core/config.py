"""
Configuration management for Filter Sync.

This module provides a split configuration system that separates concerns
into focused configuration classes (sync, fetch, logging, data, UI) loaded from
a single TOML file.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import toml

from .exceptions import ConfigurationError

# Upper bound on fetch attempts; retries must never be unbounded.
MAX_FETCH_ATTEMPTS_LIMIT = 10


@dataclass
class SyncConfig:
    """Configuration for state/URL synchronization."""

    debounce_ms: int = 300
    # False drops wire keys the current screen does not own on every push
    preserve_foreign_keys: bool = False

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    def validate(self) -> List[str]:
        """Validate the sync configuration and return any errors."""
        errors = []

        if self.debounce_ms < 0:
            errors.append("debounce_ms cannot be negative")

        return errors


@dataclass
class FetchConfig:
    """Configuration for the fetch coordinator."""

    max_attempts: int = 3  # total, including the first attempt
    retry_delay_ms: int = 0

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000.0

    def validate(self) -> List[str]:
        """Validate the fetch configuration and return any errors."""
        errors = []

        if not 1 <= self.max_attempts <= MAX_FETCH_ATTEMPTS_LIMIT:
            errors.append(f"max_attempts must be between 1 and {MAX_FETCH_ATTEMPTS_LIMIT}")

        if self.retry_delay_ms < 0:
            errors.append("retry_delay_ms cannot be negative")

        return errors


@dataclass
class LoggingConfig:
    """Configuration for application logging."""

    level: str = 'INFO'
    log_file: Optional[str] = None
    log_dir: str = 'logs'

    def validate(self) -> List[str]:
        """Validate the logging configuration and return any errors."""
        errors = []

        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if self.level.upper() not in valid_levels:
            errors.append(f"level must be one of {valid_levels}")

        return errors


@dataclass
class DataConfig:
    """Configuration for the event data behind the stats screen."""

    events_file: Optional[str] = None  # CSV; a generated sample is used when unset
    sample_days: int = 120
    sample_seed: int = 7

    def validate(self) -> List[str]:
        """Validate the data configuration and return any errors."""
        errors = []

        if self.sample_days <= 0:
            errors.append("sample_days must be positive")

        return errors


@dataclass
class UIConfig:
    """Configuration for user interface settings."""

    default_lookback_days: int = 14
    max_display_rows: int = 50
    port: int = 8050

    def validate(self) -> List[str]:
        """Validate the UI configuration and return any errors."""
        errors = []

        if self.default_lookback_days < 0:
            errors.append("default_lookback_days cannot be negative")

        if self.max_display_rows <= 0:
            errors.append("max_display_rows must be positive")

        if not 0 < self.port < 65536:
            errors.append("port must be between 1 and 65535")

        return errors


@dataclass
class Config:
    """Main configuration class that combines all configuration sections."""

    config_file_path: str = "config.toml"

    # Configuration sections
    sync: SyncConfig = field(default_factory=SyncConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    log: LoggingConfig = field(default_factory=LoggingConfig)
    data: DataConfig = field(default_factory=DataConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    def __post_init__(self):
        """Load configuration when an instance is created."""
        self.load_config()

    def to_dict(self) -> dict:
        """Convert configuration to the TOML document layout."""
        logging_section = {
            'level': self.log.level,
            'log_dir': self.log.log_dir,
        }
        if self.log.log_file:
            logging_section['log_file'] = self.log.log_file

        data_section = {
            'sample_days': self.data.sample_days,
            'sample_seed': self.data.sample_seed,
        }
        if self.data.events_file:
            data_section['events_file'] = self.data.events_file

        return {
            'sync': {
                'debounce_ms': self.sync.debounce_ms,
                'preserve_foreign_keys': self.sync.preserve_foreign_keys,
            },
            'fetch': {
                'max_attempts': self.fetch.max_attempts,
                'retry_delay_ms': self.fetch.retry_delay_ms,
            },
            'logging': logging_section,
            'data': data_section,
            'ui': {
                'default_lookback_days': self.ui.default_lookback_days,
                'max_display_rows': self.ui.max_display_rows,
                'port': self.ui.port,
            },
        }

    def save_config(self) -> None:
        """Save current configuration to TOML file."""
        try:
            with open(self.config_file_path, 'w') as f:
                toml.dump(self.to_dict(), f)
            logging.info(f"Configuration saved to {self.config_file_path}")
        except OSError as e:
            error_msg = f"Error saving configuration: {e}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg, config_file=self.config_file_path)

    def load_config(self) -> None:
        """Load configuration from TOML file."""
        try:
            with open(self.config_file_path) as f:
                config_data = toml.load(f)
        except FileNotFoundError:
            logging.info(f"{self.config_file_path} not found. Creating with default values.")
            self.save_config()
            return
        except toml.TomlDecodeError as e:
            error_msg = f"Error decoding {self.config_file_path}: {e}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg, config_file=self.config_file_path)

        # Load sync configuration
        if 'sync' in config_data:
            sync_config = config_data['sync']
            self.sync.debounce_ms = sync_config.get('debounce_ms', self.sync.debounce_ms)
            self.sync.preserve_foreign_keys = sync_config.get('preserve_foreign_keys', self.sync.preserve_foreign_keys)

        # Load fetch configuration
        if 'fetch' in config_data:
            fetch_config = config_data['fetch']
            self.fetch.max_attempts = fetch_config.get('max_attempts', self.fetch.max_attempts)
            self.fetch.retry_delay_ms = fetch_config.get('retry_delay_ms', self.fetch.retry_delay_ms)

        # Load logging configuration
        if 'logging' in config_data:
            logging_config = config_data['logging']
            self.log.level = logging_config.get('level', self.log.level)
            self.log.log_file = logging_config.get('log_file', self.log.log_file)
            self.log.log_dir = logging_config.get('log_dir', self.log.log_dir)

        # Load data configuration
        if 'data' in config_data:
            data_config = config_data['data']
            self.data.events_file = data_config.get('events_file', self.data.events_file)
            self.data.sample_days = data_config.get('sample_days', self.data.sample_days)
            self.data.sample_seed = data_config.get('sample_seed', self.data.sample_seed)

        # Load UI configuration
        if 'ui' in config_data:
            ui_config = config_data['ui']
            self.ui.default_lookback_days = ui_config.get('default_lookback_days', self.ui.default_lookback_days)
            self.ui.max_display_rows = ui_config.get('max_display_rows', self.ui.max_display_rows)
            self.ui.port = ui_config.get('port', self.ui.port)

        errors = self.validate()
        if errors:
            error_msg = f"Invalid configuration in {self.config_file_path}: {'; '.join(errors)}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg, config_file=self.config_file_path)

        logging.info(f"Configuration loaded from {self.config_file_path}")

    def validate(self) -> List[str]:
        """Validate all configuration sections and return any errors."""
        errors = []
        errors.extend(self.sync.validate())
        errors.extend(self.fetch.validate())
        errors.extend(self.log.validate())
        errors.extend(self.data.validate())
        errors.extend(self.ui.validate())
        return errors
