"""
Core infrastructure module for Filter Sync.

This module provides the foundational components including configuration
management, logging setup, and custom exceptions.
"""

from .config import SyncConfig, FetchConfig, LoggingConfig, DataConfig, UIConfig, Config
from .exceptions import (
    ErrorKind,
    FilterSyncError,
    ConfigurationError,
    RegistryError,
    ValidationError,
    CodecError,
    InvalidFormatError,
    UnknownValueError,
    UnresolvedKeyError,
    FetchFailure,
    DataLoadError,
)
from .logging_config import setup_logging, setup_logging_from_config

__all__ = [
    # Configuration
    'SyncConfig',
    'FetchConfig',
    'LoggingConfig',
    'DataConfig',
    'UIConfig',
    'Config',

    # Exceptions
    'ErrorKind',
    'FilterSyncError',
    'ConfigurationError',
    'RegistryError',
    'ValidationError',
    'CodecError',
    'InvalidFormatError',
    'UnknownValueError',
    'UnresolvedKeyError',
    'FetchFailure',
    'DataLoadError',

    # Logging
    'setup_logging',
    'setup_logging_from_config',
]

# Version info
__version__ = "1.0.0"
