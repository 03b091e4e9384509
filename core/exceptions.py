"""
Custom exceptions for Filter Sync.

This module defines application-specific exceptions that provide
clear error messages and context for different types of failures,
plus the ErrorKind taxonomy shared by diagnostics and fetch results.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Failure kinds reported by the synchronization engine."""
    INVALID_FORMAT = 'InvalidFormat'
    UNKNOWN_VALUE = 'UnknownValue'
    UNRESOLVED_KEY = 'UnresolvedKey'
    FETCH_FAILURE = 'FetchFailure'
    CANCELLED = 'Cancelled'


class FilterSyncError(Exception):
    """Base exception for all Filter Sync errors."""

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ConfigurationError(FilterSyncError):
    """Raised when there are issues with configuration loading or validation."""

    def __init__(self, message: str, config_file: Optional[str] = None, field: Optional[str] = None):
        context = {}
        if config_file:
            context['config_file'] = config_file
        if field:
            context['field'] = field
        super().__init__(message, context)


class RegistryError(ConfigurationError):
    """Raised when a codec registry is declared inconsistently."""

    def __init__(self, message: str, field: Optional[str] = None, wire_key: Optional[str] = None):
        super().__init__(message, field=field)
        if wire_key:
            self.context['wire_key'] = wire_key


class ValidationError(FilterSyncError):
    """Raised when a filter state update is rejected."""

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[Any] = None):
        context = {}
        if field:
            context['field'] = field
        if value is not None:
            context['value'] = str(value)
        super().__init__(message, context)


class CodecError(FilterSyncError):
    """Raised when a value cannot be converted to or from its wire form."""

    kind = ErrorKind.INVALID_FORMAT

    def __init__(self, message: str, raw_value: Optional[Any] = None, field_kind: Optional[str] = None):
        context = {}
        if field_kind:
            context['field_kind'] = field_kind
        if raw_value is not None:
            context['raw_value'] = repr(raw_value)
        super().__init__(message, context)
        self.raw_value = raw_value


class InvalidFormatError(CodecError):
    """Raised for a malformed literal of a field's kind."""

    kind = ErrorKind.INVALID_FORMAT


class UnknownValueError(CodecError):
    """Raised when an enum literal is outside the declared values."""

    kind = ErrorKind.UNKNOWN_VALUE


class UnresolvedKeyError(FilterSyncError):
    """Raised when a wire key matches no registered field."""

    kind = ErrorKind.UNRESOLVED_KEY

    def __init__(self, message: str, wire_key: Optional[str] = None):
        context = {}
        if wire_key:
            context['wire_key'] = wire_key
        super().__init__(message, context)
        self.wire_key = wire_key


class FetchFailure(FilterSyncError):
    """Raised (or reported) when the fetch collaborator keeps failing."""

    kind = ErrorKind.FETCH_FAILURE

    def __init__(self, message: str, attempts: int = 0, last_error: Optional[BaseException] = None):
        context = {'attempts': attempts}
        if last_error is not None:
            context['last_error'] = f"{type(last_error).__name__}: {last_error}"
        super().__init__(message, context)
        self.attempts = attempts
        self.last_error = last_error


class DataLoadError(FilterSyncError):
    """Raised when screen data cannot be read."""

    def __init__(self, message: str, file_path: Optional[str] = None, operation: Optional[str] = None):
        context = {}
        if file_path:
            context['file_path'] = file_path
        if operation:
            context['operation'] = operation
        super().__init__(message, context)
