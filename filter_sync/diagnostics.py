"""
Diagnostics channel for skipped fields.

The reconciler and projector report one Diagnostic per field they could not
carry across. Sinks never raise.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from typing_extensions import Protocol

from core.exceptions import ErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    """A skipped field: wire key, raw value, failure kind."""
    wire_key: str
    raw_value: Optional[str]
    kind: ErrorKind
    message: str = ''
    field: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'wire_key': self.wire_key,
            'raw_value': self.raw_value,
            'kind': self.kind.value,
            'message': self.message,
            'field': self.field,
        }


class DiagnosticsSink(Protocol):
    def report(self, diagnostic: Diagnostic) -> None:
        ...


class LoggingDiagnosticsSink:
    """Writes each diagnostic to the log as a warning."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def report(self, diagnostic: Diagnostic) -> None:
        self.log.warning(
            f"Skipped wire key '{diagnostic.wire_key}' (raw={diagnostic.raw_value!r}, "
            f"kind={diagnostic.kind.value}): {diagnostic.message}"
        )


class CollectingDiagnosticsSink(LoggingDiagnosticsSink):
    """Keeps every diagnostic in memory in addition to logging it."""

    def __init__(self, log: Optional[logging.Logger] = None):
        super().__init__(log)
        self.diagnostics: List[Diagnostic] = []

    def report(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        super().report(diagnostic)

    def clear(self) -> None:
        self.diagnostics.clear()

    def kinds(self) -> List[ErrorKind]:
        return [d.kind for d in self.diagnostics]


def report_safely(sink: DiagnosticsSink, diagnostic: Diagnostic) -> None:
    """Deliver a diagnostic without letting a faulty sink break a sync pass"""
    try:
        sink.report(diagnostic)
    except Exception:
        logger.exception(f"Diagnostics sink failed for wire key '{diagnostic.wire_key}'")
