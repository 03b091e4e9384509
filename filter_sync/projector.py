"""
State-to-wire projection (push path).

Converts a full FilterState snapshot into a WireRecord containing exactly
the present, serializable fields, and writes it to the wire sink as one
atomic replacement tagged by the echo suppressor.
"""

import logging
from typing import Any, Mapping, Optional

from core.exceptions import CodecError

from .diagnostics import Diagnostic, DiagnosticsSink, LoggingDiagnosticsSink, report_safely
from .echo import EchoSuppressor, SyncTag
from .registry import CodecRegistry
from .wire import WireRecord, WireSink

logger = logging.getLogger(__name__)


def project_state(
    registry: CodecRegistry,
    snapshot: Mapping[str, Any],
    diagnostics: Optional[DiagnosticsSink] = None
) -> WireRecord:
    """
    Serialize every present field of a snapshot.

    Args:
        registry: The screen's codec registry
        snapshot: Field name to value; None means absent
        diagnostics: Receives one entry per value that failed to serialize

    Returns:
        WireRecord in registry declaration order
    """
    record: WireRecord = {}
    for spec in registry:
        value = snapshot.get(spec.name)
        if value is None:
            continue
        try:
            serialized = spec.codec.serialize(value)
        except CodecError as e:
            logger.warning(f"Cannot serialize field '{spec.name}': {e}")
            if diagnostics is not None:
                report_safely(diagnostics, Diagnostic(
                    wire_key=spec.wire_key,
                    raw_value=repr(value),
                    kind=e.kind,
                    message=e.message,
                    field=spec.name
                ))
            continue
        if serialized is None:
            continue
        record[spec.wire_key] = serialized
    return record


class StateProjector:
    """Pushes state snapshots to a wire sink."""

    def __init__(
        self,
        registry: CodecRegistry,
        sink: WireSink,
        suppressor: EchoSuppressor,
        diagnostics: Optional[DiagnosticsSink] = None,
        preserve_foreign_keys: bool = False
    ):
        self.registry = registry
        self.sink = sink
        self.suppressor = suppressor
        self.diagnostics = diagnostics or LoggingDiagnosticsSink()
        self.preserve_foreign_keys = preserve_foreign_keys

    def project(self, snapshot: Mapping[str, Any]) -> WireRecord:
        """Build the record a push would write, without writing it"""
        record = project_state(self.registry, snapshot, self.diagnostics)
        if self.preserve_foreign_keys:
            for key, value in self.sink.read().items():
                if self.registry.resolve_wire_key(key) is None and key not in record:
                    record[key] = value
        return record

    def push(self, snapshot: Mapping[str, Any]) -> SyncTag:
        """
        Replace the wire record with the projection of a snapshot.

        Returns:
            The tag the write was issued with
        """
        record = self.project(snapshot)
        tag = self.suppressor.issue()
        logger.debug(f"Pushing wire record {tag}: {record}")
        self.sink.write(record, tag)
        return tag
