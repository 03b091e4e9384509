"""
Wire-to-state reconciliation (pull path).

Converts an incoming WireRecord into a partial state patch. Every key is
handled on its own: unknown keys and malformed values are skipped with a
diagnostic and never stop the other keys from being applied.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from core.exceptions import CodecError, ErrorKind, UnresolvedKeyError

from .diagnostics import Diagnostic, DiagnosticsSink, LoggingDiagnosticsSink, report_safely
from .echo import EchoSuppressor
from .registry import CodecRegistry, FieldSpec
from .state import FilterState

logger = logging.getLogger(__name__)

Patch = Dict[str, Any]


class WireReconciler:
    """Turns wire records into state patches."""

    def __init__(self, registry: CodecRegistry, diagnostics: Optional[DiagnosticsSink] = None):
        self.registry = registry
        self.diagnostics = diagnostics or LoggingDiagnosticsSink()

    def _skip(self, wire_key: str, raw: str, kind: ErrorKind, message: str, field: Optional[str] = None) -> None:
        report_safely(self.diagnostics, Diagnostic(
            wire_key=wire_key,
            raw_value=raw,
            kind=kind,
            message=message,
            field=field
        ))

    def resolve(self, wire_key: str) -> FieldSpec:
        """
        Find the field owning a wire key.

        Raises:
            UnresolvedKeyError: If no field is registered for the key
        """
        spec = self.registry.resolve_wire_key(wire_key)
        if spec is None:
            raise UnresolvedKeyError("No field registered for wire key", wire_key=wire_key)
        return spec

    def reconcile(self, record: Mapping[str, str]) -> Patch:
        """
        Deserialize every resolvable, well-formed entry of a record.

        Args:
            record: Decoded query-parameter pairs

        Returns:
            Field name to typed value for each successfully read entry
        """
        patch: Patch = {}
        for wire_key, raw in record.items():
            if raw is None or raw == '':
                logger.debug(f"Ignoring empty wire value for '{wire_key}'")
                continue

            try:
                spec = self.resolve(wire_key)
            except UnresolvedKeyError as e:
                self._skip(wire_key, raw, e.kind, e.message)
                continue

            try:
                patch[spec.name] = spec.codec.deserialize(raw)
            except CodecError as e:
                self._skip(wire_key, raw, e.kind, e.message, field=spec.name)
            except Exception as e:
                # A codec bug must not abort the pass for the other fields
                logger.exception(f"Unexpected error deserializing '{wire_key}'")
                self._skip(wire_key, raw, ErrorKind.INVALID_FORMAT, str(e), field=spec.name)

        return patch

    def apply(self, record: Mapping[str, str], state: FilterState, suppressor: EchoSuppressor) -> Patch:
        """
        Reconcile a record and apply the patch as one wire-originated update.

        Returns:
            The applied patch (possibly empty)
        """
        patch = self.reconcile(record)
        if patch:
            changed = suppressor.apply_inbound(state, patch)
            logger.debug(f"Reconciled {len(patch)} field(s) from wire, {len(changed)} changed")
        return patch
