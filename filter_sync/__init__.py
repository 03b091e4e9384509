"""
Filter state / URL synchronization engine.

This package keeps a typed filter state and its query-parameter
representation in sync in both directions and coordinates the data
fetches the state drives.
"""

from .codecs import FieldKind, FieldCodec, create_codec
from .registry import FieldSpec, CodecRegistry
from .state import FilterState, StateChange, ChangeOrigin, Snapshot
from .wire import (
    WireRecord,
    WireEvent,
    InMemoryWireSink,
    parse_query_string,
    build_query_string
)
from .echo import SyncTag, EchoSuppressor
from .diagnostics import Diagnostic, LoggingDiagnosticsSink, CollectingDiagnosticsSink
from .projector import StateProjector, project_state
from .reconciler import WireReconciler
from .fetch import (
    FetchCoordinator,
    FetchPhase,
    FetchRequest,
    FetchResult,
    fetch_with_retry
)
from .engine import FilterSyncEngine, EngineSettings

__all__ = [
    'FieldKind',
    'FieldCodec',
    'create_codec',
    'FieldSpec',
    'CodecRegistry',
    'FilterState',
    'StateChange',
    'ChangeOrigin',
    'Snapshot',
    'WireRecord',
    'WireEvent',
    'InMemoryWireSink',
    'parse_query_string',
    'build_query_string',
    'SyncTag',
    'EchoSuppressor',
    'Diagnostic',
    'LoggingDiagnosticsSink',
    'CollectingDiagnosticsSink',
    'StateProjector',
    'project_state',
    'WireReconciler',
    'FetchCoordinator',
    'FetchPhase',
    'FetchRequest',
    'FetchResult',
    'fetch_with_retry',
    'FilterSyncEngine',
    'EngineSettings',
]
