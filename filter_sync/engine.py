"""
FilterSyncEngine - wires state, wire sink and fetch coordination together.

Push path:  local state change -> coordinator (debounce) -> projector -> sink
Pull path:  sink change -> echo check -> reconciler -> state (wire origin)
            -> coordinator (debounce, no push) -> fetch
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .diagnostics import DiagnosticsSink, LoggingDiagnosticsSink
from .echo import EchoSuppressor
from .fetch import FetchCoordinator, FetchResult, Fetcher, Validator
from .projector import StateProjector
from .reconciler import Patch, WireReconciler
from .registry import CodecRegistry
from .state import FilterState, StateChange
from .wire import WireEvent, WireSink

logger = logging.getLogger(__name__)


@dataclass
class EngineSettings:
    """Tunables of one engine instance."""
    debounce_seconds: float = 0.3
    max_attempts: int = 3
    retry_delay_seconds: float = 0.0
    preserve_foreign_keys: bool = False


class FilterSyncEngine:
    """
    Keeps one screen's FilterState and its wire record in sync and
    refreshes the screen's data when the state settles.
    """

    def __init__(
        self,
        registry: CodecRegistry,
        sink: WireSink,
        fetcher: Fetcher,
        is_valid: Optional[Validator] = None,
        defaults: Optional[Mapping[str, Any]] = None,
        settings: Optional[EngineSettings] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
        on_result: Optional[Callable[[FetchResult], None]] = None
    ):
        self.registry = registry
        self.sink = sink
        self.settings = settings or EngineSettings()
        self.diagnostics = diagnostics or LoggingDiagnosticsSink()

        self.state = FilterState(registry, defaults)
        self.suppressor = EchoSuppressor()
        self.projector = StateProjector(
            registry,
            sink,
            self.suppressor,
            diagnostics=self.diagnostics,
            preserve_foreign_keys=self.settings.preserve_foreign_keys
        )
        self.reconciler = WireReconciler(registry, diagnostics=self.diagnostics)
        self.coordinator = FetchCoordinator(
            snapshot_provider=self.state.snapshot,
            fetcher=fetcher,
            is_valid=is_valid,
            on_result=on_result,
            on_settle=self.projector.push,
            debounce_seconds=self.settings.debounce_seconds,
            max_attempts=self.settings.max_attempts,
            retry_delay_seconds=self.settings.retry_delay_seconds
        )

        self._unsubscribers = []
        self.started = False

    @property
    def is_loading(self) -> bool:
        return self.coordinator.is_loading

    @property
    def data(self) -> Any:
        return self.coordinator.data

    @property
    def last_result(self) -> Optional[FetchResult]:
        return self.coordinator.last_result

    def start(self) -> Patch:
        """
        Activate the screen: load the current wire record into state and
        issue the initial fetch. Must run on the event loop.

        Returns:
            The patch applied from the initial wire record
        """
        if self.started:
            logger.warning("FilterSyncEngine already started")
            return {}

        initial = self.reconciler.apply(self.sink.read(), self.state, self.suppressor)
        self._unsubscribers = [
            self.state.subscribe(self._on_state_change),
            self.sink.subscribe(self._on_wire_change),
        ]
        self.started = True
        logger.info(f"Filter sync started with {len(initial)} field(s) from the wire")

        self.coordinator.trigger()
        return initial

    def close(self) -> None:
        """Tear the screen down: detach listeners, cancel pending work"""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.coordinator.close()
        self.started = False
        logger.info("Filter sync closed")

    async def wait_idle(self) -> None:
        await self.coordinator.wait_idle()

    def _on_state_change(self, change: StateChange) -> None:
        self.coordinator.notify(push_wire=self.suppressor.should_project(change))

    def _on_wire_change(self, event: WireEvent) -> None:
        if self.suppressor.is_echo(event.tag):
            logger.debug(f"Dropping echo of wire write {event.tag}")
            return
        self.reconciler.apply(event.record, self.state, self.suppressor)
