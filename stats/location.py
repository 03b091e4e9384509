"""
Wire sink adapter for dcc.Location.

A Dash callback sees the browser location as a search string. This adapter
presents that string as a WireSink so the engine's projector can write to
it, and recognizes the echo of its own last write through the sync store.
"""

import logging
from typing import Callable, List, Mapping, Optional

from filter_sync.echo import EchoSuppressor, SyncTag
from filter_sync.wire import WireEvent, WireListener, WireRecord, build_query_string, parse_query_string

logger = logging.getLogger(__name__)


class LocationWireSink:
    """
    WireSink over the search string of a dcc.Location.

    Args:
        search: The location's current search string
        pushed_search: The search string of our last write, if the location
            has not been changed externally since
    """

    def __init__(self, search: Optional[str], pushed_search: Optional[str] = None):
        self.search = search or ''
        self.pushed_search = pushed_search
        self.written_tag: Optional[SyncTag] = None
        self._listeners: List[WireListener] = []

    def read(self) -> WireRecord:
        return parse_query_string(self.search)

    def write(self, record: Mapping[str, str], tag: SyncTag) -> None:
        self.search = build_query_string(record)
        self.pushed_search = self.search
        self.written_tag = tag
        logger.debug(f"Location write {tag}: {self.search or '(empty)'}")

    def subscribe(self, listener: WireListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def incoming_event(self, suppressor: EchoSuppressor) -> WireEvent:
        """
        Describe the current location as a wire change.

        The location carries no tag of its own; it is the echo of our last
        write exactly when it still shows the search string we pushed.
        """
        tag = None
        if self.pushed_search is not None and self.search == self.pushed_search:
            tag = suppressor.last_issued
        return WireEvent(record=self.read(), tag=tag)
