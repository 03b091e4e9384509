"""
Wire representation and wire sinks.

A WireRecord is the ordered set of decoded query-parameter pairs. Sinks
replace the whole record on write and announce every navigation to their
subscribers as a WireEvent, carrying the SyncTag of the write that caused
it when there is one.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional
from urllib.parse import parse_qsl, urlencode

from typing_extensions import Protocol

from .echo import SyncTag

logger = logging.getLogger(__name__)

WireRecord = Dict[str, str]

# Characters left unescaped in query strings; keeps array values readable
QUERY_SAFE_CHARS = ',-'


@dataclass(frozen=True)
class WireEvent:
    """A complete wire snapshot delivered on navigation."""
    record: WireRecord = field(default_factory=dict)
    tag: Optional[SyncTag] = None


WireListener = Callable[[WireEvent], None]


class WireSink(Protocol):
    def read(self) -> WireRecord:
        ...

    def write(self, record: Mapping[str, str], tag: SyncTag) -> None:
        ...

    def subscribe(self, listener: WireListener) -> Callable[[], None]:
        ...


def parse_query_string(search: Optional[str]) -> WireRecord:
    """
    Decode a location search string into a WireRecord.

    Args:
        search: Query string with or without the leading '?'

    Returns:
        Ordered key/value pairs; for repeated keys the last value wins
    """
    if not search:
        return {}
    if search.startswith('?'):
        search = search[1:]
    record: WireRecord = {}
    for key, value in parse_qsl(search, keep_blank_values=True):
        record.pop(key, None)
        record[key] = value
    return record


def build_query_string(record: Mapping[str, str]) -> str:
    """Encode a WireRecord as a location search string ('' when empty)"""
    if not record:
        return ''
    return '?' + urlencode(list(record.items()), safe=QUERY_SAFE_CHARS)


class InMemoryWireSink:
    """
    Wire sink backed by an in-process navigation history.

    Local writes replace the current entry (like a router navigation with
    replaceUrl) and, when echo_writes is set, are announced back to
    subscribers carrying their tag. navigate(), back() and forward() model
    external navigation and are announced without a tag.
    """

    def __init__(self, initial: Optional[Mapping[str, str]] = None, echo_writes: bool = True):
        self._history: List[WireRecord] = [dict(initial or {})]
        self._position = 0
        self._listeners: List[WireListener] = []
        self.echo_writes = echo_writes
        self.writes: List[WireEvent] = []

    @property
    def current(self) -> WireRecord:
        return self._history[self._position]

    def read(self) -> WireRecord:
        return dict(self.current)

    def subscribe(self, listener: WireListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _announce(self, event: WireEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def write(self, record: Mapping[str, str], tag: SyncTag) -> None:
        """Replace the current entry atomically"""
        self._history[self._position] = dict(record)
        event = WireEvent(record=dict(record), tag=tag)
        self.writes.append(event)
        logger.debug(f"Wire write {tag}: {build_query_string(record)}")
        if self.echo_writes:
            self._announce(event)

    def navigate(self, record: Mapping[str, str]) -> None:
        """Push a new entry as an external navigation (deep link, manual edit)"""
        del self._history[self._position + 1:]
        self._history.append(dict(record))
        self._position += 1
        self._announce(WireEvent(record=self.read()))

    def back(self) -> bool:
        if self._position == 0:
            return False
        self._position -= 1
        self._announce(WireEvent(record=self.read()))
        return True

    def forward(self) -> bool:
        if self._position >= len(self._history) - 1:
            return False
        self._position += 1
        self._announce(WireEvent(record=self.read()))
        return True
