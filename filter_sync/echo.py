"""
Echo suppression between the push and pull paths.

Every wire write issued by the projector carries a fresh SyncTag. When the
sink reports the resulting wire change with the same tag, the change is
the write's own echo and must not be reconciled. In the other direction,
patches applied from the wire are marked with ChangeOrigin.WIRE and are
never projected back. This module is the only place that decides either
question.
"""

import logging
from dataclasses import dataclass
from functools import total_ordering
from typing import Any, Dict, Mapping, Optional, Tuple

from .state import ChangeOrigin, FilterState, StateChange

logger = logging.getLogger(__name__)


@total_ordering
@dataclass(frozen=True)
class SyncTag:
    """Opaque, monotonically increasing marker of one outgoing wire write."""
    value: int

    def __lt__(self, other: 'SyncTag') -> bool:
        if not isinstance(other, SyncTag):
            return NotImplemented
        return self.value < other.value

    def __str__(self) -> str:
        return f"#{self.value}"


class EchoSuppressor:
    """Single point of truth for breaking the push/pull feedback loop."""

    def __init__(self, last_issued: int = 0):
        self._counter = last_issued
        self._last_issued: Optional[SyncTag] = SyncTag(last_issued) if last_issued else None

    @property
    def last_issued(self) -> Optional[SyncTag]:
        return self._last_issued

    def issue(self) -> SyncTag:
        """Create the tag for the next outgoing write"""
        self._counter += 1
        self._last_issued = SyncTag(self._counter)
        return self._last_issued

    def is_echo(self, tag: Optional[SyncTag]) -> bool:
        """
        Decide whether a wire change is the echo of our own last write.

        Untagged changes and changes carrying an older tag are external
        (manual edit, deep link, back/forward navigation).
        """
        if tag is None or self._last_issued is None:
            return False
        if tag == self._last_issued:
            return True
        if tag > self._last_issued:
            logger.warning(f"Wire change carries tag {tag} newer than last issued {self._last_issued}")
        return False

    def should_project(self, change: StateChange) -> bool:
        """Whether a state change has to be pushed to the wire"""
        return change.origin is not ChangeOrigin.WIRE

    def apply_inbound(self, state: FilterState, patch: Mapping[str, Any]) -> Tuple[str, ...]:
        """Apply a reconciled patch so that it is not projected back"""
        if not patch:
            return ()
        return state.update(patch, origin=ChangeOrigin.WIRE)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary for storage in dcc.Store."""
        return {'last_issued': self._counter}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'EchoSuppressor':
        """Create a suppressor from stored data."""
        if not data:
            return cls()
        return cls(last_issued=int(data.get('last_issued', 0)))
