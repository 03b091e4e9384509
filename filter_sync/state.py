"""
FilterState - the typed, mutable filter state of one screen.

The state owns the current value of every registered field and notifies
listeners synchronously after each effective update. Every update carries
a ChangeOrigin so listeners can tell user input from values pulled off
the wire.
"""

import copy
import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from core.exceptions import ValidationError

from .registry import CodecRegistry

logger = logging.getLogger(__name__)

# An immutable-by-convention copy of the state used for projection and fetching
Snapshot = Dict[str, Any]


class ChangeOrigin(enum.Enum):
    """Where a state update came from."""
    LOCAL = 'local'  # user input or screen code
    WIRE = 'wire'    # reconciled from an incoming wire record


@dataclass(frozen=True)
class StateChange:
    """Notification delivered to state listeners."""
    snapshot: Snapshot
    changed: Tuple[str, ...]
    origin: ChangeOrigin


StateListener = Callable[[StateChange], None]


class FilterState:
    """
    Mapping from field name to an optional typed value.

    Created at screen activation with declared defaults. Updates that do
    not change any value are not announced.
    """

    def __init__(self, registry: CodecRegistry, defaults: Optional[Mapping[str, Any]] = None):
        self.registry = registry
        values = copy.deepcopy(registry.defaults())
        if defaults:
            self._check_names(defaults)
            values.update(copy.deepcopy(dict(defaults)))
        self._values: Dict[str, Any] = values
        self._listeners: List[StateListener] = []

    def _check_names(self, patch: Mapping[str, Any]) -> None:
        unknown = [name for name in patch if name not in self.registry]
        if unknown:
            raise ValidationError(f"Unknown filter field(s): {unknown}", field=unknown[0])

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def get(self, name: str, default: Any = None) -> Any:
        value = self._values.get(name)
        return default if value is None else value

    def snapshot(self) -> Snapshot:
        """Deep copy of every field value, absent fields included as None"""
        return copy.deepcopy(self._values)

    def present(self) -> Snapshot:
        """Deep copy of the non-absent field values"""
        return {name: copy.deepcopy(value) for name, value in self._values.items() if value is not None}

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener for effective updates.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, patch: Mapping[str, Any], origin: ChangeOrigin = ChangeOrigin.LOCAL) -> Tuple[str, ...]:
        """
        Apply a patch atomically and notify listeners once.

        Args:
            patch: Field name to new value (None clears the field)
            origin: Where the update came from

        Returns:
            Names of the fields whose value actually changed

        Raises:
            ValidationError: If the patch names an unregistered field
        """
        self._check_names(patch)

        changed = []
        for name, value in patch.items():
            codec = self.registry.codec_for(name)
            current = self._values.get(name)
            if value is None and current is None:
                continue
            if value is not None and current is not None and codec.equals(current, value):
                continue
            self._values[name] = copy.deepcopy(value)
            changed.append(name)

        if not changed:
            logger.debug(f"State update from {origin.value} changed nothing")
            return ()

        change = StateChange(snapshot=self.snapshot(), changed=tuple(changed), origin=origin)
        logger.debug(f"State changed ({origin.value}): {list(change.changed)}")
        for listener in list(self._listeners):
            listener(change)
        return change.changed

    def set(self, name: str, value: Any) -> Tuple[str, ...]:
        """Set one field from local input"""
        return self.update({name: value})

    def clear(self, name: str) -> Tuple[str, ...]:
        """Make one field absent"""
        return self.update({name: None})

    def reset(self) -> Tuple[str, ...]:
        """Restore the declared defaults"""
        return self.update(self.registry.defaults())
