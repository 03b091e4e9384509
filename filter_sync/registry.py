"""
Codec registry: the declarative field set of one screen.

Maps each field name to its codec and wire key, and each wire key back to
its field. Built once per screen and immutable afterwards; inconsistent
declarations fail at construction time.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Type, Union

from core.exceptions import RegistryError

from .codecs import FieldCodec, FieldKind, create_codec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSpec:
    """Declaration of one filter field."""
    name: str
    kind: FieldKind
    wire_key: Optional[str] = None  # defaults to the field name
    values: Optional[Union[Tuple[str, ...], Type[enum.Enum]]] = None
    default: Any = None
    required: bool = False
    codec: FieldCodec = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.name:
            raise RegistryError("Field name cannot be empty")
        if self.wire_key is None:
            object.__setattr__(self, 'wire_key', self.name)
        if not self.wire_key:
            raise RegistryError("Wire key cannot be empty", field=self.name)
        if isinstance(self.values, list):
            object.__setattr__(self, 'values', tuple(self.values))
        try:
            codec = create_codec(self.kind, self.values)
        except ValueError as e:
            raise RegistryError(str(e), field=self.name) from e
        object.__setattr__(self, 'codec', codec)


class CodecRegistry:
    """
    Bidirectional index of FieldSpecs by field name and by wire key.

    Iteration follows declaration order, which is also the key order of
    projected wire records.
    """

    def __init__(self, specs: Sequence[FieldSpec]):
        by_name: Dict[str, FieldSpec] = {}
        by_wire_key: Dict[str, FieldSpec] = {}

        for spec in specs:
            if spec.name in by_name:
                raise RegistryError(f"Duplicate field name: {spec.name}", field=spec.name)
            if spec.wire_key in by_wire_key:
                owner = by_wire_key[spec.wire_key].name
                raise RegistryError(
                    f"Wire key '{spec.wire_key}' already used by field '{owner}'",
                    field=spec.name,
                    wire_key=spec.wire_key
                )
            by_name[spec.name] = spec
            by_wire_key[spec.wire_key] = spec

        self._by_name = by_name
        self._by_wire_key = by_wire_key
        logger.debug(f"CodecRegistry built with fields: {list(by_name)}")

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def names(self) -> List[str]:
        return list(self._by_name)

    @property
    def wire_keys(self) -> List[str]:
        return list(self._by_wire_key)

    def get(self, name: str) -> FieldSpec:
        """
        Get the FieldSpec for a field name.

        Raises:
            KeyError: If the field is not registered
        """
        return self._by_name[name]

    def resolve_wire_key(self, wire_key: str) -> Optional[FieldSpec]:
        """Get the FieldSpec owning a wire key, or None if unregistered"""
        return self._by_wire_key.get(wire_key)

    def wire_key_for(self, name: str) -> str:
        return self._by_name[name].wire_key

    def codec_for(self, name: str) -> FieldCodec:
        return self._by_name[name].codec

    def defaults(self) -> Dict[str, Any]:
        """Declared default value of every field (None when absent)"""
        return {spec.name: spec.default for spec in self}
