"""
chainconf Merged Configuration

:class:`MergedConfig` is an immutable, push-only stack of
:class:`~chainconf.config.sources.ConfigSource` layers. A lookup walks the
stack from the most recently pushed layer down and returns the first
definition. Layers are never removed, so the full precedence chain stays
traceable.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..exceptions import MissingKey, TypeMismatch
from .sources import ConfigSource

_MISSING = object()

_TRUE_STRINGS = {"true", "yes", "on"}
_FALSE_STRINGS = {"false", "no", "off"}


class ValueType(Enum):
    """Semantic types a stored value can be read as."""
    STRING = "string"
    INT = "int"
    BOOL = "bool"
    FLOAT = "float"
    STRING_LIST = "string list"
    STRUCT_LIST = "struct list"


def _to_string(key: str, value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise TypeMismatch(key, ValueType.STRING.value, value)


def _to_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise TypeMismatch(key, ValueType.INT.value, value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise TypeMismatch(key, ValueType.INT.value, value)


def _to_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise TypeMismatch(key, ValueType.FLOAT.value, value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            pass
    raise TypeMismatch(key, ValueType.FLOAT.value, value)


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        s = value.strip().casefold()
        if s in _TRUE_STRINGS:
            return True
        if s in _FALSE_STRINGS:
            return False
    raise TypeMismatch(key, ValueType.BOOL.value, value)


def _to_string_list(key: str, value: Any) -> List[str]:
    if isinstance(value, str):
        # Comma separated, as supplied through environment overrides
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        try:
            return [_to_string(key, item) for item in value]
        except TypeMismatch:
            raise TypeMismatch(key, ValueType.STRING_LIST.value, value) from None
    raise TypeMismatch(key, ValueType.STRING_LIST.value, value)


def _to_struct_list(key: str, value: Any) -> List[Mapping[str, Any]]:
    if isinstance(value, (list, tuple)) and all(isinstance(item, Mapping) for item in value):
        return list(value)
    raise TypeMismatch(key, ValueType.STRUCT_LIST.value, value)


_CONVERTERS = {
    ValueType.STRING: _to_string,
    ValueType.INT: _to_int,
    ValueType.BOOL: _to_bool,
    ValueType.FLOAT: _to_float,
    ValueType.STRING_LIST: _to_string_list,
    ValueType.STRUCT_LIST: _to_struct_list,
}


def convert_value(key: str, value: Any, value_type: ValueType) -> Any:
    """Convert a raw config value, raising TypeMismatch naming *key*."""
    return _CONVERTERS[value_type](key, value)


class MergedConfig:
    """
    Effective configuration: a stack of sources, lowest priority first.

    Instances are immutable; :meth:`push` returns a new instance.
    """

    __slots__ = ("_layers",)

    def __init__(self, layers: Iterable[ConfigSource] = ()):
        self._layers: Tuple[ConfigSource, ...] = tuple(layers)

    @property
    def layers(self) -> Tuple[ConfigSource, ...]:
        return self._layers

    def push(self, source: ConfigSource) -> "MergedConfig":
        """Return a new config where *source* overrides every existing layer."""
        return MergedConfig(self._layers + (source,))

    def _find(self, key: str) -> Tuple[Any, Optional[ConfigSource]]:
        for layer in reversed(self._layers):
            if key in layer:
                return layer[key], layer
        return _MISSING, None

    def has_path(self, key: str) -> bool:
        return self._find(key)[1] is not None

    def __contains__(self, key: str) -> bool:
        return self.has_path(key)

    def lookup(self, key: str, default: Any = None) -> Any:
        """Value of *key* from the highest-priority layer defining it, else *default*."""
        value, layer = self._find(key)
        return default if layer is None else value

    def origin(self, key: str) -> Optional[str]:
        """Origin label of the layer that supplies *key*."""
        layer = self._find(key)[1]
        return None if layer is None else layer.origin

    def lookup_typed(self, key: str, value_type: ValueType) -> Any:
        """
        Read *key* converted to *value_type*.

        Raises:
            MissingKey: If no layer defines *key*
            TypeMismatch: If the stored value can't convert
        """
        value, layer = self._find(key)
        if layer is None:
            raise MissingKey(key)
        return convert_value(key, value, value_type)

    def get_string(self, key: str) -> str:
        return self.lookup_typed(key, ValueType.STRING)

    def get_int(self, key: str) -> int:
        return self.lookup_typed(key, ValueType.INT)

    def get_bool(self, key: str) -> bool:
        return self.lookup_typed(key, ValueType.BOOL)

    def get_float(self, key: str) -> float:
        return self.lookup_typed(key, ValueType.FLOAT)

    def get_string_list(self, key: str) -> List[str]:
        return self.lookup_typed(key, ValueType.STRING_LIST)

    def get_struct_list(self, key: str) -> List[Mapping[str, Any]]:
        return self.lookup_typed(key, ValueType.STRUCT_LIST)

    def keys(self) -> List[str]:
        seen: Dict[str, None] = {}
        for layer in self._layers:
            for key in layer:
                seen[key] = None
        return sorted(seen)

    def as_dict(self) -> Dict[str, Any]:
        """Effective flat view, dotted key to value."""
        return {key: self.lookup(key) for key in self.keys()}

    def render(self) -> str:
        """Effective config as sorted JSON, for diagnostics."""
        return json.dumps(self.as_dict(), indent=2, sort_keys=True, default=str)

    def __repr__(self) -> str:
        origins = ", ".join(layer.origin for layer in self._layers)
        return f"MergedConfig([{origins}])"
