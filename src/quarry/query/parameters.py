"""
Parameter bag: named values waiting to be bound.

The bag maps a placeholder name to the value (or values) the processor will
bind for it, in insertion order. Binding the same name twice without
``override`` turns the slot into a collision list ``[first, second, ...]``
so several predicates on one column can share a name::

    bag = ParameterBag()
    bag.set_parameter("status", "open")
    bag.set_parameter("status", "held")
    bag.get_parameter("status")      # ['open', 'held']

Sequence values supplied by callers (``where_in`` lists, tuples) are stored
as tuples. A ``list`` slot therefore always means a collision list and a
``tuple`` always means "expand to one marker per element".

Wire types:
    Each bindable scalar derives a wire type tag used by the processor:
    ``str`` → STRING (``s``), ``int``/``bool`` → INTEGER (``i``),
    ``float`` → FLOAT (``d``). Anything else has no wire type and is
    rejected before the backend sees it.

Tags:
    parameters, binding, placeholders, quarry
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any


class WireType(str, Enum):
    """Wire type tag of a bindable value."""

    STRING = "s"
    INTEGER = "i"
    FLOAT = "d"


class _Missing:
    """Sentinel for an absent parameter (``None`` is a legitimate value)."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def _normalize(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return value


class ParameterBag:
    """Insertion-ordered mapping of placeholder name to bound value(s)."""

    def __init__(self, parameters: Mapping[str, Any] | None = None):
        self._parameters: dict[str, Any] = {}
        if parameters:
            for name, value in parameters.items():
                self.set_parameter(name, value)

    def set_parameter(self, name: str, value: Any, override: bool = False) -> ParameterBag:
        """Bind ``value`` to ``name``.

        Unset names are stored as-is. A set name becomes (or grows) a
        collision list unless ``override`` is true, in which case the slot
        is replaced.
        """
        value = _normalize(value)
        if override or name not in self._parameters:
            self._parameters[name] = value
            return self

        current = self._parameters[name]
        if isinstance(current, list):
            current.append(value)
        else:
            self._parameters[name] = [current, value]
        return self

    def get_parameter(self, name: str, default: Any = MISSING) -> Any:
        """Stored value or collision list, or ``MISSING`` when unset."""
        return self._parameters.get(name, default)

    def has_parameter(self, name: str) -> bool:
        return name in self._parameters

    def get_all(self) -> dict[str, Any]:
        """Copy of all parameters in insertion order."""
        return {
            name: list(value) if isinstance(value, list) else value
            for name, value in self._parameters.items()
        }

    def names(self) -> list[str]:
        return list(self._parameters)

    def size(self) -> int:
        """Number of distinct names."""
        return len(self._parameters)

    @staticmethod
    def get_type(value: Any) -> WireType | None:
        """Wire type of a scalar value, or ``None`` when it cannot be bound."""
        # bool is an int subclass and binds as one
        if isinstance(value, int):
            return WireType.INTEGER
        if isinstance(value, float):
            return WireType.FLOAT
        if isinstance(value, str):
            return WireType.STRING
        return None

    def merge(self, other: ParameterBag) -> ParameterBag:
        """Re-apply every entry of ``other`` through the collision policy."""
        for name, value in other.items():
            if isinstance(value, list):
                for item in value:
                    self.set_parameter(name, item)
            else:
                self.set_parameter(name, value)
        return self

    def clear(self) -> None:
        self._parameters.clear()

    def items(self) -> Iterator[tuple[str, Any]]:
        return iter(list(self._parameters.items()))

    def __len__(self) -> int:
        return len(self._parameters)

    def __contains__(self, name: object) -> bool:
        return name in self._parameters

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._parameters))

    def __repr__(self) -> str:
        return f"ParameterBag({self.names()!r})"


__all__ = [
    "MISSING",
    "ParameterBag",
    "WireType",
]
