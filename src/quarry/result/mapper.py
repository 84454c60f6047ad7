"""
Result mappers: typed per-row targets.

Subclass :class:`ResultMapper` and declare the expected columns as class
annotations. The processor creates one instance per fetched row, asks
``register()`` whether to keep the row, then writes each column through
``map_field``. Writing a name that is not declared raises
:class:`~quarry.errors.MappingError`.

Example:
    >>> class User(ResultMapper):
    ...     id: int
    ...     name: str
    ...
    ...     def register(self) -> bool:
    ...         return True
    >>> builder.select(["id", "name"]).from_("users").set_result_mapper(User).get()

State is per instance; mappers share nothing but their declared schema.
"""

from __future__ import annotations

import inspect
import typing
from typing import Any, ClassVar

from quarry.errors import MappingError


def _is_classvar(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is ClassVar or typing.get_origin(annotation) is ClassVar


def _declared_fields(cls: type) -> tuple[str, ...]:
    fields: dict[str, None] = {}
    for klass in reversed(cls.__mro__):
        if klass in (object, ResultMapper):
            continue
        for name, annotation in inspect.get_annotations(klass).items():
            if name.startswith("_") or _is_classvar(annotation):
                continue
            fields[name] = None
    return tuple(fields)


class ResultMapper:
    """Base class for row mappers with a declared field schema."""

    __fields__: ClassVar[tuple[str, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        cls.__fields__ = _declared_fields(cls)

    def __init__(self, **values: Any):
        for name, value in values.items():
            self.map_field(name, value)

    def register(self) -> bool:
        """Return False to skip the row this instance was created for."""
        return True

    @classmethod
    def fields(cls) -> tuple[str, ...]:
        return cls.__fields__

    def map_field(self, name: str, value: Any) -> None:
        """Write a column value onto its declared field."""
        setattr(self, name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith("_") and name not in self.__fields__:
            raise MappingError(
                f"Result mapping failed: {type(self).__name__} has no field '{name}'",
                column=name,
                mapper=type(self).__name__,
            )
        super().__setattr__(name, value)

    def to_dict(self) -> dict[str, Any]:
        """Declared fields that hold a value (set or class default)."""
        return {name: getattr(self, name) for name in self.__fields__ if hasattr(self, name)}

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        values = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"{type(self).__name__}({values})"


__all__ = [
    "ResultMapper",
]
