"""Type-keyed resources handed to RPC handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, TypeVar

from .errors import ResourceNotFound, _qualified_name

T = TypeVar("T")


class TypeMap:
    """A map holding at most one value per exact type."""

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[type, Any] = {}

    def insert(self, value: Any) -> Any | None:
        """Store ``value`` under its type; return the value it replaced, if any."""
        kind = type(value)
        previous = self._entries.get(kind)
        self._entries[kind] = value
        return previous

    def get(self, kind: type[T]) -> T | None:
        return self._entries.get(kind)

    def remove(self, kind: type[T]) -> T | None:
        return self._entries.pop(kind, None)

    def extend(self, other: TypeMap) -> None:
        """Add the entries of ``other``, overwriting those of the same type."""
        self._entries.update(other._entries)

    def clear(self) -> None:
        self._entries.clear()

    def copy(self) -> TypeMap:
        duplicate = TypeMap()
        duplicate._entries = dict(self._entries)
        return duplicate

    def is_empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, kind: object) -> bool:
        return kind in self._entries

    def __iter__(self) -> Iterator[type]:
        return iter(self._entries)

    def __repr__(self) -> str:
        names = ", ".join(_qualified_name(kind) for kind in self._entries)
        return f"TypeMap({names})"


@dataclass
class ResourcesBuilder:
    """Collects resources before freezing them into ``Resources``."""

    entries: TypeMap = field(default_factory=TypeMap)

    def get(self, kind: type[T]) -> T | None:
        return self.entries.get(kind)

    def append(self, value: Any) -> ResourcesBuilder:
        """Add a resource (replacing one of the same type) and return the builder."""
        self.entries.insert(value)
        return self

    def build(self) -> Resources:
        return Resources(self.entries.copy())


class Resources:
    """Resources of a call: an overlay looked up first, then a base."""

    __slots__ = ("_base", "_overlay")

    def __init__(self, base: TypeMap | None = None, overlay: TypeMap | None = None) -> None:
        self._base = base if base is not None else TypeMap()
        self._overlay = overlay if overlay is not None else TypeMap()

    @staticmethod
    def builder() -> ResourcesBuilder:
        return ResourcesBuilder()

    def get(self, kind: type[T]) -> T | None:
        if kind in self._overlay:
            return self._overlay.get(kind)
        return self._base.get(kind)

    def is_empty(self) -> bool:
        return self._base.is_empty() and self._overlay.is_empty()

    def with_overlay(self, overlay: Resources) -> Resources:
        """Return resources sharing this base, with ``overlay``'s base on top."""
        return Resources(self._base, overlay._base)

    def __repr__(self) -> str:
        return f"Resources(base={self._base!r}, overlay={self._overlay!r})"


class FromResources:
    """Mixin for types a handler can receive from the call's resources."""

    @classmethod
    def from_resources(cls, resources: Resources) -> Any:
        value = resources.get(cls)
        if value is None:
            raise ResourceNotFound(_qualified_name(cls))
        return value


def rpc_resource(cls: type[T]) -> type[T]:
    """Class decorator giving ``cls`` the ``from_resources`` lookup."""
    cls.from_resources = classmethod(FromResources.from_resources.__func__)  # type: ignore[attr-defined]
    return cls


def resources_builder(*args: Any) -> ResourcesBuilder:
    """Return a builder holding each of ``args``."""
    builder = ResourcesBuilder()
    for value in args:
        builder.append(value)
    return builder