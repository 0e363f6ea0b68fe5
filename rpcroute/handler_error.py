"""Wrapper that carries an application error out of an RPC handler."""

from __future__ import annotations

from typing import Any, TypeVar

from .errors import RpcError, _qualified_name

T = TypeVar("T")


class HandlerError(RpcError):
    """Holds the error value a handler failed with, retrievable by its exact type."""

    variant = "Handler"

    def __init__(self, value: Any) -> None:
        super().__init__()
        self._holder: dict[type, Any] = {type(value): value}
        self._type_name = _qualified_name(type(value))
        if isinstance(value, BaseException):
            self.__cause__ = value

    def get(self, kind: type[T]) -> T | None:
        """Return the held error if it is exactly of type ``kind``."""
        return self._holder.get(kind)

    def remove(self, kind: type[T]) -> T | None:
        """Like ``get``, but take the value out of this error."""
        return self._holder.pop(kind, None)

    def type_name(self) -> str:
        """Name of the type of the error this wraps."""
        return self._type_name

    def to_json(self) -> str:
        """Informative text naming the held error type."""
        return f"RpcHandlerError containing error '{self._type_name}'"

    def _payload(self) -> Any:
        return self.to_json()


def into_handler_error(value: Any) -> HandlerError:
    """Wrap any application error value in a ``HandlerError``."""
    if isinstance(value, HandlerError):
        return value
    converter = getattr(value, "into_handler_error", None)
    if callable(converter):
        return converter()
    return HandlerError(value)


def rpc_handler_error(cls: type[T]) -> type[T]:
    """Class decorator giving instances an ``into_handler_error`` method."""

    def _into_handler_error(self: Any) -> HandlerError:
        return HandlerError(self)

    cls.into_handler_error = _into_handler_error  # type: ignore[attr-defined]
    return cls