"""Wrapping of application functions into uniformly callable RPC handlers."""

from __future__ import annotations

import dataclasses
import enum
import inspect
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from .errors import HandlerResultSerializeError, ParamsMissingButRequested, _qualified_name
from .handler_error import HandlerError, into_handler_error
from .params import _resolve_annotation, _split_optional, _Unresolved, parse_params
from .resources import Resources

_MAX_RESOURCES = 8
_MISSING = object()


@dataclass(frozen=True)
class _Slot:
    kind: Any
    optional: bool


def _is_params_type(kind: Any) -> bool:
    return kind is Any or kind is object or callable(getattr(kind, "into_params", None))


def _is_resource_type(kind: Any) -> bool:
    return isinstance(kind, type) and callable(getattr(kind, "from_resources", None))


def _code_target(func: Callable[..., Any], name: str) -> tuple[Any, int]:
    """Return the plain function behind ``func`` and how many leading arguments are bound."""
    if inspect.ismethod(func):
        return inspect.unwrap(func.__func__), 1
    target = inspect.unwrap(func)
    if getattr(target, "__code__", None) is not None:
        return target, 0
    call = getattr(type(func), "__call__", None)
    if call is not None and getattr(call, "__code__", None) is not None:
        return inspect.unwrap(call), 1
    raise TypeError(f"cannot read the parameters of {name}")


def _inspect_signature(func: Callable[..., Any], name: str) -> tuple[tuple[_Slot, ...], _Slot | None]:
    target, bound = _code_target(func, name)
    code = target.__code__
    if code.co_kwonlyargcount or code.co_flags & (inspect.CO_VARARGS | inspect.CO_VARKEYWORDS):
        raise TypeError(f"all parameters of {name} must be positional")
    names = code.co_varnames[: code.co_argcount][bound:]
    annotations = getattr(target, "__annotations__", None) or {}
    namespace = getattr(target, "__globals__", None) or {}
    resources: list[_Slot] = []
    params: _Slot | None = None
    for index, parameter in enumerate(names):
        annotation = annotations.get(parameter, _MISSING)
        if annotation is _MISSING:
            raise TypeError(f"parameter {parameter!r} of {name} has no type annotation")
        try:
            resolved = _resolve_annotation(annotation, namespace)
        except _Unresolved as exc:
            raise TypeError(f"cannot resolve the annotations of {name}: {exc}") from exc
        kind, optional = _split_optional(resolved)
        is_last = index == len(names) - 1
        if is_last and _is_params_type(kind):
            params = _Slot(kind, optional)
        elif _is_resource_type(kind):
            resources.append(_Slot(kind, optional))
        else:
            raise TypeError(
                f"parameter {parameter!r} of {name} is neither a resource nor the trailing params"
            )
    if len(resources) > _MAX_RESOURCES:
        raise TypeError(f"{name} takes {len(resources)} resources; at most {_MAX_RESOURCES} are supported")
    return tuple(resources), params


def _to_json_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, enum.Enum):
        return value.name
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {spec.name: _to_json_value(getattr(value, spec.name)) for spec in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        result: dict[str, Any] = {}
        for key, item in value.items():
            if isinstance(key, bool) or not isinstance(key, (str, int)):
                raise HandlerResultSerializeError("key must be a string")
            result[str(key)] = _to_json_value(item)
        return result
    if isinstance(value, (list, tuple)):
        return [_to_json_value(item) for item in value]
    converter = getattr(value, "to_json", None)
    if callable(converter):
        return _to_json_value(converter())
    raise HandlerResultSerializeError(f"cannot serialize a value of type {_qualified_name(type(value))}")


class Handler:
    """An RPC handler built from a function taking resources and optional trailing params.

    Every parameter but the last must be annotated with a resource type (or
    ``Optional`` of one); the last may instead be a params type, ``Optional``
    of one, or ``Any`` for the raw JSON value.
    """

    def __init__(self, func: Callable[..., Any]) -> None:
        if not callable(func):
            raise TypeError(f"handler must be callable, got {_qualified_name(type(func))}")
        self._func = func
        self.name: str = getattr(func, "__name__", type(func).__name__)
        self._resources, self._params = _inspect_signature(func, self.name)

    @staticmethod
    def _resolve_params(slot: _Slot, value: Any) -> Any:
        if slot.optional:
            return None if value is None else parse_params(slot.kind, value)
        if slot.kind is Any or slot.kind is object:
            if value is None:
                raise ParamsMissingButRequested()
            return value
        return slot.kind.into_params(value)

    @staticmethod
    def _resolve_resource(slot: _Slot, resources: Resources) -> Any:
        if slot.optional:
            return resources.get(slot.kind)
        return slot.kind.from_resources(resources)

    async def call(self, resources: Resources | None, params: Any = None) -> Any:
        """Run the handler and return its result as a JSON-compatible value."""
        if resources is None:
            resources = Resources()
        args: list[Any] = []
        param = self._resolve_params(self._params, params) if self._params is not None else None
        args.extend(self._resolve_resource(slot, resources) for slot in self._resources)
        if self._params is not None:
            args.append(param)
        try:
            outcome = self._func(*args)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except HandlerError:
            raise
        except Exception as exc:
            raise into_handler_error(exc) from exc
        return _to_json_value(outcome)

    def __repr__(self) -> str:
        return f"Handler({self.name})"


def into_handler(func: Callable[..., Any] | Handler) -> Handler:
    """Return ``func`` as a ``Handler``, wrapping it if needed."""
    if isinstance(func, Handler):
        return func
    return Handler(func)