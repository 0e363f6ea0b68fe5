"""Conversion of JSON-RPC params into the argument types of handlers."""

from __future__ import annotations

import dataclasses
import enum
import re
import types
from typing import Any, TypeVar, Union, get_args, get_origin

from .errors import ParamsMissingButRequested, ParamsParsingError, _qualified_name

T = TypeVar("T")

_NONE_TYPE = type(None)
_UNION_ORIGINS = (Union, types.UnionType)

_BUILTIN_TYPES: dict[str, Any] = {
    "int": int,
    "str": str,
    "float": float,
    "bool": bool,
    "bytes": bytes,
    "list": list,
    "dict": dict,
    "tuple": tuple,
    "set": set,
    "frozenset": frozenset,
    "object": object,
}


class _Mismatch(Exception):
    """Raised internally when a JSON value does not fit the requested type."""


class _Unresolved(Exception):
    """Raised internally when a string annotation cannot be resolved."""


_LEXEME_RE = re.compile(r"\s*(\.\.\.|[A-Za-z_][A-Za-z_0-9]*(?:\.[A-Za-z_][A-Za-z_0-9]*)*|[\[\],|])")
_PUNCTUATION = frozenset({"[", "]", ",", "|"})
_ELLIPSIS_TEXT = "..."


def _lex(text: str) -> list[str]:
    text = text.strip()
    lexemes: list[str] = []
    pos = 0
    while pos < len(text):
        match = _LEXEME_RE.match(text, pos)
        if match is None:
            raise _Unresolved(text)
        lexemes.append(match.group(1))
        pos = match.end()
    return lexemes


class _AnnotationParser:
    """Resolves a string annotation against a namespace without evaluating it."""

    def __init__(self, text: str, namespace: dict[str, Any]) -> None:
        self._lexemes = _lex(text)
        self._pos = 0
        self._namespace = namespace

    def parse(self) -> Any:
        result = self._union()
        if self._pos != len(self._lexemes):
            raise _Unresolved("trailing input")
        return result

    def _peek(self) -> str | None:
        return self._lexemes[self._pos] if self._pos < len(self._lexemes) else None

    def _take(self) -> str:
        lexeme = self._peek()
        if lexeme is None:
            raise _Unresolved("unexpected end of annotation")
        self._pos += 1
        return lexeme

    def _union(self) -> Any:
        members = [self._atom()]
        while self._peek() == "|":
            self._pos += 1
            members.append(self._atom())
        if len(members) == 1:
            return members[0]
        return Union[tuple(members)]

    def _atom(self) -> Any:
        lexeme = self._take()
        if lexeme in _PUNCTUATION:
            raise _Unresolved(f"unexpected {lexeme!r}")
        if lexeme == _ELLIPSIS_TEXT:
            return Ellipsis
        base = self._lookup(lexeme)
        if self._peek() != "[":
            return base
        self._pos += 1
        args = [self._union()]
        while self._peek() == ",":
            self._pos += 1
            args.append(self._union())
        if self._take() != "]":
            raise _Unresolved("unbalanced brackets")
        try:
            return base[tuple(args) if len(args) > 1 else args[0]]
        except TypeError as exc:
            raise _Unresolved(str(exc)) from exc

    def _lookup(self, name: str) -> Any:
        if "." in name:
            raise _Unresolved(f"dotted name {name!r} is not supported")
        if name == "None":
            return None
        if name in self._namespace:
            return self._namespace[name]
        if name in _BUILTIN_TYPES:
            return _BUILTIN_TYPES[name]
        raise _Unresolved(f"name {name!r} is not defined")


def _resolve_annotation(hint: Any, namespace: dict[str, Any]) -> Any:
    """Return ``hint`` with a string annotation resolved against ``namespace``."""
    if isinstance(hint, str):
        return _AnnotationParser(hint, namespace).parse()
    return hint


def _class_namespace(kind: type) -> dict[str, Any]:
    init = getattr(kind, "__init__", None)
    namespace = getattr(init, "__globals__", None)
    return namespace if isinstance(namespace, dict) else {}


def _split_optional(hint: Any) -> tuple[Any, bool]:
    """Return ``(inner, True)`` for ``Optional[inner]``, else ``(hint, False)``."""
    if get_origin(hint) in _UNION_ORIGINS:
        args = get_args(hint)
        if _NONE_TYPE in args:
            rest = tuple(arg for arg in args if arg is not _NONE_TYPE)
            if len(rest) == 1:
                return rest[0], True
            return Union[rest], True
    return hint, False


def _json_kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return f"boolean `{str(value).lower()}`"
    if isinstance(value, int):
        return f"integer `{value}`"
    if isinstance(value, float):
        return f"floating point `{value}`"
    if isinstance(value, str):
        return f"string {value!r}"
    if isinstance(value, list):
        return "sequence"
    if isinstance(value, dict):
        return "map"
    return _qualified_name(type(value))


def _expected_name(hint: Any) -> str:
    if isinstance(hint, str):
        return hint
    if isinstance(hint, type) and get_origin(hint) is None:
        return _qualified_name(hint)
    return repr(hint)


def _invalid(value: Any, expected: Any) -> _Mismatch:
    if not isinstance(expected, str):
        expected = _expected_name(expected)
    return _Mismatch(f"invalid type: {_json_kind(value)}, expected {expected}")


def _convert_sequence(hint: Any, value: Any) -> Any:
    if not isinstance(value, list):
        raise _invalid(value, "a sequence")
    origin = get_origin(hint)
    args = get_args(hint)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(_convert(args[0], item) for item in value)
        if args and len(args) != len(value):
            raise _Mismatch(f"invalid length {len(value)}, expected a tuple of size {len(args)}")
        if not args:
            return tuple(value)
        return tuple(_convert(arg, item) for arg, item in zip(args, value))
    item_hint = args[0] if args else Any
    return [_convert(item_hint, item) for item in value]


def _convert_mapping(hint: Any, value: Any) -> Any:
    if not isinstance(value, dict):
        raise _invalid(value, "a map")
    args = get_args(hint)
    value_hint = args[1] if len(args) == 2 else Any
    return {key: _convert(value_hint, item) for key, item in value.items()}


def _convert_enum(kind: type[enum.Enum], value: Any) -> Any:
    if isinstance(value, str) and value in kind.__members__:
        return kind[value]
    try:
        return kind(value)
    except ValueError:
        variants = ", ".join(f"`{name}`" for name in kind.__members__)
        raise _Mismatch(f"unknown variant {_json_kind(value)}, expected one of {variants}") from None


def _field_hint(annotation: Any, namespace: dict[str, Any]) -> Any:
    try:
        return _resolve_annotation(annotation, namespace)
    except _Unresolved:
        return Any


def _convert_dataclass(kind: type, value: Any) -> Any:
    if not isinstance(value, dict):
        raise _invalid(value, f"struct {kind.__name__}")
    namespace = _class_namespace(kind)
    kwargs: dict[str, Any] = {}
    for spec in dataclasses.fields(kind):
        if not spec.init:
            continue
        hint = _field_hint(spec.type, namespace)
        if spec.name in value:
            kwargs[spec.name] = _convert(hint, value[spec.name])
        elif spec.default is not dataclasses.MISSING or spec.default_factory is not dataclasses.MISSING:
            continue
        elif hint is Any or _split_optional(hint)[1]:
            kwargs[spec.name] = None
        else:
            raise _Mismatch(f"missing field `{spec.name}`")
    try:
        return kind(**kwargs)
    except (TypeError, ValueError) as exc:
        raise _Mismatch(str(exc)) from None


def _convert(hint: Any, value: Any) -> Any:
    if hint is Any or hint is object:
        return value
    if hint is None or hint is _NONE_TYPE:
        if value is None:
            return None
        raise _invalid(value, "null")

    origin = get_origin(hint)
    if origin in _UNION_ORIGINS:
        args = get_args(hint)
        if value is None and _NONE_TYPE in args:
            return None
        for arg in args:
            if arg is _NONE_TYPE:
                continue
            try:
                return _convert(arg, value)
            except _Mismatch:
                continue
        raise _invalid(value, hint)
    if origin in (list, tuple):
        return _convert_sequence(hint, value)
    if origin is dict:
        return _convert_mapping(hint, value)
    if origin is not None:
        raise _Mismatch(f"unsupported params type {hint!r}")

    if hint is bool:
        if isinstance(value, bool):
            return value
        raise _invalid(value, "a boolean")
    if hint is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise _invalid(value, "an integer")
    if hint is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise _invalid(value, "a number")
    if hint is str:
        if isinstance(value, str):
            return value
        raise _invalid(value, "a string")
    if hint in (list, tuple):
        return _convert_sequence(hint, value)
    if hint is dict:
        return _convert_mapping(hint, value)
    if isinstance(hint, type) and issubclass(hint, enum.Enum):
        return _convert_enum(hint, value)
    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        return _convert_dataclass(hint, value)
    if isinstance(hint, type):
        if isinstance(value, hint):
            return value
        if isinstance(value, dict):
            try:
                return hint(**value)
            except TypeError as exc:
                raise _Mismatch(str(exc)) from None
        raise _invalid(value, hint)
    raise _Mismatch(f"unsupported params type {hint!r}")


def parse_params(kind: Any, value: Any) -> Any:
    """Build a ``kind`` from a JSON value, raising ``ParamsParsingError`` on mismatch."""
    try:
        return _convert(kind, value)
    except _Mismatch as exc:
        raise ParamsParsingError(str(exc)) from None


class IntoParams:
    """Mixin for types built from a call's params; params are required."""

    @classmethod
    def into_params(cls, value: Any) -> Any:
        if value is None:
            raise ParamsMissingButRequested()
        return parse_params(cls, value)


class IntoDefaultParams(IntoParams):
    """Mixin for params types that fall back to ``cls()`` when params are absent."""

    @classmethod
    def into_params(cls, value: Any) -> Any:
        if value is None:
            return cls()
        return parse_params(cls, value)


def rpc_params(cls: type[T]) -> type[T]:
    """Class decorator giving ``cls`` the required-params ``into_params``."""
    cls.into_params = classmethod(IntoParams.into_params.__func__)  # type: ignore[attr-defined]
    return cls