"""Error types raised while parsing requests and routing JSON-RPC calls."""

from __future__ import annotations

from typing import Any

_UNIT = object()


def _qualified_name(kind: type) -> str:
    """Return a readable, module-qualified name for a type."""
    module = getattr(kind, "__module__", None)
    name = getattr(kind, "__qualname__", None) or getattr(kind, "__name__", repr(kind))
    if module in (None, "builtins"):
        return name
    return f"{module}.{name}"


class RpcError(Exception):
    """Base class of the errors a router call can fail with."""

    variant = "RpcError"

    def _payload(self) -> Any:
        return _UNIT

    def to_json(self) -> Any:
        """Return a JSON-compatible description, tagged by variant name."""
        payload = self._payload()
        if payload is _UNIT:
            return self.variant
        return {self.variant: payload}

    def __str__(self) -> str:
        payload = self._payload()
        if payload is _UNIT:
            return self.variant
        return f"{self.variant}({payload!r})"


class ParamsParsingError(RpcError):
    """The request params could not be turned into the handler's params type."""

    variant = "ParamsParsing"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def _payload(self) -> Any:
        return self.message


class ParamsMissingButRequested(RpcError):
    """The handler requires params but the request carried none."""

    variant = "ParamsMissingButRequested"


class MethodUnknown(RpcError):
    """No handler is registered under the requested method name."""

    variant = "MethodUnknown"


class ResourceNotFound(RpcError):
    """A handler asked for a resource type that the call does not provide."""

    variant = "FromResources"

    def __init__(self, type_name: str) -> None:
        super().__init__(type_name)
        self.type_name = type_name

    def _payload(self) -> Any:
        return {"ResourceNotFound": self.type_name}


class HandlerResultSerializeError(RpcError):
    """The value returned by a handler could not be turned into JSON."""

    variant = "HandlerResultSerialize"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def _payload(self) -> Any:
        return self.message


class RequestParsingError(Exception):
    """Base class of the errors raised when a raw JSON-RPC request is invalid."""

    variant = "RequestParsingError"

    def _payload(self) -> Any:
        return {}

    def to_json(self) -> Any:
        """Return a JSON-compatible description, tagged by variant name."""
        return {self.variant: self._payload()}

    def __str__(self) -> str:
        payload = self._payload()
        if isinstance(payload, dict):
            fields = ", ".join(f"{key}={value!r}" for key, value in payload.items())
            return f"{self.variant} {{ {fields} }}"
        return f"{self.variant}({payload!r})"


class VersionMissing(RequestParsingError):
    """The request has no "jsonrpc" member."""

    variant = "VersionMissing"

    def __init__(self, id: Any = None, method: str | None = None) -> None:
        super().__init__()
        self.id = id
        self.method = method

    def _payload(self) -> Any:
        return {"id": self.id, "method": self.method}


class VersionInvalid(RequestParsingError):
    """The request's "jsonrpc" member is not "2.0"."""

    variant = "VersionInvalid"

    def __init__(self, id: Any = None, method: str | None = None, version: Any = None) -> None:
        super().__init__()
        self.id = id
        self.method = method
        self.version = version

    def _payload(self) -> Any:
        return {"id": self.id, "method": self.method, "version": self.version}


class MethodMissing(RequestParsingError):
    """The request has no "method" member."""

    variant = "MethodMissing"

    def __init__(self, id: Any = None) -> None:
        super().__init__()
        self.id = id

    def _payload(self) -> Any:
        return {"id": self.id}


class MethodInvalidType(RequestParsingError):
    """The request's "method" member is not a string."""

    variant = "MethodInvalidType"

    def __init__(self, id: Any = None, method: Any = None) -> None:
        super().__init__()
        self.id = id
        self.method = method

    def _payload(self) -> Any:
        return {"id": self.id, "method": self.method}


class IdMissing(RequestParsingError):
    """The request has no "id" member."""

    variant = "IdMissing"

    def __init__(self, method: str | None = None) -> None:
        super().__init__()
        self.method = method

    def _payload(self) -> Any:
        return {"method": self.method}


class RequestParseError(RequestParsingError):
    """The request passed validation but its members have the wrong shape."""

    variant = "Parse"

    def __init__(self, message: str) -> None:
        super().__init__()
        self.message = message

    def _payload(self) -> Any:
        return self.message