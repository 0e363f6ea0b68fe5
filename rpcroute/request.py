"""The raw JSON-RPC request that routing starts from."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import IdMissing, MethodInvalidType, MethodMissing, VersionInvalid, VersionMissing


def _string_method(value: dict[str, Any]) -> str | None:
    method = value.get("method")
    return method if isinstance(method, str) else None


@dataclass
class Request:
    """A JSON-RPC request: the echoed ``id``, the ``method`` name and optional ``params``."""

    id: Any
    method: str
    params: Any = None

    @classmethod
    def from_value(cls, value: Any) -> Request:
        """Validate a decoded JSON object (including ``"jsonrpc": "2.0"``) and build a request."""
        if not isinstance(value, dict):
            raise VersionMissing()
        if "jsonrpc" not in value:
            raise VersionMissing(id=value.get("id"), method=_string_method(value))
        version = value["jsonrpc"]
        if version != "2.0" or not isinstance(version, str):
            raise VersionInvalid(id=value.get("id"), method=_string_method(value), version=version)
        if "id" not in value:
            raise IdMissing(method=_string_method(value))
        if "method" not in value:
            raise MethodMissing(id=value["id"])
        method = value["method"]
        if not isinstance(method, str):
            raise MethodInvalidType(id=value["id"], method=method)
        return cls(id=value["id"], method=method, params=value.get("params"))

    def to_dict(self) -> dict[str, Any]:
        """Return the request's members as a JSON-compatible dict."""
        return {"id": self.id, "method": self.method, "params": self.params}