"""JSON-RPC 2.0 routing to Python handlers with type-keyed resource injection."""

__version__ = "0.1.0"

__all__ = [
    "demo",
    "errors",
    "handler",
    "handler_error",
    "params",
    "request",
    "resources",
    "router",
]