"""Routing of JSON-RPC requests to named handlers."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from .errors import MethodUnknown, RpcError, _qualified_name
from .handler import Handler, into_handler
from .request import Request
from .resources import FromResources, Resources, ResourcesBuilder, TypeMap


@dataclass(frozen=True)
class CallResponse:
    """Successful outcome of a router call, echoing the request's id and method."""

    id: Any
    method: str
    value: Any


class CallError(Exception):
    """Failed outcome of a router call, echoing the request's id and method."""

    def __init__(self, id: Any, method: str, error: RpcError) -> None:
        super().__init__(id, method, error)
        self.id = id
        self.method = method
        self.error = error

    def __str__(self) -> str:
        return f"CallError {{ id: {self.id!r}, method: {self.method!r}, error: {self.error} }}"


class Router:
    """Immutable table of handlers by method name, with shared base resources."""

    __slots__ = ("_routes", "_base_resources")

    def __init__(
        self,
        routes: Mapping[str, Handler] | None = None,
        resources: TypeMap | None = None,
    ) -> None:
        self._routes: Mapping[str, Handler] = MappingProxyType(dict(routes or {}))
        self._base_resources = Resources(resources.copy() if resources is not None else None)

    @staticmethod
    def builder() -> RouterBuilder:
        return RouterBuilder()

    @property
    def methods(self) -> tuple[str, ...]:
        """Names of the registered methods."""
        return tuple(self._routes)

    def __contains__(self, method: object) -> bool:
        return method in self._routes

    async def call(self, request: Request) -> CallResponse:
        """Run ``request`` with the router's base resources."""
        return await self._dispatch(self._base_resources, request.id, request.method, request.params)

    async def call_with_resources(self, request: Request, resources: Resources) -> CallResponse:
        """Run ``request`` with ``resources`` laid over the router's base resources."""
        combined = self._compute_call_resources(resources)
        return await self._dispatch(combined, request.id, request.method, request.params)

    async def call_route(self, id: Any, method: str, params: Any = None) -> CallResponse:
        """Run ``method`` with ``params``; a ``None`` id is echoed back as null."""
        return await self._dispatch(self._base_resources, id, method, params)

    async def call_route_with_resources(
        self, id: Any, method: str, params: Any, resources: Resources
    ) -> CallResponse:
        """Like ``call_route``, with ``resources`` laid over the base resources."""
        combined = self._compute_call_resources(resources)
        return await self._dispatch(combined, id, method, params)

    def _compute_call_resources(self, call_resources: Resources) -> Resources:
        if self._base_resources.is_empty():
            return call_resources
        return self._base_resources.with_overlay(call_resources)

    async def _dispatch(self, resources: Resources, id: Any, method: str, params: Any) -> CallResponse:
        handler = self._routes.get(method)
        if handler is None:
            raise CallError(id, method, MethodUnknown())
        try:
            value = await handler.call(resources, params)
        except RpcError as error:
            raise CallError(id, method, error) from error
        return CallResponse(id=id, method=method, value=value)

    def __repr__(self) -> str:
        return f"Router(methods={list(self._routes)!r})"


class RouterBuilder:
    """Collects routes and base resources before building a ``Router``."""

    __slots__ = ("_routes", "_resources")

    def __init__(self) -> None:
        self._routes: dict[str, Handler] = {}
        self._resources = TypeMap()

    def append(self, name: str, handler: Callable[..., Any] | Handler) -> RouterBuilder:
        """Register a function (or ``Handler``) under ``name``."""
        self._routes[name] = into_handler(handler)
        return self

    def append_dyn(self, name: str, handler: Handler) -> RouterBuilder:
        """Register an already built ``Handler`` under ``name``."""
        if not isinstance(handler, Handler):
            raise TypeError(f"expected a Handler, got {_qualified_name(type(handler))}")
        self._routes[name] = handler
        return self

    def extend(self, other: RouterBuilder) -> RouterBuilder:
        """Take over the routes and resources of ``other``, overriding on conflict."""
        self._routes.update(other._routes)
        self._resources.extend(other._resources)
        return self

    def append_resource(self, value: Any) -> RouterBuilder:
        """Add a base resource; its type must provide ``from_resources``."""
        if not callable(getattr(type(value), "from_resources", None)):
            raise TypeError(
                f"{_qualified_name(type(value))} is not a resource type "
                f"(subclass {FromResources.__name__} or use rpc_resource)"
            )
        self._resources.insert(value)
        return self

    def extend_resources(self, builder: ResourcesBuilder | None) -> RouterBuilder:
        """Add the resources of ``builder``, if given."""
        if builder is not None:
            if self._resources.is_empty():
                self._resources = builder.entries.copy()
            else:
                self._resources.extend(builder.entries)
        return self

    def set_resources(self, builder: ResourcesBuilder) -> RouterBuilder:
        """Replace the base resources with those of ``builder``."""
        self._resources = builder.entries.copy()
        return self

    def build(self) -> Router:
        return Router(self._routes, self._resources)

    def __repr__(self) -> str:
        return f"RouterBuilder(methods={list(self._routes)!r}, resources={self._resources!r})"


def router_builder(
    *args: Callable[..., Any] | Handler,
    handlers: Iterable[Callable[..., Any] | Handler] | None = None,
    resources: Iterable[Any] | None = None,
) -> RouterBuilder:
    """Return a builder routing each handler under its function name, with the given resources."""
    builder = RouterBuilder()
    for func in (*args, *(handlers or ())):
        handler = into_handler(func)
        builder.append_dyn(handler.name, handler)
    for value in resources or ():
        builder.append_resource(value)
    return builder