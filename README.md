# rpcroute

`rpcroute` routes JSON-RPC 2.0 requests to Python functions. A handler
declares the resources it needs (a model manager, the caller's context, …) as
leading parameters, and optionally a typed params object as its last
parameter. The router looks up the handler by method name, takes the
resources out of a `Resources` type map, parses the params, runs the handler
(awaiting it if it is a coroutine function) and returns a `CallResponse` that
echoes the request's `id` and `method`.

The package has no third-party dependencies.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## A short tour

```python
import asyncio
from dataclasses import dataclass

from rpcroute.handler_error import HandlerError, rpc_handler_error
from rpcroute.params import rpc_params
from rpcroute.request import Request
from rpcroute.resources import Resources, rpc_resource
from rpcroute.router import CallError, Router


@rpc_resource
@dataclass
class ModelManager:
    pass


@rpc_resource
@dataclass
class UserCtx:
    user_id: int


@rpc_params
@dataclass
class ParamsIded:
    id: int


@rpc_handler_error
class IdTooBig(Exception):
    pass


async def get_task(mm: ModelManager, ctx: UserCtx, params: ParamsIded) -> int:
    if params.id > 200:
        raise IdTooBig()
    return params.id + 9000


async def main() -> None:
    router = (
        Router.builder()
        .append("get_task", get_task)
        .append_resource(ModelManager())
        .build()
    )

    request = Request.from_value(
        {"jsonrpc": "2.0", "id": 1, "method": "get_task", "params": {"id": 123}}
    )

    # Per-call resources are laid over the router's own resources.
    extra = Resources.builder().append(UserCtx(user_id=21)).build()
    response = await router.call_with_resources(request, extra)
    print(response.id, response.method, response.value)  # 1 get_task 9123

    try:
        await router.call_route_with_resources(None, "get_task", {"id": 222}, extra)
    except CallError as call_error:
        if isinstance(call_error.error, HandlerError):
            print(call_error.error.get(IdTooBig))


asyncio.run(main())
```

## Modules

- `rpcroute.router` — `Router`, `RouterBuilder`, `router_builder`,
  `CallResponse`, `CallError`.
- `rpcroute.request` — `Request` and its validating `Request.from_value`.
- `rpcroute.handler` — `Handler`, which wraps a function, and `into_handler`.
- `rpcroute.resources` — `TypeMap`, `Resources`, `ResourcesBuilder`,
  `FromResources`, `rpc_resource`, `resources_builder`.
- `rpcroute.params` — `IntoParams`, `IntoDefaultParams`, `rpc_params`,
  `parse_params`.
- `rpcroute.handler_error` — `HandlerError`, `into_handler_error`,
  `rpc_handler_error`.
- `rpcroute.errors` — the error classes listed below.
- `rpcroute.demo` — the demo behind the `rpcroute-demo` command.

## Building routers

- `Router.builder()` returns a `RouterBuilder`. `append(name, func)` wraps a
  function and registers it; `append_dyn(name, handler)` registers an
  already built `Handler`. `append_resource(value)` adds a resource shared
  by every call (its type must have `from_resources`, so subclass
  `FromResources` or decorate it with `rpc_resource`, otherwise `TypeError`).
  `extend(other)` merges another builder's routes and resources,
  `extend_resources(builder)` adds the resources of a `ResourcesBuilder`
  (`None` does nothing), and `set_resources(builder)` replaces them. Finish
  with `build()`; the built router is read-only, and `router.methods` lists
  its method names.
- `router_builder(get_task, create_task)` registers each function under its
  own name. It also takes `handlers=[...]` and `resources=[...]`.

## Writing handlers

`Handler` reads the function's parameters when it is registered. All
parameters must be positional and annotated:

- every parameter but the last is a resource type (one with
  `from_resources`), or `Optional[...]` of one, which gets `None` when the
  resource is absent; at most eight resources are allowed;
- the last parameter may instead be the params: a type with `into_params`,
  `Optional[...]` of one (`None` when the request has no params), or `Any`
  for the raw JSON value;
- a function may also take no params parameter at all, in which case request
  params are ignored.

Anything else raises `TypeError` at registration. Handlers may be plain or
`async` functions. Their return value is turned into JSON-compatible data:
`None`, booleans, numbers and strings as they are, dataclasses as dicts,
enum members by name, mappings with string or integer keys, lists and tuples,
and objects with a `to_json()` method. Anything else fails with
`HandlerResultSerializeError`.

## Calling

- `router.call(request)` and `router.call_with_resources(request, resources)`
  take a `Request`.
- `router.call_route(id, method, params)` and
  `router.call_route_with_resources(id, method, params, resources)` take the
  parts directly.

When resources are given, they are looked up first and the router's own
resources second. A successful call returns a `CallResponse` with `id`,
`method` and `value`. A failed call raises `CallError`, carrying the same
`id` and `method` and the underlying `error`, one of:

- `MethodUnknown` — no handler has that name;
- `ResourceNotFound` — a required resource is missing (its `type_name` names it);
- `ParamsMissingButRequested` — the handler needs params and there were none;
- `ParamsParsingError` — the params did not fit the params type;
- `HandlerResultSerializeError` — the result could not be made JSON-compatible;
- `HandlerError` — the handler raised an exception.

All of them subclass `RpcError` and have `to_json()`. A `HandlerError`
holds what the handler raised; `get(kind)` returns it if it is exactly of
type `kind` and `remove(kind)` takes it out, while `type_name()` names its
type. A class decorated with `rpc_handler_error` gets an
`into_handler_error()` method, but any exception is wrapped either way.

## Request validation

`Request.from_value(obj)` checks a decoded JSON object in this order and
raises a subclass of `RequestParsingError`, carrying as much of the request's
`id` and `method` as could be recovered:

- `VersionMissing` — no `"jsonrpc"` member (or the value is not an object);
- `VersionInvalid` — `"jsonrpc"` is not the string `"2.0"`;
- `IdMissing` — no `"id"` member (`null` is accepted);
- `MethodMissing` — no `"method"` member;
- `MethodInvalidType` — `"method"` is not a string.

`request.to_dict()` gives back `id`, `method` and `params`.

## Params

`parse_params(kind, value)` builds a value of `kind` from JSON data. It
handles dataclasses (missing `Optional` fields become `None`, fields with
defaults keep them), enums (by member name or value), `int`, `float`, `str`,
`bool`, lists, tuples, dicts and `Optional`/union types, and raises
`ParamsParsingError` on a mismatch. Classes marked with `rpc_params` or
subclassing `IntoParams` fail with `ParamsMissingButRequested` when the
request has no params; `IntoDefaultParams` subclasses fall back to `cls()`.

## Resources

`Resources.builder()` (or `resources_builder(*values)`) collects values keyed
by their exact type; appending a second value of the same type replaces the
first. `build()` freezes them into `Resources`, whose `get(kind)` returns the
value or `None`. `TypeMap` is the underlying one-value-per-type map.

## Demo

```
rpcroute-demo
```

routes a request to a handler that always fails with the application error
`FailedOperation` and prints how the error is taken apart:

```
Error for request id: null, method: print_hello
Error: FailedOperation
```

## What it does not do

`rpcroute` only dispatches calls. It does not read requests from a socket,
HTTP server or standard input, and it does not build JSON-RPC response or
error objects for the wire; `CallResponse` and `CallError` give the `id`,
`method` and outcome needed to write them.