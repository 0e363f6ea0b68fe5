"""Small demonstration of routing a JSON-RPC request to application handlers."""

from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import dataclass

from .errors import RpcError
from .handler_error import HandlerError, rpc_handler_error
from .params import IntoParams
from .request import Request
from .resources import FromResources, Resources
from .router import CallError, Router


@rpc_handler_error
class TaskError(Exception):
    """Application error raised by the demo handlers."""

    NOT_FOUND = "NotFound"
    FAILED_OPERATION = "FailedOperation"
    _VARIANTS = (NOT_FOUND, FAILED_OPERATION)

    def __init__(self, variant: str) -> None:
        if variant not in self._VARIANTS:
            raise ValueError(f"unknown TaskError variant {variant!r}")
        super().__init__(variant)
        self.variant = variant

    def to_json(self) -> str:
        return self.variant

    def __str__(self) -> str:
        return self.variant

    def __repr__(self) -> str:
        return self.variant

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TaskError):
            return NotImplemented
        return self.variant == other.variant

    def __hash__(self) -> int:
        return hash((TaskError, self.variant))


@dataclass
class AppState(FromResources):
    """Application-wide state handed to handlers as a resource."""


@dataclass
class RequestContext(FromResources):
    """Per-request identity of the caller."""

    user_id: int
    username: str


@dataclass
class TaskCreate(IntoParams):
    """Params for creating a task."""

    name: str
    assignee: int | None = None


async def create_task(app: AppState, ctx: RequestContext, params: TaskCreate) -> int:
    """Greet the calling user and return the id of the created task."""
    print(f"Hello, {ctx.user_id}!")
    return 25


async def print_hello(ctx: RequestContext, params: TaskCreate) -> None:
    """Always fails with ``FailedOperation``, to show how handler errors surface."""
    raise TaskError(TaskError.FAILED_OPERATION)


def _build_router() -> Router:
    return (
        Router.builder()
        .append("create_task", create_task)
        .append("print_hello", print_hello)
        .build()
    )


def _build_resources() -> Resources:
    return (
        Resources.builder()
        .append(AppState())
        .append(RequestContext(user_id=21, username="JimmyDeSanta25"))
        .build()
    )


def _report_error(call_error: CallError) -> None:
    print(f"Error for request id: {json.dumps(call_error.id)}, method: {call_error.method}")
    error: RpcError = call_error.error
    if isinstance(error, HandlerError):
        app_error = error.remove(TaskError)
        if app_error is not None:
            print(f"Error: {app_error!r}")
        else:
            print(f"Unhandled App Error: {error}")
    else:
        print(error)


async def _run() -> None:
    router = _build_router()
    request = Request.from_value(
        {
            "jsonrpc": "2.0",
            "id": None,
            "method": "print_hello",
            "params": {"name": "Joe Schmoe"},
        }
    )
    try:
        response = await router.call_with_resources(request, _build_resources())
    except CallError as call_error:
        _report_error(call_error)
        return
    print(
        f"ID: {json.dumps(response.id)}\n"
        f"Method: {response.method}\n"
        f"Value: {json.dumps(response.value)}"
    )


def main(argv: list[str] | None = None) -> int:
    """Route one sample request and print its outcome."""
    parser = argparse.ArgumentParser(
        prog="rpcroute-demo",
        description="Route a sample JSON-RPC request and print the outcome.",
    )
    parser.parse_args(argv)
    asyncio.run(_run())
    return 0