import asyncio
from dataclasses import dataclass
from typing import Optional

import pytest

from rpcroute.errors import (
    HandlerResultSerializeError,
    MethodUnknown,
    ParamsMissingButRequested,
    ParamsParsingError,
    ResourceNotFound,
)
from rpcroute.handler import into_handler
from rpcroute.handler_error import HandlerError, into_handler_error
from rpcroute.params import IntoParams
from rpcroute.request import Request
from rpcroute.resources import FromResources, Resources
from rpcroute.router import CallError, CallResponse, Router, RouterBuilder, router_builder


class ModelManager(FromResources):
    pass


class AiManager(FromResources):
    pass


class Config(FromResources):
    def __init__(self, level):
        self.level = level


@dataclass
class ParamsIded(IntoParams):
    id: int


class MyError(Exception):
    def __init__(self, kind):
        super().__init__(kind)
        self.kind = kind


async def get_task(mm: ModelManager, params: ParamsIded):
    return params.id + 9000


async def get_task_with_ai(mm: ModelManager, aim: AiManager, params: ParamsIded):
    return params.id + 9000


async def get_task_checked(mm: ModelManager, params: ParamsIded):
    if params.id > 200:
        raise MyError("IdTooBig")
    return params.id + 5000


async def get_count(mm: ModelManager, params: ParamsIded):
    raise into_handler_error("Always a String error")


async def get_count_str(mm: ModelManager, params: ParamsIded):
    raise HandlerError("Always a str error")


async def read_level(cfg: Config):
    return cfg.level


async def maybe_level(cfg: Optional[Config]):
    return -1 if cfg is None else cfg.level


async def broken(mm: ModelManager):
    return object()


def _request(id_value, method, params):
    return Request.from_value({"jsonrpc": "2.0", "id": id_value, "method": method, "params": params})


@pytest.mark.asyncio
async def test_base_resources():
    router = router_builder(
        handlers=[get_task_with_ai], resources=[ModelManager(), AiManager()]
    ).build()
    # handler registered under its function name
    results = await asyncio.gather(
        *(router.call_route(None, "get_task_with_ai", {"id": 125}) for _ in range(2))
    )
    assert [res.value for res in results] == [9125, 9125]
    assert all(res.id is None for res in results)


@pytest.mark.asyncio
async def test_sync_call():
    router = Router.builder().append_dyn("get_task", into_handler(get_task)).append_resource(ModelManager()).build()
    res = await router.call(_request(None, "get_task", {"id": 123}))
    assert res == CallResponse(id=None, method="get_task", value=9123)


@pytest.mark.asyncio
async def test_async_calls():
    router = Router.builder().append_dyn("get_task", into_handler(get_task)).build()
    calls = []
    for idx in range(2):
        resources = Resources.builder().append(ModelManager()).build()
        calls.append(router.call_with_resources(_request(idx, "get_task", {"id": 124}), resources))
    results = await asyncio.gather(*calls)
    assert [res.id for res in results] == [0, 1]
    assert [res.value for res in results] == [9124, 9124]


@pytest.mark.asyncio
async def test_shared_resources():
    router = Router.builder().append_dyn("get_task", into_handler(get_task)).build()
    resources = Resources.builder().append(ModelManager()).build()
    results = await asyncio.gather(
        *(
            router.call_route_with_resources(None, "get_task", {"id": 125}, resources)
            for _ in range(2)
        )
    )
    assert [res.value for res in results] == [9125, 9125]


@pytest.mark.asyncio
async def test_custom_my_error():
    router = Router.builder().append("get_task", get_task_checked).build()
    resources = Resources.builder().append(ModelManager()).build()
    first = await router.call_route_with_resources(None, "get_task", {"id": 123}, resources)
    assert first.value == 5123

    with pytest.raises(CallError) as info:
        await router.call_route_with_resources(None, "get_task", {"id": 222}, resources)
    error = info.value.error
    assert isinstance(error, HandlerError)
    my_error = error.get(MyError)
    assert my_error is not None and my_error.kind == "IdTooBig"
    assert error.type_name().endswith("MyError")


@pytest.mark.asyncio
async def test_custom_string_error():
    router = router_builder(handlers=[get_task, get_count], resources=[ModelManager()]).build()
    with pytest.raises(CallError) as info:
        await router.call_route(None, "get_count", {"id": 123})
    assert isinstance(info.value.error, HandlerError)
    assert info.value.error.remove(str) == "Always a String error"
    assert info.value.error.get(str) is None


@pytest.mark.asyncio
async def test_custom_str_error():
    router = router_builder(handlers=[get_task, get_count, get_count_str], resources=[ModelManager()]).build()
    with pytest.raises(CallError) as info:
        await router.call_route(None, "get_count_str", {"id": 123})
    assert info.value.error.remove(str) == "Always a str error"


@pytest.mark.asyncio
async def test_positional_router_builder_names_routes():
    router = router_builder(get_task, get_count).append_resource(ModelManager()).build()
    assert set(router.methods) == {"get_task", "get_count"}
    res = await router.call_route(7, "get_task", {"id": 1})
    assert res.value == 9001 and res.id == 7


@pytest.mark.asyncio
async def test_unknown_method():
    router = Router.builder().build()
    with pytest.raises(CallError) as info:
        await router.call_route("abc", "nope", None)
    assert info.value.id == "abc"
    assert info.value.method == "nope"
    assert isinstance(info.value.error, MethodUnknown)
    assert info.value.error.to_json() == "MethodUnknown"
    assert "nope" in str(info.value)


@pytest.mark.asyncio
async def test_missing_resource():
    router = Router.builder().append("get_task", get_task).build()
    with pytest.raises(CallError) as info:
        await router.call_route(None, "get_task", {"id": 1})
    assert isinstance(info.value.error, ResourceNotFound)
    assert info.value.error.type_name.endswith("ModelManager")


@pytest.mark.asyncio
async def test_missing_and_invalid_params():
    router = Router.builder().append("get_task", get_task).append_resource(ModelManager()).build()
    with pytest.raises(CallError) as missing:
        await router.call_route(None, "get_task", None)
    assert isinstance(missing.value.error, ParamsMissingButRequested)
    with pytest.raises(CallError) as invalid:
        await router.call_route(None, "get_task", {"id": "x"})
    assert isinstance(invalid.value.error, ParamsParsingError)


@pytest.mark.asyncio
async def test_result_serialize_error():
    router = Router.builder().append("broken", broken).append_resource(ModelManager()).build()
    with pytest.raises(CallError) as info:
        await router.call_route(None, "broken", None)
    assert isinstance(info.value.error, HandlerResultSerializeError)


@pytest.mark.asyncio
async def test_overlay_takes_precedence_over_base():
    router = Router.builder().append("read_level", read_level).append_resource(Config(1)).build()
    assert (await router.call_route(None, "read_level", None)).value == 1
    overlay = Resources.builder().append(Config(2)).build()
    res = await router.call_route_with_resources(None, "read_level", None, overlay)
    assert res.value == 2


@pytest.mark.asyncio
async def test_optional_resource():
    router = Router.builder().append("maybe_level", maybe_level).build()
    assert (await router.call_route(None, "maybe_level", None)).value == -1
    overlay = Resources.builder().append(Config(4)).build()
    assert (await router.call_route_with_resources(None, "maybe_level", None, overlay)).value == 4


@pytest.mark.asyncio
async def test_extend_resources_and_none():
    builder = Router.builder().append("get_task_with_ai", get_task_with_ai).append_resource(ModelManager())
    builder.extend_resources(None)
    builder.extend_resources(Resources.builder().append(AiManager()))
    res = await builder.build().call_route(None, "get_task_with_ai", {"id": 3})
    assert res.value == 9003


@pytest.mark.asyncio
async def test_set_resources_replaces():
    router = (
        Router.builder()
        .append("get_task_with_ai", get_task_with_ai)
        .append_resource(ModelManager())
        .set_resources(Resources.builder().append(AiManager()))
        .build()
    )
    with pytest.raises(CallError) as info:
        await router.call_route(None, "get_task_with_ai", {"id": 3})
    assert info.value.error.type_name.endswith("ModelManager")


@pytest.mark.asyncio
async def test_extend_builders():
    first = RouterBuilder().append("get_task", get_task)
    second = RouterBuilder().append("read_level", read_level).append_resource(Config(9))
    router = first.extend(second).append_resource(ModelManager()).build()
    assert (await router.call_route(None, "read_level", None)).value == 9
    assert (await router.call_route(None, "get_task", {"id": 0})).value == 9000


@pytest.mark.asyncio
async def test_builder_changes_after_build_do_not_leak():
    builder = Router.builder().append("get_task", get_task)
    router = builder.build()
    builder.append("read_level", read_level)
    assert "read_level" not in router
    with pytest.raises(CallError) as info:
        await router.call_route(None, "read_level", None)
    assert isinstance(info.value.error, MethodUnknown)


def test_append_resource_rejects_non_resource():
    with pytest.raises(TypeError):
        Router.builder().append_resource(5)


def test_append_dyn_rejects_plain_function():
    with pytest.raises(TypeError):
        Router.builder().append_dyn("get_task", get_task)