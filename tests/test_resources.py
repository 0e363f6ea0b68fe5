from dataclasses import dataclass

import pytest

from rpcroute.errors import ResourceNotFound
from rpcroute.resources import (
    FromResources,
    Resources,
    ResourcesBuilder,
    TypeMap,
    resources_builder,
    rpc_resource,
)


@dataclass
class MyType:
    value: int


@dataclass
class ModelManager(FromResources):
    name: str = "mm"


@rpc_resource
@dataclass
class AiManager:
    name: str = "aim"


class Missing(FromResources):
    pass


def test_extensions():
    extensions = TypeMap()
    extensions.insert(5)
    extensions.insert(MyType(10))

    assert extensions.get(int) == 5

    ext2 = extensions.copy()

    assert extensions.remove(int) == 5
    assert extensions.get(int) is None

    assert ext2.get(int) == 5
    assert ext2.get(MyType) == MyType(10)

    assert extensions.get(bool) is None
    assert extensions.get(MyType) == MyType(10)


def test_insert_returns_replaced_value():
    type_map = TypeMap()
    assert type_map.insert(5) is None
    assert type_map.insert("x") is None
    assert type_map.insert(9) == 5
    assert type_map.get(int) == 9


def test_extend_overwrites_same_type():
    first = TypeMap()
    first.insert(8)
    first.insert(1.5)
    second = TypeMap()
    second.insert(4)
    second.insert("hello")
    first.extend(second)
    assert len(first) == 3
    assert first.get(int) == 4
    assert first.get(float) == 1.5
    assert first.get(str) == "hello"


def test_len_empty_and_clear():
    type_map = TypeMap()
    assert type_map.is_empty()
    assert len(type_map) == 0
    type_map.insert(5)
    assert not type_map.is_empty()
    assert len(type_map) == 1
    type_map.clear()
    assert type_map.get(int) is None
    assert type_map.is_empty()


def test_builder_append_and_get():
    builder = Resources.builder().append(ModelManager("a"))
    assert isinstance(builder, ResourcesBuilder)
    assert builder.get(ModelManager) == ModelManager("a")
    assert builder.get(AiManager) is None


def test_built_resources_do_not_see_later_appends():
    builder = ResourcesBuilder().append(ModelManager())
    resources = builder.build()
    builder.append(AiManager())
    assert resources.get(AiManager) is None
    assert resources.get(ModelManager) == ModelManager()


def test_empty_resources():
    assert Resources().is_empty()
    assert Resources.builder().build().is_empty()
    assert not resources_builder(ModelManager()).build().is_empty()


def test_overlay_takes_precedence_over_base():
    base = resources_builder(ModelManager("base"), AiManager("base")).build()
    overlay = resources_builder(ModelManager("overlay")).build()
    combined = base.with_overlay(overlay)
    assert combined.get(ModelManager) == ModelManager("overlay")
    assert combined.get(AiManager) == AiManager("base")
    assert base.get(ModelManager) == ModelManager("base")


def test_from_resources_finds_value():
    resources = resources_builder(ModelManager("x")).build()
    assert ModelManager.from_resources(resources) == ModelManager("x")


def test_rpc_resource_decorator_adds_lookup():
    resources = resources_builder(AiManager("y")).build()
    assert AiManager.from_resources(resources) == AiManager("y")


def test_from_resources_missing_raises():
    with pytest.raises(ResourceNotFound) as exc:
        Missing.from_resources(Resources())
    assert exc.value.type_name.endswith("Missing")


def test_resources_builder_keeps_last_of_same_type():
    builder = resources_builder(ModelManager("one"), ModelManager("two"))
    assert len(builder.entries) == 1
    assert builder.get(ModelManager) == ModelManager("two")