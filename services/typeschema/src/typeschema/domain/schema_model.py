from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TypeAlias

from typeschema.domain.json_types import JsonValue


class SimpleKind(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class Null:
    pass


@dataclass(frozen=True)
class Simple:
    kind: SimpleKind


@dataclass(frozen=True)
class StringConst:
    """A string literal; ``value=None`` stands for the JSON ``null`` literal."""

    value: str | None


@dataclass(frozen=True)
class BoolConst:
    value: bool


@dataclass(frozen=True)
class FloatConst:
    value: float


@dataclass(frozen=True)
class IntConst:
    value: int


def _new_properties() -> dict[str, JsonType]:
    return {}


def _new_required() -> frozenset[str]:
    return frozenset()


def _new_defaults() -> dict[str, JsonValue]:
    return {}


@dataclass(frozen=True)
class Object:
    properties: dict[str, JsonType] = field(default_factory=_new_properties)
    required: frozenset[str] = field(default_factory=_new_required)
    defaults: dict[str, JsonValue] = field(default_factory=_new_defaults)


@dataclass(frozen=True)
class Array:
    element: JsonType


@dataclass(frozen=True)
class Map:
    int_keys_only: bool
    value: JsonType


@dataclass(frozen=True)
class Ref:
    name: str


@dataclass(frozen=True)
class AnyOf:
    alternatives: tuple[JsonType, ...]


@dataclass(frozen=True)
class WithDescr:
    type: JsonType
    text: str


JsonType: TypeAlias = (
    Null
    | Simple
    | StringConst
    | BoolConst
    | FloatConst
    | IntConst
    | Object
    | Array
    | Map
    | Ref
    | AnyOf
    | WithDescr
)

STRING = Simple(SimpleKind.STRING)
INTEGER = Simple(SimpleKind.INTEGER)
NUMBER = Simple(SimpleKind.NUMBER)
BOOLEAN = Simple(SimpleKind.BOOLEAN)


def iter_refs(schema: JsonType) -> list[str]:
    """Names of every ``Ref`` reachable inside ``schema``, in visiting order."""
    names: list[str] = []
    stack: list[JsonType] = [schema]
    while stack:
        current = stack.pop()
        if isinstance(current, Ref):
            names.append(current.name)
        elif isinstance(current, Object):
            stack.extend(reversed(list(current.properties.values())))
        elif isinstance(current, Array):
            stack.append(current.element)
        elif isinstance(current, Map):
            stack.append(current.value)
        elif isinstance(current, AnyOf):
            stack.extend(reversed(current.alternatives))
        elif isinstance(current, WithDescr):
            stack.append(current.type)
    return names
