from dataclasses import dataclass, field
from enum import Enum, IntEnum
import sys
import typing
from typing import Annotated, Generic, NewType, TypeVar

import pytest

from typeschema.adapters.errors import TargetImportError
from typeschema.adapters.python_types import (
    convertible_from,
    describe,
    exported,
    import_target,
    is_concrete,
    json_field,
    tagged_union,
)
from typeschema.application.derivation import derive_document
from typeschema.domain.definitions import sanitize_name
from typeschema.domain.errors import UnsupportedMapKey, UnsupportedType
from typeschema.ports.type_descriptor import TypeKind

T = TypeVar("T")

UserId = NewType("UserId", int)

@dataclass
class Point:
    """A point on the plane."""

    x: float
    y: float = 0.0


@dataclass
class Node:
    value: int
    children: list["Node"] = field(default_factory=list)


class Color(str, Enum):
    RED = "red"
    GREEN = "green"


class Priority(IntEnum):
    LOW = 1
    HIGH = 2


class Direction(Enum):
    NORTH = 1
    SOUTH = 2


@dataclass
class Profile:
    name: str = json_field(name="displayName", doc="Shown to users.")
    secret: str = json_field(skip=True, default="")
    note: str | None = json_field(optional=True, default=None)
    color: Color = Color.RED
    labels: dict[str, int] = field(default_factory=dict)

    @property
    def hidden(self) -> int:
        return 0

    @exported
    @property
    def size(self) -> int:
        """Number of labels."""
        return len(self.labels)


@dataclass
class Base:
    id: int


@dataclass
class Child(Base):
    name: str


@dataclass
class Box(Generic[T]):
    item: T
    items: list[T]


@tagged_union
class Shape:
    """A drawable shape."""


@dataclass
class Circle(Shape):
    radius: float


@dataclass
class Square(Shape):
    __tag__ = "square"
    side: float


class Blank(Shape):
    pass


@convertible_from(str, "list[T]")
class Wrapped(Generic[T]):
    pass


@dataclass
class Dangling:
    other: "Missing"  # noqa: F821


@convertible_from("Missing", int)
class Counter:
    pass


@dataclass
class Gauge:
    level: int

    @exported
    @property
    def unit(self) -> "Missing":  # noqa: F821
        raise NotImplementedError


def _name(tp) -> str:
    return sanitize_name(f"{tp.__module__}.{tp.__qualname__}")


def _definition(tp, name=None):
    doc = derive_document(describe(tp))
    return doc["definitions"][name or _name(tp)]


def test_dataclass_record():
    schema = _definition(Point)
    assert schema == {
        "type": "object",
        "properties": {
            "x": {"type": "number"},
            "y": {"type": "number", "defaultValue": 0.0},
        },
        "required": ["x", "y"],
        "additionalProperties": False,
        "description": "A point on the plane.",
    }


def test_generated_dataclass_doc_is_ignored():
    assert describe(Node).doc is None


def test_recursive_dataclass():
    schema = _definition(Node)
    assert schema["properties"]["children"]["items"] == {
        "$ref": "#/definitions/" + _name(Node)
    }


def test_field_options_properties_and_enum_default():
    doc = derive_document(describe(Profile))
    schema = doc["definitions"][_name(Profile)]
    props = schema["properties"]
    assert sorted(props) == ["color", "displayName", "labels", "note", "size"]
    assert props["displayName"] == {"type": "string", "description": "Shown to users."}
    assert props["note"] == {"type": "string", "defaultValue": None}
    assert props["color"] == {"$ref": "#/definitions/" + _name(Color), "defaultValue": "red"}
    assert props["labels"] == {"$ref": "#/definitions/dict_str_int"}
    assert props["size"] == {"type": "integer", "description": "Number of labels."}
    assert "note" not in schema["required"]
    assert doc["definitions"]["dict_str_int"] == {
        "type": "object",
        "additionalProperties": {"type": "integer"},
    }


def test_inherited_dataclass_fields():
    props = _definition(Child)["properties"]
    assert props == {"id": {"type": "integer"}, "name": {"type": "string"}}


def test_generic_dataclass_is_substituted():
    schema = _definition(Box[int], _name(Box) + "_int")
    assert schema["properties"]["item"] == {"type": "integer"}
    assert schema["properties"]["items"] == {"type": "array", "items": {"type": "integer"}}


def test_scalar_enumerations():
    assert _definition(Color)["anyOf"] == [{"const": "red"}, {"const": "green"}]
    assert _definition(Priority)["anyOf"] == [{"const": 1}, {"const": 2}]


def test_plain_enum_is_tag_enumeration():
    assert describe(Direction).kind == TypeKind.ENUM
    assert _definition(Direction)["anyOf"] == [{"const": "NORTH"}, {"const": "SOUTH"}]


def test_tagged_union():
    schema = _definition(Shape)
    assert schema["description"] == "A drawable shape."
    circle, square, blank = schema["anyOf"]
    assert circle["required"] == ["Circle"]
    assert circle["properties"]["Circle"]["properties"] == {"radius": {"type": "number"}}
    assert square["required"] == ["square"]
    assert blank == {"const": "Blank"}


def test_opaque_generic_sources_are_substituted():
    schema = _definition(Wrapped[int], _name(Wrapped) + "_int")
    assert schema == {
        "anyOf": [{"type": "string"}, {"type": "array", "items": {"type": "integer"}}]
    }


def test_unresolvable_conversion_source_is_skipped():
    assert _definition(Counter) == {"type": "integer"}


def test_unresolvable_property_annotation():
    with pytest.raises(UnsupportedType):
        derive_document(describe(Gauge))


def test_new_type_alias():
    assert describe(UserId).kind == TypeKind.ALIAS
    assert _definition(UserId, sanitize_name(f"{__name__}.UserId")) == {"type": "integer"}


@pytest.mark.skipif(sys.version_info < (3, 12), reason="type statement aliases")
def test_type_statement_alias():
    tags = typing.TypeAliasType("Tags", list[str])
    doc = derive_document(describe(tags))
    name = doc["$ref"].removeprefix("#/definitions/")
    assert name.endswith("Tags")
    assert doc["definitions"][name] == {"type": "array", "items": {"type": "string"}}


def test_annotated_and_optional_roots():
    doc = derive_document(describe(Annotated[int | None, "meta"]))
    assert doc["anyOf"] == [{"type": "null"}, {"type": "integer"}]


@pytest.mark.parametrize("tp", [tuple[int, str], int | str, bytes, object])
def test_unsupported_types(tp):
    with pytest.raises(UnsupportedType):
        derive_document(describe(tp))


def test_unsupported_map_key():
    with pytest.raises(UnsupportedMapKey):
        derive_document(describe(dict[float, int]))


def test_unresolvable_annotation():
    with pytest.raises(UnsupportedType):
        derive_document(describe(Dangling))


def test_location_points_at_the_class():
    location = describe(Point).location
    assert location is not None
    assert location.path.endswith("test_python_types.py")
    assert location.line is not None


@pytest.mark.parametrize(
    ("tp", "expected"),
    [(int, True), (Box[int], True), (list[str], True), (Box, False), (list, False), (T, False)],
)
def test_is_concrete(tp, expected):
    assert is_concrete(tp) is expected


def test_import_target():
    assert import_target("json:JSONDecodeError.__name__") == "JSONDecodeError"
    with pytest.raises(TargetImportError):
        import_target("json")
    with pytest.raises(TargetImportError):
        import_target("no_such_module_here:Thing")
    with pytest.raises(TargetImportError):
        import_target("json:Nope")
