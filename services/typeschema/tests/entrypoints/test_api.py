from dataclasses import dataclass
from typing import Generic, TypeVar

import pytest

from typeschema.domain.errors import InvocationMisuse
from typeschema.entrypoints.api import schema_handle, schema_of

T = TypeVar("T")


@dataclass
class Pixel:
    x: int
    y: int


@dataclass
class Tagged(Generic[T]):
    value: T
    tags: list[str]


def test_schema_of_concrete_type():
    text = schema_of(Pixel)
    assert text.startswith('{"$schema":"http://json-schema.org/draft-07/schema#"')
    assert schema_of(Pixel) == text


def test_schema_handle_with_indent():
    handle = schema_handle(Tagged[int], indent="  ")
    assert "\n" in handle.schema_text
    name = handle.document["$ref"].removeprefix("#/definitions/")
    assert handle.document["definitions"][name]["properties"]["value"] == {"type": "integer"}


@pytest.mark.parametrize("types", [(), (Pixel, int), (T,), (Tagged,), (list,)])
def test_invocation_misuse(types):
    with pytest.raises(InvocationMisuse):
        schema_handle(*types)
