import json

from typeschema.adapters import synthetic
from typeschema.adapters.synthetic import INT, STRING
from typeschema.application.derivation import derive_document
from typeschema.application.schema_serialization import dumps, render_document, render_type
from typeschema.domain.schema_model import (
    INTEGER,
    STRING as STRING_SCHEMA,
    AnyOf,
    Null,
    Object,
    Ref,
    StringConst,
)
from typeschema.ports.type_descriptor import FieldInfo


def _refs(node):
    if isinstance(node, dict):
        for key, value in node.items():
            if key == "$ref":
                yield value
            else:
                yield from _refs(value)
    elif isinstance(node, list):
        for item in node:
            yield from _refs(item)


def _sample():
    leaf = synthetic.record("Zeta", [FieldInfo("z", INT)])
    tree = synthetic.record("Alpha", [FieldInfo("b", STRING), FieldInfo("a", leaf)])
    tree.own_fields.append(FieldInfo("self", synthetic.nullable(tree), optional=True))
    return tree


def test_document_key_order():
    doc = derive_document(_sample())
    assert list(doc) == ["$schema", "definitions", "$ref"]
    assert list(doc["definitions"]) == ["Alpha", "Zeta"]
    assert list(doc["definitions"]["Alpha"]["properties"]) == ["a", "b", "self"]


def test_every_reference_resolves():
    doc = derive_document(_sample())
    for ref in _refs(doc):
        assert ref.startswith("#/definitions/")
        assert ref.removeprefix("#/definitions/") in doc["definitions"]


def test_compact_and_indented_output():
    doc = derive_document(_sample())
    compact = dumps(doc)
    assert "\n" not in compact
    assert compact.startswith('{"$schema":"http://json-schema.org/draft-07/schema#","definitions":{')
    indented = dumps(doc, "  ")
    assert '\n  "definitions": {' in indented
    assert json.loads(indented) == json.loads(compact)


def test_output_is_deterministic():
    assert dumps(derive_document(_sample())) == dumps(derive_document(_sample()))


def test_null_literal_and_required_ordering():
    obj = Object(
        {"b": StringConst(None), "a": INTEGER},
        frozenset({"b", "a"}),
    )
    assert render_type(obj) == {
        "type": "object",
        "properties": {"a": {"type": "integer"}, "b": {"const": None}},
        "required": ["a", "b"],
        "additionalProperties": False,
    }


def test_empty_required_is_omitted():
    assert "required" not in render_type(Object({"a": STRING_SCHEMA}))


def test_document_without_definitions():
    doc = render_document(AnyOf((Null(), STRING_SCHEMA)), {})
    assert doc == {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "anyOf": [{"type": "null"}, {"type": "string"}],
    }


def test_reference_rendering():
    assert render_type(Ref("Point")) == {"$ref": "#/definitions/Point"}
