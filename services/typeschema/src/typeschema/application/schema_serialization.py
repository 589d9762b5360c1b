from __future__ import annotations

import json
from collections.abc import Mapping

from typeschema.domain.docs import clean_doc
from typeschema.domain.json_types import JsonDict, JsonValue, coerce_json_value
from typeschema.domain.schema_model import (
    AnyOf,
    Array,
    BoolConst,
    FloatConst,
    IntConst,
    JsonType,
    Map,
    Null,
    Object,
    Ref,
    Simple,
    StringConst,
    WithDescr,
)

SCHEMA_URI = "http://json-schema.org/draft-07/schema#"
DEFINITIONS_POINTER = "#/definitions/"
INT_KEY_PATTERN = r"^[-+]?\d+([Ee][+-]?\d+)?$"


def _render_object(schema: Object) -> JsonDict:
    properties: JsonDict = {}
    for key in sorted(schema.properties):
        rendered = render_type(schema.properties[key])
        if key in schema.defaults:
            rendered["defaultValue"] = coerce_json_value(schema.defaults[key])
        properties[key] = rendered
    out: JsonDict = {"type": "object", "properties": properties}
    if schema.required:
        required: list[JsonValue] = [name for name in sorted(schema.required)]
        out["required"] = required
    out["additionalProperties"] = False
    return out


def render_type(schema: JsonType) -> JsonDict:
    """Render one schema fragment as an ordered JSON object."""
    if isinstance(schema, Null):
        return {"type": "null"}
    if isinstance(schema, Simple):
        return {"type": schema.kind.value}
    if isinstance(schema, (StringConst, BoolConst, FloatConst, IntConst)):
        # StringConst(None) is how a null literal is spelled.
        return {"const": schema.value}
    if isinstance(schema, Object):
        return _render_object(schema)
    if isinstance(schema, Array):
        return {"type": "array", "items": render_type(schema.element)}
    if isinstance(schema, Map):
        if schema.int_keys_only:
            return {
                "type": "object",
                "patternProperties": {INT_KEY_PATTERN: render_type(schema.value)},
            }
        return {"type": "object", "additionalProperties": render_type(schema.value)}
    if isinstance(schema, Ref):
        return {"$ref": DEFINITIONS_POINTER + schema.name}
    if isinstance(schema, AnyOf):
        return {"anyOf": [render_type(alt) for alt in schema.alternatives]}
    if isinstance(schema, WithDescr):
        out = render_type(schema.type)
        text = clean_doc(schema.text)
        if text:
            out["description"] = text
        return out
    raise TypeError(f"Not a schema fragment: {schema!r}")


def render_document(root: JsonType, definitions: Mapping[str, JsonType]) -> JsonDict:
    document: JsonDict = {"$schema": SCHEMA_URI}
    if definitions:
        document["definitions"] = {
            name: render_type(definitions[name]) for name in sorted(definitions)
        }
    document.update(render_type(root))
    return document


def dumps(document: JsonDict, indent: str = "") -> str:
    if not indent:
        return json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(document, indent=indent, ensure_ascii=False)
