from __future__ import annotations

import json

import jsonschema

from typeschema.domain.diagnostics import Diagnostic, Severity, TypeLocation
from typeschema.domain.json_types import JsonDict, JsonValue
from typeschema.ports.schema_checker import SchemaCheckerPort


def _pointer(path: object) -> str:
    parts = [str(p) for p in path] if isinstance(path, (list, tuple)) else []
    return "/" + "/".join(parts)


def check_document(document: JsonDict, type_name: str | None = None) -> list[Diagnostic]:
    """Check a generated document against the draft-07 meta-schema."""
    try:
        jsonschema.Draft7Validator.check_schema(document)
        return []
    except jsonschema.SchemaError as e:
        return [
            Diagnostic(
                code="SCHEMA_META_INVALID",
                rule="schema.metaschema",
                severity=Severity.ERROR,
                message=e.message,
                location=TypeLocation(type_name) if type_name else None,
                details={"path": _pointer(list(e.absolute_path))},
            )
        ]


def check_text(text: str, type_name: str | None = None) -> list[Diagnostic]:
    raw: object = json.loads(text)
    if not isinstance(raw, dict):
        return [
            Diagnostic(
                code="SCHEMA_META_INVALID",
                rule="schema.metaschema",
                severity=Severity.ERROR,
                message="Schema document is not a JSON object",
            )
        ]
    return check_document(raw, type_name)


def validate_instance(document: JsonDict, instance: JsonValue) -> list[Diagnostic]:
    """Validate one JSON value against a generated document."""
    validator = jsonschema.Draft7Validator(document)
    return [
        Diagnostic(
            code="INSTANCE_INVALID",
            rule="schema.instance",
            severity=Severity.ERROR,
            message=error.message,
            details={"path": _pointer(list(error.absolute_path))},
        )
        for error in sorted(
            validator.iter_errors(instance), key=lambda err: _pointer(list(err.absolute_path))
        )
    ]


class Draft7SchemaChecker(SchemaCheckerPort):
    def check(self, document: JsonDict, type_name: str) -> list[Diagnostic]:
        return check_document(document, type_name)
