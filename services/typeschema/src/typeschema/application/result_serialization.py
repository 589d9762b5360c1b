from __future__ import annotations

from dataclasses import asdict, is_dataclass
import hashlib
from typing import TypeVar

from typeschema.domain.determinism import timestamp
from typeschema.domain.diagnostics import Diagnostic, Location
from typeschema.domain.json_types import JsonDict, as_json_dict
from typeschema.domain.result import Result

T = TypeVar("T")

RESULT_SCHEMA_VERSION = 1


def _serialize_location(location: Location | None) -> JsonDict | None:
    if location is None:
        return None
    if is_dataclass(location):
        return as_json_dict(asdict(location))
    return as_json_dict({"kind": str(getattr(location, "kind", "unknown"))})


def serialize_diagnostic(diag: Diagnostic) -> JsonDict:
    return as_json_dict(
        {
            "id": diag.id,
            "code": diag.code,
            "rule": diag.rule,
            "severity": diag.severity.value,
            "message": diag.message,
            "hint": diag.hint,
            "details": diag.details,
            "is_execution": diag.is_execution,
            "location": _serialize_location(diag.location),
        }
    )


def serialize_result(
    result: Result[T],
    command: str,
    args: list[str],
) -> JsonDict:
    return as_json_dict(
        {
            "result_schema_version": RESULT_SCHEMA_VERSION,
            "timestamp": timestamp(),
            "command": command,
            "args": args,
            "exit_code": result.exit_code,
            "diagnostics": [serialize_diagnostic(d) for d in result.diagnostics],
            "artifacts": result.artifacts,
        }
    )


def schema_artifact(type_name: str, text: str, path: str | None = None) -> JsonDict:
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return as_json_dict(
        {
            "kind": "schema",
            "type": type_name,
            "path": path,
            "sha256": digest,
            "bytes": len(text.encode("utf-8")),
        }
    )
