from __future__ import annotations

from typing import Any

from typeschema.adapters.python_types import describe, is_concrete
from typeschema.application.derivation import DeriveOptions, SchemaHandle, derive_schema
from typeschema.domain.errors import InvocationMisuse


def schema_handle(*types: Any, indent: str | None = None) -> SchemaHandle:
    """Handle on the JSON Schema of exactly one concrete Python type.

    The schema text is derived on first access and shared through the
    process-wide cache, keyed by the type and ``indent``.
    """
    if len(types) != 1:
        raise InvocationMisuse(
            f"Expected exactly one type argument, got {len(types)}",
            details={"count": len(types)},
        )
    tp = types[0]
    if not is_concrete(tp):
        raise InvocationMisuse(
            f"{tp!r} is not a concrete type; supply all type arguments",
            type_name=getattr(tp, "__name__", repr(tp)),
        )
    return derive_schema(describe(tp), DeriveOptions(indent=indent or ""))


def schema_of(*types: Any, indent: str | None = None) -> str:
    return schema_handle(*types, indent=indent).schema_text
