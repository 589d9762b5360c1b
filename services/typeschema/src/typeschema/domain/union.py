from __future__ import annotations

from typeschema.domain.schema_model import AnyOf, JsonType, Null


def _has_null(alternatives: tuple[JsonType, ...]) -> bool:
    return any(isinstance(alt, Null) for alt in alternatives)


def combine(a: JsonType | None, b: JsonType | None) -> JsonType:
    """Merge two alternative encodings into one ``AnyOf``.

    A missing operand yields the other one. ``Null`` joined with an ``AnyOf``
    that already admits null returns that ``AnyOf`` as-is; two ``AnyOf`` values
    are concatenated; a single ``AnyOf`` gets the other operand appended.
    """
    if a is None:
        if b is None:
            raise ValueError("combine() needs at least one schema")
        return b
    if b is None:
        return a
    if isinstance(a, Null) and isinstance(b, AnyOf) and _has_null(b.alternatives):
        return b
    if isinstance(b, Null) and isinstance(a, AnyOf) and _has_null(a.alternatives):
        return a
    if isinstance(a, AnyOf) and isinstance(b, AnyOf):
        return AnyOf(a.alternatives + b.alternatives)
    if isinstance(a, AnyOf):
        return AnyOf(a.alternatives + (b,))
    if isinstance(b, AnyOf):
        return AnyOf(b.alternatives + (a,))
    return AnyOf((a, b))


def combine_all(schemas: list[JsonType]) -> JsonType | None:
    merged: JsonType | None = None
    for schema in schemas:
        merged = combine(merged, schema)
    return merged
