from __future__ import annotations

from typing import TypeAlias, TypeGuard

JsonScalar: TypeAlias = str | int | float | bool | None
JsonValue: TypeAlias = JsonScalar | dict[str, "JsonValue"] | list["JsonValue"]
JsonDict: TypeAlias = dict[str, JsonValue]


def _is_dict(value: object) -> TypeGuard[dict[object, object]]:
    return isinstance(value, dict)


def _is_list(value: object) -> TypeGuard[list[object] | tuple[object, ...]]:
    return isinstance(value, (list, tuple))


def is_json_scalar(value: object) -> TypeGuard[JsonScalar]:
    return isinstance(value, (str, int, float, bool)) or value is None


def is_json_value(value: object) -> bool:
    if is_json_scalar(value):
        return True
    if _is_dict(value):
        return all(isinstance(k, str) and is_json_value(v) for k, v in value.items())
    if _is_list(value):
        return all(is_json_value(item) for item in value)
    return False


def coerce_json_value(value: object) -> JsonValue:
    if _is_dict(value):
        return {str(k): coerce_json_value(v) for k, v in value.items()}
    if _is_list(value):
        return [coerce_json_value(item) for item in value]
    if is_json_scalar(value):
        return value
    return str(value)


def as_json_dict(value: object) -> JsonDict:
    if not _is_dict(value):
        return {}
    return {str(k): coerce_json_value(v) for k, v in value.items()}
