from __future__ import annotations

from collections.abc import Callable, Hashable
from typing import Any
import logging

from typeschema.domain.definitions import Definitions
from typeschema.domain.diagnostics import Diagnostic, Severity, TypeLocation
from typeschema.domain.docs import clean_doc
from typeschema.domain.errors import (
    DerivationError,
    EmptyScalarEnumeration,
    UnrepresentableAbstract,
    UnsupportedMapKey,
    UnsupportedScalarEnumerationBase,
    UnsupportedType,
)
from typeschema.domain.result import Result
from typeschema.domain.schema_model import (
    BOOLEAN,
    INTEGER,
    NUMBER,
    STRING,
    Array,
    BoolConst,
    FloatConst,
    IntConst,
    JsonType,
    Map,
    Null,
    Object,
    Ref,
    StringConst,
    WithDescr,
)
from typeschema.domain.union import combine, combine_all
from typeschema.domain.json_types import JsonValue
from typeschema.ports.type_descriptor import (
    NAMED_KINDS,
    FieldInfo,
    MemberInfo,
    TypeDescriptor,
    TypeKind,
)

logger = logging.getLogger(__name__)

_PRIMITIVES: dict[TypeKind, JsonType] = {
    TypeKind.STRING: STRING,
    TypeKind.INT: INTEGER,
    TypeKind.FLOAT: NUMBER,
    TypeKind.BOOL: BOOLEAN,
}

_SCALAR_BASES = frozenset({TypeKind.STRING, TypeKind.INT, TypeKind.FLOAT, TypeKind.BOOL})

Handler = Callable[[TypeDescriptor, Definitions, "str | None", bool], JsonType]


def define(
    name: str, schema: JsonType, definitions: Definitions, doc: str | None = None
) -> Ref:
    if clean_doc(doc):
        schema = WithDescr(schema, doc or "")
    definitions.define(name, schema)
    return Ref(name)


def build(
    descriptor: TypeDescriptor,
    definitions: Definitions,
    name: str | None = None,
    optional: bool = False,
) -> JsonType:
    """Translate ``descriptor`` into a schema fragment.

    Named types are stored in ``definitions`` and come back as ``Ref``. Passing
    ``name`` stores the result under that name instead of the type's own
    canonical one; this is how aliases claim the definitions of their targets.
    ``optional`` tells a nullable wrapper that its field may already be absent.
    """
    kind = descriptor.kind
    if kind in NAMED_KINDS and name is None:
        name = definitions.name_for(descriptor.key, descriptor.name)
        if name in definitions:
            return Ref(name)
    handler = _HANDLERS.get(kind, _unsupported)
    return handler(descriptor, definitions, name, optional)


def try_build(descriptor: TypeDescriptor, definitions: Definitions) -> Result[JsonType]:
    """Derive ``descriptor``, turning a failure into a skipped ``Result``.

    Entries added by a failed attempt are rolled back so nothing it touched can
    leave a dangling reference behind.
    """
    snapshot = definitions.snapshot()
    try:
        return Result(value=build(descriptor, definitions))
    except DerivationError as e:
        definitions.restore(snapshot)
        logger.debug("Skipping alternative %s: %s", descriptor.name, e)
        return Result(
            diagnostics=[
                Diagnostic(
                    code="ALTERNATIVE_SKIPPED",
                    rule="derive.opaque.alternative",
                    severity=Severity.WARN,
                    message=str(e),
                    location=TypeLocation(descriptor.name),
                    details={"cause": e.code},
                )
            ]
        )


def _error_context(descriptor: TypeDescriptor) -> dict[str, Any]:
    return {"type_name": descriptor.name, "location": descriptor.location}


def _definition_name(descriptor: TypeDescriptor, name: str | None) -> str:
    if name is None:
        raise UnsupportedType(
            f"{descriptor.kind.value} type {descriptor.name} was built without a definition name",
            **_error_context(descriptor),
        )
    return name


def _params(descriptor: TypeDescriptor, count: int, what: str) -> list[TypeDescriptor]:
    params = descriptor.params()
    if len(params) != count:
        raise UnsupportedType(
            f"{what} {descriptor.name} needs {count} type argument(s), got {len(params)}",
            **_error_context(descriptor),
        )
    return params


def _resolved_kind(descriptor: TypeDescriptor) -> TypeKind:
    seen: set[Hashable] = set()
    current = descriptor
    while current.kind == TypeKind.ALIAS and current.key not in seen:
        seen.add(current.key)
        params = current.params()
        if len(params) != 1:
            break
        current = params[0]
    return current.kind


def _primitive(
    descriptor: TypeDescriptor, definitions: Definitions, name: str | None, optional: bool
) -> JsonType:
    return _PRIMITIVES[descriptor.kind]


def _null(
    descriptor: TypeDescriptor, definitions: Definitions, name: str | None, optional: bool
) -> JsonType:
    return Null()


def _array(
    descriptor: TypeDescriptor, definitions: Definitions, name: str | None, optional: bool
) -> JsonType:
    (element,) = _params(descriptor, 1, "Array type")
    return Array(build(element, definitions))


def _map(
    descriptor: TypeDescriptor, definitions: Definitions, name: str | None, optional: bool
) -> JsonType:
    name = _definition_name(descriptor, name)
    key, value = _params(descriptor, 2, "Map type")
    key_kind = _resolved_kind(key)
    if key_kind == TypeKind.INT:
        int_keys_only = True
    elif key_kind == TypeKind.STRING:
        int_keys_only = False
    else:
        raise UnsupportedMapKey(
            f"Map keys must be int or string, {descriptor.name} uses {key.name}",
            **_error_context(descriptor),
        )
    return define(name, Map(int_keys_only, build(value, definitions)), definitions)


def _nullable(
    descriptor: TypeDescriptor, definitions: Definitions, name: str | None, optional: bool
) -> JsonType:
    (inner,) = _params(descriptor, 1, "Nullable type")
    schema = build(inner, definitions)
    if optional:
        return schema
    return combine(Null(), schema)


def _redescribe(name: str, doc: str, definitions: Definitions) -> None:
    entry = definitions.get(name)
    if isinstance(entry, WithDescr):
        definitions.define(name, WithDescr(entry.type, doc))
    elif entry is not None and not definitions.is_in_progress(name):
        definitions.define(name, WithDescr(entry, doc))


def _alias(
    descriptor: TypeDescriptor, definitions: Definitions, name: str | None, optional: bool
) -> JsonType:
    name = _definition_name(descriptor, name)
    (target,) = _params(descriptor, 1, "Alias")
    if _resolved_kind(target) == TypeKind.ALIAS:
        raise UnsupportedType(
            f"Alias {descriptor.name} never resolves to a concrete type",
            **_error_context(descriptor),
        )
    definitions.reserve(name)
    try:
        schema = build(target, definitions, name=name)
    except DerivationError:
        definitions.discard(name)
        raise
    if schema == Ref(name):
        if clean_doc(descriptor.doc):
            _redescribe(name, descriptor.doc or "", definitions)
        return schema
    return define(name, schema, definitions, descriptor.doc)


def _gather_fields(descriptor: TypeDescriptor) -> list[FieldInfo]:
    gathered: list[FieldInfo] = []
    visited: set[Hashable] = set()
    current: TypeDescriptor | None = descriptor
    while current is not None and current.key not in visited:
        visited.add(current.key)
        gathered.extend(current.fields())
        current = current.supertype()
    return gathered


def _object_from_fields(
    owner: TypeDescriptor, fields: list[FieldInfo], definitions: Definitions
) -> Object:
    properties: dict[str, JsonType] = {}
    required: set[str] = set()
    defaults: dict[str, JsonValue] = {}
    seen: set[str] = set()
    for info in fields:
        if info.name in seen:
            continue
        seen.add(info.name)
        if info.skip or (info.virtual and not info.forced):
            continue
        key = info.json_name or info.name
        if key in properties:
            raise UnsupportedType(
                f"{owner.name} maps more than one field to the property '{key}'",
                details={"property": key},
                **_error_context(owner),
            )
        schema = build(info.type, definitions, optional=info.optional)
        if clean_doc(info.doc):
            schema = WithDescr(schema, info.doc or "")
        properties[key] = schema
        if not info.optional:
            required.add(key)
        if info.has_default:
            defaults[key] = info.default
    return Object(properties, frozenset(required), defaults)


def _record(
    descriptor: TypeDescriptor, definitions: Definitions, name: str | None, optional: bool
) -> JsonType:
    name = _definition_name(descriptor, name)
    definitions.reserve(name)
    try:
        schema = _object_from_fields(descriptor, _gather_fields(descriptor), definitions)
    except DerivationError:
        definitions.discard(name)
        raise
    return define(name, schema, definitions, descriptor.doc)


def _enum(
    descriptor: TypeDescriptor, definitions: Definitions, name: str | None, optional: bool
) -> JsonType:
    name = _definition_name(descriptor, name)
    definitions.reserve(name)
    try:
        alternatives: list[JsonType] = []
        for ctor in descriptor.constructors():
            if ctor.args:
                payload = _object_from_fields(descriptor, list(ctor.args), definitions)
                alt: JsonType = Object({ctor.name: payload}, frozenset({ctor.name}))
            else:
                alt = StringConst(ctor.name)
            if clean_doc(ctor.doc):
                alt = WithDescr(alt, ctor.doc or "")
            alternatives.append(alt)
        schema = combine_all(alternatives)
        if schema is None:
            raise UnsupportedType(
                f"Enumeration {descriptor.name} has no constructors",
                **_error_context(descriptor),
            )
    except DerivationError:
        definitions.discard(name)
        raise
    return define(name, schema, definitions, descriptor.doc)


def _literal(value: object) -> JsonType | None:
    if value is None:
        return StringConst(None)
    if isinstance(value, bool):
        return BoolConst(value)
    if isinstance(value, int):
        return IntConst(value)
    if isinstance(value, float):
        return FloatConst(value)
    if isinstance(value, str):
        return StringConst(value)
    return None


_CONSTS_FOR_BASE: dict[TypeKind, tuple[type, ...]] = {
    TypeKind.STRING: (StringConst,),
    TypeKind.INT: (IntConst,),
    TypeKind.FLOAT: (FloatConst, IntConst),
    TypeKind.BOOL: (BoolConst,),
}


def _member_constant(
    owner: TypeDescriptor, base: TypeKind, member: MemberInfo
) -> Result[JsonType]:
    const = _literal(member.value) if member.is_constant else None
    reason = "not a constant" if not member.is_constant else "unsupported value"
    # null stays usable on every base through the StringConst(None) workaround
    if const is not None and member.value is not None:
        if not isinstance(const, _CONSTS_FOR_BASE[base]):
            const = None
            reason = f"value is not {base.value}"
    if const is None:
        return Result(
            diagnostics=[
                Diagnostic(
                    code="MEMBER_SKIPPED",
                    rule="derive.scalar_enum.member",
                    severity=Severity.INFO,
                    message=f"Skipping {owner.name}.{member.name}: {reason}",
                    location=TypeLocation(owner.name, member.name),
                )
            ]
        )
    if clean_doc(member.doc):
        const = WithDescr(const, member.doc or "")
    return Result(value=const)


def _scalar_enum(
    descriptor: TypeDescriptor, definitions: Definitions, name: str | None, optional: bool
) -> JsonType:
    name = _definition_name(descriptor, name)
    (base,) = _params(descriptor, 1, "Scalar enumeration")
    base_kind = _resolved_kind(base)
    if base_kind not in _SCALAR_BASES:
        raise UnsupportedScalarEnumerationBase(
            f"Scalar enumeration {descriptor.name} is based on {base.name}; "
            "only string, int, float and bool are supported",
            **_error_context(descriptor),
        )
    alternatives: list[JsonType] = []
    skipped: list[str] = []
    for member in descriptor.members():
        if not member.is_member:
            continue
        attempt = _member_constant(descriptor, base_kind, member)
        if attempt.value is None:
            skipped.extend(d.message for d in attempt.diagnostics)
            continue
        alternatives.append(attempt.value)
    schema = combine_all(alternatives)
    if schema is None:
        raise EmptyScalarEnumeration(
            f"Scalar enumeration {descriptor.name} has no usable constant members",
            details={"skipped": list(skipped)},
            **_error_context(descriptor),
        )
    for message in skipped:
        logger.debug(message)
    return define(name, schema, definitions, descriptor.doc)


def _opaque(
    descriptor: TypeDescriptor, definitions: Definitions, name: str | None, optional: bool
) -> JsonType:
    name = _definition_name(descriptor, name)
    definitions.reserve(name)
    alternatives: list[JsonType] = []
    reasons: list[str] = []
    for source in descriptor.conversions():
        attempt = try_build(source, definitions)
        if attempt.value is None:
            reasons.extend(d.message for d in attempt.diagnostics)
            continue
        alternatives.append(attempt.value)
    schema = combine_all(alternatives)
    if schema is None:
        definitions.discard(name)
        raise UnrepresentableAbstract(
            f"None of the conversion sources of {descriptor.name} can be represented",
            details={"skipped": list(reasons)},
            **_error_context(descriptor),
        )
    return define(name, schema, definitions, descriptor.doc)


def _unsupported(
    descriptor: TypeDescriptor, definitions: Definitions, name: str | None, optional: bool
) -> JsonType:
    raise UnsupportedType(
        f"Type {descriptor.name} has no JSON schema mapping",
        **_error_context(descriptor),
    )


_HANDLERS: dict[TypeKind, Handler] = {
    TypeKind.NULL: _null,
    TypeKind.STRING: _primitive,
    TypeKind.INT: _primitive,
    TypeKind.FLOAT: _primitive,
    TypeKind.BOOL: _primitive,
    TypeKind.ARRAY: _array,
    TypeKind.MAP: _map,
    TypeKind.NULLABLE: _nullable,
    TypeKind.ALIAS: _alias,
    TypeKind.RECORD: _record,
    TypeKind.ENUM: _enum,
    TypeKind.SCALAR_ENUM: _scalar_enum,
    TypeKind.OPAQUE: _opaque,
    TypeKind.UNSUPPORTED: _unsupported,
}
