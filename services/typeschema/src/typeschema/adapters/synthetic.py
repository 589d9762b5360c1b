from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field

from typeschema.domain.diagnostics import FileLocation
from typeschema.ports.type_descriptor import (
    ConstructorInfo,
    FieldInfo,
    MemberInfo,
    TypeDescriptor,
    TypeKind,
)


def _no_params() -> list[TypeDescriptor]:
    return []


def _no_fields() -> list[FieldInfo]:
    return []


def _no_constructors() -> list[ConstructorInfo]:
    return []


def _no_members() -> list[MemberInfo]:
    return []


@dataclass(eq=False)
class SyntheticType:
    """An in-memory type descriptor.

    Attributes are plain lists so recursive shapes can be wired up after
    construction: create the record first, then append a field pointing back
    at it.
    """

    kind: TypeKind
    name: str
    doc: str | None = None
    location: FileLocation | None = None
    parameters: list[TypeDescriptor] = field(default_factory=_no_params)
    own_fields: list[FieldInfo] = field(default_factory=_no_fields)
    parent: TypeDescriptor | None = None
    ctors: list[ConstructorInfo] = field(default_factory=_no_constructors)
    enum_members: list[MemberInfo] = field(default_factory=_no_members)
    sources: list[TypeDescriptor] = field(default_factory=_no_params)
    identity: Hashable | None = None

    @property
    def key(self) -> Hashable:
        if self.identity is not None:
            return self.identity
        return ("synthetic", self)

    def params(self) -> list[TypeDescriptor]:
        return list(self.parameters)

    def fields(self) -> list[FieldInfo]:
        return list(self.own_fields)

    def supertype(self) -> TypeDescriptor | None:
        return self.parent

    def constructors(self) -> list[ConstructorInfo]:
        return list(self.ctors)

    def members(self) -> list[MemberInfo]:
        return list(self.enum_members)

    def conversions(self) -> list[TypeDescriptor]:
        return list(self.sources)


STRING = SyntheticType(TypeKind.STRING, "String", identity="String")
INT = SyntheticType(TypeKind.INT, "Int", identity="Int")
FLOAT = SyntheticType(TypeKind.FLOAT, "Float", identity="Float")
BOOL = SyntheticType(TypeKind.BOOL, "Bool", identity="Bool")
NULL = SyntheticType(TypeKind.NULL, "Null", identity="Null")


def array_of(element: TypeDescriptor) -> SyntheticType:
    return SyntheticType(
        TypeKind.ARRAY,
        f"Array<{element.name}>",
        parameters=[element],
        identity=("Array", element.key),
    )


def map_of(key: TypeDescriptor, value: TypeDescriptor) -> SyntheticType:
    return SyntheticType(
        TypeKind.MAP,
        f"Map<{key.name},{value.name}>",
        parameters=[key, value],
        identity=("Map", key.key, value.key),
    )


def nullable(inner: TypeDescriptor) -> SyntheticType:
    return SyntheticType(
        TypeKind.NULLABLE,
        f"Null<{inner.name}>",
        parameters=[inner],
        identity=("Null", inner.key),
    )


def record(
    name: str,
    fields: list[FieldInfo] | None = None,
    parent: TypeDescriptor | None = None,
    doc: str | None = None,
) -> SyntheticType:
    return SyntheticType(
        TypeKind.RECORD, name, doc=doc, own_fields=list(fields or []), parent=parent
    )


def alias(name: str, target: TypeDescriptor, doc: str | None = None) -> SyntheticType:
    return SyntheticType(TypeKind.ALIAS, name, doc=doc, parameters=[target])


def enumeration(
    name: str, constructors: list[ConstructorInfo], doc: str | None = None
) -> SyntheticType:
    return SyntheticType(TypeKind.ENUM, name, doc=doc, ctors=list(constructors))


def scalar_enumeration(
    name: str,
    base: TypeDescriptor,
    members: list[MemberInfo],
    doc: str | None = None,
) -> SyntheticType:
    return SyntheticType(
        TypeKind.SCALAR_ENUM,
        name,
        doc=doc,
        parameters=[base],
        enum_members=list(members),
    )


def opaque(
    name: str, sources: list[TypeDescriptor], doc: str | None = None
) -> SyntheticType:
    return SyntheticType(TypeKind.OPAQUE, name, doc=doc, sources=list(sources))


def unsupported(name: str) -> SyntheticType:
    return SyntheticType(TypeKind.UNSUPPORTED, name)
