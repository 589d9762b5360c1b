from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from typeschema.domain.diagnostics import FileLocation
from typeschema.domain.json_types import JsonValue


class TypeKind(str, Enum):
    NULL = "null"
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    ARRAY = "array"
    MAP = "map"
    NULLABLE = "nullable"
    ALIAS = "alias"
    RECORD = "record"
    ENUM = "enum"
    SCALAR_ENUM = "scalar_enum"
    OPAQUE = "opaque"
    UNSUPPORTED = "unsupported"


NAMED_KINDS = frozenset(
    {
        TypeKind.MAP,
        TypeKind.ALIAS,
        TypeKind.RECORD,
        TypeKind.ENUM,
        TypeKind.SCALAR_ENUM,
        TypeKind.OPAQUE,
    }
)


@dataclass(frozen=True)
class FieldInfo:
    name: str
    type: TypeDescriptor
    doc: str | None = None
    optional: bool = False
    skip: bool = False
    virtual: bool = False
    forced: bool = False
    json_name: str | None = None
    has_default: bool = False
    default: JsonValue = None


@dataclass(frozen=True)
class ConstructorInfo:
    name: str
    args: tuple[FieldInfo, ...] = ()
    doc: str | None = None


@dataclass(frozen=True)
class MemberInfo:
    """One candidate value of a scalar enumeration.

    ``is_constant`` is false when the host could not reduce the member's
    initializer to a literal; ``value`` is then meaningless.
    """

    name: str
    value: object = None
    is_member: bool = True
    is_constant: bool = True
    doc: str | None = None


class TypeDescriptor(Protocol):
    """What the builder needs to know about one host type.

    ``params`` carries the structural arguments for each kind: the element of
    an array, the key and value of a map, the wrapped type of a nullable, the
    target of an alias and the underlying representation of a scalar
    enumeration.
    """

    @property
    def kind(self) -> TypeKind: ...

    @property
    def key(self) -> Hashable: ...

    @property
    def name(self) -> str: ...

    @property
    def doc(self) -> str | None: ...

    @property
    def location(self) -> FileLocation | None: ...

    def params(self) -> list[TypeDescriptor]: ...

    def fields(self) -> list[FieldInfo]: ...

    def supertype(self) -> TypeDescriptor | None: ...

    def constructors(self) -> list[ConstructorInfo]: ...

    def members(self) -> list[MemberInfo]: ...

    def conversions(self) -> list[TypeDescriptor]: ...
