"""Type descriptors for ordinary Python type annotations.

Records are dataclasses; their fields can be tuned with :func:`json_field`
and properties join the schema only when marked with :func:`exported`.
``Enum`` subclasses mixed with ``str``/``int``/``float`` become scalar
enumerations, plain ``Enum`` subclasses become tag-only enumerations, and a
base class decorated with :func:`tagged_union` is an enumeration whose direct
dataclass subclasses are its constructors. A class decorated with
:func:`convertible_from` is opaque: it is encoded as whichever of its
declared sources can be represented.
"""

from __future__ import annotations

from collections import abc
from collections.abc import Callable, Hashable
import dataclasses
import enum
import importlib
import inspect
import logging
import types
import typing
from typing import Any, TypeVar, get_args, get_origin

from typeschema.adapters.errors import TargetImportError
from typeschema.domain.diagnostics import FileLocation
from typeschema.domain.errors import UnsupportedType
from typeschema.domain.json_types import JsonValue, coerce_json_value, is_json_value
from typeschema.ports.type_descriptor import (
    ConstructorInfo,
    FieldInfo,
    MemberInfo,
    TypeDescriptor,
    TypeKind,
)

logger = logging.getLogger(__name__)

NoneType = type(None)
METADATA_KEY = "typeschema"
_EXPORTED_ATTR = "__typeschema_exported__"
_TAGGED_ATTR = "__typeschema_tagged__"
_SOURCES_ATTR = "__typeschema_sources__"
_TAG_ATTR = "__tag__"

_PRIMITIVES: dict[object, TypeKind] = {
    NoneType: TypeKind.NULL,
    bool: TypeKind.BOOL,
    str: TypeKind.STRING,
    int: TypeKind.INT,
    float: TypeKind.FLOAT,
}

_ARRAY_ORIGINS: frozenset[object] = frozenset(
    {
        list,
        set,
        frozenset,
        abc.Sequence,
        abc.MutableSequence,
        abc.Set,
        abc.MutableSet,
        abc.Collection,
        abc.Iterable,
    }
)
_MAP_ORIGINS: frozenset[object] = frozenset({dict, abc.Mapping, abc.MutableMapping})
_BARE_GENERICS: frozenset[object] = _ARRAY_ORIGINS | _MAP_ORIGINS | {tuple}

# `type X = ...` aliases exist from Python 3.12 on
_ALIAS_TYPES: tuple[type, ...] = tuple(
    t for t in (typing.NewType, getattr(typing, "TypeAliasType", None)) if t is not None
)

TypeMapping = dict[Any, Any]
T = TypeVar("T")


def json_field(
    *,
    name: str | None = None,
    optional: bool = False,
    skip: bool = False,
    doc: str | None = None,
    **kwargs: Any,
) -> Any:
    """A ``dataclasses.field`` carrying JSON schema options.

    ``name`` renames the property, ``optional`` drops it from ``required``,
    ``skip`` leaves it out entirely and ``doc`` becomes its description.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[METADATA_KEY] = {
        "name": name,
        "optional": optional,
        "skip": skip,
        "doc": doc,
    }
    return dataclasses.field(metadata=metadata, **kwargs)


def exported(prop: T) -> T:
    fget = prop.fget if isinstance(prop, property) else prop
    setattr(fget, _EXPORTED_ATTR, True)
    return prop


def tagged_union(cls: type[T]) -> type[T]:
    setattr(cls, _TAGGED_ATTR, True)
    return cls


def convertible_from(*sources: object) -> Callable[[type[T]], type[T]]:
    def wrap(cls: type[T]) -> type[T]:
        setattr(cls, _SOURCES_ATTR, tuple(sources))
        return cls

    return wrap


def _strip_annotated(tp: Any) -> Any:
    while get_origin(tp) is typing.Annotated:
        tp = get_args(tp)[0]
    return tp


def _is_union(origin: object) -> bool:
    return origin is typing.Union or origin is types.UnionType


def _display(tp: Any) -> str:
    tp = _strip_annotated(tp)
    if tp is None or tp is NoneType:
        return "None"
    if tp is Ellipsis:
        return "..."
    origin = get_origin(tp)
    if origin is not None:
        args = get_args(tp)
        if _is_union(origin):
            return " | ".join(_display(arg) for arg in args)
        return f"{_display(origin)}[{', '.join(_display(arg) for arg in args)}]"
    if isinstance(tp, TypeVar):
        return tp.__name__
    if isinstance(tp, str):
        return tp
    if isinstance(tp, (type, *_ALIAS_TYPES)):
        module = getattr(tp, "__module__", "builtins")
        qualname = getattr(tp, "__qualname__", None) or tp.__name__
        if module in ("builtins", "collections.abc"):
            return qualname
        return f"{module}.{qualname}"
    return repr(tp)


def _generated_doc(cls: type, doc: str) -> bool:
    if dataclasses.is_dataclass(cls):
        return doc == cls.__name__ or doc.startswith(cls.__name__ + "(")
    if issubclass(cls, enum.Enum):
        return doc == "An enumeration."
    return False


def _own_doc(obj: Any) -> str | None:
    if inspect.isfunction(obj):
        raw = obj.__doc__
    else:
        raw = getattr(obj, "__dict__", {}).get("__doc__")
    if not isinstance(raw, str) or not raw.strip():
        return None
    if isinstance(obj, type) and _generated_doc(obj, raw):
        return None
    return inspect.cleandoc(raw)


def _substitute(tp: Any, mapping: TypeMapping) -> Any:
    if not mapping:
        return tp
    if isinstance(tp, TypeVar):
        return mapping.get(tp, tp)
    params = getattr(tp, "__parameters__", ())
    if params and get_origin(tp) is not None:
        return tp[tuple(mapping.get(p, p) for p in params)]
    return tp


def _resolve_source(source: object, owner: type) -> Any:
    """Evaluate a string conversion source in the owner's module.

    A source that cannot be resolved stays a plain string, which has no
    schema mapping, so the builder skips it like any other failed alternative.
    """
    if not isinstance(source, str):
        return source
    logger.debug("Resolving conversion source %r of %s", source, owner.__qualname__)
    holder = type(
        "ConversionSource",
        (),
        {"__annotations__": {"source": source}, "__module__": owner.__module__},
    )
    try:
        hints = typing.get_type_hints(
            holder, localns={owner.__name__: owner}, include_extras=True
        )
    except (NameError, SyntaxError, TypeError) as e:
        logger.debug("Cannot resolve conversion source %r: %s", source, e)
        return source
    return hints["source"]


def _enum_default(value: enum.Enum) -> JsonValue:
    if type(value)._member_type_ is object:
        return value.name
    return coerce_json_value(value.value)


def is_concrete(tp: Any) -> bool:
    """Whether ``tp`` names one fully parameterized type."""
    tp = _strip_annotated(tp)
    if isinstance(tp, TypeVar):
        return False
    if isinstance(tp, Hashable) and tp in _BARE_GENERICS:
        return False
    return not getattr(tp, "__parameters__", ())


class PythonType:
    def __init__(self, tp: Any) -> None:
        self.tp = _strip_annotated(tp)
        self._kind: TypeKind | None = None

    def __repr__(self) -> str:
        return f"PythonType({self.name})"

    @property
    def origin(self) -> Any:
        return get_origin(self.tp)

    @property
    def cls(self) -> type | None:
        candidate = self.origin if self.origin is not None else self.tp
        return candidate if isinstance(candidate, type) else None

    @property
    def type_mapping(self) -> TypeMapping:
        cls = self.cls
        args = get_args(self.tp)
        if cls is None or not args:
            return {}
        return dict(zip(getattr(cls, "__parameters__", ()), args))

    @property
    def kind(self) -> TypeKind:
        if self._kind is None:
            self._kind = self._classify()
        return self._kind

    @property
    def key(self) -> Hashable:
        return ("python", self.tp)

    @property
    def name(self) -> str:
        return _display(self.tp)

    @property
    def doc(self) -> str | None:
        if self.kind == TypeKind.ALIAS:
            return _own_doc(self.tp)
        cls = self.cls
        return _own_doc(cls) if cls is not None else None

    @property
    def location(self) -> FileLocation | None:
        target = self.cls
        if target is None:
            return None
        try:
            path = inspect.getsourcefile(target)
            _, line = inspect.getsourcelines(target)
        except (OSError, TypeError):
            return None
        return FileLocation(path, line) if path else None

    def _classify(self) -> TypeKind:
        tp = self.tp
        if tp is None:
            return TypeKind.NULL
        primitive = _PRIMITIVES.get(tp) if isinstance(tp, Hashable) else None
        if primitive is not None:
            return primitive
        if isinstance(tp, _ALIAS_TYPES):
            return TypeKind.ALIAS
        origin = self.origin
        args = get_args(tp)
        if _is_union(origin):
            rest = [arg for arg in args if arg is not NoneType]
            if len(rest) == 1 and len(args) == 2:
                return TypeKind.NULLABLE
            return TypeKind.UNSUPPORTED
        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                return TypeKind.ARRAY
            return TypeKind.UNSUPPORTED
        if origin in _ARRAY_ORIGINS:
            return TypeKind.ARRAY
        if origin in _MAP_ORIGINS:
            return TypeKind.MAP
        cls = self.cls
        if cls is None:
            return TypeKind.UNSUPPORTED
        if _SOURCES_ATTR in cls.__dict__:
            return TypeKind.OPAQUE
        if issubclass(cls, enum.Enum):
            if cls._member_type_ is object:
                return TypeKind.ENUM
            return TypeKind.SCALAR_ENUM
        if cls.__dict__.get(_TAGGED_ATTR):
            return TypeKind.ENUM
        if dataclasses.is_dataclass(cls):
            return TypeKind.RECORD
        return TypeKind.UNSUPPORTED

    def params(self) -> list[TypeDescriptor]:
        kind = self.kind
        args = get_args(self.tp)
        if kind == TypeKind.ARRAY:
            return [PythonType(args[0])] if args else []
        if kind == TypeKind.MAP:
            return [PythonType(arg) for arg in args]
        if kind == TypeKind.NULLABLE:
            return [PythonType(arg) for arg in args if arg is not NoneType]
        if kind == TypeKind.ALIAS:
            if isinstance(self.tp, typing.NewType):
                return [PythonType(self.tp.__supertype__)]
            return [PythonType(self.tp.__value__)]
        if kind == TypeKind.SCALAR_ENUM and self.cls is not None:
            return [PythonType(self.cls._member_type_)]
        return []

    def _hints(self, obj: Any) -> dict[str, Any]:
        try:
            return typing.get_type_hints(obj, include_extras=True)
        except NameError as e:
            raise UnsupportedType(
                f"Cannot resolve the annotations of {obj.__qualname__}: {e}",
                type_name=self.name,
                location=self.location,
            ) from e

    def _field_info(self, f: dataclasses.Field[Any], hint: Any) -> FieldInfo:
        options = f.metadata.get(METADATA_KEY, {})
        has_default = f.default is not dataclasses.MISSING
        default: JsonValue = None
        if isinstance(f.default, enum.Enum):
            default = _enum_default(f.default)
        elif has_default and is_json_value(f.default):
            default = coerce_json_value(f.default)
        else:
            has_default = False
        return FieldInfo(
            name=f.name,
            type=PythonType(_substitute(hint, self.type_mapping)),
            doc=options.get("doc"),
            optional=bool(options.get("optional", False)),
            skip=bool(options.get("skip", False)),
            json_name=options.get("name"),
            has_default=has_default,
            default=default,
        )

    def _property_info(self, name: str, prop: property) -> FieldInfo:
        forced = bool(getattr(prop.fget, _EXPORTED_ATTR, False))
        hint: Any = Any
        if forced and prop.fget is not None:
            hint = self._hints(prop.fget).get("return", Any)
        return FieldInfo(
            name=name,
            type=PythonType(_substitute(hint, self.type_mapping)),
            doc=_own_doc(prop.fget) if prop.fget is not None else None,
            virtual=True,
            forced=forced,
        )

    def fields(self) -> list[FieldInfo]:
        cls = self.cls
        if cls is None or not dataclasses.is_dataclass(cls):
            return []
        own = inspect.get_annotations(cls)
        hints = self._hints(cls)
        infos = [
            self._field_info(f, hints.get(f.name, f.type))
            for f in dataclasses.fields(cls)
            if f.name in own
        ]
        for name, attr in cls.__dict__.items():
            if isinstance(attr, property):
                infos.append(self._property_info(name, attr))
        return infos

    def supertype(self) -> TypeDescriptor | None:
        cls = self.cls
        if cls is None or self.kind != TypeKind.RECORD:
            return None
        for base in cls.__dict__.get("__orig_bases__", cls.__bases__):
            origin = get_origin(base) or base
            if isinstance(origin, type) and dataclasses.is_dataclass(origin):
                return PythonType(_substitute(base, self.type_mapping))
        return None

    def constructors(self) -> list[ConstructorInfo]:
        cls = self.cls
        if cls is None:
            return []
        if issubclass(cls, enum.Enum):
            return [ConstructorInfo(name=member.name) for member in cls]
        ctors: list[ConstructorInfo] = []
        for sub in cls.__subclasses__():
            tag = str(sub.__dict__.get(_TAG_ATTR, sub.__name__))
            args: tuple[FieldInfo, ...] = ()
            if dataclasses.is_dataclass(sub):
                hints = self._hints(sub)
                variant = PythonType(sub)
                args = tuple(
                    variant._field_info(f, hints.get(f.name, f.type))
                    for f in dataclasses.fields(sub)
                )
            ctors.append(ConstructorInfo(name=tag, args=args, doc=_own_doc(sub)))
        return ctors

    def members(self) -> list[MemberInfo]:
        cls = self.cls
        if cls is None or not issubclass(cls, enum.Enum):
            return []
        return [MemberInfo(name=member.name, value=member.value) for member in cls]

    def conversions(self) -> list[TypeDescriptor]:
        cls = self.cls
        if cls is None:
            return []
        sources = cls.__dict__.get(_SOURCES_ATTR, ())
        mapping = self.type_mapping
        return [
            PythonType(_substitute(_resolve_source(source, cls), mapping))
            for source in sources
        ]


def describe(tp: Any) -> PythonType:
    return PythonType(tp)


def import_target(target: str) -> Any:
    """Load ``module:QualName`` and return the named object."""
    module_name, sep, qualname = target.partition(":")
    if not sep or not module_name or not qualname:
        raise TargetImportError(
            f"Target '{target}' is not of the form module:QualName",
            details={"target": target},
        )
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise TargetImportError(
            f"Cannot import module '{module_name}'",
            details={"target": target},
            cause=e,
        ) from e
    for part in qualname.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise TargetImportError(
                f"'{module_name}' has no attribute '{qualname}'",
                details={"target": target},
                cause=e,
            ) from e
    return obj
