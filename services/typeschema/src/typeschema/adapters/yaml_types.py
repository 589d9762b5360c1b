"""Type declarations read from a YAML catalog.

A catalog looks like::

    types:
      Point:
        kind: record
        doc: A point on the plane.
        fields:
          - {name: x, type: float}
          - {name: label, type: nullable<string>, optional: true}
      Shape:
        kind: enum
        constructors:
          - name: Circle
            args: [{name: radius, type: float}]
          - name: Empty

Declarations may refer to each other in any order, including recursively.
"""

from __future__ import annotations

import ast
import hashlib
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml

from typeschema.adapters import synthetic
from typeschema.adapters.errors import CatalogParseError, CatalogReadError
from typeschema.adapters.synthetic import SyntheticType
from typeschema.domain.diagnostics import FileLocation
from typeschema.domain.json_types import coerce_json_value
from typeschema.ports.type_descriptor import (
    ConstructorInfo,
    FieldInfo,
    MemberInfo,
    TypeDescriptor,
    TypeKind,
)

logger = logging.getLogger(__name__)

_KINDS = {
    "record": TypeKind.RECORD,
    "enum": TypeKind.ENUM,
    "scalar_enum": TypeKind.SCALAR_ENUM,
    "alias": TypeKind.ALIAS,
    "opaque": TypeKind.OPAQUE,
}

_BUILTINS: dict[str, TypeDescriptor] = {
    "string": synthetic.STRING,
    "int": synthetic.INT,
    "float": synthetic.FLOAT,
    "bool": synthetic.BOOL,
    "null": synthetic.NULL,
}

_GENERIC_ARITY = {"list": 1, "map": 2, "nullable": 1}

_TOKEN = re.compile(r"\s*(?:(?P<name>[A-Za-z_][A-Za-z0-9_.]*)|(?P<punct>[<>,]))")


@dataclass
class TypeCatalog:
    source: str
    types: dict[str, SyntheticType] = field(default_factory=dict)

    def __contains__(self, name: object) -> bool:
        return name in self.types

    def names(self) -> list[str]:
        return sorted(self.types)

    def get(self, name: str) -> SyntheticType:
        try:
            return self.types[name]
        except KeyError:
            raise CatalogParseError(
                f"Type '{name}' is not declared in {self.source}",
                details={"type": name, "known": self.names()},
            ) from None

    def parse_type(self, expr: str) -> TypeDescriptor:
        """Resolve a type expression against the catalog's declarations."""
        return _ExprParser(expr, self).parse()


def _tokenize(expr: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    stripped = expr.rstrip()
    while pos < len(stripped):
        match = _TOKEN.match(stripped, pos)
        if match is None:
            raise CatalogParseError(
                f"Malformed type expression '{expr}'",
                details={"expression": expr, "offset": pos},
            )
        tokens.append(match.group("name") or match.group("punct"))
        pos = match.end()
    return tokens


class _ExprParser:
    def __init__(self, expr: str, catalog: TypeCatalog) -> None:
        self.expr = expr
        self.catalog = catalog
        self.tokens = _tokenize(expr)
        self.pos = 0

    def _fail(self, message: str) -> CatalogParseError:
        return CatalogParseError(
            f"{message} in type expression '{self.expr}'",
            details={"expression": self.expr},
        )

    def _peek(self) -> str | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _take(self) -> str:
        token = self._peek()
        if token is None:
            raise self._fail("Unexpected end")
        self.pos += 1
        return token

    def _expect(self, punct: str) -> None:
        token = self._take()
        if token != punct:
            raise self._fail(f"Expected '{punct}' but found '{token}'")

    def parse(self) -> TypeDescriptor:
        result = self._type()
        if self._peek() is not None:
            raise self._fail(f"Unexpected '{self._peek()}'")
        return result

    def _type(self) -> TypeDescriptor:
        name = self._take()
        if name in ("<", ">", ","):
            raise self._fail(f"Expected a type name but found '{name}'")
        if name in _GENERIC_ARITY:
            self._expect("<")
            args = [self._type()]
            while self._peek() == ",":
                self._take()
                args.append(self._type())
            self._expect(">")
            if len(args) != _GENERIC_ARITY[name]:
                raise self._fail(
                    f"'{name}' takes {_GENERIC_ARITY[name]} argument(s), got {len(args)}"
                )
            if name == "list":
                return synthetic.array_of(args[0])
            if name == "map":
                return synthetic.map_of(args[0], args[1])
            return synthetic.nullable(args[0])
        if name in _BUILTINS:
            return _BUILTINS[name]
        if name in self.catalog:
            return self.catalog.types[name]
        raise self._fail(f"Unknown type '{name}'")


def _mapping(raw: object, what: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise CatalogParseError(f"{what} must be a mapping")
    return cast(dict[str, Any], raw)


def _sequence(raw: object, what: str) -> list[Any]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise CatalogParseError(f"{what} must be a list")
    return cast(list[Any], raw)


def _text(raw: object, what: str) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise CatalogParseError(f"{what} must be a string")
    return raw


def _required_text(raw: object, what: str) -> str:
    text = _text(raw, what)
    if not text:
        raise CatalogParseError(f"{what} is required")
    return text


def _flag(raw: dict[str, Any], key: str, what: str) -> bool:
    value = raw.get(key, False)
    if not isinstance(value, bool):
        raise CatalogParseError(f"{what}.{key} must be a boolean")
    return value


def _field(raw: object, catalog: TypeCatalog, what: str) -> FieldInfo:
    entry = _mapping(raw, what)
    name = _required_text(entry.get("name"), f"{what}.name")
    what = f"{what} '{name}'"
    raw_type = entry.get("type")
    if raw_type is None and "type" in entry:
        # an unquoted `null` arrives as None
        raw_type = "null"
    return FieldInfo(
        name=name,
        type=catalog.parse_type(_required_text(raw_type, f"{what}.type")),
        doc=_text(entry.get("doc"), f"{what}.doc"),
        optional=_flag(entry, "optional", what),
        skip=_flag(entry, "skip", what),
        virtual=_flag(entry, "virtual", what),
        forced=_flag(entry, "forced", what),
        json_name=_text(entry.get("json_name"), f"{what}.json_name"),
        has_default="default" in entry,
        default=coerce_json_value(entry.get("default")),
    )


def _constructor(raw: object, catalog: TypeCatalog, what: str) -> ConstructorInfo:
    if isinstance(raw, str):
        return ConstructorInfo(name=raw)
    entry = _mapping(raw, what)
    name = _required_text(entry.get("name"), f"{what}.name")
    args = tuple(
        _field(arg, catalog, f"{what} '{name}' argument")
        for arg in _sequence(entry.get("args"), f"{what} '{name}'.args")
    )
    return ConstructorInfo(
        name=name, args=args, doc=_text(entry.get("doc"), f"{what} '{name}'.doc")
    )


def _member(raw: object, what: str) -> MemberInfo:
    entry = _mapping(raw, what)
    name = _required_text(entry.get("name"), f"{what}.name")
    doc = _text(entry.get("doc"), f"{what} '{name}'.doc")
    is_member = _flag(entry, "member", what) if "member" in entry else True
    if "value" in entry:
        return MemberInfo(name=name, value=entry["value"], is_member=is_member, doc=doc)
    expr = _text(entry.get("expr"), f"{what} '{name}'.expr")
    if expr is None:
        raise CatalogParseError(f"{what} '{name}' needs either 'value' or 'expr'")
    try:
        value = ast.literal_eval(expr)
    except (ValueError, SyntaxError):
        logger.debug("Member %s initializer %r is not a literal", name, expr)
        return MemberInfo(name=name, is_member=is_member, is_constant=False, doc=doc)
    return MemberInfo(name=name, value=value, is_member=is_member, doc=doc)


def _fill(shell: SyntheticType, decl: dict[str, Any], catalog: TypeCatalog) -> None:
    what = f"Type '{shell.name}'"
    if shell.kind is TypeKind.RECORD:
        shell.own_fields = [
            _field(item, catalog, f"{what} field")
            for item in _sequence(decl.get("fields"), f"{what}.fields")
        ]
        extends = _text(decl.get("extends"), f"{what}.extends")
        if extends is not None:
            shell.parent = catalog.parse_type(extends)
    elif shell.kind is TypeKind.ENUM:
        shell.ctors = [
            _constructor(item, catalog, f"{what} constructor")
            for item in _sequence(decl.get("constructors"), f"{what}.constructors")
        ]
    elif shell.kind is TypeKind.SCALAR_ENUM:
        base = _required_text(decl.get("base"), f"{what}.base")
        shell.parameters = [catalog.parse_type(base)]
        shell.enum_members = [
            _member(item, f"{what} member")
            for item in _sequence(decl.get("members"), f"{what}.members")
        ]
    elif shell.kind is TypeKind.ALIAS:
        target = _required_text(decl.get("of"), f"{what}.of")
        shell.parameters = [catalog.parse_type(target)]
    elif shell.kind is TypeKind.OPAQUE:
        shell.sources = [
            catalog.parse_type(_required_text(item, f"{what} source"))
            for item in _sequence(decl.get("from"), f"{what}.from")
        ]


def _declaration_lines(text: str) -> dict[str, int]:
    """Map each declared type name to the 1-based line of its key."""
    node = yaml.compose(text, Loader=yaml.SafeLoader)
    lines: dict[str, int] = {}
    if not isinstance(node, yaml.MappingNode):
        return lines
    for key, value in node.value:
        if key.value != "types" or not isinstance(value, yaml.MappingNode):
            continue
        for type_key, _ in value.value:
            lines[str(type_key.value)] = type_key.start_mark.line + 1
    return lines


def parse_catalog(text: str, source: str = "<catalog>") -> TypeCatalog:
    try:
        raw: object = yaml.safe_load(text) or {}
        lines = _declaration_lines(text)
    except yaml.YAMLError as e:
        raise CatalogParseError(
            f"Invalid YAML in {source}", details={"source": source}, cause=e
        ) from e

    declarations = _mapping(_mapping(raw, "Catalog").get("types") or {}, "'types'")
    catalog = TypeCatalog(source=source)
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()

    # Shells first so declarations can point at each other in any order.
    for name, decl_raw in declarations.items():
        decl = _mapping(decl_raw, f"Type '{name}'")
        kind_name = decl.get("kind")
        if kind_name not in _KINDS:
            raise CatalogParseError(
                f"Type '{name}' has unknown kind {kind_name!r}",
                details={"type": str(name), "kinds": sorted(_KINDS)},
            )
        if str(name) in _BUILTINS or str(name) in _GENERIC_ARITY:
            raise CatalogParseError(f"Type '{name}' shadows a builtin type")
        catalog.types[str(name)] = SyntheticType(
            _KINDS[kind_name],
            str(name),
            doc=_text(decl.get("doc"), f"Type '{name}'.doc"),
            location=FileLocation(source, lines.get(str(name))),
            identity=("catalog", source, digest, str(name)),
        )

    for name, decl_raw in declarations.items():
        _fill(catalog.types[str(name)], decl_raw, catalog)

    logger.debug("Loaded %d type(s) from %s", len(catalog.types), source)
    return catalog


def load_catalog(path: Path) -> TypeCatalog:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise CatalogReadError(
            f"Cannot read catalog {path}", details={"path": str(path)}, cause=e
        ) from e
    return parse_catalog(text, source=str(path))
