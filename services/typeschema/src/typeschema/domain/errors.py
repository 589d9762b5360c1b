from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from typeschema.domain.diagnostics import Diagnostic, FileLocation, Severity, TypeLocation
from typeschema.domain.json_types import JsonDict


@dataclass
class DerivationError(Exception):
    """A derivation that cannot produce a schema for the requested type."""

    message: str
    type_name: str | None = None
    location: FileLocation | None = None
    details: JsonDict | None = None

    code: ClassVar[str] = "DERIVATION_FAILED"
    rule: ClassVar[str] = "derive"
    is_execution: ClassVar[bool] = False

    def __str__(self) -> str:
        if self.location is None:
            return self.message
        return f"{self.message} ({self.location})"

    def to_diagnostic(self) -> Diagnostic:
        location: FileLocation | TypeLocation | None = self.location
        if location is None and self.type_name is not None:
            location = TypeLocation(self.type_name)
        return Diagnostic(
            code=self.code,
            rule=self.rule,
            severity=Severity.ERROR,
            message=self.message,
            location=location,
            details=self.details,
            is_execution=self.is_execution,
        )


class UnsupportedType(DerivationError):
    code = "UNSUPPORTED_TYPE"
    rule = "derive.type"


class UnsupportedMapKey(DerivationError):
    code = "UNSUPPORTED_MAP_KEY"
    rule = "derive.map.key"


class UnrepresentableAbstract(DerivationError):
    code = "UNREPRESENTABLE_ABSTRACT"
    rule = "derive.opaque"


class EmptyScalarEnumeration(DerivationError):
    code = "EMPTY_SCALAR_ENUMERATION"
    rule = "derive.scalar_enum.members"


class UnsupportedScalarEnumerationBase(DerivationError):
    code = "UNSUPPORTED_SCALAR_ENUMERATION_BASE"
    rule = "derive.scalar_enum.base"


class InvocationMisuse(DerivationError):
    code = "INVOCATION_MISUSE"
    rule = "invoke.arguments"
    is_execution = True
