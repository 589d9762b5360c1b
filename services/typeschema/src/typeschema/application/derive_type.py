from __future__ import annotations

import logging
from pathlib import Path

from typeschema.application.derivation import DerivationCache, DeriveOptions, derive_schema
from typeschema.application.result_serialization import schema_artifact
from typeschema.domain.diagnostics import Diagnostic, FileLocation, Severity
from typeschema.domain.errors import DerivationError
from typeschema.domain.result import Result
from typeschema.ports.schema_checker import SchemaCheckerPort
from typeschema.ports.type_descriptor import TypeDescriptor

logger = logging.getLogger(__name__)


def derive_type(
    descriptor: TypeDescriptor,
    indent: str = "",
    out: Path | None = None,
    checker: SchemaCheckerPort | None = None,
    cache: DerivationCache | None = None,
) -> Result[str]:
    """Derive, optionally check, and optionally write one type's schema."""
    handle = derive_schema(descriptor, DeriveOptions(indent=indent), cache)
    try:
        text = handle.schema_text
    except DerivationError as e:
        logger.debug("Derivation of %s failed: %s", descriptor.name, e)
        return Result(diagnostics=[e.to_diagnostic()])

    diagnostics: list[Diagnostic] = []
    if checker is not None:
        diagnostics.extend(checker.check(handle.document, descriptor.name))

    path: str | None = None
    if out is not None:
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(text + "\n", encoding="utf-8")
        except OSError as e:
            diagnostics.append(
                Diagnostic(
                    code="SCHEMA_WRITE_FAILED",
                    rule="derive.output",
                    severity=Severity.ERROR,
                    message=str(e),
                    location=FileLocation(str(out)),
                    is_execution=True,
                )
            )
        else:
            path = str(out)

    return Result(
        value=text,
        diagnostics=diagnostics,
        artifacts=[schema_artifact(descriptor.name, text, path)],
    )
