from pathlib import Path
import json as _json

import typer

from typeschema.adapters.errors import (
    AdapterError,
    CatalogParseError,
    CatalogReadError,
    TargetImportError,
)
from typeschema.adapters.policy.schema_checker import Draft7SchemaChecker
from typeschema.adapters.python_types import describe, import_target, is_concrete
from typeschema.adapters.yaml_types import load_catalog
from typeschema.application.derive_type import derive_type
from typeschema.application.result_serialization import serialize_result
from typeschema.application.settings import (
    effective_catalog,
    effective_check,
    effective_indent,
    find_settings_file,
    read_settings,
)
from typeschema.domain.diagnostics import Diagnostic, Severity
from typeschema.domain.errors import DerivationError, InvocationMisuse
from typeschema.domain.result import Result
from typeschema.entrypoints.logging_setup import configure_logging
from typeschema.ports.type_descriptor import TypeDescriptor

app = typer.Typer(add_completion=False)

_ADAPTER_CODES: dict[type[AdapterError], tuple[str, str]] = {
    TargetImportError: ("TARGET_IMPORT_FAILED", "target.import"),
    CatalogReadError: ("CATALOG_READ_FAILED", "catalog.read"),
    CatalogParseError: ("CATALOG_INVALID", "catalog.parse"),
}


@app.command(hidden=True)
def _noop() -> None:  # pyright: ignore[reportUnusedFunction]
    """Placeholder to keep Typer in group mode when only one command exists."""
    return None


def _adapter_diagnostic(error: AdapterError) -> Diagnostic:
    code, rule = _ADAPTER_CODES.get(type(error), ("ADAPTER_FAILED", "adapter"))
    return Diagnostic(
        code=code,
        rule=rule,
        severity=Severity.ERROR,
        message=str(error),
        hint=error.hint,
        details=error.details,
        is_execution=True,
    )


def _descriptor(target: str, catalog: Path | None) -> TypeDescriptor:
    if catalog is not None:
        return load_catalog(catalog).get(target)
    tp = import_target(target)
    if not is_concrete(tp):
        raise InvocationMisuse(
            f"'{target}' is not a concrete type", type_name=target
        )
    return describe(tp)


def _indent_text(raw: str | None) -> str | None:
    if raw is not None and raw.isdigit():
        return " " * int(raw)
    return raw


def _report(result: Result[str]) -> None:
    for diag in result.diagnostics:
        where = f" [{diag.location}]" if diag.location is not None else ""
        typer.echo(f"{diag.severity.value} {diag.code}: {diag.message}{where}", err=True)


@app.command()
def derive(
    target: str = typer.Argument(..., help="module:QualName, or a catalog type name"),
    catalog: Path | None = typer.Option(None, "--catalog"),
    indent: str | None = typer.Option(None, "--indent"),
    out: Path | None = typer.Option(None, "--out"),
    check: bool | None = typer.Option(None, "--check/--no-check"),
    json: bool = False,
    verbose: bool = typer.Option(False, "--verbose"),
):
    configure_logging(verbose)
    settings_result = read_settings(find_settings_file())
    settings = settings_result.value

    result: Result[str]
    if settings_result.exit_code != 0:
        result = Result(diagnostics=list(settings_result.diagnostics))
    else:
        try:
            descriptor = _descriptor(target, effective_catalog(catalog, settings))
        except AdapterError as e:
            result = Result(diagnostics=[_adapter_diagnostic(e)])
        except DerivationError as e:
            result = Result(diagnostics=[e.to_diagnostic()])
        else:
            result = derive_type(
                descriptor,
                indent=effective_indent(_indent_text(indent), settings),
                out=out,
                checker=Draft7SchemaChecker() if effective_check(check, settings) else None,
            )
        result.diagnostics[:0] = settings_result.diagnostics

    if json:
        data = serialize_result(result, command="derive", args=[target])
        typer.echo(_json.dumps(data))
    else:
        _report(result)
        if result.ok and out is None:
            typer.echo(result.value)
    raise typer.Exit(result.exit_code)
