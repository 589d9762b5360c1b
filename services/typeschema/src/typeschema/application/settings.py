from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import tomllib

from typeschema.domain.diagnostics import Diagnostic, FileLocation, Severity
from typeschema.domain.json_types import JsonDict, as_json_dict
from typeschema.domain.result import Result

SETTINGS_FILE = ".typeschema.toml"
PYPROJECT_FILE = "pyproject.toml"


@dataclass(frozen=True)
class Settings:
    indent: str = ""
    check: bool = False
    catalog: Path | None = None
    source: Path | None = None


def find_settings_file(start: Path | None = None) -> Path | None:
    cwd = (start or Path.cwd()).resolve()
    for parent in (cwd, *cwd.parents):
        candidate = parent / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        pyproject = parent / PYPROJECT_FILE
        if pyproject.is_file() and "[tool.typeschema]" in pyproject.read_text(
            encoding="utf-8"
        ):
            return pyproject
    return None


def _settings_table(path: Path, raw: JsonDict) -> JsonDict:
    if path.name == PYPROJECT_FILE:
        return as_json_dict(as_json_dict(raw.get("tool")).get("typeschema"))
    return raw


def _invalid(path: Path, message: str) -> Diagnostic:
    return Diagnostic(
        code="SETTINGS_INVALID",
        rule="settings.value",
        severity=Severity.ERROR,
        message=message,
        location=FileLocation(str(path)),
        is_execution=True,
    )


def read_settings(path: Path | None) -> Result[Settings]:
    if path is None:
        return Result(value=Settings())
    try:
        raw = as_json_dict(tomllib.loads(path.read_text(encoding="utf-8")))
    except (OSError, tomllib.TOMLDecodeError) as e:
        return Result(
            diagnostics=[
                Diagnostic(
                    code="SETTINGS_PARSE_FAILED",
                    rule="settings.parse",
                    severity=Severity.ERROR,
                    message=str(e),
                    location=FileLocation(str(path)),
                    is_execution=True,
                )
            ]
        )
    table = _settings_table(path, raw)
    diagnostics: list[Diagnostic] = []

    indent = table.get("indent", "")
    if isinstance(indent, int) and not isinstance(indent, bool):
        indent = " " * indent
    if not isinstance(indent, str):
        diagnostics.append(_invalid(path, "indent must be a string or a number of spaces"))
        indent = ""

    check = table.get("check", False)
    if not isinstance(check, bool):
        diagnostics.append(_invalid(path, "check must be a boolean"))
        check = False

    catalog_raw = table.get("catalog")
    catalog: Path | None = None
    if isinstance(catalog_raw, str) and catalog_raw:
        catalog = path.parent / catalog_raw
    elif catalog_raw is not None:
        diagnostics.append(_invalid(path, "catalog must be a path string"))

    settings = Settings(indent=indent, check=check, catalog=catalog, source=path)
    return Result(value=settings, diagnostics=diagnostics)


def effective_indent(cli_indent: str | None, settings: Settings | None) -> str:
    if cli_indent is not None:
        return cli_indent
    if settings is None:
        return ""
    return settings.indent


def effective_check(cli_check: bool | None, settings: Settings | None) -> bool:
    if cli_check is not None:
        return cli_check
    if settings is None:
        return False
    return settings.check


def effective_catalog(cli_catalog: Path | None, settings: Settings | None) -> Path | None:
    if cli_catalog is not None:
        return cli_catalog
    if settings is None:
        return None
    return settings.catalog
