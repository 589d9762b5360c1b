import json
from pathlib import Path
import uuid

import pytest
from typer.testing import CliRunner

from typeschema.entrypoints.cli import app

MODELS = '''\
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class Point:
    """A point."""

    x: int
    y: int


@dataclass
class Box(Generic[T]):
    item: T


Pair = tuple[int, str]
'''

CATALOG = """\
types:
  Tree:
    kind: record
    fields:
      - {name: label, type: string}
      - {name: children, type: list<Tree>}
"""


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch) -> tuple[Path, str]:
    module = "ts_models_" + uuid.uuid4().hex
    (tmp_path / f"{module}.py").write_text(MODELS, encoding="utf-8")
    (tmp_path / "types.yaml").write_text(CATALOG, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TYPESCHEMA_DETERMINISTIC", "1")
    return tmp_path, module


def _derive(*args: str):
    return CliRunner().invoke(app, ["derive", *args])


def test_derive_python_target(workspace):
    _, module = workspace
    result = _derive(f"{module}:Point")
    assert result.exit_code == 0
    doc = json.loads(result.stdout)
    assert doc["$ref"] == f"#/definitions/{module}.Point"
    assert doc["definitions"][f"{module}.Point"]["description"] == "A point."


def test_derive_with_indent_and_check(workspace):
    _, module = workspace
    result = _derive(f"{module}:Point", "--indent", "2", "--check")
    assert result.exit_code == 0
    assert '\n  "definitions": {' in result.stdout


def test_derive_json_payload_and_out_file(workspace):
    root, module = workspace
    out = root / "schemas" / "point.json"
    result = _derive(f"{module}:Point", "--out", str(out), "--json")
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["command"] == "derive"
    assert payload["timestamp"] == "1970-01-01T00:00:00+00:00"
    assert payload["artifacts"][0]["path"] == str(out)
    assert json.loads(out.read_text(encoding="utf-8"))["$ref"].endswith(".Point")


def test_failed_write_prints_no_schema(workspace):
    root, module = workspace
    (root / "taken").write_text("", encoding="utf-8")
    result = _derive(f"{module}:Point", "--out", str(root / "taken" / "point.json"))
    assert result.exit_code == 3
    assert "SCHEMA_WRITE_FAILED" in result.output
    assert "definitions" not in result.output


def test_missing_module_is_an_execution_error(workspace):
    result = _derive("no_such_module_anywhere:Thing", "--json")
    assert result.exit_code == 3
    payload = json.loads(result.stdout)
    assert payload["diagnostics"][0]["code"] == "TARGET_IMPORT_FAILED"


def test_unparameterized_generic_is_misuse(workspace):
    _, module = workspace
    result = _derive(f"{module}:Box", "--json")
    assert result.exit_code == 3
    assert json.loads(result.stdout)["diagnostics"][0]["code"] == "INVOCATION_MISUSE"


def test_unsupported_type_is_a_derivation_error(workspace):
    _, module = workspace
    result = _derive(f"{module}:Pair", "--json")
    assert result.exit_code == 2
    assert json.loads(result.stdout)["diagnostics"][0]["code"] == "UNSUPPORTED_TYPE"


def test_derive_catalog_type(workspace):
    result = _derive("Tree", "--catalog", "types.yaml")
    assert result.exit_code == 0
    doc = json.loads(result.stdout)
    assert doc["definitions"]["Tree"]["properties"]["children"]["items"] == {
        "$ref": "#/definitions/Tree"
    }


def test_unknown_catalog_type(workspace):
    result = _derive("Forest", "--catalog", "types.yaml", "--json")
    assert result.exit_code == 3
    assert json.loads(result.stdout)["diagnostics"][0]["code"] == "CATALOG_INVALID"


def test_settings_file_supplies_defaults(workspace):
    root, _ = workspace
    (root / ".typeschema.toml").write_text(
        "indent = 4\ncatalog = 'types.yaml'\ncheck = true\n", encoding="utf-8"
    )
    result = _derive("Tree")
    assert result.exit_code == 0
    assert '\n    "definitions": {' in result.stdout

    compact = _derive("Tree", "--indent", "")
    assert compact.exit_code == 0
    assert "\n" not in compact.stdout.strip()


def test_broken_settings_stop_the_command(workspace):
    root, module = workspace
    (root / ".typeschema.toml").write_text("indent = [\n", encoding="utf-8")
    result = _derive(f"{module}:Point", "--json")
    assert result.exit_code == 3
    assert json.loads(result.stdout)["diagnostics"][0]["code"] == "SETTINGS_PARSE_FAILED"
