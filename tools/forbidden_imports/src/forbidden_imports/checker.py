from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import ast
import fnmatch
import yaml


@dataclass(frozen=True)
class LayerRule:
    name: str
    include: list[str]
    deny: list[str]


@dataclass(frozen=True)
class Config:
    layers: list[LayerRule]
    exclude: list[str]


def _str_list(raw: object) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [str(item) for item in raw if item]


def load_config(path: Path) -> Config:
    data = yaml.safe_load(path.read_text()) or {}
    layers: list[LayerRule] = []
    raw_layers = data.get("layers") or {}
    if isinstance(raw_layers, dict):
        for layer_name, rules in raw_layers.items():
            if not isinstance(rules, dict):
                continue
            layers.append(
                LayerRule(
                    name=str(layer_name),
                    include=_str_list(rules.get("include")),
                    deny=_str_list(rules.get("deny")),
                )
            )
    return Config(layers=layers, exclude=_str_list(data.get("exclude")))


def find_repo_root(start: Path | None = None) -> Path:
    cwd = (start or Path.cwd()).resolve()
    for parent in (cwd, *cwd.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return cwd


def _matches_any(path: Path, patterns: list[str]) -> bool:
    rel = path.as_posix()
    return any(
        fnmatch.fnmatch(rel, pattern) or fnmatch.fnmatch(rel, f"*/{pattern}")
        for pattern in patterns
    )


def _deny_hit(import_name: str, deny: list[str]) -> bool:
    return any(
        import_name == entry or import_name.startswith(entry + ".") for entry in deny
    )


def extract_imports(text: str) -> list[tuple[str, int]]:
    hits: list[tuple[str, int]] = []
    tree = ast.parse(text)
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                hits.append((alias.name, node.lineno))
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            hits.append((node.module, node.lineno))
    return hits


def scan_files(config: Config, files: list[Path]) -> list[str]:
    violations: list[str] = []
    for file in files:
        if file.suffix != ".py" or _matches_any(file, config.exclude):
            continue
        layers = [layer for layer in config.layers if _matches_any(file, layer.include)]
        if not layers:
            continue
        imports = extract_imports(file.read_text(encoding="utf-8"))
        for layer in layers:
            for name, lineno in imports:
                if _deny_hit(name, layer.deny):
                    violations.append(
                        f"{file}:{lineno} forbidden import '{name}' in layer {layer.name}"
                    )
    return violations


def scan_tree(config: Config, root: Path) -> list[str]:
    files: list[Path] = sorted(p for p in root.rglob("*.py") if p.is_file())
    return scan_files(config, files)
