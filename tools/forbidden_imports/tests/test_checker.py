from pathlib import Path

from forbidden_imports.checker import extract_imports, load_config, scan_files


def _config(tmp_path: Path) -> Path:
    cfg = tmp_path / "forbidden_imports.yaml"
    cfg.write_text(
        "exclude: ['*/tests/*']\n"
        "layers:\n"
        "  domain:\n"
        "    include: ['domain/*.py']\n"
        "    deny: ['typeschema.adapters', 'yaml']\n"
    )
    return cfg


def test_domain_rejects_adapter_import(tmp_path: Path) -> None:
    bad = tmp_path / "domain" / "bad.py"
    bad.parent.mkdir(parents=True)
    bad.write_text("import os\nfrom typeschema.adapters.synthetic import STRING\n")

    violations = scan_files(load_config(_config(tmp_path)), [bad])
    assert len(violations) == 1
    assert "bad.py:2" in violations[0]
    assert "layer domain" in violations[0]


def test_prefix_match_is_per_module(tmp_path: Path) -> None:
    ok = tmp_path / "domain" / "ok.py"
    ok.parent.mkdir(parents=True)
    ok.write_text("import yamlish\nfrom typeschema.adapters_extra import thing\n")

    assert scan_files(load_config(_config(tmp_path)), [ok]) == []


def test_excluded_and_unlayered_files_are_ignored(tmp_path: Path) -> None:
    test_file = tmp_path / "tests" / "domain" / "x.py"
    test_file.parent.mkdir(parents=True)
    test_file.write_text("import yaml\n")
    other = tmp_path / "other" / "y.py"
    other.parent.mkdir(parents=True)
    other.write_text("import yaml\n")

    assert scan_files(load_config(_config(tmp_path)), [test_file, other]) == []


def test_relative_imports_are_not_reported() -> None:
    assert extract_imports("from . import sibling\nimport yaml.nodes\n") == [
        ("yaml.nodes", 2)
    ]
