from pathlib import Path
import tomllib


def test_pytest_uses_importlib_mode_and_service_paths() -> None:
    pyproject_path = Path(__file__).resolve().parents[1] / "pyproject.toml"
    data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    pytest_options = data.get("tool", {}).get("pytest", {}).get("ini_options", {})
    assert "--import-mode=importlib" in pytest_options.get("addopts", "")
    for path in pytest_options.get("pythonpath", []):
        assert (pyproject_path.parent / path).is_dir()
