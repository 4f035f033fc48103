"""The `[tool.exprgraph]` table of pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path

_KEYS = frozenset({"input", "output", "max-depth"})


class ConfigError(Exception):
    """Invalid `[tool.exprgraph]` table."""


@dataclass(slots=True, frozen=True)
class ExprgraphConfig:
    """Settings read from `[tool.exprgraph]`; unset entries are None.

    Relative `input` and `output` paths are resolved against `project_root`,
    the directory holding the pyproject.toml they were read from.
    """

    input: Path | None = None
    output: Path | None = None
    max_depth: int | None = None
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Return the nearest pyproject.toml in `start_dir` (default: cwd) or its parents."""
    directory = (start_dir or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / "pyproject.toml"
        if candidate.is_file():
            return candidate
    return None


def _parse_path(section: dict[str, object], key: str, project_root: Path) -> Path | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        msg = f"Invalid [tool.exprgraph].{key}: expected string path"
        raise ConfigError(msg)
    return project_root / value


def _parse_max_depth(section: dict[str, object]) -> int | None:
    value = section.get("max-depth")
    if value is None:
        return None
    # bool is an int subclass
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        msg = "Invalid [tool.exprgraph].max-depth: expected positive integer"
        raise ConfigError(msg)
    return value


def load_config(pyproject_path: Path) -> ExprgraphConfig:
    """Read `[tool.exprgraph]` from a pyproject.toml file.

    A file without the table gives a config where only `project_root` is set.

    Raises:
        ConfigError: If the file is not valid TOML or the table has unknown keys
            or ill-typed entries.

    """
    project_root = pyproject_path.parent
    try:
        data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {pyproject_path}: {e}"
        raise ConfigError(msg) from e

    section = data.get("tool", {}).get("exprgraph", {})
    unknown = sorted(section.keys() - _KEYS)
    if unknown:
        msg = f"Unknown [tool.exprgraph] keys: {', '.join(unknown)}"
        raise ConfigError(msg)

    return ExprgraphConfig(
        input=_parse_path(section, "input", project_root),
        output=_parse_path(section, "output", project_root),
        max_depth=_parse_max_depth(section),
        project_root=project_root,
    )


def get_config() -> ExprgraphConfig:
    """Load the config of the project containing the working directory, if any."""
    pyproject_path = find_pyproject_toml()
    return ExprgraphConfig() if pyproject_path is None else load_config(pyproject_path)
