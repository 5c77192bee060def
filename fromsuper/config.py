#!/usr/bin/env python3
"""
FromSuper Build Configuration Reader

Reads the build step's configuration from `fromsuper.yaml` at the project
root:

    marker: fromsuper
    targets:
      - input: models.py
        output: generated/conversions.py
        language: python            # optional; inferred from the input suffix
        imports:
          - "from models import Bar, Foo"

Every key is optional. Relative paths are resolved against the project root.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .frontend import infer_language

CONFIG_FILENAME = "fromsuper.yaml"

LANGUAGES = ("python", "rust")


# ---------------------------------------------------------------------------
# Default fromsuper.yaml (used when no config file exists)
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_YAML = """
marker: fromsuper
targets: []
"""


class ConfigError(ValueError):
    """Raised when fromsuper.yaml is structurally invalid."""

    pass


@dataclass
class TargetConfig:
    """One input file and the generated file it produces."""
    input: Path
    output: Path
    language: str
    imports: list[str] = field(default_factory=list)


@dataclass
class FromSuperConfig:
    marker: str = "fromsuper"
    targets: list[TargetConfig] = field(default_factory=list)
    config_path: Path | None = None


# ---------------------------------------------------------------------------
# Target parser
# ---------------------------------------------------------------------------


def _resolve(project_root: Path, value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else project_root / path


def parse_target(target_dict: Any, project_root: Path, index: int = 0) -> TargetConfig:
    """Parse one entry of the `targets` list into a TargetConfig."""
    if not isinstance(target_dict, dict):
        raise ConfigError(f"targets[{index}] must be a mapping, got {type(target_dict).__name__}")

    for key in ("input", "output"):
        if not target_dict.get(key):
            raise ConfigError(f"targets[{index}] is missing '{key}'")

    input_path = _resolve(project_root, str(target_dict["input"]))
    output_path = _resolve(project_root, str(target_dict["output"]))

    language = target_dict.get("language")
    if language is None:
        try:
            language = infer_language(input_path)
        except ValueError as exc:
            raise ConfigError(f"targets[{index}]: {exc}") from exc
    if language not in LANGUAGES:
        raise ConfigError(
            f"targets[{index}] has unknown language '{language}'; "
            f"expected one of: {', '.join(LANGUAGES)}"
        )

    imports = target_dict.get("imports", [])
    if not isinstance(imports, list):
        raise ConfigError(f"targets[{index}].imports must be a list of lines")

    return TargetConfig(
        input=input_path,
        output=output_path,
        language=language,
        imports=[str(line) for line in imports],
    )


# ---------------------------------------------------------------------------
# fromsuper.yaml loader
# ---------------------------------------------------------------------------


def load_config(
    project_root: str | Path,
    config_path: str | Path | None = None,
) -> FromSuperConfig:
    """
    Load FromSuperConfig from fromsuper.yaml.

    Args:
        project_root: Root that relative paths are resolved against.
        config_path: Override path for the config file (default: project_root/fromsuper.yaml).

    Returns:
        FromSuperConfig with defaults applied where keys are missing.
    """
    project_root = Path(project_root)
    path = Path(config_path) if config_path else project_root / CONFIG_FILENAME

    if path.exists():
        doc = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    elif config_path:
        raise ConfigError(f"Config file {path} does not exist")
    else:
        doc = yaml.safe_load(DEFAULT_CONFIG_YAML) or {}
        path = None

    if not isinstance(doc, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")

    marker = str(doc.get("marker", "fromsuper"))

    targets_doc = doc.get("targets", [])
    if targets_doc is None:
        targets_doc = []
    if not isinstance(targets_doc, list):
        raise ConfigError("'targets' must be a list")

    targets = [parse_target(t, project_root, i) for i, t in enumerate(targets_doc)]

    return FromSuperConfig(marker=marker, targets=targets, config_path=path)
