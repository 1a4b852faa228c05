"""File I/O utilities — atomic writes, YAML and JSON documents."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

_yaml = YAML()
_yaml.preserve_quotes = True
_yaml.default_flow_style = False

YAML_SUFFIXES = {".yaml", ".yml"}
JSON_SUFFIXES = {".json"}


class ProjectLoadError(Exception):
    """Raised when a project or settings document cannot be read."""

    def __init__(self, message: str, path: Path | str | None = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


def write_atomic(path: Path | str, data: Any, *, as_yaml: bool = False) -> None:
    """Write data to a file atomically (write to temp, then rename)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        suffix=path.suffix,
        delete=False,
    ) as tmp:
        if as_yaml:
            _yaml.dump(data, tmp)
        elif isinstance(data, str):
            tmp.write(data)
        else:
            json.dump(data, tmp, indent=2, default=str)
        tmp_path = Path(tmp.name)

    tmp_path.replace(path)


def read_yaml(path: Path | str) -> dict:
    """Read a YAML file and return as dict."""
    path = Path(path)
    with open(path) as f:
        return dict(_yaml.load(f) or {})


def write_yaml(path: Path | str, data: dict) -> None:
    """Write a dict to a YAML file atomically."""
    write_atomic(path, data, as_yaml=True)


def read_json(path: Path | str) -> dict:
    """Read a JSON file and return as dict."""
    with open(path) as f:
        return json.load(f)


def write_json(path: Path | str, data: Any) -> None:
    """Write data to a JSON file atomically."""
    write_atomic(path, data)


def read_document(path: Path | str) -> dict:
    """Read a YAML or JSON document, picking the parser from the suffix."""
    path = Path(path)
    if not path.exists():
        raise ProjectLoadError(f"File not found: {path}", path)

    suffix = path.suffix.lower()
    if suffix in YAML_SUFFIXES:
        return read_yaml(path)
    if suffix in JSON_SUFFIXES:
        return read_json(path)
    raise ProjectLoadError(f"Unsupported document type '{suffix}' (expected .yaml, .yml or .json)", path)


def write_document(path: Path | str, data: Any) -> None:
    """Write a YAML or JSON document, picking the format from the suffix."""
    path = Path(path)
    if path.suffix.lower() in YAML_SUFFIXES:
        write_yaml(path, data)
    else:
        write_json(path, data)
