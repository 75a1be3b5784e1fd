"""Generate and convert configuration files."""

from __future__ import annotations

import json
import tomllib
from os import PathLike
from pathlib import Path
from typing import Any

import tomli_w
import yaml

_EXTENSIONS = ("json", "toml", "yaml", "yml")

_TEMPLATE = """
log:
  level: info
  file: ""

plugins:
  - tag: forward_google
    type: fast_forward
    args:
      upstream:
        - addr: https://8.8.8.8/dns-query

servers:
  - exec: forward_google
    listeners:
      - protocol: udp
        addr: 127.0.0.1:5533
      - protocol: tcp
        addr: 127.0.0.1:5533
"""


def supported_extensions() -> list[str]:
    """Return the file extensions that can be read and written."""
    return list(_EXTENSIONS)


def _config_type(path: str | PathLike[str]) -> str:
    ext = Path(path).suffix.lstrip(".").lower()
    if ext not in _EXTENSIONS:
        raise ValueError(
            f"unsupported config type {ext!r} of {path}, "
            f"supported extensions: {', '.join(_EXTENSIONS)}"
        )
    return ext


def _lower_keys(value: Any) -> Any:
    # Keys of nested maps are case-insensitive and stored in lower case.
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value


def _parse(text: str, kind: str) -> dict[str, Any]:
    try:
        if kind in ("yaml", "yml"):
            data = yaml.safe_load(text)
        elif kind == "json":
            data = json.loads(text) if text.strip() else None
        else:
            data = tomllib.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ValueError(f"failed to parse {kind} config: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"config root must be a map, got {type(data).__name__}")
    return _lower_keys(data)


def _dump(data: dict[str, Any], kind: str) -> str:
    if kind in ("yaml", "yml"):
        return yaml.safe_dump(data, sort_keys=True, default_flow_style=False, allow_unicode=True)
    if kind == "json":
        return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False)
    try:
        return tomli_w.dumps(data)
    except TypeError as exc:
        raise ValueError(f"config cannot be written as toml: {exc}") from exc


def _read(path: str | PathLike[str]) -> dict[str, Any]:
    kind = _config_type(path)
    with open(path, encoding="utf-8") as f:
        return _parse(f.read(), kind)


def convert_config(src: str | PathLike[str], dst: str | PathLike[str]) -> None:
    """Rewrite config ``src`` in the format of ``dst``'s extension.

    Raises FileExistsError if ``dst`` already exists.
    """
    data = _read(src)
    text = _dump(data, _config_type(dst))
    with open(dst, "x", encoding="utf-8") as f:
        f.write(text)


def generate_config(dst: str | PathLike[str]) -> None:
    """Write a template config to ``dst``, in the format of its extension."""
    text = _dump(_parse(_TEMPLATE, "yaml"), _config_type(dst))
    with open(dst, "w", encoding="utf-8") as f:
        f.write(text)