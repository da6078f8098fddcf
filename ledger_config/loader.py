"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads an optional YAML settings file and parses it into a typed
``ImportSettings`` instance, then applies environment-variable overrides.

Invariants enforced
-------------------
* Unknown keys are rejected; a typo never silently falls back to a default.
* Every field is type-checked against the dataclass default's type.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key or wrong type  -> ``ValueError``.
"""

from __future__ import annotations

import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from ledger_config.schema import ImportSettings

ENV_CONFIG_PATH = "LEDGER_IMPORT_CONFIG"
ENV_DATABASE_URL = "LEDGER_IMPORT_DATABASE_URL"
ENV_LOG_LEVEL = "LEDGER_IMPORT_LOG_LEVEL"

_ENV_OVERRIDES = {
    ENV_DATABASE_URL: "database_url",
    ENV_LOG_LEVEL: "log_level",
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level, got {type(data).__name__}")
    return data


def parse_settings(data: Mapping[str, Any]) -> ImportSettings:
    """Parse an ``ImportSettings`` from a dict, rejecting unknown keys and bad types."""
    known = {f.name: f for f in fields(ImportSettings)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"Unknown import settings: {', '.join(unknown)}")

    kwargs: dict[str, Any] = {}
    for name, value in data.items():
        expected = type(known[name].default)
        # bool is an int subclass; YAML `true` is not a row count
        if isinstance(value, bool) and expected is not bool:
            raise ValueError(f"Setting {name!r} must be {expected.__name__}, got bool")
        if not isinstance(value, expected):
            raise ValueError(
                f"Setting {name!r} must be {expected.__name__}, got {type(value).__name__}"
            )
        kwargs[name] = value
    return ImportSettings(**kwargs)


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ImportSettings:
    """
    Build settings from an optional YAML file plus environment overrides.

    Environment variables win over the file.
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = load_yaml_file(path) if path is not None else {}
    for var, key in _ENV_OVERRIDES.items():
        if env.get(var):
            data[key] = env[var]
    return parse_settings(data)
