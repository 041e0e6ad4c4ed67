"""
Settings loader (``agency_config.loader``).

Responsibility
--------------
Reads the engine settings YAML and parses it into a validated
``EngineSettings``.  Callers outside this package use
``agency_config.get_active_config()`` instead of calling the loader.

Invariants enforced
-------------------
* Unknown keys are rejected, so typos never silently fall back to a
  default.
* Numeric settings are parsed through ``Decimal(str(value))``; YAML floats
  never reach money arithmetic as ``float``.
* ``compute_checksum`` is a deterministic SHA-256 of the canonical JSON
  form of the settings.

Failure modes
-------------
* Missing file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid or unknown settings  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from agency_config.schema import EngineSettings
from agency_kernel.exceptions import ConfigurationError

_NOTE_FIELDS = (
    "transaction_created_note",
    "transaction_updated_note",
    "commission_created_note",
    "commission_updated_note",
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _parse_decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ConfigurationError(name, "must be a number")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ConfigurationError(name, f"not a decimal: {value!r}") from exc


def parse_settings(data: dict[str, Any]) -> EngineSettings:
    """
    Validate a settings mapping and build ``EngineSettings``.

    Keys may sit at the top level or under an ``engine:`` section.
    Missing keys take the dataclass defaults.
    """
    if not isinstance(data, dict):
        raise ConfigurationError("<root>", "settings must be a mapping")
    section = data.get("engine", data)
    if not isinstance(section, dict):
        raise ConfigurationError("engine", "must be a mapping")

    known = {f.name for f in fields(EngineSettings)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigurationError(unknown[0], "unknown setting")

    kwargs: dict[str, Any] = {}

    if "commission_rate" in section:
        rate = _parse_decimal("commission_rate", section["commission_rate"])
        if rate < 0 or rate > 1:
            raise ConfigurationError("commission_rate", "must be between 0 and 1")
        kwargs["commission_rate"] = rate

    if "counsellor_cap" in section:
        cap = section["counsellor_cap"]
        if isinstance(cap, bool) or not isinstance(cap, int) or cap < 1:
            raise ConfigurationError("counsellor_cap", "must be a positive integer")
        kwargs["counsellor_cap"] = cap

    if "amount_quantum" in section:
        quantum = _parse_decimal("amount_quantum", section["amount_quantum"])
        if quantum <= 0:
            raise ConfigurationError("amount_quantum", "must be positive")
        kwargs["amount_quantum"] = quantum

    for name in _NOTE_FIELDS:
        if name in section:
            text = section[name]
            if not isinstance(text, str) or not text.strip():
                raise ConfigurationError(name, "must be a non-empty string")
            kwargs[name] = text

    return EngineSettings(**kwargs)


def compute_checksum(settings: EngineSettings) -> str:
    """SHA-256 of the canonical JSON serialization of the settings."""
    canonical = json.dumps(settings.as_dict(), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
