"""
agency_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain engine settings at runtime through
    ``get_active_config()``.  Services receive the returned
    ``EngineSettings`` by injection and never read files themselves.

Architecture position:
    Configuration -- sits above ``agency_kernel`` and below
    ``agency_services``.  The kernel MUST NEVER import from
    ``agency_config``.

Failure modes:
    - ``FileNotFoundError`` -- the requested settings file does not exist.
    - ``ConfigurationError`` -- a setting is unknown or invalid.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``engine_config_loaded`` log record carrying the settings checksum,
    tying commission amounts back to the rate that produced them.
"""

from __future__ import annotations

from pathlib import Path

from agency_config.loader import compute_checksum, load_yaml_file, parse_settings
from agency_config.schema import EngineSettings
from agency_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> EngineSettings:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Settings YAML to load.  Defaults to the packaged
            ``defaults.yaml``.

    Returns:
        Validated, frozen EngineSettings.

    Raises:
        FileNotFoundError: If the settings file does not exist.
        ConfigurationError: If validation fails.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    settings = parse_settings(load_yaml_file(path))

    _logger.info(
        "engine_config_loaded",
        extra={
            "config_path": str(path),
            "checksum": compute_checksum(settings),
            "commission_rate": settings.commission_rate,
            "counsellor_cap": settings.counsellor_cap,
        },
    )
    return settings


__all__ = ["EngineSettings", "get_active_config", "DEFAULT_CONFIG_PATH"]
