"""
tuition_config -- single public entrypoint for tracker configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Invariants enforced:
    - Single entrypoint: all runtime config flows through get_active_config().
    - The returned TrackerConfig has passed validate_config().
    - TUITION_DATABASE_URL, when set, overrides database.url.

Failure modes:
    - FileNotFoundError -- the configuration file does not exist.
    - KeyError / ValueError -- missing or invalid configuration values.

Audit relevance:
    Every successful call emits a ``tuition_config_loaded`` log entry with
    the config id, version and checksum.
"""

from __future__ import annotations

import os
from pathlib import Path

from tuition_config.loader import load_yaml_file, parse_config
from tuition_config.schema import (
    DatabaseSettings,
    SemesterSeed,
    SyncSettings,
    TrackerConfig,
    TuitionSettings,
)
from tuition_kernel.logging_config import get_logger

_logger = get_logger("config")

DATABASE_URL_ENV = "TUITION_DATABASE_URL"

# Default configuration file shipped with the package
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | None = None) -> TrackerConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to ``sets/default.yaml``.

    Returns:
        A validated, frozen TrackerConfig.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    raw = load_yaml_file(path)
    config = parse_config(raw, database_url=os.environ.get(DATABASE_URL_ENV))

    _logger.info(
        "tuition_config_loaded",
        extra={
            "config_id": config.config_id,
            "version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
            "default_semesters": len(config.tuition.default_semesters),
        },
    )
    return config


__all__ = [
    "DATABASE_URL_ENV",
    "DEFAULT_CONFIG_PATH",
    "DatabaseSettings",
    "SemesterSeed",
    "SyncSettings",
    "TrackerConfig",
    "TuitionSettings",
    "get_active_config",
]
