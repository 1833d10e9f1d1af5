"""
Configuration Loader (``tuition_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``tuition_config.schema`` dataclasses.  The single public entry point for
runtime config is ``tuition_config.get_active_config()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  configuration for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Out-of-range values  -> ``ValueError`` from ``validate_config``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from tuition_config.schema import (
    DatabaseSettings,
    SemesterSeed,
    SyncSettings,
    TrackerConfig,
    TuitionSettings,
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


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 over the canonical JSON form of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    return DatabaseSettings(
        url=data["url"],
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 20)),
        max_overflow=int(data.get("max_overflow", 10)),
        pool_timeout=int(data.get("pool_timeout", 30)),
    )


def parse_sync(data: dict[str, Any]) -> SyncSettings:
    return SyncSettings(
        transaction_timeout_seconds=float(data.get("transaction_timeout_seconds", 15.0)),
    )


def parse_tuition(data: dict[str, Any]) -> TuitionSettings:
    """
    Parse the ``tuition`` section.

    Raises:
        KeyError: if a default semester lacks ``id`` or ``name``.
    """
    seeds = tuple(
        SemesterSeed(id=str(item["id"]), name=str(item["name"]))
        for item in data.get("default_semesters", [])
    )
    return TuitionSettings(
        expense_category=data.get("expense_category", "Tuition"),
        title_template=data.get("title_template", "Tuition - {semester} #{sequence}"),
        default_installment_count=int(data.get("default_installment_count", 4)),
        default_semesters=seeds,
    )


def validate_config(config: TrackerConfig) -> None:
    """
    Structural checks that the dataclasses alone cannot express.

    Raises:
        ValueError: on the first violated rule.
    """
    if not config.database.url:
        raise ValueError("database.url must not be empty")
    if config.sync.transaction_timeout_seconds <= 0:
        raise ValueError("sync.transaction_timeout_seconds must be positive")

    tuition = config.tuition
    if tuition.default_installment_count < 1:
        raise ValueError("tuition.default_installment_count must be at least 1")
    if not tuition.expense_category.strip():
        raise ValueError("tuition.expense_category must not be empty")
    for placeholder in ("{semester}", "{sequence}"):
        if placeholder not in tuition.title_template:
            raise ValueError(f"tuition.title_template must contain {placeholder}")

    seen: set[str] = set()
    for seed in tuition.default_semesters:
        if seed.id in seen:
            raise ValueError(f"Duplicate default semester id: {seed.id}")
        seen.add(seed.id)


def parse_config(data: dict[str, Any], database_url: str | None = None) -> TrackerConfig:
    """
    Parse a raw configuration dict into a validated ``TrackerConfig``.

    Args:
        data: Decoded YAML document.
        database_url: Optional override for ``database.url``.

    Raises:
        KeyError: if required keys are missing.
        ValueError: if values fail validation.
    """
    database_data = dict(data["database"])
    if database_url:
        database_data["url"] = database_url

    config = TrackerConfig(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        database=parse_database(database_data),
        sync=parse_sync(data.get("sync", {})),
        tuition=parse_tuition(data.get("tuition", {})),
        checksum=compute_checksum(data),
    )
    validate_config(config)
    return config
