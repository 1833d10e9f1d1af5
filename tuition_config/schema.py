"""
Configuration Schema (``tuition_config.schema``).

Responsibility
--------------
Frozen dataclasses describing a parsed tracker configuration.  Instances are
produced by ``tuition_config.loader`` and never mutated afterwards.

Invariants enforced
-------------------
* All schema objects are frozen.
* Collections are tuples, so a loaded config is hashable and safe to share.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseSettings:
    """Where the tracker persists its data."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30


@dataclass(frozen=True)
class SyncSettings:
    """Budget for a single reconciliation transaction."""

    transaction_timeout_seconds: float = 15.0


@dataclass(frozen=True)
class SemesterSeed:
    """A semester created for users who have none yet."""

    id: str
    name: str


@dataclass(frozen=True)
class TuitionSettings:
    """How tuition payments are turned into expenses and default schedules."""

    expense_category: str = "Tuition"
    title_template: str = "Tuition - {semester} #{sequence}"
    default_installment_count: int = 4
    default_semesters: tuple[SemesterSeed, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TrackerConfig:
    """Root configuration object returned by ``get_active_config()``."""

    config_id: str
    version: int
    database: DatabaseSettings
    sync: SyncSettings = field(default_factory=SyncSettings)
    tuition: TuitionSettings = field(default_factory=TuitionSettings)
    checksum: str = ""
