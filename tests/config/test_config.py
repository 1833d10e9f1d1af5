"""Tests for tracker configuration loading (tuition_config)."""

from pathlib import Path

import pytest
import yaml

from tuition_config import (
    DATABASE_URL_ENV,
    DEFAULT_CONFIG_PATH,
    TrackerConfig,
    get_active_config,
)
from tuition_config.loader import compute_checksum, load_yaml_file, parse_config


def _raw(**tuition_overrides):
    tuition = {
        "expense_category": "Tuition",
        "title_template": "Tuition - {semester} #{sequence}",
        "default_installment_count": 4,
        "default_semesters": [{"id": "fall-2025", "name": "Fall 2025"}],
    }
    tuition.update(tuition_overrides)
    return {
        "config_id": "test",
        "version": 2,
        "database": {"url": "sqlite://"},
        "sync": {"transaction_timeout_seconds": 5},
        "tuition": tuition,
    }


class TestDefaultConfig:
    """The shipped default.yaml."""

    def test_loads(self, monkeypatch):
        monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
        config = get_active_config()

        assert isinstance(config, TrackerConfig)
        assert config.sync.transaction_timeout_seconds == 15.0
        assert config.tuition.expense_category == "Tuition"
        assert config.tuition.default_installment_count == 4
        assert config.database.url.startswith("sqlite")

    def test_default_semesters(self):
        config = get_active_config()
        assert [s.id for s in config.tuition.default_semesters] == [
            "fall-2025", "spring-2026", "summer-2026",
            "fall-2026", "spring-2027", "fall-2027",
        ]
        assert config.tuition.default_semesters[0].name == "Fall 2025"

    def test_env_overrides_database_url(self, monkeypatch):
        monkeypatch.setenv(DATABASE_URL_ENV, "postgresql://tracker@localhost/tracker")
        config = get_active_config()
        assert config.database.url == "postgresql://tracker@localhost/tracker"

    def test_checksum_stable(self):
        assert get_active_config().checksum == get_active_config().checksum

    def test_config_is_frozen(self):
        config = get_active_config()
        with pytest.raises(AttributeError):
            config.version = 99

    def test_load_logged(self, captured_logs):
        config = get_active_config()
        [record] = [r for r in captured_logs() if r["message"] == "tuition_config_loaded"]
        assert record["checksum"] == config.checksum
        assert record["config_path"] == str(DEFAULT_CONFIG_PATH)


class TestParseConfig:
    """parse_config validation."""

    def test_valid(self):
        config = parse_config(_raw())
        assert config.version == 2
        assert config.sync.transaction_timeout_seconds == 5.0
        assert config.checksum == compute_checksum(_raw())

    def test_missing_database_section(self):
        raw = _raw()
        del raw["database"]
        with pytest.raises(KeyError):
            parse_config(raw)

    def test_non_positive_timeout(self):
        raw = _raw()
        raw["sync"]["transaction_timeout_seconds"] = 0
        with pytest.raises(ValueError, match="timeout"):
            parse_config(raw)

    def test_zero_installments(self):
        with pytest.raises(ValueError, match="default_installment_count"):
            parse_config(_raw(default_installment_count=0))

    def test_template_needs_placeholders(self):
        with pytest.raises(ValueError, match="sequence"):
            parse_config(_raw(title_template="Tuition {semester}"))

    def test_duplicate_seed_ids(self):
        seeds = [{"id": "fall-2025", "name": "A"}, {"id": "fall-2025", "name": "B"}]
        with pytest.raises(ValueError, match="Duplicate"):
            parse_config(_raw(default_semesters=seeds))

    def test_seed_without_name(self):
        with pytest.raises(KeyError):
            parse_config(_raw(default_semesters=[{"id": "fall-2025"}]))

    def test_database_url_override(self):
        config = parse_config(_raw(), database_url="sqlite:///other.db")
        assert config.database.url == "sqlite:///other.db"


class TestLoadFile:
    """Loading from an explicit path."""

    def test_custom_path(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
        path = tmp_path / "tracker.yaml"
        path.write_text(yaml.safe_dump(_raw()))

        config = get_active_config(path)

        assert config.config_id == "test"
        assert [s.id for s in config.tuition.default_semesters] == ["fall-2025"]

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml")
