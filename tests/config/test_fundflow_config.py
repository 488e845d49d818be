"""
Tests for fundflow_config: YAML loading, environment overrides, validation
and the bridges into the kernel.
"""

import pytest
import yaml

from fundflow_config import (
    ConfigError,
    DatabaseConfig,
    KernelConfig,
    get_active_config,
)
from fundflow_config import bridges
from fundflow_config.loader import apply_env_overrides, load_yaml_file, parse_kernel_config


def _write(tmp_path, data, name="kernel.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaults:
    def test_default_set(self):
        config = get_active_config(environ={})

        assert config.config_id == "default"
        assert config.database.url == "sqlite:///:memory:"
        assert config.database.echo is False
        assert config.database.pool_size == 20
        assert config.logging.level == "INFO"
        assert config.references.prefix == "TXN-"
        assert config.references.length == 8
        assert config.references.max_attempts == 5

    def test_config_is_frozen(self):
        config = get_active_config(environ={})
        with pytest.raises(AttributeError):
            config.config_id = "other"

    def test_load_is_logged(self, captured_logs):
        get_active_config(environ={})

        loaded = [r for r in captured_logs() if r["message"] == "fundflow_config_loaded"]
        assert loaded[0]["config_id"] == "default"
        assert loaded[0]["database_dialect"] == "sqlite"


class TestYamlFiles:
    def test_partial_file_takes_defaults(self, tmp_path):
        path = _write(tmp_path, {
            "config_id": "staging",
            "database": {"url": "postgresql://u:p@db/fundflow", "pool_size": 5},
            "logging": {"level": "debug"},
        })
        config = get_active_config(path, environ={})

        assert config.config_id == "staging"
        assert config.database.pool_size == 5
        assert config.database.max_overflow == 10
        assert config.logging.level == "DEBUG"
        assert config.references.prefix == "TXN-"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml", environ={})


class TestEnvironmentOverrides:
    def test_overrides_applied(self):
        config = get_active_config(environ={
            "FUNDFLOW_DATABASE_URL": "postgresql://u:p@db/prod",
            "FUNDFLOW_DB_ECHO": "yes",
            "FUNDFLOW_LOG_LEVEL": "warning",
        })

        assert config.database.url == "postgresql://u:p@db/prod"
        assert config.database.echo is True
        assert config.logging.level == "WARNING"

    def test_source_mapping_not_mutated(self):
        data = {"database": {"url": "sqlite://"}}
        merged = apply_env_overrides(data, {"FUNDFLOW_DATABASE_URL": "sqlite:///x.db"})

        assert merged["database"]["url"] == "sqlite:///x.db"
        assert data["database"]["url"] == "sqlite://"

    def test_creates_missing_section(self):
        merged = apply_env_overrides({}, {"FUNDFLOW_LOG_LEVEL": "ERROR"})
        assert merged == {"logging": {"level": "ERROR"}}

    def test_bad_boolean(self):
        with pytest.raises(ConfigError) as exc_info:
            get_active_config(environ={"FUNDFLOW_DB_ECHO": "maybe"})
        assert exc_info.value.key == "database.echo"


class TestValidation:
    @pytest.mark.parametrize("data, key", [
        ({"config_id": ""}, "config_id"),
        ({"config_id": "x", "database": {"url": ""}}, "database.url"),
        ({"config_id": "x", "database": {"pool_size": 0}}, "database.pool_size"),
        ({"config_id": "x", "database": {"max_overflow": -1}}, "database.max_overflow"),
        ({"config_id": "x", "logging": {"level": "LOUD"}}, "logging.level"),
        ({"config_id": "x", "references": {"prefix": ""}}, "references.prefix"),
        ({"config_id": "x", "references": {"length": 33}}, "references.length"),
        ({"config_id": "x", "references": {"max_attempts": 0}}, "references.max_attempts"),
    ])
    def test_invalid_values(self, data, key):
        with pytest.raises(ConfigError) as exc_info:
            parse_kernel_config(data).validate()
        assert exc_info.value.key == key
        assert key in str(exc_info.value)

    @pytest.mark.parametrize("data, key", [
        ({"database": {"pool_size": "many"}}, "database.pool_size"),
        ({"database": {"pool_size": True}}, "database.pool_size"),
        ({"references": "TXN-"}, "references"),
    ])
    def test_mistyped_values(self, data, key):
        with pytest.raises(ConfigError) as exc_info:
            parse_kernel_config(data)
        assert exc_info.value.key == key

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)


class TestBridges:
    def test_reference_generator(self):
        config = KernelConfig(
            config_id="x",
            references=parse_kernel_config(
                {"references": {"prefix": "FF-", "length": 6, "max_attempts": 2}}
            ).references,
        )
        generator = bridges.reference_generator_from_config(config)

        assert generator.max_attempts == 2
        assert generator.matches(generator.generate())
        assert generator.generate().startswith("FF-")

    def test_bootstrap_passes_database_settings(self, monkeypatch):
        calls = []
        monkeypatch.setattr(
            bridges,
            "init_engine_from_url",
            lambda url, **kwargs: calls.append((url, kwargs)) or "engine",
        )
        config = KernelConfig(
            config_id="x",
            database=DatabaseConfig(url="postgresql://u:p@db/x", pool_size=3),
        )

        assert bridges.bootstrap_kernel(config) == "engine"
        url, kwargs = calls[0]
        assert url == "postgresql://u:p@db/x"
        assert kwargs["pool_size"] == 3
        assert kwargs["max_overflow"] == 10
