"""
Test cases for job configuration loading and validation.
"""

import pytest
from datetime import date, datetime, timezone

from rangesplit.config.config_loader import ConfigLoader, resolve_env_vars
from rangesplit.core.enums import CounterType, FieldType, FilterDialect
from rangesplit.core.exceptions import ConfigError


SEARCH_JOB_YAML = """
name: orders-export
description: Split the orders index by creation time
field:
  name: metadata/created
  type: datetime
lower_bound: "2024-01-01T00:00:00Z"
upper_bound: "2024-06-30T23:59:59Z"
ceiling: 50000
concurrent: false
counter:
  type: search
  endpoint: https://example.search.windows.net
  index: orders
  api_key: ${SEARCH_API_KEY}
  max_retries: 5
"""


class TestResolveEnvVars:
    """${VAR} substitution"""

    def test_variable_is_substituted(self, monkeypatch):
        monkeypatch.setenv("SEARCH_API_KEY", "secret")

        assert resolve_env_vars("${SEARCH_API_KEY}") == "secret"

    def test_default_is_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("PG_HOST", raising=False)

        assert resolve_env_vars("${PG_HOST:localhost}") == "localhost"

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("PG_USER", "reporter")

        resolved = resolve_env_vars({"counter": {"user": "${PG_USER}", "hosts": ["${PG_USER}", "plain"]}})

        assert resolved == {"counter": {"user": "reporter", "hosts": ["reporter", "plain"]}}

    def test_plain_values_are_untouched(self):
        assert resolve_env_vars(42) == 42
        assert resolve_env_vars("text") == "text"


class TestLoadFromYaml:
    """ConfigLoader.load_from_yaml"""

    def test_search_job(self, tmp_path, monkeypatch):
        # Arrange
        monkeypatch.setenv("SEARCH_API_KEY", "secret")
        config_file = tmp_path / "job.yaml"
        config_file.write_text(SEARCH_JOB_YAML)

        # Act
        job = ConfigLoader.load_from_yaml(str(config_file))

        # Assert
        assert job.name == "orders-export"
        assert job.partitioner.field_name == "metadata/created"
        assert job.partitioner.field_type == FieldType.DATETIME
        assert job.partitioner.lower_bound == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert job.partitioner.upper_bound == datetime(2024, 6, 30, 23, 59, 59, tzinfo=timezone.utc)
        assert job.partitioner.ceiling == 50000
        assert job.partitioner.concurrent is False
        assert job.counter.type == CounterType.SEARCH
        assert job.counter.api_key == "secret"
        assert job.counter.max_retries == 5
        assert job.filter_dialect == FilterDialect.ODATA
        assert ConfigLoader.validate_config(job) == []

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        with pytest.raises(ConfigError):
            ConfigLoader.load_from_yaml(str(config_file))


class TestLoadFromDict:
    """ConfigLoader.load_from_dict"""

    def test_field_given_as_string_defaults_to_datetime(self):
        job = ConfigLoader.load_from_dict({"field": "created", "counter": {"type": "memory"}})

        assert job.name == "partition-job"
        assert job.partitioner.field_type == FieldType.DATETIME
        assert job.partitioner.lower_bound is None

    def test_postgres_job_uses_sql_dialect(self):
        job = ConfigLoader.load_from_dict({
            "name": "events",
            "field": {"name": "event_day", "type": "date"},
            "lower_bound": "2024-01-01",
            "upper_bound": "2024-12-31",
            "counter": {
                "type": "postgres",
                "host": "localhost",
                "user": "reporter",
                "database": "analytics",
                "table": "events",
                "schema": "public",
            },
        })

        assert job.partitioner.lower_bound == date(2024, 1, 1)
        assert job.counter.type == CounterType.POSTGRES
        assert job.filter_dialect == FilterDialect.SQL
        assert ConfigLoader.validate_config(job) == []

    def test_memory_counter_values_are_cast(self):
        job = ConfigLoader.load_from_dict({
            "field": {"name": "id", "type": "integer"},
            "counter": {"type": "memory", "values": ["1", 2, 3.0]},
        })

        assert job.counter.values == [1, 2, 3]

    def test_missing_field(self):
        with pytest.raises(ConfigError, match="partition field"):
            ConfigLoader.load_from_dict({"name": "no-field"})

    def test_unsupported_field_type(self):
        with pytest.raises(ConfigError, match="Unsupported field type"):
            ConfigLoader.load_from_dict({"field": {"name": "id", "type": "blob"}})

    def test_bad_bound_value(self):
        with pytest.raises(ConfigError, match="lower_bound"):
            ConfigLoader.load_from_dict({"field": {"name": "id", "type": "integer"}, "lower_bound": "ten"})

    def test_unknown_counter_setting(self):
        with pytest.raises(ConfigError, match="Unknown counter settings"):
            ConfigLoader.load_from_dict({"field": "created", "counter": {"type": "memory", "colour": "blue"}})

    def test_unknown_counter_type(self):
        with pytest.raises(ConfigError, match="Unsupported counter type"):
            ConfigLoader.load_from_dict({"field": "created", "counter": {"type": "mongo"}})

    def test_non_mapping(self):
        with pytest.raises(ConfigError):
            ConfigLoader.load_from_dict(["not", "a", "mapping"])


class TestValidateConfig:
    """ConfigLoader.validate_config returns a list of issues"""

    def test_search_counter_requires_endpoint_and_index(self):
        job = ConfigLoader.load_from_dict({"field": "created", "counter": {"type": "search"}})

        issues = ConfigLoader.validate_config(job)

        assert "Search counter must specify endpoint" in issues
        assert "Search counter must specify index" in issues

    def test_reversed_bounds(self):
        job = ConfigLoader.load_from_dict({
            "field": {"name": "id", "type": "integer"},
            "lower_bound": 100,
            "upper_bound": 1,
            "counter": {"type": "memory"},
        })

        issues = ConfigLoader.validate_config(job)

        assert any("greater than upper_bound" in issue for issue in issues)

    def test_hex_bounds_of_different_widths(self):
        job = ConfigLoader.load_from_dict({
            "field": {"name": "key", "type": "uuid_text"},
            "lower_bound": "1",
            "upper_bound": "10",
            "counter": {"type": "memory"},
        })

        issues = ConfigLoader.validate_config(job)

        assert len(issues) == 1
        assert "must share one width" in issues[0]

    def test_naive_and_aware_datetime_bounds(self):
        job = ConfigLoader.load_from_dict({
            "field": "created",
            "lower_bound": "2024-01-01T00:00:00",
            "upper_bound": "2024-06-30T00:00:00Z",
            "counter": {"type": "memory"},
        })

        assert ConfigLoader.validate_config(job) == []

    def test_invalid_numeric_options(self):
        job = ConfigLoader.load_from_dict({
            "field": "created",
            "ceiling": 0,
            "max_depth": -1,
            "max_concurrent_counts": 0,
            "counter": {"type": "memory"},
        })

        issues = ConfigLoader.validate_config(job)

        assert len(issues) == 3

    def test_invalid_field_name(self):
        job = ConfigLoader.load_from_dict({"field": "created at; drop", "counter": {"type": "memory"}})

        assert ConfigLoader.validate_config(job) == ["Invalid field name: 'created at; drop'"]

    def test_postgres_rejects_nested_paths_and_missing_settings(self):
        job = ConfigLoader.load_from_dict({
            "field": "metadata/created",
            "counter": {"type": "postgres", "host": "localhost"},
        })

        issues = ConfigLoader.validate_config(job)

        assert "Postgres counter must specify user" in issues
        assert "Postgres counter must specify database" in issues
        assert "Postgres counter must specify table" in issues
        assert "Postgres counter does not support nested field paths" in issues
