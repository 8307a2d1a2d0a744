import os
import re
import yaml
from dataclasses import fields
from typing import Any, Dict, List

from ..core.enums import CounterType, FieldType
from ..core.exceptions import ConfigError, UnsupportedTypeError
from ..core.models import CounterConfig, PartitionerConfig, PartitionJobConfig
from ..utils.boundary import get_field_ops
from ..utils.value_parser import cast_value

_FIELD_PATH = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(/[A-Za-z_][A-Za-z0-9_]*)*$")


def resolve_env_vars(value: Any) -> Any:
    """Substitute ``${VAR}`` / ``${VAR:default}`` strings with environment values"""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        env_var = value[2:-1]  # Remove ${ and }
        default_value = ""
        if ":" in env_var:
            env_var, default_value = env_var.split(":", 1)
        return os.getenv(env_var, default_value)
    elif isinstance(value, dict):
        return {k: resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [resolve_env_vars(item) for item in value]
    return value


class ConfigLoader:
    """Load and validate partitioning job configurations"""

    @staticmethod
    def load_from_yaml(file_path: str) -> PartitionJobConfig:
        """Load configuration from YAML file"""
        with open(file_path, 'r') as file:
            config_dict = yaml.safe_load(file)

        if config_dict is None:
            raise ConfigError(f"Empty or invalid YAML file: {file_path}")

        return ConfigLoader.load_from_dict(config_dict)

    @staticmethod
    def load_from_dict(config_dict: Dict[str, Any]) -> PartitionJobConfig:
        """Load configuration from dictionary"""
        if not isinstance(config_dict, dict):
            raise ConfigError("Job configuration must be a mapping")
        processed_config = resolve_env_vars(config_dict)

        field_config = processed_config.get('field')
        if isinstance(field_config, str):
            field_config = {'name': field_config}
        if not field_config or not field_config.get('name'):
            raise ConfigError("Job configuration must name the partition field")

        try:
            field_type = FieldType(field_config.get('type', FieldType.DATETIME.value))
        except ValueError:
            supported = ', '.join(t.value for t in FieldType)
            raise ConfigError(f"Unsupported field type '{field_config.get('type')}'. Supported types: {supported}") from None

        partitioner = ConfigLoader._process_partitioner(processed_config, field_config['name'], field_type)
        counter = ConfigLoader._process_counter(processed_config.get('counter', {}), field_type)

        return PartitionJobConfig(
            name=processed_config.get('name', 'partition-job'),
            description=processed_config.get('description'),
            output=processed_config.get('output'),
            partitioner=partitioner,
            counter=counter,
        )

    @staticmethod
    def _process_partitioner(config_dict: Dict[str, Any], field_name: str, field_type: FieldType) -> PartitionerConfig:
        bounds = {}
        for key in ('lower_bound', 'upper_bound'):
            try:
                bounds[key] = cast_value(config_dict.get(key), field_type)
            except ValueError as e:
                raise ConfigError(f"Invalid {key}: {e}") from e

        options = {
            key: config_dict[key]
            for key in ('ceiling', 'max_depth', 'concurrent', 'max_concurrent_counts')
            if key in config_dict
        }
        return PartitionerConfig(
            field_name=field_name,
            field_type=field_type,
            lower_bound=bounds['lower_bound'],
            upper_bound=bounds['upper_bound'],
            **options,
        )

    @staticmethod
    def _process_counter(counter_dict: Dict[str, Any], field_type: FieldType) -> CounterConfig:
        counter_dict = dict(counter_dict or {})
        known = {f.name for f in fields(CounterConfig)}
        unknown = set(counter_dict) - known
        if unknown:
            raise ConfigError(f"Unknown counter settings: {sorted(unknown)}")
        try:
            counter_dict['type'] = CounterType(counter_dict.get('type', CounterType.SEARCH.value))
        except ValueError:
            raise ConfigError(f"Unsupported counter type: {counter_dict.get('type')}") from None
        if counter_dict.get('values'):
            try:
                counter_dict['values'] = [cast_value(v, field_type) for v in counter_dict['values']]
            except ValueError as e:
                raise ConfigError(f"Invalid counter value: {e}") from e
        return CounterConfig(**counter_dict)

    @staticmethod
    def validate_config(config: PartitionJobConfig) -> List[str]:
        """Validate configuration and return list of issues"""
        issues = []
        partitioner = config.partitioner
        counter = config.counter

        if not config.name:
            issues.append("Job name is required")

        if not _FIELD_PATH.match(partitioner.field_name or ''):
            issues.append(f"Invalid field name: '{partitioner.field_name}'")

        if not isinstance(partitioner.ceiling, int) or partitioner.ceiling < 1:
            issues.append(f"ceiling must be a positive integer, got {partitioner.ceiling!r}")
        if not isinstance(partitioner.max_depth, int) or partitioner.max_depth < 0:
            issues.append(f"max_depth must be a non-negative integer, got {partitioner.max_depth!r}")
        if not isinstance(partitioner.max_concurrent_counts, int) or partitioner.max_concurrent_counts < 1:
            issues.append(f"max_concurrent_counts must be a positive integer, got {partitioner.max_concurrent_counts!r}")

        lower, upper = partitioner.lower_bound, partitioner.upper_bound
        if lower is not None and upper is not None:
            ops = get_field_ops(partitioner.field_type)
            try:
                ops.check_bounds(lower, upper)
            except UnsupportedTypeError as e:
                issues.append(str(e))
            else:
                if ops.compare(lower, upper) > 0:
                    issues.append(f"lower_bound {lower} is greater than upper_bound {upper}")

        if counter.type == CounterType.SEARCH:
            if not counter.endpoint:
                issues.append("Search counter must specify endpoint")
            if not counter.index:
                issues.append("Search counter must specify index")
        elif counter.type == CounterType.POSTGRES:
            if not counter.host:
                issues.append("Postgres counter must specify host")
            if not counter.user:
                issues.append("Postgres counter must specify user")
            if not counter.database:
                issues.append("Postgres counter must specify database")
            if not counter.table:
                issues.append("Postgres counter must specify table")
            if partitioner.field_name and '/' in partitioner.field_name:
                issues.append("Postgres counter does not support nested field paths")

        return issues
