from datetime import date, datetime
from typing import Any

from dateutil import parser as date_parser

from ..core.enums import FieldType
from .boundary import get_field_ops


def cast_value(value: Any, target_type: FieldType) -> Any:
    """
    Convert a configured bound value (usually a string from YAML or the CLI)
    to the Python type used for ``target_type``.

    Raises:
        ValueError: If the value cannot be cast to the target type
        UnsupportedTypeError: If the target type is not supported
    """
    if value is None:
        return None

    target_type = FieldType(target_type)
    try:
        if target_type == FieldType.DATETIME:
            if isinstance(value, datetime):
                return value
            if isinstance(value, date):
                return datetime(value.year, value.month, value.day)
            return date_parser.isoparse(str(value))

        elif target_type == FieldType.DATE:
            if isinstance(value, datetime):
                return value.date()
            if isinstance(value, date):
                return value
            return date_parser.isoparse(str(value)).date()

        elif target_type == FieldType.INTEGER:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError("fractional value")
            return int(value)

        elif target_type == FieldType.FLOAT:
            return float(value)

        elif target_type == FieldType.UUID_TEXT:
            value = str(value)
            if not get_field_ops(target_type).accepts(value):
                raise ValueError("not a single-case hex string")
            return value

    except (TypeError, ValueError, OverflowError) as e:
        raise ValueError(f"Cannot cast {value!r} to {target_type.value}: {e}") from e

    raise ValueError(f"Cannot cast {value!r} to {target_type.value}")
