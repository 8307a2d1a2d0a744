from enum import Enum


class FieldType(str, Enum):
    """Value types a partition field can hold"""
    DATETIME = "datetime"
    DATE = "date"
    INTEGER = "integer"
    FLOAT = "float"
    UUID_TEXT = "uuid_text"


class CounterType(str, Enum):
    SEARCH = "search"
    POSTGRES = "postgres"
    MEMORY = "memory"


class FilterDialect(str, Enum):
    ODATA = "odata"
    SQL = "sql"
