"""
Counting capabilities consumed by the partition engine.
"""
from ..core.enums import CounterType
from ..core.models import CounterConfig
from .base_counter import BaseCounter
from .memory_counter import MemoryCounter
from .postgres_counter import PostgresCounter
from .search_counter import SearchIndexCounter


def create_counter(config: CounterConfig) -> BaseCounter:
    """Create the counter implementation for ``config.type``"""
    if config.type == CounterType.SEARCH:
        return SearchIndexCounter(config)
    elif config.type == CounterType.POSTGRES:
        return PostgresCounter(config)
    elif config.type == CounterType.MEMORY:
        return MemoryCounter(config.values)
    raise ValueError(f"Unsupported counter type: {config.type}")


__all__ = [
    'BaseCounter',
    'MemoryCounter',
    'PostgresCounter',
    'SearchIndexCounter',
    'create_counter',
]
