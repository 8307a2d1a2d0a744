"""
Rangesplit - size-bounded range partitioning for large ordered collections

Main modules:
- core: Data models, enums and exceptions
- utils: Boundary arithmetic and filter rendering
- counter: Counting capabilities (search index, PostgreSQL, in-memory)
- partition: The partition engine (split + merge)
- config: Job configuration loading and validation
- cli: Command-line interface
"""

from .core.enums import FieldType
from .core.exceptions import CancelledError, CountUnavailableError, RangeSplitError, UnsupportedTypeError
from .core.models import CountResult, Partition, PartitionerConfig, RangeFilter
from .counter import BaseCounter, MemoryCounter
from .partition.partition_engine import PartitionEngine, generate_partitions, merge_partitions
from .utils.boundary import build_range_filter, midpoint

__version__ = "1.0.0"
__all__ = [
    'FieldType',
    'CancelledError',
    'CountUnavailableError',
    'RangeSplitError',
    'UnsupportedTypeError',
    'CountResult',
    'Partition',
    'PartitionerConfig',
    'RangeFilter',
    'BaseCounter',
    'MemoryCounter',
    'PartitionEngine',
    'generate_partitions',
    'merge_partitions',
    'build_range_filter',
    'midpoint',
]
