from .enums import FieldType, CounterType, FilterDialect
from .models import (
    CountResult,
    CounterConfig,
    Partition,
    PartitionerConfig,
    PartitionJobConfig,
    RangeFilter,
)
