from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .enums import FieldType, CounterType, FilterDialect


DEFAULT_CEILING = 100000  # search services refuse to page past this many results
DEFAULT_MAX_DEPTH = 64


@dataclass(frozen=True)
class RangeFilter:
    """Store-agnostic boundary predicate over a single field.

    Selects ``lower <(=) field <(=) upper``. Rendered into a concrete
    expression (OData, SQL) by ``rangesplit.utils.filter_builder``.
    """
    field_name: str
    lower: Any
    upper: Any
    field_type: FieldType = FieldType.DATETIME
    lower_inclusive: bool = False
    upper_inclusive: bool = True

    def matches(self, value: Any) -> bool:
        """Evaluate the predicate against a single field value"""
        from ..utils.boundary import get_field_ops

        ops = get_field_ops(self.field_type)
        low = ops.compare(value, self.lower)
        if low < 0 or (low == 0 and not self.lower_inclusive):
            return False
        high = ops.compare(value, self.upper)
        if high > 0 or (high == 0 and not self.upper_inclusive):
            return False
        return True

    def __str__(self) -> str:
        from ..utils.filter_builder import FilterBuilder
        return FilterBuilder.to_odata(self)


@dataclass
class CountResult:
    """Total reported by a counter; ``exact`` must be True for the total to be usable"""
    total: Optional[int]
    exact: bool = True


@dataclass
class Partition:
    """One contiguous range of the partition field with its exact record count"""
    lower_bound: Any
    upper_bound: Any
    document_count: int
    filter: RangeFilter
    depth: int = 0
    irreducible: bool = False

    @property
    def field_name(self) -> str:
        return self.filter.field_name

    @property
    def field_type(self) -> FieldType:
        return self.filter.field_type

    @property
    def sort_key(self) -> Tuple[Any, Any]:
        from ..utils.boundary import get_field_ops

        ops = get_field_ops(self.field_type)
        return ops.sort_key(self.lower_bound), ops.sort_key(self.upper_bound)

    def __lt__(self, other: 'Partition') -> bool:
        return self.sort_key < other.sort_key

    def merge(self, other: 'Partition', global_lower_bound: Any) -> 'Partition':
        """Extend this partition to ``other.upper_bound``, summing counts and rebuilding the filter.

        The merged filter keeps this partition's lower comparison.
        """
        from ..utils.boundary import build_range_filter

        return Partition(
            lower_bound=self.lower_bound,
            upper_bound=other.upper_bound,
            document_count=self.document_count + other.document_count,
            filter=build_range_filter(
                self.field_name,
                global_lower_bound,
                self.lower_bound,
                other.upper_bound,
                self.field_type,
                lower_inclusive=self.filter.lower_inclusive,
            ),
            depth=min(self.depth, other.depth),
            irreducible=self.irreducible or other.irreducible,
        )

    def to_dict(self, dialect: FilterDialect = FilterDialect.ODATA) -> Dict[str, Any]:
        from ..utils.boundary import get_field_ops
        from ..utils.filter_builder import FilterBuilder

        ops = get_field_ops(self.field_type)
        data = {
            "field": self.field_name,
            "lower_bound": ops.to_json(self.lower_bound),
            "upper_bound": ops.to_json(self.upper_bound),
            "document_count": self.document_count,
            "irreducible": self.irreducible,
        }
        if dialect == FilterDialect.SQL:
            clause, params = FilterBuilder.to_sql(self.filter)
            data["filter"] = clause
            data["params"] = [ops.to_json(p) for p in params]
        else:
            data["filter"] = FilterBuilder.to_odata(self.filter)
        return data


@dataclass
class PartitionerConfig:
    """Inputs recognised by the partition engine"""
    field_name: str
    field_type: FieldType = FieldType.DATETIME
    lower_bound: Any = None
    upper_bound: Any = None
    ceiling: int = DEFAULT_CEILING
    max_depth: int = DEFAULT_MAX_DEPTH
    concurrent: bool = True
    max_concurrent_counts: int = 4

    def __post_init__(self):
        if isinstance(self.field_type, str):
            self.field_type = FieldType(self.field_type)


@dataclass
class CounterConfig:
    """Connection settings for the record store that answers count queries"""
    type: CounterType = CounterType.SEARCH
    # Search service
    endpoint: Optional[str] = None
    index: Optional[str] = None
    api_key: Optional[str] = None
    api_version: str = "2023-11-01"
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0
    # Postgres
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    table: Optional[str] = None
    schema: Optional[str] = None
    min_connections: int = 1
    max_connections: int = 10
    # In-memory
    values: list = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.type, str):
            self.type = CounterType(self.type)


@dataclass
class PartitionJobConfig:
    """A named partitioning job: what to split and where to count"""
    name: str
    partitioner: PartitionerConfig
    counter: CounterConfig
    description: Optional[str] = None
    output: Optional[str] = None

    @property
    def filter_dialect(self) -> FilterDialect:
        if self.counter.type == CounterType.POSTGRES:
            return FilterDialect.SQL
        return FilterDialect.ODATA
