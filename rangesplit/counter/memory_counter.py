from bisect import bisect_left, bisect_right
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..core.enums import FieldType
from ..core.models import CountResult, RangeFilter
from ..utils.boundary import get_field_ops
from .base_counter import BaseCounter


class MemoryCounter(BaseCounter):
    """
    Counts field values held in memory.

    Useful for tests and for partitioning data that has already been
    extracted (e.g. a list of timestamps read from a file). Values are kept
    sorted, so each count is two binary searches. Every filter passed to
    ``count`` is recorded in ``calls``.
    """

    def __init__(self, values: Iterable[Any], exact: bool = True, name: Optional[str] = None):
        super().__init__(name)
        self.values: List[Any] = list(values)
        self.exact = exact
        self.calls: List[RangeFilter] = []
        self._sorted_keys: Dict[FieldType, List[Any]] = {}

    def _keys_for(self, field_type: FieldType) -> List[Any]:
        if field_type not in self._sorted_keys:
            ops = get_field_ops(field_type)
            self._sorted_keys[field_type] = sorted(ops.sort_key(v) for v in self.values)
        return self._sorted_keys[field_type]

    async def count(self, range_filter: RangeFilter) -> CountResult:
        self.calls.append(range_filter)
        ops = get_field_ops(range_filter.field_type)
        keys = self._keys_for(range_filter.field_type)
        lower, upper = ops.sort_key(range_filter.lower), ops.sort_key(range_filter.upper)
        start = bisect_left(keys, lower) if range_filter.lower_inclusive else bisect_right(keys, lower)
        end = bisect_right(keys, upper) if range_filter.upper_inclusive else bisect_left(keys, upper)
        return CountResult(total=max(0, end - start), exact=self.exact)

    async def get_field_bounds(self, field_name: str, field_type: FieldType) -> Tuple[Any, Any]:
        if not self.values:
            return None, None
        ops = get_field_ops(field_type)
        return min(self.values, key=ops.sort_key), max(self.values, key=ops.sort_key)
