"""
Size-bounded range partitioning of an ordered collection.

STRATEGY
--------

Keep splitting the global range in half until every range holds no more
than ``ceiling`` records, then walk the leaves in order and merge
neighbours back together into the largest ranges that still fit:

    ceiling = 100,000     total = 250,000 (evenly spread)

    split:  [A ........................................ E]  250,000
            [A .................. C]  (C ............. E]  125,000 each
            [A ..... B] (B ..... C]  (C ..... D] (D .... E]  62,500 each

    merge:  [A ..... B]               62,500
            (B ..... C] + (C ..... D] would be 125,000 -> emit (B ..... C]
            ...

Both halves of a split are independent, so they are counted concurrently
when the counter allows it. Counting is the only I/O; the merge is a single
linear pass over the sorted leaves.

A range whose midpoint collapses onto one of its bounds (narrower than the
field type's resolution) or that sits at ``max_depth`` is returned as an
irreducible leaf, even if it holds more than ``ceiling`` records. The first
range is the exception: it includes its lower bound, so it is still split
into ``[lower, lower]`` and ``(lower, upper]``.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from ..core.enums import FieldType
from ..core.exceptions import CountUnavailableError, UnsupportedTypeError
from ..core.models import DEFAULT_CEILING, Partition, PartitionerConfig
from ..counter.base_counter import BaseCounter
from ..utils.boundary import build_range_filter, get_field_ops, infer_field_type, is_strictly_between
from ..utils.filter_builder import FilterBuilder


@dataclass
class _SplitRun:
    """Per-call state shared by every node of one split tree"""
    global_lower: Any
    concurrent: bool
    semaphore: asyncio.Semaphore
    counts: int = 0


def merge_partitions(partitions: List[Partition], ceiling: int, global_lower_bound: Any) -> List[Partition]:
    """Merge adjacent partitions into the fewest partitions of at most ``ceiling`` records.

    Partitions are sorted by (lower_bound, upper_bound) first. A single greedy
    left-to-right pass extends the current partition while the summed count
    still fits, so only neighbouring ranges are ever combined.
    """
    if not partitions:
        return []

    ordered = sorted(partitions, key=lambda p: p.sort_key)
    merged: List[Partition] = []
    current = ordered[0]
    for candidate in ordered[1:]:
        trial = current.merge(candidate, global_lower_bound)
        if trial.document_count > ceiling:
            merged.append(current)
            current = candidate
        else:
            current = trial
    merged.append(current)
    return merged


class PartitionEngine:
    """Split a field's global range into merged partitions bounded by a record ceiling"""

    def __init__(self, counter: BaseCounter, config: PartitionerConfig):
        if config.ceiling < 1:
            raise ValueError(f"ceiling must be a positive integer, got {config.ceiling}")
        if config.max_depth < 0:
            raise ValueError(f"max_depth must not be negative, got {config.max_depth}")
        if config.max_concurrent_counts < 1:
            raise ValueError(f"max_concurrent_counts must be at least 1, got {config.max_concurrent_counts}")
        self.counter = counter
        self.config = config
        self.ops = get_field_ops(config.field_type)
        self.logger = logging.getLogger(f"{__name__}.PartitionEngine")

    @property
    def ceiling(self) -> int:
        return self.config.ceiling

    async def generate_partitions(self, global_lower: Any = None, global_upper: Any = None) -> List[Partition]:
        """
        Partition ``[global_lower, global_upper]``, defaulting to the configured bounds.

        Returns:
            Contiguous, non-overlapping partitions ordered by lower bound that
            together cover the whole range

        Raises:
            UnsupportedTypeError: bounds are not values of the configured field type
            CountUnavailableError: the counter could not give an exact total
            asyncio.CancelledError: the call was cancelled; in-flight counts are abandoned
        """
        lower = self.config.lower_bound if global_lower is None else global_lower
        upper = self.config.upper_bound if global_upper is None else global_upper
        if lower is None or upper is None:
            raise ValueError("Both a lower and an upper bound are required to generate partitions")
        if not (self.ops.accepts(lower) and self.ops.accepts(upper)):
            raise UnsupportedTypeError.for_bounds(lower, upper)
        self.ops.check_bounds(lower, upper)
        if self.ops.compare(lower, upper) > 0:
            raise ValueError(f"Lower bound {lower!r} is greater than upper bound {upper!r}")

        run = _SplitRun(
            global_lower=lower,
            concurrent=self.config.concurrent and self.counter.supports_concurrency,
            semaphore=asyncio.Semaphore(self.config.max_concurrent_counts),
        )
        self.logger.info(
            f"Generating partitions for {self.config.field_name} between {lower} and {upper} "
            f"(ceiling={self.ceiling}, concurrent={run.concurrent})"
        )
        leaves = await self._split(run, lower, upper, depth=0)
        partitions = merge_partitions(leaves, self.ceiling, lower)
        self.logger.info(
            f"Generated {len(partitions)} partitions from {len(leaves)} leaves "
            f"using {run.counts} count queries"
        )
        return partitions

    async def _count_range(self, run: _SplitRun, lower: Any, upper: Any, depth: int,
                           lower_inclusive: Optional[bool] = None) -> Partition:
        range_filter = build_range_filter(
            self.config.field_name, run.global_lower, lower, upper, self.config.field_type, lower_inclusive
        )
        async with run.semaphore:
            result = await self.counter.count(range_filter)
        run.counts += 1
        if not result.exact or result.total is None:
            raise CountUnavailableError(FilterBuilder.to_odata(range_filter), result.total)
        self.logger.debug(f"Counted {result.total} records in {range_filter} (depth {depth})")
        return Partition(
            lower_bound=lower,
            upper_bound=upper,
            document_count=result.total,
            filter=range_filter,
            depth=depth,
        )

    async def _split(self, run: _SplitRun, lower: Any, upper: Any, depth: int,
                     lower_inclusive: Optional[bool] = None) -> List[Partition]:
        partition = await self._count_range(run, lower, upper, depth, lower_inclusive)
        if partition.document_count <= self.ceiling:
            return [partition]

        if depth >= self.config.max_depth:
            return [self._irreducible(partition, "maximum split depth reached")]

        mid = self.ops.midpoint(lower, upper)
        left_inclusive, right_inclusive = partition.filter.lower_inclusive, None
        if not is_strictly_between(lower, mid, upper, self.ops.field_type):
            # a range that includes its lower bound can still give up [lower, lower]
            if not (partition.filter.lower_inclusive and self.ops.compare(lower, upper) < 0):
                return [self._irreducible(partition, "range is narrower than the field resolution")]
            mid, right_inclusive = lower, False

        if run.concurrent:
            left_task = asyncio.ensure_future(self._split(run, lower, mid, depth + 1, left_inclusive))
            right_task = asyncio.ensure_future(self._split(run, mid, upper, depth + 1, right_inclusive))
            try:
                left, right = await asyncio.gather(left_task, right_task)
            except BaseException:
                # abandon the sibling branch; nothing partial is ever returned
                for task in (left_task, right_task):
                    task.cancel()
                await asyncio.gather(left_task, right_task, return_exceptions=True)
                raise
        else:
            left = await self._split(run, lower, mid, depth + 1, left_inclusive)
            right = await self._split(run, mid, upper, depth + 1, right_inclusive)
        return left + right

    def _irreducible(self, partition: Partition, reason: str) -> Partition:
        self.logger.warning(
            f"Partition {partition.filter} holds {partition.document_count} records, "
            f"more than the ceiling of {self.ceiling}, but cannot be split further: {reason}"
        )
        partition.irreducible = True
        return partition


async def generate_partitions(
    counter: BaseCounter,
    field_name: str,
    lower_bound: Any,
    upper_bound: Any,
    ceiling: int = DEFAULT_CEILING,
    field_type: Optional[FieldType] = None,
    **options,
) -> List[Partition]:
    """Partition ``[lower_bound, upper_bound]`` of ``field_name`` with a one-off engine.

    ``field_type`` is inferred from the bounds when omitted; remaining keyword
    arguments are passed to ``PartitionerConfig``.
    """
    if field_type is None:
        field_type = infer_field_type(lower_bound, upper_bound)
    config = PartitionerConfig(
        field_name=field_name,
        field_type=field_type,
        lower_bound=lower_bound,
        upper_bound=upper_bound,
        ceiling=ceiling,
        **options,
    )
    return await PartitionEngine(counter, config).generate_partitions()
