"""
Boundary arithmetic for partition fields.

Every supported field type gets a ``FieldOps`` implementation that knows how
to order two values, find a value between them and print a value inside a
filter expression. The ops are picked by ``FieldType`` when a job is
configured, so the partition engine never inspects value types itself.

RANGE SEMANTICS
---------------

A range filter selects ``lower < field <= upper``. The only exception is a
range starting at the global lower bound, which selects
``lower <= field <= upper`` so the very first record is kept:

    global range: [2024-01-01, 2024-01-04]

    [2024-01-01, 2024-01-02]   field ge 2024-01-01 and field le 2024-01-02
    (2024-01-02, 2024-01-03]   field gt 2024-01-02 and field le 2024-01-03
    (2024-01-03, 2024-01-04]   field gt 2024-01-03 and field le 2024-01-04

Adjacent ranges share a boundary value but never a record, and together they
cover the closed global range.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from ..core.enums import FieldType
from ..core.exceptions import UnsupportedTypeError
from ..core.models import RangeFilter


class FieldOps(ABC):
    """Ordering, midpoint and formatting for one field type"""

    field_type: FieldType
    python_types: Tuple[type, ...] = ()

    def accepts(self, value: Any) -> bool:
        return isinstance(value, self.python_types) and not isinstance(value, bool)

    def check_bounds(self, lower: Any, upper: Any) -> None:
        """Reject a pair of bounds that cannot be split consistently"""
        pass

    def sort_key(self, value: Any) -> Any:
        return value

    def compare(self, a: Any, b: Any) -> int:
        ka, kb = self.sort_key(a), self.sort_key(b)
        return (ka > kb) - (ka < kb)

    @abstractmethod
    def midpoint(self, lower: Any, upper: Any) -> Any:
        pass

    @abstractmethod
    def format_for_filter(self, value: Any) -> str:
        pass

    def to_json(self, value: Any) -> Any:
        return value


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DateTimeOps(FieldOps):
    field_type = FieldType.DATETIME
    python_types = (datetime,)

    def sort_key(self, value: datetime) -> datetime:
        # naive values are UTC, as in format_for_filter
        return _as_utc(value)

    def midpoint(self, lower: datetime, upper: datetime) -> datetime:
        if (lower.tzinfo is None) != (upper.tzinfo is None):
            lower, upper = _as_utc(lower), _as_utc(upper)
        # timedelta division rounds to the microsecond, so a 1us range collapses onto lower
        return lower + (upper - lower) / 2

    def format_for_filter(self, value: datetime) -> str:
        return _as_utc(value).astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")

    def to_json(self, value: datetime) -> str:
        return value.isoformat()


class DateOps(FieldOps):
    field_type = FieldType.DATE
    python_types = (date,)

    def accepts(self, value: Any) -> bool:
        return isinstance(value, date) and not isinstance(value, datetime)

    def midpoint(self, lower: date, upper: date) -> date:
        return lower + timedelta(days=(upper - lower).days // 2)

    def format_for_filter(self, value: date) -> str:
        return value.isoformat()

    def to_json(self, value: date) -> str:
        return value.isoformat()


class IntegerOps(FieldOps):
    field_type = FieldType.INTEGER
    python_types = (int,)

    def midpoint(self, lower: int, upper: int) -> int:
        return lower + (upper - lower) // 2

    def format_for_filter(self, value: int) -> str:
        return str(value)


class FloatOps(FieldOps):
    field_type = FieldType.FLOAT
    python_types = (float, int)

    def midpoint(self, lower: float, upper: float) -> float:
        return lower + (upper - lower) / 2

    def format_for_filter(self, value: float) -> str:
        return repr(float(value))


def hex_to_int(hexstr: str) -> int:
    """Convert a hex string (0-9a-f, dashes ignored) to an integer."""
    hexstr = hexstr.replace("-", "").lower()
    if not hexstr or not all(c in "0123456789abcdef" for c in hexstr):
        raise ValueError(f"Invalid hex string: {hexstr}")
    return int(hexstr, 16)


def int_to_hex(num: int, pad_len: Optional[int] = None) -> str:
    """Convert an integer to a hex string (lowercase), optionally zero-padded."""
    if num < 0:
        raise ValueError("Negative numbers not supported")
    hexstr = format(num, "x")
    if pad_len is not None:
        hexstr = hexstr.rjust(pad_len, "0")
    return hexstr


def _dash_positions(value: str) -> Tuple[int, ...]:
    return tuple(i for i, c in enumerate(value) if c == "-")


def _hex_case(value: str) -> Optional[str]:
    letters = [c for c in value if c.isalpha()]
    if not letters:
        return None
    if all(c.islower() for c in letters):
        return "lower"
    if all(c.isupper() for c in letters):
        return "upper"
    return "mixed"


class UuidTextOps(FieldOps):
    """UUIDs or hex keys stored as text.

    Stores compare these keys as strings, so ordering here is plain text
    ordering. Text order only agrees with numeric order when every key has
    the same width, dash layout and letter case; bounds that differ in any
    of these are rejected by ``check_bounds``.
    """
    field_type = FieldType.UUID_TEXT
    python_types = (str,)

    def accepts(self, value: Any) -> bool:
        if not isinstance(value, str):
            return False
        try:
            hex_to_int(value)
        except ValueError:
            return False
        return _hex_case(value) != "mixed"

    def check_bounds(self, lower: str, upper: str) -> None:
        same_layout = len(lower) == len(upper) and _dash_positions(lower) == _dash_positions(upper)
        cases = {_hex_case(lower), _hex_case(upper)} - {None}
        if not same_layout or len(cases) > 1:
            raise UnsupportedTypeError(
                f"Hex text bounds {lower!r} and {upper!r} must share one width, dash layout and letter case"
            )

    def midpoint(self, lower: str, upper: str) -> str:
        width = len(lower.replace("-", ""))
        lo, hi = hex_to_int(lower), hex_to_int(upper)
        mid = int_to_hex(lo + (hi - lo) // 2, pad_len=width)
        if "upper" in (_hex_case(lower), _hex_case(upper)):
            mid = mid.upper()
        for position in _dash_positions(lower):
            mid = mid[:position] + "-" + mid[position:]
        return mid

    def format_for_filter(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"


_FIELD_OPS: Dict[FieldType, FieldOps] = {}


def register_field_ops(ops: FieldOps) -> None:
    """Register (or replace) the arithmetic used for ``ops.field_type``"""
    _FIELD_OPS[ops.field_type] = ops


for _ops in (DateTimeOps(), DateOps(), IntegerOps(), FloatOps(), UuidTextOps()):
    register_field_ops(_ops)


def get_field_ops(field_type: FieldType) -> FieldOps:
    try:
        return _FIELD_OPS[FieldType(field_type)]
    except (KeyError, ValueError):
        raise UnsupportedTypeError(f"No boundary arithmetic registered for field type {field_type!r}") from None


def infer_field_type(lower: Any, upper: Any = None) -> FieldType:
    """Pick the field type for a pair of bound values; both must agree"""
    upper = lower if upper is None else upper
    # datetime before date, integer before float: the narrower type wins
    for field_type in (FieldType.DATETIME, FieldType.DATE, FieldType.INTEGER, FieldType.FLOAT, FieldType.UUID_TEXT):
        ops = _FIELD_OPS.get(field_type)
        if ops and ops.accepts(lower) and ops.accepts(upper):
            return field_type
    raise UnsupportedTypeError.for_bounds(lower, upper)


def midpoint(lower: Any, upper: Any, field_type: Optional[FieldType] = None) -> Any:
    """Return a value between ``lower`` and ``upper``.

    For ranges narrower than the type's resolution the result equals one of
    the bounds; callers must check with ``is_strictly_between``.

    Raises:
        UnsupportedTypeError: no arithmetic is defined for the values' type
    """
    if field_type is None:
        field_type = infer_field_type(lower, upper)
    ops = get_field_ops(field_type)
    if not (ops.accepts(lower) and ops.accepts(upper)):
        raise UnsupportedTypeError.for_bounds(lower, upper)
    ops.check_bounds(lower, upper)
    return ops.midpoint(lower, upper)


def is_strictly_between(lower: Any, value: Any, upper: Any, field_type: FieldType) -> bool:
    ops = get_field_ops(field_type)
    return ops.compare(lower, value) < 0 and ops.compare(value, upper) < 0


def build_range_filter(
    field_name: str,
    global_lower_bound: Any,
    range_lower: Any,
    range_upper: Any,
    field_type: Optional[FieldType] = None,
    lower_inclusive: Optional[bool] = None,
) -> RangeFilter:
    """Build the filter for one range of the field.

    The lower comparison is strict unless ``range_lower`` is the global
    lower bound, in which case it is inclusive. Passing ``lower_inclusive``
    overrides that choice; the engine does so for the range that follows a
    single-value range split off the global lower bound. The upper
    comparison is always inclusive.
    """
    if field_type is None:
        field_type = infer_field_type(range_lower, range_upper)
    ops = get_field_ops(field_type)
    if lower_inclusive is None:
        lower_inclusive = ops.compare(range_lower, global_lower_bound) == 0
    return RangeFilter(
        field_name=field_name,
        lower=range_lower,
        upper=range_upper,
        field_type=ops.field_type,
        lower_inclusive=lower_inclusive,
        upper_inclusive=True,
    )
