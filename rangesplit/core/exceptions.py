"""
Exceptions raised by rangesplit.

Transport errors from a counter (aiohttp, asyncpg) are not wrapped here;
they reach the caller unchanged.
"""
from asyncio import CancelledError


class RangeSplitError(Exception):
    """Base class for rangesplit errors"""


class UnsupportedTypeError(RangeSplitError, TypeError):
    """The field's value type has no ordering or midpoint arithmetic"""

    @classmethod
    def for_bounds(cls, lower, upper) -> 'UnsupportedTypeError':
        return cls(f"Unknown lower bound type {type(lower).__name__}, upper bound type {type(upper).__name__}")


class CountUnavailableError(RangeSplitError):
    """The counter could not report an exact total for a filter"""

    def __init__(self, filter_expression: str, total=None):
        self.filter_expression = filter_expression
        self.total = total
        super().__init__(f"Expected an exact total count for filter: {filter_expression} (got {total!r})")


class ConfigError(RangeSplitError, ValueError):
    """Invalid job configuration"""


__all__ = [
    'RangeSplitError',
    'UnsupportedTypeError',
    'CountUnavailableError',
    'ConfigError',
    'CancelledError',
]
