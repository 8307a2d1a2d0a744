from typing import Any, List, Literal, Tuple

from ..core.enums import FilterDialect
from ..core.models import RangeFilter
from .boundary import get_field_ops


class FilterBuilder:
    """Render a RangeFilter into the expression syntax of a concrete store"""

    @staticmethod
    def to_odata(range_filter: RangeFilter) -> str:
        """OData ``$filter`` expression, as accepted by search services"""
        ops = get_field_ops(range_filter.field_type)
        field_name = range_filter.field_name
        lower_op = 'ge' if range_filter.lower_inclusive else 'gt'
        upper_op = 'le' if range_filter.upper_inclusive else 'lt'
        return (
            f"{field_name} {lower_op} {ops.format_for_filter(range_filter.lower)} "
            f"and {field_name} {upper_op} {ops.format_for_filter(range_filter.upper)}"
        )

    @staticmethod
    def to_sql(
        range_filter: RangeFilter,
        dialect: Literal['psycopg', 'asyncpg', 'mysql'] = 'asyncpg',
        param_offset: int = 0,
    ) -> Tuple[str, List[Any]]:
        """Parameterised SQL ``WHERE`` clause and its parameters"""
        def get_placeholder(index: int) -> str:
            if dialect in ('psycopg', 'mysql'):
                return "%s"
            elif dialect == 'asyncpg':
                return f"${index + 1}"  # asyncpg starts from $1
            else:
                raise ValueError(f"Unsupported dialect: {dialect}")

        column = range_filter.field_name
        lower_op = '>=' if range_filter.lower_inclusive else '>'
        upper_op = '<=' if range_filter.upper_inclusive else '<'
        params = [range_filter.lower, range_filter.upper]
        clause = (
            f"{column} {lower_op} {get_placeholder(param_offset)} "
            f"AND {column} {upper_op} {get_placeholder(param_offset + 1)}"
        )
        return clause, params

    @staticmethod
    def build(range_filter: RangeFilter, dialect: FilterDialect = FilterDialect.ODATA) -> str:
        """Human readable expression, used for logging and error messages"""
        if dialect == FilterDialect.SQL:
            clause, params = FilterBuilder.to_sql(range_filter, dialect='psycopg')
            ops = get_field_ops(range_filter.field_type)
            for param in params:
                clause = clause.replace("%s", ops.format_for_filter(param), 1)
            return clause
        return FilterBuilder.to_odata(range_filter)
