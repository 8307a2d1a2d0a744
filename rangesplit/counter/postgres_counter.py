"""
Counter backed by a PostgreSQL table, using asyncpg.
"""
import re
from typing import Any, Optional, Tuple

from ..core.enums import FieldType
from ..core.models import CounterConfig, CountResult, RangeFilter
from ..utils.filter_builder import FilterBuilder
from .base_counter import BaseCounter

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _quote_identifier(name: str) -> str:
    parts = name.split('.')
    for part in parts:
        if not _IDENTIFIER.match(part):
            raise ValueError(f"Invalid SQL identifier: {name}")
    return '.'.join(f'"{part}"' for part in parts)


class PostgresCounter(BaseCounter):
    """
    Count table rows with ``SELECT COUNT(*)``.

    Features:
    - Connection pooling with asyncpg
    - Lazy loading of the asyncpg driver
    - Counts are always exact
    """

    def __init__(self, config: CounterConfig, name: Optional[str] = None):
        super().__init__(name or config.table)
        if not config.table:
            raise ValueError("Postgres counter requires a table")
        self.config = config
        self._connection_pool = None
        table = _quote_identifier(config.table)
        self.table_name = f"{_quote_identifier(config.schema)}.{table}" if config.schema else table

    async def _create_connection(self) -> None:
        """Create PostgreSQL connection pool using asyncpg"""
        try:
            import asyncpg
        except ImportError:
            raise ImportError(
                "asyncpg is required for the PostgreSQL counter. "
                "Install it with: pip install asyncpg"
            )

        self._connection_pool = await asyncpg.create_pool(
            host=self.config.host,
            port=self.config.port or 5432,
            user=self.config.user,
            password=self.config.password,
            database=self.config.database,
            min_size=self.config.min_connections,
            max_size=self.config.max_connections,
        )

    async def _cleanup_connections(self) -> None:
        if self._connection_pool:
            await self._connection_pool.close()
            self._connection_pool = None

    def build_count_query(self, range_filter: RangeFilter) -> Tuple[str, list]:
        column_filter = RangeFilter(
            field_name=_quote_identifier(range_filter.field_name),
            lower=range_filter.lower,
            upper=range_filter.upper,
            field_type=range_filter.field_type,
            lower_inclusive=range_filter.lower_inclusive,
            upper_inclusive=range_filter.upper_inclusive,
        )
        clause, params = FilterBuilder.to_sql(column_filter, dialect='asyncpg')
        return f"SELECT COUNT(*) AS count FROM {self.table_name} WHERE {clause}", params

    async def count(self, range_filter: RangeFilter) -> CountResult:
        if self._connection_pool is None:
            raise RuntimeError(f"PostgreSQL counter {self.name} is not connected. Call connect() first.")
        query, params = self.build_count_query(range_filter)
        self._logger.debug(f"Executing PostgreSQL query: {query} with params: {params}")
        total = await self._connection_pool.fetchval(query, *params)
        return CountResult(total=total, exact=total is not None)

    async def get_field_bounds(self, field_name: str, field_type: FieldType) -> Tuple[Any, Any]:
        if self._connection_pool is None:
            raise RuntimeError(f"PostgreSQL counter {self.name} is not connected. Call connect() first.")
        column = _quote_identifier(field_name)
        query = f"SELECT MIN({column}) AS min_val, MAX({column}) AS max_val FROM {self.table_name}"
        row = await self._connection_pool.fetchrow(query)
        return row['min_val'], row['max_val']
