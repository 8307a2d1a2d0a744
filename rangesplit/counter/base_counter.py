"""
Base interface for counting capabilities.

A counter answers one question for the partition engine: how many records
match a boundary filter. It owns its connection, its transport timeouts and
its retry policy; the engine never retries a count.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

from ..core.enums import FieldType
from ..core.models import CountResult, RangeFilter


class BaseCounter(ABC):
    """
    Abstract base class for all counter implementations.

    Provides:
    - Idempotent connect/disconnect operations guarded by a lock
    - Async context manager support
    """

    # Whether count() may be awaited concurrently from several tasks
    supports_concurrency: bool = True

    def __init__(self, name: Optional[str] = None):
        self.name = name or self.__class__.__name__
        self._connection_lock = asyncio.Lock()
        self._is_connected = False
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    async def _create_connection(self) -> None:
        """Open the underlying connection - overridden by network counters"""
        pass

    async def _cleanup_connections(self) -> None:
        """Close the underlying connection - overridden by network counters"""
        pass

    async def connect(self) -> None:
        """Connect to the record store - idempotent operation."""
        async with self._connection_lock:
            if self._is_connected:
                return
            self._logger.info(f"Connecting to {self.__class__.__name__}: {self.name}")
            try:
                await self._create_connection()
                self._is_connected = True
            except Exception as e:
                self._logger.error(f"Failed to connect to {self.__class__.__name__} {self.name}: {e}")
                await self._cleanup_connections()
                raise

    async def disconnect(self) -> None:
        """Disconnect from the record store - idempotent operation."""
        async with self._connection_lock:
            if not self._is_connected:
                return
            try:
                await self._cleanup_connections()
            except Exception as e:
                self._logger.error(f"Error during disconnect from {self.__class__.__name__} {self.name}: {e}")
            finally:
                # Still mark as disconnected even if cleanup failed
                self._is_connected = False

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    @abstractmethod
    async def count(self, range_filter: RangeFilter) -> CountResult:
        """
        Count records matching ``range_filter``.

        Returns:
            CountResult whose ``exact`` flag is False when the store could
            only estimate the total (or reported none at all)
        """
        pass

    async def get_field_bounds(self, field_name: str, field_type: FieldType) -> Tuple[Any, Any]:
        """Return the smallest and largest value of ``field_name`` in the store"""
        raise NotImplementedError(f"{self.__class__.__name__} cannot discover field bounds")
