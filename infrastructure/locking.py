"""Per-table critical sections for the detect-then-commit sequence"""
import asyncio
import logging
from contextlib import asynccontextmanager, AsyncExitStack
from typing import Dict, Hashable

logger = logging.getLogger(__name__)


class TableLockRegistry:
    """Hands out one asyncio.Lock per table id.

    Several tables are always locked in sorted order, so two requests
    moving reservations between the same pair of tables cannot deadlock.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, *table_ids: Hashable):
        keys = sorted({str(table_id) for table_id in table_ids})
        async with AsyncExitStack() as stack:
            for key in keys:
                await stack.enter_async_context(self._lock_for(key))
            logger.debug("Holding table locks %s", keys)
            yield
