"""
Serialization point for prerequisite-graph writes.

Two concurrent inserts may each pass a cycle check against a graph that does
not yet contain the other's edge, and together close a loop. Insertion
(existence check + cycle check + create) therefore runs under a lock per
graph, and the caller commits before leaving the block.

Within one process an asyncio.Lock per graph name serializes writers. On
PostgreSQL a transaction-scoped advisory lock extends that across processes;
SQLite already serializes writers at the database level.
"""

import asyncio
import weakref
import zlib
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from lyceum.engines.prerequisites.graph_store import storage_errors

LECTURE_GRAPH = "lecture_prerequisites"
CONCEPT_GRAPH = "concept_hierarchy"

# asyncio locks belong to one event loop; keep a set per running loop
_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[str, asyncio.Lock]]" = (
    weakref.WeakKeyDictionary()
)


def _lock_for(graph_name: str) -> asyncio.Lock:
    per_loop = _locks.setdefault(asyncio.get_running_loop(), {})
    lock = per_loop.get(graph_name)
    if lock is None:
        lock = per_loop[graph_name] = asyncio.Lock()
    return lock


def advisory_key(graph_name: str) -> int:
    """Stable signed 64-bit key for pg_advisory_xact_lock."""
    return zlib.crc32(graph_name.encode("utf-8")) - 2**31


@asynccontextmanager
async def graph_write_lock(session: AsyncSession, graph_name: str) -> AsyncIterator[None]:
    """
    Hold the write lock for ``graph_name`` for the duration of the block.

    The advisory lock is released when the session's transaction ends, so the
    block must commit before it exits. A block that raises is rolled back
    here, before the process-level lock is released.
    """
    async with _lock_for(graph_name):
        if session.bind is not None and session.bind.dialect.name == "postgresql":
            async with storage_errors("advisory_lock"):
                await session.execute(
                    text("SELECT pg_advisory_xact_lock(:key)"),
                    {"key": advisory_key(graph_name)},
                )
        try:
            yield
        except Exception:
            await session.rollback()
            raise
