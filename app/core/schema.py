"""
Schema registry for optional tables.

Some deployments run without the tracking tables (workflow steps, history,
daily logs, timecards) or with an older job_orders table. Instead of
catching driver errors and matching their text, features ask the registry
whether the table or column they need is present. The registry reflects the
live schema once and caches it until reset().
"""

from enum import Enum
import logging

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class OptionalTable(str, Enum):
    """Tables whose absence degrades a feature instead of failing it."""

    WORKFLOW_STEPS = "workflow_steps"
    JOB_ORDERS_HISTORY = "job_orders_history"
    OPERATOR_STATUS_HISTORY = "operator_status_history"
    DAILY_JOB_LOGS = "daily_job_logs"
    TIMECARDS = "timecards"


def _reflect(sync_conn) -> dict[str, frozenset[str]]:
    inspector = inspect(sync_conn)
    return {
        table: frozenset(column["name"] for column in inspector.get_columns(table))
        for table in inspector.get_table_names()
    }


class SchemaRegistry:
    """Cached view of which tables and columns exist in the database."""

    def __init__(self):
        self._tables: dict[str, frozenset[str]] | None = None

    async def _load(self, db: AsyncSession) -> dict[str, frozenset[str]]:
        if self._tables is None:
            conn = await db.connection()
            self._tables = await conn.run_sync(_reflect)
            logger.info("Schema registry loaded %d tables", len(self._tables))
            missing = [t.value for t in OptionalTable if t.value not in self._tables]
            if missing:
                logger.warning("Optional tables not present: %s", ", ".join(missing))
        return self._tables

    async def has_table(self, db: AsyncSession, table: str | OptionalTable) -> bool:
        name = table.value if isinstance(table, OptionalTable) else table
        return name in await self._load(db)

    async def columns(self, db: AsyncSession, table: str) -> frozenset[str]:
        return (await self._load(db)).get(table, frozenset())

    async def refresh(self, db: AsyncSession) -> None:
        self.reset()
        await self._load(db)

    def reset(self) -> None:
        """Forget the cached schema, e.g. after migrations ran."""
        self._tables = None


schema_registry = SchemaRegistry()
