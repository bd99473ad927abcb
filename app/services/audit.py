"""
Job Order Audit Trail

Computes field-level diffs of job orders and writes them to
``job_orders_history``. History writes are best-effort: a missing table or a
failed insert is logged and skipped, never failing the job change itself.
"""

from typing import Any, Iterable, Optional
import json
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schema import schema_registry, OptionalTable
from app.models.job_order import JobOrder
from app.models.job_order_history import JobOrderHistory
from app.models.profile import Profile
from app.utils.serialization import canonical_json, json_safe, row_to_dict

logger = logging.getLogger(__name__)


# Fields an admin edit is audited on
TRACKED_FIELDS: tuple[str, ...] = (
    "arrival_time",
    "shop_arrival_time",
    "location",
    "address",
    "customer_name",
    "foreman_name",
    "foreman_phone",
    "equipment_needed",
    "description",
    "assigned_to",
    "scheduled_date",
    "end_date",
    "estimated_hours",
    "operator_name",
    "status",
    "priority",
)


def compute_changes(
    before: dict[str, Any],
    after: dict[str, Any],
    tracked: Iterable[str] = TRACKED_FIELDS,
) -> dict[str, dict[str, Any]]:
    """Diff two row snapshots over ``tracked``.

    Values are compared by their canonical JSON text, so ``[1, 2]`` vs
    ``(1, 2)`` or a date vs its ISO string count as unchanged.
    """
    changes = {}
    for field in tracked:
        old, new = before.get(field), after.get(field)
        if canonical_json(old) != canonical_json(new):
            changes[field] = {"old": json_safe(old), "new": json_safe(new)}
    return changes


def humanize_field(name: str) -> str:
    """snake_case -> Title Case."""
    return " ".join(word.capitalize() for word in name.split("_") if word)


def format_value(value: Any) -> str:
    if value is None:
        return "Not set"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


def format_change_summary(changes: Optional[dict[str, Any]]) -> list[str]:
    lines = []
    for field, change in (changes or {}).items():
        if isinstance(change, dict) and ("old" in change or "new" in change):
            old, new = change.get("old"), change.get("new")
        else:
            old, new = None, change
        lines.append(f'{humanize_field(field)}: "{format_value(old)}" → "{format_value(new)}"')
    return lines


def history_entry_to_response(entry: JobOrderHistory) -> dict:
    return {
        "id": entry.id,
        "timestamp": json_safe(entry.changed_at),
        "changedBy": entry.changed_by_name,
        "changedById": entry.changed_by,
        "role": entry.changed_by_role,
        "changeType": entry.change_type,
        "changes": entry.changes or {},
        "changeSummary": format_change_summary(entry.changes),
        "notes": entry.notes,
    }


class AuditService:
    """History reads and best-effort writes for one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def available(self) -> bool:
        return await schema_registry.has_table(self.db, OptionalTable.JOB_ORDERS_HISTORY)

    async def record(
        self,
        job: JobOrder,
        actor: Profile,
        change_type: str,
        changes: Optional[dict] = None,
        snapshot: Optional[dict] = None,
        notes: Optional[str] = None,
    ) -> Optional[JobOrderHistory]:
        """Add a history row inside a savepoint of the caller's transaction.

        Pending changes are flushed first so the savepoint opens inside an
        active transaction. The caller commits.
        """
        if not await self.available():
            logger.info(f"History table absent, skipping {change_type} entry for job {job.id}")
            return None

        entry = JobOrderHistory(
            job_order_id=job.id,
            job_number=job.job_number,
            changed_by=actor.id,
            changed_by_name=actor.full_name or actor.email,
            changed_by_role=actor.role,
            change_type=change_type,
            changes=changes,
            snapshot=snapshot if snapshot is not None else row_to_dict(job),
            notes=notes,
        )
        job_id = job.id
        await self.db.flush()
        try:
            async with self.db.begin_nested():
                self.db.add(entry)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to write {change_type} history for job {job_id}: {e}")
            return None
        return entry

    async def list_for_job(self, job_order_id: str) -> list[JobOrderHistory]:
        if not await self.available():
            return []
        try:
            result = await self.db.execute(
                select(JobOrderHistory)
                .where(JobOrderHistory.job_order_id == job_order_id)
                .order_by(JobOrderHistory.changed_at.desc())
            )
        except SQLAlchemyError as e:
            logger.warning(f"Failed to read history for job {job_order_id}: {e}")
            return []
        return list(result.scalars().all())
