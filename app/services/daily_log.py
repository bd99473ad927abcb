"""
Daily logs for multi-day jobs.

An operator closes each working day with a log row. Continuing the next day
puts the job back to ``scheduled`` and clears the route and work start stamps
so the next day's status updates stamp them afresh.
"""

from typing import Optional, Union
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schema import schema_registry, OptionalTable
from app.models.daily_job_log import DailyJobLog
from app.models.job_order import JobOrder
from app.models.profile import Profile
from app.services.workflow import WorkflowService
from app.utils.serialization import as_utc, utcnow

logger = logging.getLogger(__name__)

# Columns cleared when a job rolls over to the next day
NEXT_DAY_CLEARED = (
    "route_started_at",
    "work_started_at",
    "route_start_latitude",
    "route_start_longitude",
    "work_start_latitude",
    "work_start_longitude",
)


def hours_worked_today(job: JobOrder, now=None) -> float:
    """Hours since work start, else route start, else zero."""
    start = job.work_started_at or job.route_started_at
    if start is None:
        return 0.0
    now = now or utcnow()
    return round((as_utc(now) - as_utc(start)).total_seconds() / 3600, 2)


def _text(value: Union[str, list, None]) -> Optional[str]:
    if isinstance(value, list):
        return "\n".join(str(item) for item in value) or None
    return value


class DailyLogService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def available(self) -> bool:
        return await schema_registry.has_table(self.db, OptionalTable.DAILY_JOB_LOGS)

    async def list_for_job(self, job_order_id: str) -> list[DailyJobLog]:
        if not await self.available():
            return []
        result = await self.db.execute(
            select(DailyJobLog)
            .where(DailyJobLog.job_order_id == job_order_id)
            .order_by(DailyJobLog.log_date.asc(), DailyJobLog.day_number.asc())
        )
        return list(result.scalars().all())

    async def submit(
        self,
        job: JobOrder,
        operator: Profile,
        work_performed: Union[str, list, None] = None,
        notes: Optional[str] = None,
        signer_name: Optional[str] = None,
        signature_data: Optional[str] = None,
        continue_next_day: bool = False,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> Optional[DailyJobLog]:
        """Write today's log and optionally roll the job over. Commits."""
        now = utcnow()
        log = None

        if await self.available():
            count = await self.db.scalar(
                select(func.count()).select_from(DailyJobLog).where(DailyJobLog.job_order_id == job.id)
            )
            log = DailyJobLog(
                job_order_id=job.id,
                operator_id=operator.id,
                log_date=now.date(),
                day_number=(count or 0) + 1,
                route_started_at=job.route_started_at,
                work_started_at=job.work_started_at,
                done_for_day_at=now,
                hours_worked=hours_worked_today(job, now),
                work_performed=_text(work_performed),
                notes=notes,
                signer_name=signer_name,
                signature_data=signature_data,
                continues_next_day=continue_next_day,
                latitude=latitude,
                longitude=longitude,
            )
            self.db.add(log)
        else:
            logger.info(f"daily_job_logs absent, no log stored for job {job.id}")

        if continue_next_day:
            job.is_multi_day = True
            job.status = "scheduled"
            for column in NEXT_DAY_CLEARED:
                setattr(job, column, None)
            await WorkflowService(self.db).reset_for(job.id, operator.id)

        await self.db.commit()
        logger.info(
            f"Daily log for job {job.job_number} by {operator.id}"
            f"{' (continues next day)' if continue_next_day else ''}"
        )
        return log
