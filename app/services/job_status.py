"""
Job status transitions.

Each progress status stamps its own timestamp and coordinates the first time
it is reached; repeating the call keeps the original stamp. Extra submission
fields sent alongside a status change are merged in when they are on the
allow-list and present in the deployed ``job_orders`` table.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional
import logging

from sqlalchemy import Date, DateTime, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schema import schema_registry, OptionalTable
from app.exceptions import BadRequestError, ErrorCode
from app.models.job_order import JobOrder
from app.models.operator_status_history import OperatorStatusHistory
from app.models.profile import Profile
from app.services.audit import AuditService
from app.utils.serialization import utcnow

logger = logging.getLogger(__name__)


VALID_STATUSES: tuple[str, ...] = (
    "scheduled",
    "assigned",
    "in_route",
    "in_progress",
    "completed",
    "cancelled",
)


@dataclass(frozen=True)
class Stamp:
    timestamp: str
    latitude: str
    longitude: str


# Status -> columns written once when the status is first reached
STATUS_STAMPS: dict[str, Stamp] = {
    "in_route": Stamp("route_started_at", "route_start_latitude", "route_start_longitude"),
    "in_progress": Stamp("work_started_at", "work_start_latitude", "work_start_longitude"),
    "completed": Stamp("work_completed_at", "work_end_latitude", "work_end_longitude"),
}

# Fields an operator may send along with a status change
EXTRA_STATUS_FIELDS: frozenset[str] = frozenset({
    "work_performed",
    "operator_notes",
    "completion_signature",
    "completion_signer_name",
    "completion_signed_at",
    "completion_notes",
    "contact_not_on_site",
    "work_order_signed",
    "work_order_signature",
    "work_order_signer_name",
    "work_order_signer_title",
    "work_order_signed_at",
    "cut_through_authorized",
    "cut_through_signature",
    "liability_release_signed_by",
    "liability_release_signature",
    "liability_release_signed_at",
    "liability_release_customer_name",
    "liability_release_customer_email",
    "customer_overall_rating",
    "customer_cleanliness_rating",
    "customer_communication_rating",
    "customer_feedback_comments",
    "job_difficulty_rating",
    "job_access_rating",
    "job_difficulty_notes",
    "job_access_notes",
    "feedback_submitted_at",
    "feedback_submitted_by",
})

# Fields accepted by the completion submission
SUBMISSION_FIELDS: frozenset[str] = frozenset({
    "work_performed",
    "materials_used",
    "equipment_used",
    "operator_notes",
    "issues_encountered",
    "customer_signature",
    "customer_satisfied",
    "photo_urls",
})


class InvalidStatusError(ValueError):
    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")


def validate_status(status: Optional[str]) -> str:
    if status not in VALID_STATUSES:
        raise InvalidStatusError(status)
    return status


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def coerce_column_value(column_name: str, value: Any) -> Any:
    """Convert ISO strings for date/datetime columns into Python values.

    Raises ValueError when a date or datetime column gets anything else.
    """
    column = JobOrder.__table__.columns.get(column_name)
    if column is None or value is None:
        return value
    if isinstance(column.type, (DateTime, Date)) and not isinstance(value, str):
        raise ValueError(f"expected an ISO 8601 string, got {type(value).__name__}")
    if isinstance(column.type, DateTime):
        return _parse_datetime(value)
    if isinstance(column.type, Date):
        return date.fromisoformat(value[:10])
    return value


def build_status_values(
    job: JobOrder,
    status: str,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    departure_time: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Column values for moving ``job`` to ``status``."""
    now = now or utcnow()
    values: dict[str, Any] = {"status": status}
    stamp = STATUS_STAMPS.get(status)
    if stamp is not None and getattr(job, stamp.timestamp) is None:
        values[stamp.timestamp] = now
        if latitude is not None:
            values[stamp.latitude] = latitude
        if longitude is not None:
            values[stamp.longitude] = longitude
        if status == "in_route" and departure_time:
            values["departure_time"] = departure_time
    return values


class JobStatusService:
    """Applies status changes and their side effects to job orders."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_job(self, job_id: str, lock: bool = False) -> Optional[JobOrder]:
        query = select(JobOrder).where(JobOrder.id == job_id)
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def filter_extra_fields(
        self,
        extras: dict[str, Any],
        allowed: frozenset[str] = EXTRA_STATUS_FIELDS,
    ) -> dict[str, Any]:
        """Keep allow-listed fields whose column exists in the live table."""
        deployed = await schema_registry.columns(self.db, JobOrder.__tablename__)
        kept, dropped = {}, []
        for name, value in extras.items():
            if name not in allowed:
                continue
            if name not in deployed:
                dropped.append(name)
                continue
            try:
                kept[name] = coerce_column_value(name, value)
            except ValueError:
                raise BadRequestError(
                    f"Invalid date for {name}: {value!r}",
                    code=ErrorCode.INVALID_FORMAT,
                )
        if dropped:
            logger.warning(f"Dropping fields absent from job_orders: {', '.join(sorted(dropped))}")
        return kept

    async def apply(self, job: JobOrder, values: dict[str, Any]) -> JobOrder:
        await self.db.execute(
            update(JobOrder)
            .where(JobOrder.id == job.id)
            .values(**values, updated_at=utcnow())
        )
        await self.db.refresh(job)
        return job

    async def update_status(
        self,
        job: JobOrder,
        actor: Profile,
        status: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        departure_time: Optional[str] = None,
        extras: Optional[dict[str, Any]] = None,
    ) -> JobOrder:
        previous_status = job.status
        now = utcnow()
        values = build_status_values(job, status, latitude, longitude, departure_time, now)
        if extras:
            values.update(await self.filter_extra_fields(extras))

        job = await self.apply(job, values)
        await self.record_operator_status(actor, job, status, now)

        if previous_status != status:
            await AuditService(self.db).record(
                job,
                actor,
                "status_changed",
                changes={"status": {"old": previous_status, "new": status}},
            )

        await self.db.commit()
        logger.info(f"Job {job.job_number} status {previous_status} -> {status} by {actor.id}")
        return job

    async def record_operator_status(
        self,
        actor: Profile,
        job: JobOrder,
        status: str,
        now: datetime,
    ) -> None:
        """Upsert the (operator, job) status row. Failures are logged only."""
        if not await schema_registry.has_table(self.db, OptionalTable.OPERATOR_STATUS_HISTORY):
            return

        await self.db.flush()
        try:
            async with self.db.begin_nested():
                result = await self.db.execute(
                    select(OperatorStatusHistory).where(
                        OperatorStatusHistory.operator_id == actor.id,
                        OperatorStatusHistory.job_order_id == job.id,
                    )
                )
                row = result.scalar_one_or_none()
                if row is None:
                    row = OperatorStatusHistory(operator_id=actor.id, job_order_id=job.id)
                    self.db.add(row)
                row.status = status
                stamp = STATUS_STAMPS.get(status)
                if stamp is not None:
                    setattr(row, stamp.timestamp, now)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to update operator status history for job {job.id}: {e}")

    async def submit_completion(
        self,
        job: JobOrder,
        actor: Profile,
        submission: dict[str, Any],
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> JobOrder:
        """Mark the job completed with the operator's submission data."""
        previous_status = job.status
        now = utcnow()
        values = build_status_values(job, "completed", latitude, longitude, now=now)
        for name, value in submission.items():
            if name in SUBMISSION_FIELDS:
                values[name] = value
        if submission.get("customer_signature") is not None:
            values["customer_signed_at"] = now

        job = await self.apply(job, values)
        await self.record_operator_status(actor, job, "completed", now)
        if previous_status != "completed":
            await AuditService(self.db).record(
                job,
                actor,
                "status_changed",
                changes={"status": {"old": previous_status, "new": "completed"}},
                notes="Job completed and data submitted",
            )

        await self.db.commit()
        logger.info(f"Job {job.job_number} submitted by {actor.id}")
        return job
