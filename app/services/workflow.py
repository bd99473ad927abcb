"""
Job Workflow State Machine

Operators move through a fixed on-site checklist. Each step has a boolean
column on ``workflow_steps``; the transition table below decides which steps
become available once a step is complete. Completing a step never touches
any other flag, and ``current_step`` only changes when a caller names it.
"""

from enum import Enum
from typing import Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schema import schema_registry, OptionalTable
from app.models.workflow_step import WorkflowStepRecord

logger = logging.getLogger(__name__)


class WorkflowStep(str, Enum):
    EQUIPMENT_CHECKLIST = "equipment_checklist"
    IN_ROUTE = "in_route"
    LIABILITY_RELEASE = "liability_release"
    SILICA_FORM = "silica_form"
    WORK_PERFORMED = "work_performed"
    PICTURES = "pictures"
    CUSTOMER_SIGNATURE = "customer_signature"
    JOB_COMPLETE = "job_complete"


INITIAL_STEP = WorkflowStep.EQUIPMENT_CHECKLIST

# Step -> completion flag column
STEP_COLUMNS: dict[WorkflowStep, str] = {
    WorkflowStep.EQUIPMENT_CHECKLIST: "equipment_checklist_completed",
    WorkflowStep.IN_ROUTE: "sms_sent",
    WorkflowStep.LIABILITY_RELEASE: "liability_release_completed",
    WorkflowStep.SILICA_FORM: "silica_form_completed",
    WorkflowStep.WORK_PERFORMED: "work_performed_completed",
    WorkflowStep.PICTURES: "pictures_submitted",
    WorkflowStep.CUSTOMER_SIGNATURE: "customer_signature_received",
    WorkflowStep.JOB_COMPLETE: "job_completed",
}

# Step -> steps that may be completed once it is complete
ALLOWED_NEXT: dict[WorkflowStep, frozenset[WorkflowStep]] = {
    WorkflowStep.EQUIPMENT_CHECKLIST: frozenset({WorkflowStep.IN_ROUTE}),
    WorkflowStep.IN_ROUTE: frozenset({WorkflowStep.LIABILITY_RELEASE}),
    WorkflowStep.LIABILITY_RELEASE: frozenset({WorkflowStep.SILICA_FORM}),
    WorkflowStep.SILICA_FORM: frozenset({WorkflowStep.WORK_PERFORMED}),
    WorkflowStep.WORK_PERFORMED: frozenset({WorkflowStep.PICTURES}),
    WorkflowStep.PICTURES: frozenset({WorkflowStep.CUSTOMER_SIGNATURE}),
    WorkflowStep.CUSTOMER_SIGNATURE: frozenset({WorkflowStep.JOB_COMPLETE}),
    WorkflowStep.JOB_COMPLETE: frozenset(),
}

PREREQUISITES: dict[WorkflowStep, frozenset[WorkflowStep]] = {
    step: frozenset(src for src, targets in ALLOWED_NEXT.items() if step in targets)
    for step in WorkflowStep
}


class UnknownStepError(ValueError):
    def __init__(self, name: str):
        self.name = name
        valid = ", ".join(step.value for step in WorkflowStep)
        super().__init__(f"Unknown workflow step '{name}'. Must be one of: {valid}")


class WorkflowOrderError(Exception):
    """A step was completed before any of its prerequisites."""

    def __init__(self, step: WorkflowStep, required: frozenset[WorkflowStep]):
        self.step = step
        self.required = sorted(s.value for s in required)
        super().__init__(
            f"Cannot complete '{step.value}' before: {', '.join(self.required)}"
        )


def parse_step(name: str) -> WorkflowStep:
    try:
        return WorkflowStep(name)
    except ValueError:
        raise UnknownStepError(name)


def completed_steps(record: WorkflowStepRecord) -> set[WorkflowStep]:
    return {step for step, column in STEP_COLUMNS.items() if getattr(record, column)}


def available_steps(record: WorkflowStepRecord) -> list[WorkflowStep]:
    """Incomplete steps whose prerequisites are satisfied."""
    done = completed_steps(record)
    return [
        step for step in WorkflowStep
        if step not in done and (not PREREQUISITES[step] or PREREQUISITES[step] & done)
    ]


def check_transition(record: WorkflowStepRecord, step: WorkflowStep) -> None:
    """Raise WorkflowOrderError if ``step`` cannot be completed yet.

    Re-completing a finished step is always allowed.
    """
    done = completed_steps(record)
    if step in done:
        return
    required = PREREQUISITES[step]
    if required and not (required & done):
        raise WorkflowOrderError(step, required)


def apply_update(
    record: WorkflowStepRecord,
    completed_step: Optional[WorkflowStep],
    current_step: Optional[WorkflowStep],
    enforce_order: bool = True,
) -> None:
    if completed_step is not None:
        if enforce_order:
            check_transition(record, completed_step)
        setattr(record, STEP_COLUMNS[completed_step], True)
    if current_step is not None:
        record.current_step = current_step.value


def reset(record: WorkflowStepRecord) -> None:
    for column in STEP_COLUMNS.values():
        setattr(record, column, False)
    record.current_step = INITIAL_STEP.value


def to_response(record: WorkflowStepRecord) -> dict:
    data = {
        "id": record.id,
        "job_order_id": record.job_order_id,
        "operator_id": record.operator_id,
        "current_step": record.current_step,
        "available_steps": [step.value for step in available_steps(record)],
    }
    for column in STEP_COLUMNS.values():
        data[column] = bool(getattr(record, column))
    return data


class WorkflowService:
    """Reads and writes workflow_steps rows; returns None when the table is absent."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def available(self) -> bool:
        return await schema_registry.has_table(self.db, OptionalTable.WORKFLOW_STEPS)

    async def _find(self, job_order_id: str, operator_id: str) -> Optional[WorkflowStepRecord]:
        result = await self.db.execute(
            select(WorkflowStepRecord).where(
                WorkflowStepRecord.job_order_id == job_order_id,
                WorkflowStepRecord.operator_id == operator_id,
            )
        )
        return result.scalar_one_or_none()

    def _new(self, job_order_id: str, operator_id: str) -> WorkflowStepRecord:
        record = WorkflowStepRecord(job_order_id=job_order_id, operator_id=operator_id)
        reset(record)
        return record

    async def _insert(self, record: WorkflowStepRecord) -> WorkflowStepRecord:
        """Insert a new row, or return the row a concurrent request inserted first."""
        try:
            async with self.db.begin_nested():
                self.db.add(record)
        except IntegrityError:
            existing = await self._find(record.job_order_id, record.operator_id)
            if existing is None:
                raise
            logger.info(
                f"Workflow for job {record.job_order_id}, operator {record.operator_id} "
                f"was created concurrently"
            )
            return existing
        logger.info(f"Created workflow for job {record.job_order_id}, operator {record.operator_id}")
        return record

    async def get_or_create(self, job_order_id: str, operator_id: str) -> Optional[WorkflowStepRecord]:
        if not await self.available():
            return None
        record = await self._find(job_order_id, operator_id)
        if record is None:
            record = await self._insert(self._new(job_order_id, operator_id))
            await self.db.commit()
        return record

    async def record_progress(
        self,
        job_order_id: str,
        operator_id: str,
        completed_step: Optional[WorkflowStep],
        current_step: Optional[WorkflowStep],
        enforce_order: bool,
    ) -> Optional[WorkflowStepRecord]:
        """Upsert by (job, operator) and apply one transition."""
        if not await self.available():
            return None
        record = await self._find(job_order_id, operator_id)
        if record is None:
            # Rejected transitions leave the session untouched
            candidate = self._new(job_order_id, operator_id)
            apply_update(candidate, completed_step, current_step, enforce_order)
            record = await self._insert(candidate)
            if record is candidate:
                await self.db.commit()
                return record
        apply_update(record, completed_step, current_step, enforce_order)
        await self.db.commit()
        return record

    async def reset_for(self, job_order_id: str, operator_id: str) -> Optional[WorkflowStepRecord]:
        """Return the operator's workflow to its first step (caller commits)."""
        if not await self.available():
            return None
        record = await self._find(job_order_id, operator_id)
        if record is not None:
            reset(record)
        return record

    async def list_for_job(self, job_order_id: str) -> Optional[list[WorkflowStepRecord]]:
        if not await self.available():
            return None
        result = await self.db.execute(
            select(WorkflowStepRecord)
            .where(WorkflowStepRecord.job_order_id == job_order_id)
            .order_by(WorkflowStepRecord.created_at)
        )
        return list(result.scalars().all())
