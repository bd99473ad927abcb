"""Workflow step schemas."""

from app.schemas.types import CamelModel, OptionalStr


class WorkflowUpdateRequest(CamelModel):
    job_id: OptionalStr = None
    completed_step: OptionalStr = None
    current_step: OptionalStr = None
