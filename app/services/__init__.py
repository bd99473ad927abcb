# Services module
from app.services.workflow import WorkflowService, WorkflowStep
from app.services.audit import AuditService
from app.services.job_status import JobStatusService
from app.services.daily_log import DailyLogService
from app.services.timecards import TimecardService
from app.services.ratings import RatingService
from app.services.inventory import InventoryService

__all__ = [
    "WorkflowService",
    "WorkflowStep",
    "AuditService",
    "JobStatusService",
    "DailyLogService",
    "TimecardService",
    "RatingService",
    "InventoryService",
]
