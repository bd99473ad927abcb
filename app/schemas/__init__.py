from app.schemas.job_order import (
    JobOrderCreate,
    JobOrderUpdate,
    StatusUpdateRequest,
    JobSubmission,
    HistoryNoteRequest,
    DailyLogRequest,
)
from app.schemas.workflow import WorkflowUpdateRequest
from app.schemas.timecard import ClockRequest, TimecardApproveRequest, TimecardUpdateRequest
from app.schemas.standby import StandbyStartRequest, StandbyEndRequest
from app.schemas.rating import OperatorRatingRequest
from app.schemas.access_request import (
    AccessRequestCreate,
    AccessRequestApprove,
    AccessRequestDeny,
)
from app.schemas.equipment import (
    EquipmentCreate,
    EquipmentUpdate,
    EquipmentCheckout,
    EquipmentUsageCreate,
    DamageReportCreate,
    DamageReportUpdate,
    RepairCreate,
    RepairUpdate,
    MaintenanceScheduleCreate,
    MaintenanceScheduleUpdate,
    TurnInRequestCreate,
    TurnInRequestUpdate,
    MaintenanceAlertUpdate,
)
from app.schemas.inventory import (
    InventoryCreate,
    StockAddRequest,
    InventoryAssignRequest,
)

__all__ = [
    # Job orders
    "JobOrderCreate",
    "JobOrderUpdate",
    "StatusUpdateRequest",
    "JobSubmission",
    "HistoryNoteRequest",
    "DailyLogRequest",
    "WorkflowUpdateRequest",
    # Time clock
    "ClockRequest",
    "TimecardApproveRequest",
    "TimecardUpdateRequest",
    "StandbyStartRequest",
    "StandbyEndRequest",
    "OperatorRatingRequest",
    # Access requests
    "AccessRequestCreate",
    "AccessRequestApprove",
    "AccessRequestDeny",
    # Equipment
    "EquipmentCreate",
    "EquipmentUpdate",
    "EquipmentCheckout",
    "EquipmentUsageCreate",
    "DamageReportCreate",
    "DamageReportUpdate",
    "RepairCreate",
    "RepairUpdate",
    "MaintenanceScheduleCreate",
    "MaintenanceScheduleUpdate",
    "TurnInRequestCreate",
    "TurnInRequestUpdate",
    "MaintenanceAlertUpdate",
    # Inventory
    "InventoryCreate",
    "StockAddRequest",
    "InventoryAssignRequest",
]
