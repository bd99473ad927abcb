from app.models.profile import Profile
from app.models.job_order import JobOrder
from app.models.workflow_step import WorkflowStepRecord
from app.models.job_order_history import JobOrderHistory
from app.models.operator_status_history import OperatorStatusHistory
from app.models.daily_job_log import DailyJobLog
from app.models.timecard import Timecard
from app.models.standby_log import StandbyLog
from app.models.access_request import AccessRequest
from app.models.equipment import (
    Equipment,
    EquipmentUsage,
    EquipmentDamageReport,
    EquipmentRepair,
    EquipmentMaintenanceSchedule,
    EquipmentTurnInRequest,
    EquipmentMaintenanceAlert,
)
from app.models.inventory import Inventory, InventoryTransaction

__all__ = [
    "Profile",
    "JobOrder",
    "WorkflowStepRecord",
    "JobOrderHistory",
    "OperatorStatusHistory",
    "DailyJobLog",
    "Timecard",
    "StandbyLog",
    "AccessRequest",
    # Equipment
    "Equipment",
    "EquipmentUsage",
    "EquipmentDamageReport",
    "EquipmentRepair",
    "EquipmentMaintenanceSchedule",
    "EquipmentTurnInRequest",
    "EquipmentMaintenanceAlert",
    # Inventory
    "Inventory",
    "InventoryTransaction",
]
