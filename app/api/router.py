from fastapi import APIRouter
from app.api.routes import (
    job_orders,
    admin_job_orders,
    workflow,
    timecards,
    admin_timecards,
    standby,
    equipment,
    equipment_usage,
    inventory,
    operator_ratings,
    access_requests,
)

api_router = APIRouter()

# Operator-facing
api_router.include_router(job_orders.router, prefix="/job-orders", tags=["job-orders"])
api_router.include_router(workflow.router, prefix="/workflow", tags=["workflow"])
api_router.include_router(timecards.router, prefix="/timecard", tags=["timecard"])
api_router.include_router(standby.router, prefix="/standby", tags=["standby"])
api_router.include_router(equipment.router, prefix="/equipment", tags=["equipment"])
api_router.include_router(equipment_usage.router, prefix="/equipment-usage", tags=["equipment-usage"])
api_router.include_router(operator_ratings.router, prefix="/operator-ratings", tags=["operator-ratings"])
api_router.include_router(access_requests.router, prefix="/access-requests", tags=["access-requests"])

# Admin
api_router.include_router(admin_job_orders.router, prefix="/admin/job-orders", tags=["admin"])
api_router.include_router(workflow.admin_router, prefix="/admin/job-workflow", tags=["admin"])
api_router.include_router(admin_timecards.router, prefix="/admin/timecards", tags=["admin"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
