"""
Inventory API

Shop stock of blades, bits and small tools. Admin-only: receiving stock,
issuing serialized units to operators and reading the transaction log.
"""
from typing import Annotated, Optional
import logging

from fastapi import APIRouter, Depends, Query

from app.api.deps import DbSession
from app.exceptions import BadRequestError, ErrorCode
from app.models.profile import Profile
from app.schemas.inventory import InventoryAssignRequest, InventoryCreate, StockAddRequest
from app.security.rbac import Permission, require_permission
from app.services.inventory import InventoryService, inventory_to_response

logger = logging.getLogger(__name__)
router = APIRouter()

Manager = Annotated[Profile, Depends(require_permission(Permission.MANAGE_INVENTORY))]


@router.get("")
async def list_inventory(
    db: DbSession,
    admin: Manager,
    category: Optional[str] = None,
    low_stock: bool = Query(False, alias="lowStock"),
):
    """Stocked items, newest first."""
    items = await InventoryService(db).list_items(category, low_stock)
    return {"success": True, "data": [inventory_to_response(i) for i in items]}


@router.post("", status_code=201)
async def create_inventory_item(
    body: InventoryCreate,
    db: DbSession,
    admin: Manager,
):
    item = await InventoryService(db).create(body.model_dump(), admin)
    return {
        "success": True,
        "message": "Inventory item created successfully",
        "data": inventory_to_response(item),
    }


@router.post("/add-stock")
async def add_stock(
    body: StockAddRequest,
    db: DbSession,
    admin: Manager,
):
    if not body.inventory_id or body.quantity is None:
        raise BadRequestError("Missing required fields: inventory_id, quantity", code=ErrorCode.MISSING_FIELD)

    item = await InventoryService(db).add_stock(body.inventory_id, body.quantity, admin, body.notes)
    return {
        "success": True,
        "inventory": inventory_to_response(item),
        "message": f"Successfully added {body.quantity} units to stock",
    }


@router.post("/assign")
async def assign_from_inventory(
    body: InventoryAssignRequest,
    db: DbSession,
    admin: Manager,
):
    """Issue one unit to an operator; it becomes an ``in_use`` equipment row."""
    if not (body.inventory_id and body.operator_id and body.serial_number):
        raise BadRequestError(
            "Missing required fields: inventory_id, operator_id, serial_number",
            code=ErrorCode.MISSING_FIELD,
        )

    equipment = await InventoryService(db).assign(
        body.inventory_id, body.operator_id, body.serial_number, admin, body.notes
    )
    return {
        "success": True,
        "equipment_id": equipment.id,
        "message": "Equipment assigned successfully",
    }


@router.get("/history")
async def inventory_history(
    db: DbSession,
    admin: Manager,
    transaction_type: Optional[str] = Query(None, alias="type"),
    inventory_id: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
):
    entries = await InventoryService(db).history(transaction_type, inventory_id, limit)
    return {"success": True, "data": entries}
